"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from kcalfit.tracking.inference import parse_trend_window
from kcalfit.tracking.models import ConfidenceLevel, Grouping, InvalidSettingError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".kcalfit"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "kcalfit.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class AnalysisConfig:
    """Analysis defaults used until the tracker stores its own preferences."""

    confidence: ConfidenceLevel = ConfidenceLevel.P95
    trend_window: Optional[int] = None  # None = all data
    grouping: Grouping = Grouping.WEEK


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"

    def __post_init__(self) -> None:
        self.level = self.level.upper()
        if self.level not in LOG_LEVELS:
            raise InvalidSettingError(
                f"Log level must be one of {', '.join(LOG_LEVELS)}, got {self.level!r}"
            )


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.kcalfit/config.yaml

        Returns:
            Settings instance

        Raises:
            InvalidSettingError: If a value is outside its allowed set
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse database config
        if "database" in data:
            db_data = data["database"] or {}
            if "path" in db_data:
                settings.database.path = Path(db_data["path"]).expanduser()

        # Parse analysis config
        if "analysis" in data:
            analysis_data = data["analysis"] or {}
            if "confidence" in analysis_data:
                settings.analysis.confidence = ConfidenceLevel.parse(
                    analysis_data["confidence"]
                )
            if "trend_window" in analysis_data:
                settings.analysis.trend_window = parse_trend_window(
                    analysis_data["trend_window"]
                )
            if "grouping" in analysis_data:
                settings.analysis.grouping = Grouping.parse(analysis_data["grouping"])

        # Parse logging config
        if "logging" in data:
            log_data = data["logging"] or {}
            if "level" in log_data:
                settings.logging = LoggingConfig(level=str(log_data["level"]))

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.kcalfit/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "analysis": {
                "confidence": self.analysis.confidence.value,
                "trend_window": self.analysis.trend_window or "all",
                "grouping": self.analysis.grouping.value,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
