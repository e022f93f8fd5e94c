"""Tests for YAML settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from kcalfit.config.settings import LoggingConfig, Settings
from kcalfit.tracking.models import ConfidenceLevel, Grouping, InvalidSettingError


class TestSettings:
    """Tests for Settings load/save."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = Settings.load(tmp_path / "missing.yaml")
        assert settings.analysis.confidence is ConfidenceLevel.P95
        assert settings.analysis.trend_window is None
        assert settings.analysis.grouping is Grouping.WEEK
        assert settings.logging.level == "WARNING"

    def test_round_trip(self, tmp_path):
        path = tmp_path / "config.yaml"
        settings = Settings()
        settings.database.path = tmp_path / "data.db"
        settings.analysis.confidence = ConfidenceLevel.P80
        settings.analysis.trend_window = 30
        settings.analysis.grouping = Grouping.TWO_MONTHS
        settings.logging = LoggingConfig(level="debug")
        settings.save(path)

        loaded = Settings.load(path)
        assert loaded.database.path == tmp_path / "data.db"
        assert loaded.analysis.confidence is ConfidenceLevel.P80
        assert loaded.analysis.trend_window == 30
        assert loaded.analysis.grouping is Grouping.TWO_MONTHS
        assert loaded.logging.level == "DEBUG"

    def test_all_data_window(self, tmp_path):
        path = tmp_path / "config.yaml"
        Settings().save(path)
        assert "trend_window: all" in path.read_text()
        assert Settings.load(path).analysis.trend_window is None

    def test_percent_confidence(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  confidence: 99\n")
        assert Settings.load(path).analysis.confidence is ConfidenceLevel.P99

    @pytest.mark.parametrize(
        "content",
        [
            "analysis:\n  confidence: 0.5\n",
            "analysis:\n  trend_window: 7\n",
            "analysis:\n  grouping: 1y\n",
            "logging:\n  level: loud\n",
        ],
    )
    def test_invalid_values(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)
        with pytest.raises(InvalidSettingError):
            Settings.load(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert Settings.load(path).database.path == Settings().database.path

    def test_expands_user(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("database:\n  path: ~/tracker.db\n")
        assert Settings.load(path).database.path == Path.home() / "tracker.db"
