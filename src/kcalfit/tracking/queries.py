"""Database queries for the weight log, measurements and tracker settings."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date
from typing import Any, Optional

from kcalfit.db.connection import DatabaseConnection
from kcalfit.tracking.inference import parse_trend_window
from kcalfit.tracking.models import (
    CIRCUMFERENCE_METRICS,
    BodyMeasurement,
    CalibrationFactor,
    ConfidenceLevel,
    Grouping,
    InvalidSettingError,
    WeightEntry,
)
from kcalfit.tracking.pipeline import TrackerState

logger = logging.getLogger(__name__)

SETTING_KEYS = (
    "starting_weight",
    "goal_weight",
    "starting_body_fat",
    "goal_body_fat",
    "measurement_goals",
    "maintenance_calories",
    "calibration_factor",
    "confidence",
    "trend_window",
    "grouping",
)

_MEASUREMENT_COLUMNS = ("body_fat",) + CIRCUMFERENCE_METRICS


class EntryQueries:
    """Database queries for weight entries."""

    @staticmethod
    def upsert(conn: sqlite3.Connection, entry: WeightEntry) -> None:
        """Insert an entry; an existing entry for the same date is replaced."""
        conn.execute(
            """
            INSERT OR REPLACE INTO weight_entries (entry_date, weight_kg, calories)
            VALUES (?, ?, ?)
            """,
            (entry.date.isoformat(), entry.weight, entry.calories),
        )

    @staticmethod
    def delete(conn: sqlite3.Connection, on: date) -> bool:
        """Delete the entry for a date. Returns False if there was none."""
        cursor = conn.execute(
            "DELETE FROM weight_entries WHERE entry_date = ?", (on.isoformat(),)
        )
        return cursor.rowcount > 0

    @staticmethod
    def get_all(conn: sqlite3.Connection) -> list[WeightEntry]:
        """All entries in chronological order."""
        rows = conn.execute(
            """
            SELECT entry_date, weight_kg, calories
            FROM weight_entries
            ORDER BY entry_date
            """
        ).fetchall()

        return [
            WeightEntry(
                date=date.fromisoformat(row[0]),
                weight=row[1],
                calories=row[2],
            )
            for row in rows
        ]

    @staticmethod
    def replace_all(conn: sqlite3.Connection, entries: list[WeightEntry]) -> None:
        """Replace the whole weight log."""
        conn.execute("DELETE FROM weight_entries")
        conn.executemany(
            """
            INSERT OR REPLACE INTO weight_entries (entry_date, weight_kg, calories)
            VALUES (?, ?, ?)
            """,
            [(e.date.isoformat(), e.weight, e.calories) for e in entries],
        )


class MeasurementQueries:
    """Database queries for body measurements."""

    @staticmethod
    def add(conn: sqlite3.Connection, measurement: BodyMeasurement) -> int:
        """Insert a measurement and return its measurement_id."""
        columns = ", ".join(_MEASUREMENT_COLUMNS)
        placeholders = ", ".join("?" for _ in _MEASUREMENT_COLUMNS)
        cursor = conn.execute(
            f"INSERT INTO body_measurements (measured_on, {columns}) "
            f"VALUES (?, {placeholders})",
            (measurement.date.isoformat(),)
            + tuple(getattr(measurement, name) for name in _MEASUREMENT_COLUMNS),
        )
        return cursor.lastrowid or 0

    @staticmethod
    def get_rows(conn: sqlite3.Connection) -> list[tuple[int, BodyMeasurement]]:
        """(measurement_id, measurement) pairs, oldest first."""
        columns = ", ".join(_MEASUREMENT_COLUMNS)
        rows = conn.execute(
            f"""
            SELECT measurement_id, measured_on, {columns}
            FROM body_measurements
            ORDER BY measured_on, measurement_id
            """
        ).fetchall()

        return [
            (
                row[0],
                BodyMeasurement(
                    date=date.fromisoformat(row[1]),
                    **{name: row[i + 2] for i, name in enumerate(_MEASUREMENT_COLUMNS)},
                ),
            )
            for row in rows
        ]

    @staticmethod
    def get_all(conn: sqlite3.Connection) -> list[BodyMeasurement]:
        return [m for _, m in MeasurementQueries.get_rows(conn)]

    @staticmethod
    def delete_at(conn: sqlite3.Connection, index: int) -> BodyMeasurement:
        """Delete the measurement at ``index`` of the date-sorted log."""
        rows = MeasurementQueries.get_rows(conn)
        if not 0 <= index < len(rows):
            raise IndexError(f"No measurement at position {index}")
        measurement_id, measurement = rows[index]
        conn.execute(
            "DELETE FROM body_measurements WHERE measurement_id = ?", (measurement_id,)
        )
        return measurement

    @staticmethod
    def replace_all(conn: sqlite3.Connection, measurements: list[BodyMeasurement]) -> None:
        """Replace the whole measurement log."""
        conn.execute("DELETE FROM body_measurements")
        for measurement in sorted(measurements, key=lambda m: m.date):
            MeasurementQueries.add(conn, measurement)


class SettingsQueries:
    """Database queries for tracker settings stored as JSON values."""

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in SETTING_KEYS:
            raise InvalidSettingError(f"Unknown setting: {key}")

    @staticmethod
    def get(conn: sqlite3.Connection, key: str, default: Any = None) -> Any:
        SettingsQueries._check_key(key)
        row = conn.execute(
            "SELECT value_json FROM settings WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return default
        return json.loads(row[0])

    @staticmethod
    def set(conn: sqlite3.Connection, key: str, value: Any) -> None:
        """Store a setting; None removes it."""
        SettingsQueries._check_key(key)
        if value is None:
            conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            return
        conn.execute(
            """
            INSERT OR REPLACE INTO settings (key, value_json, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            (key, json.dumps(value)),
        )

    @staticmethod
    def get_all(conn: sqlite3.Connection) -> dict[str, Any]:
        rows = conn.execute("SELECT key, value_json FROM settings").fetchall()
        return {row[0]: json.loads(row[1]) for row in rows if row[0] in SETTING_KEYS}


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


class TrackerStore:
    """Loads and saves a whole TrackerState."""

    def __init__(
        self,
        db: DatabaseConnection,
        confidence: ConfidenceLevel = ConfidenceLevel.P95,
        trend_window: Optional[int] = None,
        grouping: Grouping = Grouping.WEEK,
    ):
        """Initialize the store.

        Args:
            db: Database to read and write
            confidence: Confidence level when none is stored
            trend_window: Trend window when none is stored
            grouping: Period grouping when none is stored
        """
        self.db = db
        self.default_confidence = confidence
        self.default_trend_window = trend_window
        self.default_grouping = grouping
        self.db.initialize_schema()

    def load(self) -> TrackerState:
        """Read logs and settings into a TrackerState."""
        with self.db.get_connection() as conn:
            entries = EntryQueries.get_all(conn)
            measurements = MeasurementQueries.get_all(conn)
            stored = SettingsQueries.get_all(conn)

        calibration = stored.get("calibration_factor")
        trend_window = (
            parse_trend_window(stored["trend_window"])
            if "trend_window" in stored
            else self.default_trend_window
        )

        state = TrackerState(
            entries=entries,
            measurements=measurements,
            confidence=ConfidenceLevel.parse(stored.get("confidence", self.default_confidence)),
            trend_window=trend_window,
            grouping=Grouping.parse(stored.get("grouping", self.default_grouping)),
            starting_weight=_optional_float(stored.get("starting_weight")),
            goal_weight=_optional_float(stored.get("goal_weight")),
            starting_body_fat=_optional_float(stored.get("starting_body_fat")),
            goal_body_fat=_optional_float(stored.get("goal_body_fat")),
            measurement_goals={
                k: float(v) for k, v in (stored.get("measurement_goals") or {}).items()
            },
            maintenance_calories=_optional_float(stored.get("maintenance_calories")),
            calibration=(
                CalibrationFactor.from_dict(calibration) if calibration else CalibrationFactor()
            ),
        )
        logger.debug(
            "Loaded %d entries and %d measurements", len(entries), len(measurements)
        )
        return state

    def save(self, state: TrackerState) -> None:
        """Write logs and settings from a TrackerState in one transaction."""
        with self.db.get_connection() as conn:
            EntryQueries.replace_all(conn, state.entries)
            MeasurementQueries.replace_all(conn, state.measurements)
            self._save_settings(conn, state)
        logger.info(
            "Saved %d entries and %d measurements",
            len(state.entries),
            len(state.measurements),
        )

    def save_settings(self, state: TrackerState) -> None:
        """Write only the settings part of a TrackerState."""
        with self.db.get_connection() as conn:
            self._save_settings(conn, state)

    @staticmethod
    def _save_settings(conn: sqlite3.Connection, state: TrackerState) -> None:
        values = {
            "starting_weight": state.starting_weight,
            "goal_weight": state.goal_weight,
            "starting_body_fat": state.starting_body_fat,
            "goal_body_fat": state.goal_body_fat,
            "measurement_goals": state.measurement_goals or None,
            "maintenance_calories": state.maintenance_calories,
            "calibration_factor": state.calibration.to_dict(),
            "confidence": state.confidence.value,
            "trend_window": state.trend_window if state.trend_window is not None else "all",
            "grouping": state.grouping.value,
        }
        for key, value in values.items():
            SettingsQueries.set(conn, key, value)
