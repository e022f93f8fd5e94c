"""Tests for tracker persistence."""

from __future__ import annotations

from datetime import date

import pytest

from kcalfit.tracking.models import (
    BodyMeasurement,
    CalibrationFactor,
    ConfidenceLevel,
    Grouping,
    InvalidSettingError,
    WeightEntry,
)
from kcalfit.tracking.pipeline import TrackerState
from kcalfit.tracking.queries import (
    EntryQueries,
    MeasurementQueries,
    SettingsQueries,
    TrackerStore,
)


class TestSchema:
    """Tests for schema creation."""

    def test_tables_exist(self, temp_db):
        assert temp_db.table_exists("weight_entries")
        assert temp_db.table_exists("body_measurements")
        assert temp_db.table_exists("settings")
        assert temp_db.get_table_count("weight_entries") == 0

    def test_unknown_table_count(self, temp_db):
        with pytest.raises(ValueError):
            temp_db.get_table_count("sqlite_master")


class TestEntryQueries:
    """Tests for EntryQueries."""

    def test_upsert_replaces_same_date(self, temp_db):
        with temp_db.get_connection() as conn:
            EntryQueries.upsert(conn, WeightEntry(date(2024, 1, 2), 70.0, 2500))
            EntryQueries.upsert(conn, WeightEntry(date(2024, 1, 1), 70.4))
            EntryQueries.upsert(conn, WeightEntry(date(2024, 1, 2), 69.8))
            entries = EntryQueries.get_all(conn)

        assert [e.date for e in entries] == [date(2024, 1, 1), date(2024, 1, 2)]
        assert entries[1].weight == 69.8
        assert entries[1].calories is None

    def test_delete(self, temp_db):
        with temp_db.get_connection() as conn:
            EntryQueries.upsert(conn, WeightEntry(date(2024, 1, 1), 70.0))
            assert EntryQueries.delete(conn, date(2024, 1, 1))
            assert not EntryQueries.delete(conn, date(2024, 1, 1))
            assert EntryQueries.get_all(conn) == []

    def test_failed_transaction_rolls_back(self, temp_db):
        with pytest.raises(RuntimeError):
            with temp_db.get_connection() as conn:
                EntryQueries.upsert(conn, WeightEntry(date(2024, 1, 1), 70.0))
                raise RuntimeError("boom")

        assert temp_db.get_table_count("weight_entries") == 0


class TestMeasurementQueries:
    """Tests for MeasurementQueries."""

    def test_same_day_rows_kept_in_order(self, temp_db):
        with temp_db.get_connection() as conn:
            MeasurementQueries.add(conn, BodyMeasurement(date(2024, 2, 1), waist=82.0))
            MeasurementQueries.add(conn, BodyMeasurement(date(2024, 1, 1), body_fat=18.0))
            MeasurementQueries.add(conn, BodyMeasurement(date(2024, 2, 1), body_fat=17.0))
            measurements = MeasurementQueries.get_all(conn)

        assert [m.date for m in measurements] == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 2, 1),
        ]
        assert measurements[1].waist == 82.0
        assert measurements[2].body_fat == 17.0

    def test_delete_at(self, temp_db):
        with temp_db.get_connection() as conn:
            MeasurementQueries.add(conn, BodyMeasurement(date(2024, 1, 1), body_fat=18.0))
            MeasurementQueries.add(conn, BodyMeasurement(date(2024, 2, 1), body_fat=17.0))
            removed = MeasurementQueries.delete_at(conn, 0)
            remaining = MeasurementQueries.get_all(conn)

        assert removed.body_fat == 18.0
        assert len(remaining) == 1
        assert remaining[0].date == date(2024, 2, 1)

    def test_delete_at_out_of_range(self, temp_db):
        with temp_db.get_connection() as conn:
            with pytest.raises(IndexError):
                MeasurementQueries.delete_at(conn, 0)


class TestSettingsQueries:
    """Tests for SettingsQueries."""

    def test_json_values(self, temp_db):
        with temp_db.get_connection() as conn:
            SettingsQueries.set(conn, "goal_weight", 75.0)
            SettingsQueries.set(conn, "measurement_goals", {"waist": 80.0})
            assert SettingsQueries.get(conn, "goal_weight") == 75.0
            assert SettingsQueries.get(conn, "measurement_goals") == {"waist": 80.0}
            assert SettingsQueries.get(conn, "starting_weight", 60.0) == 60.0

    def test_none_removes(self, temp_db):
        with temp_db.get_connection() as conn:
            SettingsQueries.set(conn, "goal_weight", 75.0)
            SettingsQueries.set(conn, "goal_weight", None)
            assert SettingsQueries.get(conn, "goal_weight") is None

    def test_unknown_key(self, temp_db):
        with temp_db.get_connection() as conn:
            with pytest.raises(InvalidSettingError):
                SettingsQueries.set(conn, "height", 180)


class TestTrackerStore:
    """Tests for TrackerStore."""

    def test_empty_database_uses_defaults(self, temp_db):
        store = TrackerStore(temp_db, trend_window=30, grouping=Grouping.MONTH)
        state = store.load()

        assert state.entries == []
        assert state.trend_window == 30
        assert state.grouping is Grouping.MONTH
        assert state.calibration == CalibrationFactor()

    def test_round_trip(self, temp_db):
        state = TrackerState(
            entries=[
                WeightEntry(date(2024, 1, 1), 70.0, 2500),
                WeightEntry(date(2024, 1, 2), 70.2),
            ],
            measurements=[BodyMeasurement(date(2024, 1, 1), body_fat=18.0, waist=84.0)],
            confidence=ConfidenceLevel.P90,
            trend_window=None,
            grouping=Grouping.TWO_WEEKS,
            starting_weight=70.0,
            goal_weight=75.0,
            starting_body_fat=18.0,
            goal_body_fat=15.0,
            measurement_goals={"waist": 80.0},
            maintenance_calories=2600.0,
            calibration=CalibrationFactor(date(2024, 1, 1), 0.45, 0.8),
        )
        store = TrackerStore(temp_db, trend_window=60)
        store.save(state)

        assert store.load() == state

    def test_save_replaces_logs(self, temp_db):
        store = TrackerStore(temp_db)
        store.save(TrackerState(entries=[WeightEntry(date(2024, 1, 1), 70.0)]))
        store.save(TrackerState(entries=[WeightEntry(date(2024, 3, 1), 72.0)]))

        assert [e.date for e in store.load().entries] == [date(2024, 3, 1)]

    def test_invalid_stored_setting(self, temp_db):
        with temp_db.get_connection() as conn:
            SettingsQueries.set(conn, "grouping", "3w")

        with pytest.raises(InvalidSettingError):
            TrackerStore(temp_db).load()
