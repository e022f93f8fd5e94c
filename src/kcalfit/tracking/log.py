"""Pure operations on the weight-entry and measurement logs.

The logs are owned by the caller; every function here returns a new list
and leaves its arguments untouched.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from kcalfit.tracking.models import BodyMeasurement, WeightEntry


def normalize_entries(entries: Iterable[WeightEntry]) -> list[WeightEntry]:
    """Sort entries by date, keeping the last one written for each date."""
    by_date: dict[date, WeightEntry] = {}
    for entry in entries:
        by_date[entry.date] = entry
    return [by_date[day] for day in sorted(by_date)]


def upsert_entry(entries: Iterable[WeightEntry], entry: WeightEntry) -> list[WeightEntry]:
    """Insert an entry, replacing any existing entry for the same date."""
    kept = [e for e in entries if e.date != entry.date]
    kept.append(entry)
    return sorted(kept, key=lambda e: e.date)


def remove_entry(entries: Iterable[WeightEntry], on: date) -> list[WeightEntry]:
    """Drop the entry logged for ``on`` (no-op if there is none)."""
    return [e for e in entries if e.date != on]


def add_measurement(
    measurements: Iterable[BodyMeasurement], measurement: BodyMeasurement
) -> list[BodyMeasurement]:
    """Append a measurement; rows sharing a date are kept side by side."""
    updated = list(measurements)
    updated.append(measurement)
    # Stable sort keeps same-day rows in insertion order
    return sorted(updated, key=lambda m: m.date)


def remove_measurement(
    measurements: Iterable[BodyMeasurement], index: int
) -> list[BodyMeasurement]:
    """Drop the measurement at ``index`` of the date-sorted log."""
    current = list(measurements)
    if not 0 <= index < len(current):
        raise IndexError(f"No measurement at position {index}")
    return current[:index] + current[index + 1 :]


def body_fat_measurements(measurements: Iterable[BodyMeasurement]) -> list[BodyMeasurement]:
    """Measurements carrying a body-fat reading, oldest first."""
    return sorted(
        (m for m in measurements if m.body_fat is not None),
        key=lambda m: m.date,
    )
