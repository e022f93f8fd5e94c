"""Pytest fixtures for kcalfit tests."""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Optional

import pytest

from kcalfit.db.connection import DatabaseConnection
from kcalfit.tracking.models import WeightEntry

START = date(2024, 1, 1)


def linear_log(
    days: int,
    rate: float,
    calories: Optional[float],
    start_weight: float = 70.0,
    start: date = START,
) -> list[WeightEntry]:
    """Daily entries on a perfectly straight weight line."""
    return [
        WeightEntry(
            date=start + timedelta(days=d),
            weight=start_weight + rate * d,
            calories=calories,
        )
        for d in range(days)
    ]


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def make_log() -> Callable[..., list[WeightEntry]]:
    """Factory for straight-line weight logs."""
    return linear_log


@pytest.fixture
def proportional_log() -> list[WeightEntry]:
    """30 days where every interval's weight rate is exactly (kcal - 2500) / 7700.

    Calories climb 10 kcal/day from 2300 and weight follows a parabola, which
    makes the rate between any two days linear in their mean intake.
    """
    curvature = 10 / (2 * 7700)
    drift = (2300 - 2500) / 7700
    return [
        WeightEntry(
            date=START + timedelta(days=d),
            weight=70.0 + curvature * d * d + drift * d,
            calories=2300.0 + 10 * d,
        )
        for d in range(30)
    ]
