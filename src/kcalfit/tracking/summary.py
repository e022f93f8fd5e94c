"""Small derived figures shown next to the main estimates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from kcalfit.tracking.body_comp import fat_fraction
from kcalfit.tracking.log import body_fat_measurements, normalize_entries
from kcalfit.tracking.models import (
    CIRCUMFERENCE_METRICS,
    BodyMeasurement,
    IntervalPair,
    WeightEntry,
)

COVERAGE_WINDOW_DAYS = 30
FLAT_RATE_KG_PER_DAY = 0.005
STRONG_TREND_R2 = 0.7
MODERATE_TREND_R2 = 0.4


@dataclass
class Coverage:
    """How much usable data the log holds."""

    weight_days: int  # Logged days in the last 30 days of the log
    calorie_intervals: int  # Adjacent entries both carrying calories
    last_body_fat_age: Optional[int]  # Days since the latest body-fat reading


@dataclass
class FatLeanSplit:
    """Fat/lean share of a weight change implied by a kcal/kg value."""

    fat: float
    fat_low: float
    fat_high: float

    @property
    def lean(self) -> float:
        return 1 - self.fat

    @property
    def lean_low(self) -> float:
        return 1 - self.fat_high

    @property
    def lean_high(self) -> float:
        return 1 - self.fat_low


@dataclass
class FatLeanChange:
    """Kilograms of fat and lean behind a total weight change."""

    total: float
    fat: float
    fat_low: float
    fat_high: float
    lean: float
    lean_low: float
    lean_high: float


def adjacent_interval_pairs(entries: Iterable[WeightEntry]) -> list[IntervalPair]:
    """Consecutive calorie-logged entry pairs, for scatter display."""
    ordered = normalize_entries(entries)
    pairs = []
    for prev, current in zip(ordered, ordered[1:]):
        if prev.calories is None or current.calories is None:
            continue
        days = (current.date - prev.date).days
        pairs.append(
            IntervalPair(
                start=prev.date,
                end=current.date,
                avg_calories=(prev.calories + current.calories) / 2,
                weight_rate=(current.weight - prev.weight) / days,
            )
        )
    return pairs


def coverage(
    entries: Iterable[WeightEntry],
    measurements: Iterable[BodyMeasurement],
    today: date,
) -> Coverage:
    """
    Summarise data coverage.

    Args:
        entries: Weight log
        measurements: Measurement log
        today: Reference date for the age of the latest body-fat reading

    Returns:
        Coverage counts
    """
    ordered = normalize_entries(entries)

    weight_days = 0
    if ordered:
        cutoff = ordered[-1].date - timedelta(days=COVERAGE_WINDOW_DAYS - 1)
        weight_days = sum(1 for e in ordered if e.date >= cutoff)

    readings = body_fat_measurements(measurements)
    last_age = max(0, (today - readings[-1].date).days) if readings else None

    return Coverage(
        weight_days=weight_days,
        calorie_intervals=len(adjacent_interval_pairs(ordered)),
        last_body_fat_age=last_age,
    )


def weight_progress(
    starting: Optional[float], goal: Optional[float], current: Optional[float]
) -> float:
    """Percent of the way from starting to goal weight, clamped to [0, 100]."""
    if starting is None or goal is None or current is None or goal == starting:
        return 0.0
    progress = (current - starting) / (goal - starting) * 100
    return min(max(progress, 0.0), 100.0)


def body_fat_progress(
    starting: Optional[float], goal: Optional[float], latest: Optional[float]
) -> float:
    """Body-fat progress in percent; works for both cutting and gaining goals."""
    if starting is None or goal is None or latest is None or goal == starting:
        return 0.0
    if goal < starting:
        progress = (starting - latest) / (starting - goal) * 100
    else:
        progress = (latest - starting) / (goal - starting) * 100
    return min(max(progress, 0.0), 100.0)


def latest_measurement_value(
    measurements: Iterable[BodyMeasurement], metric: str
) -> Optional[float]:
    """Most recent value logged for ``metric`` (e.g. "waist" or "body_fat")."""
    key = metric.lower()
    if key != "body_fat" and key not in CIRCUMFERENCE_METRICS:
        raise ValueError(f"Unknown measurement metric: {metric}")

    latest: Optional[float] = None
    for m in sorted(measurements, key=lambda m: m.date):
        value = getattr(m, key)
        if value is not None:
            latest = value
    return latest


def fat_lean_split(
    kcal_per_kg: float, kcal_ci: Optional[tuple[float, float]] = None
) -> FatLeanSplit:
    """Fat share of weight change for a kcal/kg value and its interval."""
    low, high = kcal_ci if kcal_ci is not None else (kcal_per_kg, kcal_per_kg)
    return FatLeanSplit(
        fat=fat_fraction(kcal_per_kg),
        fat_low=fat_fraction(low),
        fat_high=fat_fraction(high),
    )


def fat_lean_change(start: float, current: float, split: FatLeanSplit) -> FatLeanChange:
    """Split the change from ``start`` to ``current`` weight into fat and lean kg."""
    total = current - start
    return FatLeanChange(
        total=total,
        fat=total * split.fat,
        fat_low=total * split.fat_low,
        fat_high=total * split.fat_high,
        lean=total * split.lean,
        lean_low=total * split.lean_low,
        lean_high=total * split.lean_high,
    )


def trend_strength(r2: float) -> str:
    if r2 > STRONG_TREND_R2:
        return "strong"
    if r2 > MODERATE_TREND_R2:
        return "moderate"
    return "weak"


def trend_direction(rate: float) -> str:
    """Label a kg/day rate; |rate| <= 0.005 counts as flat."""
    if rate > FLAT_RATE_KG_PER_DAY:
        return "gaining"
    if rate < -FLAT_RATE_KG_PER_DAY:
        return "losing"
    return "flat"
