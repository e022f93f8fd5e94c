"""Weight trend and caloric inference.

Regresses weight against elapsed days over a trailing window. The slope is
the weight-change rate (kg/day); its confidence interval comes from the
slope standard error. Multiplying the rate by a kcal/kg conversion gives the
daily energy balance, and subtracting that from the average logged intake
gives an estimate of maintenance calories.

The 7700 kcal/kg default is the textbook energy content of body fat. A
personalised conversion from the empirical estimator can be passed instead.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Optional

from kcalfit.tracking.log import normalize_entries
from kcalfit.tracking.models import (
    CaloricInference,
    ConfidenceLevel,
    InvalidSettingError,
    TrendPoint,
    WeightEntry,
)
from kcalfit.tracking.stats import linear_regression, slope_interval

logger = logging.getLogger(__name__)

KCAL_PER_KG = 7700.0  # Approximate energy in 1 kg of body fat
MIN_DAYS_FOR_INFERENCE = 14  # Below this the estimate is shown as unreliable
TREND_WINDOWS = (14, 30, 60)  # Trailing windows in days; None means all data


def parse_trend_window(value: int | str | None) -> Optional[int]:
    """Coerce "all", None, 30 or "30" into a trend window (None = all)."""
    if value is None or (isinstance(value, str) and value.lower() == "all"):
        return None
    try:
        window = int(value)
    except (TypeError, ValueError):
        raise InvalidSettingError(f"Invalid trend window: {value!r}") from None
    if window not in TREND_WINDOWS:
        raise InvalidSettingError(
            f"Trend window must be one of {TREND_WINDOWS} or 'all', got {value!r}"
        )
    return window


def filter_by_window(
    entries: Iterable[WeightEntry], window: Optional[int]
) -> list[WeightEntry]:
    """
    Keep the entries within ``window`` days of the latest entry.

    Args:
        entries: Weight log (any order)
        window: Trailing window in days, or None for the whole history

    Returns:
        Date-sorted entries dated on or after last_date - (window - 1) days
    """
    ordered = normalize_entries(entries)
    if window is None or not ordered:
        return ordered

    cutoff = ordered[-1].date - timedelta(days=window - 1)
    return [e for e in ordered if e.date >= cutoff]


def average_intake(entries: Iterable[WeightEntry]) -> Optional[float]:
    """Mean logged calories, or None with fewer than two calorie entries."""
    calories = [e.calories for e in entries if e.calories is not None]
    if len(calories) < 2:
        return None
    return sum(calories) / len(calories)


def calculate_caloric_inference(
    entries: Iterable[WeightEntry],
    level: ConfidenceLevel = ConfidenceLevel.P95,
    kcal_per_kg: float = KCAL_PER_KG,
) -> Optional[CaloricInference]:
    """
    Infer weight-change rate and maintenance calories from a weight log.

    Time runs in days from the first entry of ``entries``; pass the output of
    filter_by_window() to analyse a trailing window.

    Args:
        entries: Weight log (any order)
        level: Confidence level for the slope and maintenance intervals
        kcal_per_kg: Energy per kg of weight change

    Returns:
        CaloricInference, or None with fewer than two entries
    """
    ordered = normalize_entries(entries)
    if len(ordered) < 2:
        return None

    first_date = ordered[0].date
    x = [float((e.date - first_date).days) for e in ordered]
    y = [e.weight for e in ordered]

    regression = linear_regression(x, y)
    if regression.slope_se == 0:
        logger.debug("Slope standard error is zero for %d points", len(ordered))
    slope = regression.slope
    slope_ci = slope_interval(regression, level)

    avg = average_intake(ordered)
    if avg is not None:
        maintenance = avg - slope * kcal_per_kg
        candidates = [avg - slope_ci[1] * kcal_per_kg, avg - slope_ci[0] * kcal_per_kg]
    else:
        maintenance = abs(slope * kcal_per_kg)
        candidates = [abs(slope_ci[0] * kcal_per_kg), abs(slope_ci[1] * kcal_per_kg)]

    trend_data = [
        TrendPoint(
            date=entry.date,
            weight=entry.weight,
            predicted=slope * days + regression.intercept,
            predicted_low=slope_ci[0] * days + regression.intercept,
            predicted_high=slope_ci[1] * days + regression.intercept,
        )
        for entry, days in zip(ordered, x)
    ]

    return CaloricInference(
        maintenance_calories=maintenance,
        confidence_interval=(min(candidates), max(candidates)),
        weight_change_rate=slope,
        weight_change_rate_ci=slope_ci,
        slope_ci=slope_ci,
        intercept=regression.intercept,
        days_of_data=max(x) - min(x) + 1,
        r2=regression.r2,
        kcal_per_kg=kcal_per_kg,
        average_intake=avg,
        trend_data=trend_data,
    )


def infer_for_window(
    entries: Iterable[WeightEntry],
    window: Optional[int],
    level: ConfidenceLevel = ConfidenceLevel.P95,
    kcal_per_kg: float = KCAL_PER_KG,
) -> Optional[CaloricInference]:
    """Filter to a trailing window, then run calculate_caloric_inference()."""
    return calculate_caloric_inference(filter_by_window(entries, window), level, kcal_per_kg)
