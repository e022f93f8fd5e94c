"""Empirical kcal/kg from the log's own calorie and weight data.

Every pair of calorie-logged days (not just neighbours) yields one interval:
the weight rate between them and their mean intake. Regressing weight rate
on intake gives a slope in (kg/day) per (kcal/day); its reciprocal is the
kcal needed per kg of weight change for this person, and the intake where
the fitted line crosses zero is their maintenance. No BMR or activity
assumptions are involved.

The reciprocal is unstable near a zero slope, so the estimate carries a
stability label:

- insufficient: fewer than MIN_INTERVALS pairs, or the slope CI includes 0
- noisy: the kcal/kg CI half-width exceeds NOISY_RELATIVE_HALF_WIDTH of
  the point estimate
- stable: otherwise
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from kcalfit.tracking.log import normalize_entries
from kcalfit.tracking.models import (
    ConfidenceLevel,
    EmpiricalEstimate,
    IntervalPair,
    Stability,
    WeightEntry,
)
from kcalfit.tracking.stats import linear_regression, slope_interval

logger = logging.getLogger(__name__)

MIN_INTERVALS = 3
NOISY_RELATIVE_HALF_WIDTH = 0.5  # CI half-width / estimate above this is "noisy"


def build_interval_pairs(entries: Iterable[WeightEntry]) -> list[IntervalPair]:
    """All (earlier, later) pairs of entries that both carry calories."""
    logged = [e for e in normalize_entries(entries) if e.calories is not None]
    pairs: list[IntervalPair] = []

    for i, current in enumerate(logged):
        for later in logged[i + 1 :]:
            days = (later.date - current.date).days
            if days <= 0:
                continue
            pairs.append(
                IntervalPair(
                    start=current.date,
                    end=later.date,
                    avg_calories=(current.calories + later.calories) / 2,  # type: ignore[operator]
                    weight_rate=(later.weight - current.weight) / days,
                )
            )

    return pairs


def label_stability(
    empirical: float, slope_ci: tuple[float, float]
) -> tuple[Stability, Optional[tuple[float, float]]]:
    """
    Label a kcal/kg estimate from its slope interval.

    Args:
        empirical: Point estimate, |1 / slope|
        slope_ci: Confidence interval on the rate-vs-intake slope

    Returns:
        (stability, kcal/kg interval); the interval is None when the slope
        interval touches zero
    """
    if slope_ci[0] <= 0 <= slope_ci[1]:
        return Stability.INSUFFICIENT, None

    bounds = (abs(1 / slope_ci[0]), abs(1 / slope_ci[1]))
    empirical_ci = (min(bounds), max(bounds))
    half_width = (empirical_ci[1] - empirical_ci[0]) / 2
    if half_width > NOISY_RELATIVE_HALF_WIDTH * empirical:
        return Stability.NOISY, empirical_ci
    return Stability.STABLE, empirical_ci


def estimate_empirical_kcal_per_kg(
    entries: Iterable[WeightEntry],
    level: ConfidenceLevel = ConfidenceLevel.P95,
) -> EmpiricalEstimate:
    """
    Estimate personal kcal/kg and maintenance from calorie/weight intervals.

    Args:
        entries: Weight log (any order)
        level: Confidence level for the slope and kcal/kg intervals

    Returns:
        EmpiricalEstimate; ``empirical`` is None when the data cannot
        support an estimate
    """
    pairs = build_interval_pairs(entries)
    intervals = len(pairs)
    if intervals < MIN_INTERVALS:
        return EmpiricalEstimate(empirical=None, maintenance=None, r2=None, intervals=intervals)

    x = [p.avg_calories for p in pairs]
    y = [p.weight_rate for p in pairs]
    regression = linear_regression(x, y)

    # Zero slope covers both "all intakes equal" and "intake does not move weight"
    if regression.slope == 0:
        logger.debug("Empirical regression is flat over %d intervals", intervals)
        return EmpiricalEstimate(empirical=None, maintenance=None, r2=None, intervals=intervals)

    slope = regression.slope
    empirical = abs(1 / slope)
    maintenance = -regression.intercept / slope
    slope_ci = slope_interval(regression, level)

    stability, empirical_ci = label_stability(empirical, slope_ci)

    return EmpiricalEstimate(
        empirical=empirical,
        maintenance=maintenance,
        r2=regression.r2,
        intervals=intervals,
        stability=stability,
        empirical_ci=empirical_ci,
        slope=slope,
        slope_ci=slope_ci,
    )


def empirical_kcal_per_kg(
    entries: Iterable[WeightEntry],
) -> tuple[Optional[float], Optional[float], Optional[float], int]:
    """Point estimate only: (empirical, maintenance, r2, intervals)."""
    return estimate_empirical_kcal_per_kg(entries).point()
