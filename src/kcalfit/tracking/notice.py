"""Intake notices: observed weight change vs. what logged calories predict.

Given an average logged intake and a maintenance estimate, energy balance
predicts a weight-change rate:

    expected_rate = (avg_intake - maintenance) / kcal_per_kg

The regression slope gives the observed rate. When the two disagree by more
than measurement noise explains, the mismatch is classified by crossing the
expected direction (surplus or deficit) with the observed direction (gain or
loss). The suggested adjustment is the unexplained gap in kcal/day:
positive when weight is rising faster than logged intake accounts for,
negative when it is falling faster.

The inference and empirical estimators are injected so tests can stub them.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Optional, Sequence

from kcalfit.tracking.empirical import estimate_empirical_kcal_per_kg
from kcalfit.tracking.inference import (
    KCAL_PER_KG,
    MIN_DAYS_FOR_INFERENCE,
    average_intake,
    calculate_caloric_inference,
)
from kcalfit.tracking.log import normalize_entries
from kcalfit.tracking.models import (
    CaloricInference,
    ConfidenceLevel,
    EmpiricalEstimate,
    IntakeNotice,
    NoticeDirection,
    Stability,
    WeightEntry,
)

logger = logging.getLogger(__name__)

# Gaps below this are within day-to-day logging error
MIN_NOTICE_GAP_KCAL = 200.0

InferFn = Callable[[Sequence[WeightEntry], ConfidenceLevel], Optional[CaloricInference]]
EstimateFn = Callable[[Sequence[WeightEntry], ConfidenceLevel], EmpiricalEstimate]


def reference_maintenance(
    empirical: EmpiricalEstimate, maintenance_calories: Optional[float] = None
) -> Optional[float]:
    """Maintenance to judge intake against: caller's value, else empirical."""
    if maintenance_calories is not None:
        return maintenance_calories
    if empirical.stability is Stability.INSUFFICIENT:
        return None
    return empirical.maintenance


def classify_direction(
    balance: float, observed_rate: float, expected_rate: float
) -> Optional[NoticeDirection]:
    """
    Cross the expected direction with the observed one.

    Args:
        balance: avg_intake - maintenance (kcal/day); 0 follows the observation
        observed_rate: Regression slope (kg/day)
        expected_rate: Rate predicted from the balance (kg/day)

    Returns:
        NoticeDirection, or None when weight did not move or the change goes
        the expected way but is smaller than predicted
    """
    if observed_rate == 0:
        return None

    expect_gain = balance > 0 or (balance == 0 and observed_rate > 0)

    if observed_rate > 0:
        if not expect_gain:
            return NoticeDirection.GAIN_DESPITE_DEFICIT
        if observed_rate > expected_rate:
            return NoticeDirection.GAIN_LARGER_THAN_EXPECTED
        return None

    if expect_gain:
        return NoticeDirection.LOSS_DESPITE_SURPLUS
    if observed_rate < expected_rate:
        return NoticeDirection.LOSS_LARGER_THAN_EXPECTED
    return None


def detect_intake_notice(
    entries: Iterable[WeightEntry],
    level: ConfidenceLevel = ConfidenceLevel.P95,
    *,
    infer: InferFn = calculate_caloric_inference,
    estimate: EstimateFn = estimate_empirical_kcal_per_kg,
    maintenance_calories: Optional[float] = None,
) -> Optional[IntakeNotice]:
    """
    Flag a disagreement between logged intake and the observed weight trend.

    Args:
        entries: Full weight log
        level: Confidence level for the rate interval
        infer: Trend inference collaborator
        estimate: Empirical kcal/kg collaborator
        maintenance_calories: Known maintenance; overrides the empirical one

    Returns:
        IntakeNotice, or None when there is too little data, no maintenance
        reference, or the trend is within noise of the expectation
    """
    ordered = normalize_entries(entries)

    inference = infer(ordered, level)
    if inference is None or inference.days_of_data < MIN_DAYS_FOR_INFERENCE:
        return None

    avg = average_intake(ordered)
    if avg is None:
        return None

    empirical = estimate(ordered, level)
    maintenance = reference_maintenance(empirical, maintenance_calories)
    if maintenance is None:
        logger.debug("No maintenance reference; skipping intake notice")
        return None

    kcal_per_kg = empirical.conversion(stable_only=True, default=KCAL_PER_KG)
    balance = avg - maintenance
    expected_rate = balance / kcal_per_kg
    observed_rate = inference.weight_change_rate
    gap = observed_rate - expected_rate

    # Uncertainty in kcal/kg scales the expected rate
    expected_half = 0.0
    if empirical.stability is Stability.STABLE and empirical.relative_half_width is not None:
        expected_half = abs(expected_rate) * empirical.relative_half_width
    tolerance = math.hypot(inference.rate_half_width, expected_half)

    if abs(gap) <= tolerance or abs(gap) * kcal_per_kg < MIN_NOTICE_GAP_KCAL:
        return None

    direction = classify_direction(balance, observed_rate, expected_rate)
    if direction is None:
        return None

    return IntakeNotice(
        direction=direction,
        suggested_adjustment=round(gap * kcal_per_kg),
        observed_rate=observed_rate,
        expected_rate=expected_rate,
        average_intake=avg,
        maintenance_calories=maintenance,
        kcal_per_kg=kcal_per_kg,
        tolerance=tolerance,
    )
