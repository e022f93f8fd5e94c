"""Body-composition estimation from weight, intake and body-fat checks.

A single forward pass over the weight log keeps running fat and lean mass
totals:

- Body-fat measurement on the day: snap to the measured value. The reading
  becomes a new anchor, and if an earlier anchor exists the stretch between
  them is used to re-derive the calibration factors.
- Calories logged on both ends of a step: split the weight change into fat
  and lean using the fat fraction implied by the kcal/kg conversion (7700
  kcal/kg is all fat, 2000 kcal/kg all lean). The confidence interval widens
  with days since the last anchor.
- Otherwise: carry the last known body-fat percentage forward.

The estimator never mutates its inputs. A derived calibration is returned
for the caller to commit; anchors dated on or before the incoming
calibration's date are not folded in again, so re-running with the
committed factor proposes nothing new.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from kcalfit.tracking.empirical import estimate_empirical_kcal_per_kg
from kcalfit.tracking.inference import KCAL_PER_KG, average_intake, calculate_caloric_inference
from kcalfit.tracking.log import body_fat_measurements, normalize_entries
from kcalfit.tracking.models import (
    BodyCompositionEstimate,
    BodyCompositionResult,
    BodyMeasurement,
    CalibrationFactor,
    ConfidenceLevel,
    EmpiricalEstimate,
    WeightEntry,
)
from kcalfit.tracking.stats import mean

logger = logging.getLogger(__name__)

LEAN_KCAL_PER_KG = 2000.0  # Rough energy cost of 1 kg of lean tissue
MEASURED_CI = 1.0  # +/- percentage points around a measurement
CARRY_FORWARD_CI = 3.0
CI_GROWTH_PER_DAY = 0.05
BODY_FAT_CI_BOUNDS = (3.0, 60.0)
MIN_FAT_SHARE_OF_WEIGHT = 0.03
MIN_LEAN_SHARE_OF_WEIGHT = 0.5
MUSCLE_GAIN_BOUNDS = (0.0, 0.7)
FAT_LOSS_BOUNDS = (0.5, 1.0)

EstimateFn = Callable[[Sequence[WeightEntry], ConfidenceLevel], EmpiricalEstimate]


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    return max(bounds[0], min(bounds[1], value))


def fat_fraction(kcal_per_kg: float) -> float:
    """Share of a weight change that is fat, given its energy per kg."""
    return _clamp((kcal_per_kg - LEAN_KCAL_PER_KG) / (KCAL_PER_KG - LEAN_KCAL_PER_KG), (0.0, 1.0))


def derive_calibration(
    entries: Sequence[WeightEntry],
    anchor: BodyCompositionEstimate,
    current: BodyCompositionEstimate,
    calibration: CalibrationFactor,
    kcal_per_kg: float,
    level: ConfidenceLevel = ConfidenceLevel.P95,
) -> Optional[CalibrationFactor]:
    """
    Re-derive a partition factor from two body-fat anchors.

    The energy balance between the anchors predicts a theoretical fat change.
    Comparing it with the measured fat change says how much of a surplus
    went to lean mass, or how much of a deficit came from fat.

    Args:
        entries: Date-sorted weight log
        anchor: Estimate at the earlier anchor
        current: Estimate at the new measurement
        calibration: Factor to blend into
        kcal_per_kg: Energy per kg of weight change
        level: Confidence level for the segment inference

    Returns:
        Blended CalibrationFactor dated at the new anchor, or None when the
        stretch says nothing about partitioning
    """
    between = [
        e.calories
        for e in entries
        if anchor.date < e.date < current.date and e.calories is not None
    ]
    if not between:
        return None

    segment = [e for e in entries if anchor.date <= e.date <= current.date]
    inference = calculate_caloric_inference(segment, level, kcal_per_kg)
    segment_intake = average_intake(segment)
    if inference is None or segment_intake is None:
        return None

    maintenance = segment_intake - inference.weight_change_rate * kcal_per_kg
    surplus = mean(between) - maintenance
    days = (current.date - anchor.date).days
    theoretical_fat_change = surplus * days / kcal_per_kg

    weight_change = current.weight - anchor.weight
    fat_change = current.fat_mass - anchor.fat_mass

    if surplus > 0 and weight_change > 0 and theoretical_fat_change > 0:
        derived = _clamp(1 - fat_change / theoretical_fat_change, MUSCLE_GAIN_BOUNDS)
        return replace(
            calibration,
            date=current.date,
            muscle_gain_factor=(calibration.muscle_gain_factor + derived) / 2,
        )

    if surplus < 0 and weight_change < 0 and theoretical_fat_change < 0:
        derived = _clamp(fat_change / theoretical_fat_change, FAT_LOSS_BOUNDS)
        return replace(
            calibration,
            date=current.date,
            fat_loss_factor=(calibration.fat_loss_factor + derived) / 2,
        )

    return None


def _is_new_anchor(day: date, calibration: CalibrationFactor) -> bool:
    return calibration.date is None or day > calibration.date


def estimate_body_composition(
    entries: Iterable[WeightEntry],
    measurements: Iterable[BodyMeasurement],
    starting_body_fat: Optional[float],
    calibration: Optional[CalibrationFactor] = None,
    *,
    level: ConfidenceLevel = ConfidenceLevel.P95,
    estimate: EstimateFn = estimate_empirical_kcal_per_kg,
) -> BodyCompositionResult:
    """
    Estimate fat and lean mass for every weigh-in.

    The first logged weight and ``starting_body_fat`` seed the running
    totals, so every row's fat and lean mass add up to its weight.

    Args:
        entries: Weight log (any order)
        measurements: Body measurement log; only body-fat readings are used
        starting_body_fat: Body fat percent at the first weigh-in
        calibration: Current calibration (defaults when None)
        level: Confidence level passed to the collaborators
        estimate: Empirical kcal/kg collaborator

    Returns:
        BodyCompositionResult; empty without entries or a starting body fat
    """
    ordered = normalize_entries(entries)
    if not ordered or starting_body_fat is None:
        return BodyCompositionResult()

    if calibration is None:
        calibration = CalibrationFactor()

    # Several readings on one day: the last logged one wins
    measured = {m.date: m.body_fat for m in body_fat_measurements(measurements)}

    kcal_per_kg = estimate(ordered, level).conversion(default=KCAL_PER_KG)
    fat_share = fat_fraction(kcal_per_kg)

    fat_mass = ordered[0].weight * starting_body_fat / 100
    lean_mass = ordered[0].weight - fat_mass
    last_known_body_fat = starting_body_fat

    results: list[BodyCompositionEstimate] = []
    anchor: Optional[BodyCompositionEstimate] = None
    proposed = calibration
    updated = False

    for i, entry in enumerate(ordered):
        prev = ordered[i - 1] if i > 0 else None
        body_fat = measured.get(entry.date)

        if body_fat is not None:
            fat_mass = entry.weight * body_fat / 100
            lean_mass = entry.weight - fat_mass
            last_known_body_fat = body_fat
            estimate_row = BodyCompositionEstimate(
                date=entry.date,
                weight=entry.weight,
                body_fat_percentage=body_fat,
                fat_mass=fat_mass,
                lean_mass=lean_mass,
                body_fat_ci=(body_fat - MEASURED_CI, body_fat + MEASURED_CI),
                is_estimated=False,
            )
            results.append(estimate_row)

            if anchor is not None and prev is not None and _is_new_anchor(entry.date, calibration):
                derived = derive_calibration(
                    ordered, anchor, estimate_row, proposed, kcal_per_kg, level
                )
                if derived is not None:
                    logger.debug(
                        "Calibration derived at %s: muscle %.3f, fat loss %.3f",
                        entry.date,
                        derived.muscle_gain_factor,
                        derived.fat_loss_factor,
                    )
                    proposed = derived
                    updated = True
            anchor = estimate_row
            continue

        if prev is None:
            estimate_row = BodyCompositionEstimate(
                date=entry.date,
                weight=entry.weight,
                body_fat_percentage=starting_body_fat,
                fat_mass=fat_mass,
                lean_mass=lean_mass,
                body_fat_ci=(starting_body_fat - MEASURED_CI, starting_body_fat + MEASURED_CI),
                is_estimated=False,
            )
            results.append(estimate_row)
            anchor = estimate_row
            continue

        if entry.calories is not None and prev.calories is not None:
            weight_change = entry.weight - prev.weight
            fat_mass += weight_change * fat_share
            lean_mass += weight_change * (1 - fat_share)
            fat_mass = max(entry.weight * MIN_FAT_SHARE_OF_WEIGHT, fat_mass)
            lean_mass = max(entry.weight * MIN_LEAN_SHARE_OF_WEIGHT, lean_mass)

            body_fat = fat_mass / entry.weight * 100
            days_since_anchor = (entry.date - anchor.date).days if anchor else 0
            margin = 1 + days_since_anchor * CI_GROWTH_PER_DAY
            ci = (
                max(BODY_FAT_CI_BOUNDS[0], body_fat - margin),
                min(body_fat + margin, BODY_FAT_CI_BOUNDS[1]),
            )
        else:
            body_fat = last_known_body_fat
            fat_mass = entry.weight * body_fat / 100
            lean_mass = entry.weight - fat_mass
            ci = (body_fat - CARRY_FORWARD_CI, body_fat + CARRY_FORWARD_CI)

        results.append(
            BodyCompositionEstimate(
                date=entry.date,
                weight=entry.weight,
                body_fat_percentage=body_fat,
                fat_mass=fat_mass,
                lean_mass=lean_mass,
                body_fat_ci=ci,
                is_estimated=True,
            )
        )

    return BodyCompositionResult(
        estimates=results,
        calibration=proposed if updated else None,
    )
