"""Synthetic 18-month bulking history for demos and tests.

Three phases take a 60 kg lifter at 12% body fat towards 75 kg: an initial
bulk, a short cut and a moderate bulk. Weights carry daily noise and a
weekend bump; intake follows a maintenance that rises with body weight plus
the phase surplus. Only about 40% of days are logged, and body fat is
measured roughly every three months.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from kcalfit.tracking.models import BodyMeasurement, WeightEntry
from kcalfit.tracking.pipeline import TrackerState


@dataclass
class SimulationPhase:
    """One stretch of the journey."""

    name: str
    days: int
    weekly_gain: float  # kg/week
    calorie_base: float  # maintenance at the phase start weight
    surplus: float  # kcal/day
    calorie_variation: float  # +/- kcal/day
    body_fat_change: float  # percentage points over the phase
    muscle_gain_ratio: Optional[float] = None
    muscle_loss_ratio: Optional[float] = None


BULK_PHASES = (
    SimulationPhase("Initial Bulk", 180, 0.3, 2200, 400, 150, 5.0, muscle_gain_ratio=0.4),
    SimulationPhase("Mini Cut", 90, -0.3, 2500, -500, 100, -3.0, muscle_loss_ratio=0.15),
    SimulationPhase("Moderate Bulk", 275, 0.25, 2450, 300, 200, 4.0, muscle_gain_ratio=0.35),
)

START_DATE = date(2023, 1, 1)
END_DATE = date(2024, 7, 1)
START_WEIGHT = 60.0
GOAL_WEIGHT = 75.0
START_BODY_FAT = 12.0
GOAL_BODY_FAT = 15.0

LOG_PROBABILITY = 0.4
MEASUREMENT_MONTHS = (0, 3, 6, 9, 12, 15, 18)
MIN_DAYS_BETWEEN_MEASUREMENTS = 15
KCAL_PER_KG_GAINED_MAINTENANCE = 12  # Extra maintenance per kg above start


def _phase_adjustment(phase: SimulationPhase) -> float:
    """Extra daily intake that moves empirical kcal/kg away from 7700."""
    if phase.weekly_gain > 0 and phase.muscle_gain_ratio is not None:
        return phase.weekly_gain / 7 * phase.muscle_gain_ratio * 2000
    if phase.weekly_gain < 0 and phase.muscle_loss_ratio is not None:
        return abs(phase.weekly_gain) / 7 * phase.muscle_loss_ratio * 1000
    return 0.0


def simulate_bulk_journey(seed: Optional[int] = None) -> TrackerState:
    """
    Build a simulated tracker state.

    Args:
        seed: Seed for the random generator; equal seeds give equal histories

    Returns:
        TrackerState with entries, body-fat measurements and goals filled in
    """
    rng = random.Random(seed)
    entries: list[WeightEntry] = []
    measurements: list[BodyMeasurement] = []

    phase_index = 0
    phase_start_day = 0
    phase_start_weight = START_WEIGHT
    phase_start_body_fat = START_BODY_FAT

    current = START_DATE
    while current <= END_DATE:
        phase = BULK_PHASES[phase_index]
        days_since_start = (current - START_DATE).days
        days_into_phase = days_since_start - phase_start_day

        if days_into_phase >= phase.days and phase_index < len(BULK_PHASES) - 1:
            phase_start_day += phase.days
            phase_start_weight += phase.weekly_gain * phase.days / 7
            phase_start_body_fat += phase.body_fat_change
            phase_index += 1
            continue

        weight = phase_start_weight + phase.weekly_gain * days_into_phase / 7
        weight += rng.uniform(-0.2, 0.2)
        if current.weekday() >= 5:
            weight += 0.2
        if rng.random() > 0.97:
            weight -= 0.2 * phase.weekly_gain  # Occasional plateau
        weight = round(weight, 1)

        body_fat = phase_start_body_fat + phase.body_fat_change * days_into_phase / phase.days

        maintenance = phase.calorie_base + (weight - START_WEIGHT) * KCAL_PER_KG_GAINED_MAINTENANCE
        calories = round(
            maintenance
            + phase.surplus
            + rng.uniform(-phase.calorie_variation, phase.calorie_variation)
            + _phase_adjustment(phase)
        )

        if rng.random() < LOG_PROBABILITY:
            entries.append(WeightEntry(date=current, weight=weight, calories=float(calories)))

        months_since_start = int(days_since_start / 30.5)
        if months_since_start in MEASUREMENT_MONTHS and not any(
            abs((m.date - current).days) < MIN_DAYS_BETWEEN_MEASUREMENTS for m in measurements
        ):
            error = rng.uniform(-0.5, 0.5)
            measurements.append(
                BodyMeasurement(date=current, body_fat=round(body_fat + error, 1))
            )

        current += timedelta(days=1)

    return TrackerState(
        entries=entries,
        measurements=measurements,
        starting_weight=START_WEIGHT,
        goal_weight=GOAL_WEIGHT,
        starting_body_fat=START_BODY_FAT,
        goal_body_fat=GOAL_BODY_FAT,
    )
