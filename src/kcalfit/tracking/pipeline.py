"""Analysis pipeline over an explicit tracker state.

``analyze`` is pure: it reads a TrackerState and returns every derived
result, including a proposed calibration update. Applying that update is a
separate, explicit step (``commit_calibration``), so a calibration can never
feed back into the analysis that produced it without the caller asking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from kcalfit.tracking.body_comp import estimate_body_composition
from kcalfit.tracking.empirical import estimate_empirical_kcal_per_kg
from kcalfit.tracking.inference import KCAL_PER_KG, infer_for_window
from kcalfit.tracking.log import normalize_entries
from kcalfit.tracking.models import (
    BodyCompositionResult,
    BodyMeasurement,
    CalibrationFactor,
    CaloricInference,
    ConfidenceLevel,
    EmpiricalEstimate,
    Grouping,
    IntakeNotice,
    WeeklyStats,
    WeightEntry,
)
from kcalfit.tracking.notice import detect_intake_notice
from kcalfit.tracking.periods import summarize_periods

logger = logging.getLogger(__name__)


@dataclass
class TrackerState:
    """Everything the analysis reads: logs, preferences and goals."""

    entries: list[WeightEntry] = field(default_factory=list)
    measurements: list[BodyMeasurement] = field(default_factory=list)
    confidence: ConfidenceLevel = ConfidenceLevel.P95
    trend_window: Optional[int] = None  # days; None = all data
    grouping: Grouping = Grouping.WEEK
    starting_weight: Optional[float] = None
    goal_weight: Optional[float] = None
    starting_body_fat: Optional[float] = None
    goal_body_fat: Optional[float] = None
    measurement_goals: dict[str, float] = field(default_factory=dict)
    maintenance_calories: Optional[float] = None  # known baseline, kcal/day
    calibration: CalibrationFactor = field(default_factory=CalibrationFactor)

    @property
    def current_weight(self) -> Optional[float]:
        ordered = normalize_entries(self.entries)
        return ordered[-1].weight if ordered else None


@dataclass
class AnalysisResult:
    """Derived views of a TrackerState."""

    weekly_stats: list[WeeklyStats]
    inference: Optional[CaloricInference]
    empirical: EmpiricalEstimate
    notice: Optional[IntakeNotice]
    body_composition: BodyCompositionResult

    @property
    def calibration_update(self) -> Optional[CalibrationFactor]:
        return self.body_composition.calibration


def analyze(state: TrackerState) -> AnalysisResult:
    """
    Run every estimator over the state.

    The trend inference uses the empirical kcal/kg when it is stable and
    7700 otherwise. The intake notice is judged over the full log.

    Args:
        state: Tracker state; not modified

    Returns:
        AnalysisResult with a proposed calibration update, if any
    """
    entries = normalize_entries(state.entries)
    level = state.confidence

    empirical = estimate_empirical_kcal_per_kg(entries, level)
    kcal_per_kg = empirical.conversion(stable_only=True, default=KCAL_PER_KG)

    return AnalysisResult(
        weekly_stats=summarize_periods(entries, state.grouping, level),
        inference=infer_for_window(entries, state.trend_window, level, kcal_per_kg),
        empirical=empirical,
        notice=detect_intake_notice(
            entries,
            level,
            estimate=lambda _entries, _level: empirical,
            maintenance_calories=state.maintenance_calories,
        ),
        body_composition=estimate_body_composition(
            entries,
            state.measurements,
            state.starting_body_fat,
            state.calibration,
            level=level,
            estimate=lambda _entries, _level: empirical,
        ),
    )


def commit_calibration(state: TrackerState, result: AnalysisResult) -> TrackerState:
    """Return a new state carrying the result's calibration update, if any."""
    update = result.calibration_update
    if update is None:
        return state
    logger.info(
        "Committing calibration from %s: muscle gain %.3f, fat loss %.3f",
        update.date,
        update.muscle_gain_factor,
        update.fat_loss_factor,
    )
    return replace(state, calibration=update)


def analyze_to_fixed_point(state: TrackerState) -> tuple[TrackerState, AnalysisResult]:
    """
    Analyze, commit any calibration update, and analyze once more.

    A committed calibration is dated at its latest anchor, which the next
    pass skips, so the second pass should propose nothing.

    Returns:
        (state after commit, result of the final pass)
    """
    result = analyze(state)
    if result.calibration_update is None:
        return state, result

    state = commit_calibration(state, result)
    result = analyze(state)
    if result.calibration_update is not None:
        logger.warning(
            "Calibration still changing after commit (anchor %s)",
            result.calibration_update.date,
        )
    return state, result
