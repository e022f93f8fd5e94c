"""Weight, intake and body-composition inference.

Turns a noisy self-reported log of weigh-ins, calorie totals and body-fat
checks into an energy-balance picture:

- Period statistics with confidence intervals (weekly to bimonthly)
- Linear weight trend and the maintenance intake it implies
- Personal kcal/kg from the log's own calorie/weight intervals
- Notices when logged intake cannot explain the observed trend
- Fat/lean trajectory with self-calibrating partition factors

Everything here is pure computation over in-memory logs; persistence lives
in ``kcalfit.tracking.queries``.
"""

from __future__ import annotations

from kcalfit.tracking.body_comp import estimate_body_composition
from kcalfit.tracking.empirical import (
    empirical_kcal_per_kg,
    estimate_empirical_kcal_per_kg,
)
from kcalfit.tracking.inference import (
    KCAL_PER_KG,
    MIN_DAYS_FOR_INFERENCE,
    calculate_caloric_inference,
    filter_by_window,
)
from kcalfit.tracking.models import (
    BodyCompositionEstimate,
    BodyCompositionResult,
    BodyMeasurement,
    CalibrationFactor,
    CaloricInference,
    ConfidenceLevel,
    EmpiricalEstimate,
    Grouping,
    IntakeNotice,
    InvalidEntryError,
    InvalidSettingError,
    NoticeDirection,
    Stability,
    TrackerError,
    WeeklyStats,
    WeightEntry,
)
from kcalfit.tracking.notice import detect_intake_notice
from kcalfit.tracking.periods import summarize_periods
from kcalfit.tracking.pipeline import (
    AnalysisResult,
    TrackerState,
    analyze,
    analyze_to_fixed_point,
    commit_calibration,
)

__all__ = [
    "KCAL_PER_KG",
    "MIN_DAYS_FOR_INFERENCE",
    "AnalysisResult",
    "BodyCompositionEstimate",
    "BodyCompositionResult",
    "BodyMeasurement",
    "CalibrationFactor",
    "CaloricInference",
    "ConfidenceLevel",
    "EmpiricalEstimate",
    "Grouping",
    "IntakeNotice",
    "InvalidEntryError",
    "InvalidSettingError",
    "NoticeDirection",
    "Stability",
    "TrackerError",
    "TrackerState",
    "WeeklyStats",
    "WeightEntry",
    "analyze",
    "analyze_to_fixed_point",
    "calculate_caloric_inference",
    "commit_calibration",
    "detect_intake_notice",
    "empirical_kcal_per_kg",
    "estimate_body_composition",
    "estimate_empirical_kcal_per_kg",
    "filter_by_window",
    "summarize_periods",
]
