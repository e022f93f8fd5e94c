"""Data models for weight, intake and body-composition tracking."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


# Circumference metrics a body measurement may carry (cm)
CIRCUMFERENCE_METRICS = (
    "neck",
    "shoulders",
    "chest",
    "waist",
    "hips",
    "biceps",
    "forearms",
    "thighs",
    "calves",
)


class TrackerError(Exception):
    """Base exception for kcalfit errors."""

    pass


class InvalidEntryError(TrackerError, ValueError):
    """Raised when a logged entry or measurement is malformed."""

    pass


class InvalidSettingError(TrackerError, ValueError):
    """Raised when a setting holds a value outside its allowed set."""

    pass


class ConfidenceLevel(float, Enum):
    """Supported two-tailed confidence levels."""

    P80 = 0.80
    P90 = 0.90
    P95 = 0.95
    P99 = 0.99

    @property
    def z(self) -> float:
        """Fixed two-tailed z-score for this level."""
        return _Z_SCORES[self]

    @classmethod
    def parse(cls, value: float | str | "ConfidenceLevel") -> "ConfidenceLevel":
        """Coerce 0.95, "0.95" or "95" into a ConfidenceLevel."""
        if isinstance(value, ConfidenceLevel):
            return value
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidSettingError(f"Invalid confidence level: {value!r}") from None
        if number > 1:
            number /= 100
        for level in cls:
            if math.isclose(level.value, number):
                return level
        valid = ", ".join(f"{level.value:.2f}" for level in cls)
        raise InvalidSettingError(f"Confidence level must be one of {valid}, got {value!r}")


_Z_SCORES = {
    ConfidenceLevel.P80: 1.28,
    ConfidenceLevel.P90: 1.645,
    ConfidenceLevel.P95: 1.96,
    ConfidenceLevel.P99: 2.576,
}


class Grouping(Enum):
    """Calendar bucket sizes for period statistics."""

    WEEK = "1w"
    TWO_WEEKS = "2w"
    MONTH = "1m"
    TWO_MONTHS = "2m"

    @classmethod
    def parse(cls, value: str | "Grouping") -> "Grouping":
        if isinstance(value, Grouping):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(g.value for g in cls)
            raise InvalidSettingError(f"Grouping must be one of {valid}, got {value!r}") from None


class ChangeSignal(Enum):
    """Reliability of a period-over-period change."""

    INCREASE = "increase"  # CI entirely above zero
    DECREASE = "decrease"  # CI entirely below zero
    INCONCLUSIVE = "inconclusive"


class Stability(Enum):
    """Reliability label on the empirical kcal/kg estimate."""

    STABLE = "stable"
    NOISY = "noisy"
    INSUFFICIENT = "insufficient"


class NoticeDirection(Enum):
    """Ways observed weight change can disagree with logged intake."""

    GAIN_LARGER_THAN_EXPECTED = "gain_larger_than_expected"
    GAIN_DESPITE_DEFICIT = "gain_despite_deficit"
    LOSS_DESPITE_SURPLUS = "loss_despite_surplus"
    LOSS_LARGER_THAN_EXPECTED = "loss_larger_than_expected"


@dataclass
class WeightEntry:
    """A single day's weigh-in, optionally with that day's intake."""

    date: date
    weight: float  # kg
    calories: Optional[float] = None  # kcal/day

    def __post_init__(self) -> None:
        if not math.isfinite(self.weight) or self.weight <= 0:
            raise InvalidEntryError(f"Weight must be greater than 0, got {self.weight}")
        if self.calories is not None and (
            not math.isfinite(self.calories) or self.calories <= 0
        ):
            raise InvalidEntryError(f"Calories must be greater than 0, got {self.calories}")

    @property
    def has_calories(self) -> bool:
        return self.calories is not None


@dataclass
class BodyMeasurement:
    """Body-fat and/or circumference readings taken on one day."""

    date: date
    body_fat: Optional[float] = None  # percent
    neck: Optional[float] = None
    shoulders: Optional[float] = None
    chest: Optional[float] = None
    waist: Optional[float] = None
    hips: Optional[float] = None
    biceps: Optional[float] = None
    forearms: Optional[float] = None
    thighs: Optional[float] = None
    calves: Optional[float] = None

    def __post_init__(self) -> None:
        if self.body_fat is not None and not 0 <= self.body_fat <= 100:
            raise InvalidEntryError(f"Body fat must be within 0-100%, got {self.body_fat}")
        for name in CIRCUMFERENCE_METRICS:
            value = getattr(self, name)
            if value is not None and (not math.isfinite(value) or value <= 0):
                raise InvalidEntryError(f"{name} must be greater than 0, got {value}")
        if not self.metrics():
            raise InvalidEntryError("A measurement needs at least one metric besides the date")

    def metrics(self) -> dict[str, float]:
        """Return the metrics present on this measurement."""
        names = ("body_fat",) + CIRCUMFERENCE_METRICS
        return {name: getattr(self, name) for name in names if getattr(self, name) is not None}


@dataclass
class PeriodGroup:
    """Entries falling in one calendar bucket."""

    key: str
    label: str
    start: date
    end: date
    entries: list[WeightEntry] = field(default_factory=list)


@dataclass
class WeeklyStats:
    """Weight statistics for one period bucket."""

    label: str
    start: date
    end: date
    mean: float
    sd: float
    ci: tuple[float, float]
    count: int
    change: Optional[float] = None  # vs the previous bucket's mean
    change_ci: Optional[tuple[float, float]] = None

    @property
    def signal(self) -> ChangeSignal:
        if self.change_ci is None:
            return ChangeSignal.INCONCLUSIVE
        if self.change_ci[0] > 0:
            return ChangeSignal.INCREASE
        if self.change_ci[1] < 0:
            return ChangeSignal.DECREASE
        return ChangeSignal.INCONCLUSIVE


@dataclass
class TrendPoint:
    """Observed weight next to the fitted trend and its slope-CI band."""

    date: date
    weight: float
    predicted: float
    predicted_low: float
    predicted_high: float

    @property
    def predicted_range(self) -> float:
        return self.predicted_high - self.predicted_low


@dataclass
class CaloricInference:
    """Weight trend regressed against time, converted to calories."""

    maintenance_calories: float
    confidence_interval: tuple[float, float]
    weight_change_rate: float  # kg/day
    weight_change_rate_ci: tuple[float, float]
    slope_ci: tuple[float, float]
    intercept: float
    days_of_data: float
    r2: float
    kcal_per_kg: float
    average_intake: Optional[float] = None
    trend_data: list[TrendPoint] = field(default_factory=list)

    @property
    def is_reliable(self) -> bool:
        """True once the window spans enough days to trust the estimate."""
        from kcalfit.tracking.inference import MIN_DAYS_FOR_INFERENCE

        return self.days_of_data >= MIN_DAYS_FOR_INFERENCE

    @property
    def surplus_deficit(self) -> float:
        """Daily energy balance implied by the trend (kcal/day, + = surplus)."""
        return self.weight_change_rate * self.kcal_per_kg

    @property
    def rate_half_width(self) -> float:
        low, high = self.weight_change_rate_ci
        return (high - low) / 2


@dataclass
class IntervalPair:
    """Weight rate and mean intake between two calorie-logged days."""

    start: date
    end: date
    avg_calories: float
    weight_rate: float  # kg/day

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()} -> {self.end.isoformat()}"


@dataclass
class EmpiricalEstimate:
    """Personal kcal/kg derived from the log's own calorie/weight pairs."""

    empirical: Optional[float]  # kcal/kg
    maintenance: Optional[float]  # kcal/day at zero predicted weight rate
    r2: Optional[float]
    intervals: int
    stability: Stability = Stability.INSUFFICIENT
    empirical_ci: Optional[tuple[float, float]] = None
    slope: Optional[float] = None
    slope_ci: Optional[tuple[float, float]] = None

    def point(self) -> tuple[Optional[float], Optional[float], Optional[float], int]:
        """Point-estimate view: (empirical, maintenance, r2, intervals)."""
        return self.empirical, self.maintenance, self.r2, self.intervals

    def conversion(self, stable_only: bool = False, default: float = 7700.0) -> float:
        """kcal/kg to use downstream, falling back to ``default``."""
        if self.empirical is None or self.stability is Stability.INSUFFICIENT:
            return default
        if stable_only and self.stability is not Stability.STABLE:
            return default
        return self.empirical

    @property
    def relative_half_width(self) -> Optional[float]:
        """CI half-width as a fraction of the point estimate."""
        if self.empirical_ci is None or not self.empirical:
            return None
        low, high = self.empirical_ci
        return (high - low) / 2 / self.empirical


@dataclass
class IntakeNotice:
    """Observed weight change disagrees with what logged intake predicts."""

    direction: NoticeDirection
    suggested_adjustment: int  # kcal/day, sign follows the unexplained gap
    observed_rate: float  # kg/day
    expected_rate: float  # kg/day
    average_intake: float
    maintenance_calories: float
    kcal_per_kg: float
    tolerance: float  # kg/day

    @property
    def message(self) -> str:
        amount = abs(self.suggested_adjustment)
        if self.direction is NoticeDirection.GAIN_LARGER_THAN_EXPECTED:
            return (
                f"Gaining faster than your logged surplus predicts by ~{amount} kcal/day. "
                "Intake may be under-logged or maintenance lower than estimated."
            )
        if self.direction is NoticeDirection.GAIN_DESPITE_DEFICIT:
            return (
                f"Gaining despite a logged deficit (~{amount} kcal/day unaccounted for). "
                "Check for unlogged food or drinks."
            )
        if self.direction is NoticeDirection.LOSS_DESPITE_SURPLUS:
            return (
                f"Losing despite a logged surplus (~{amount} kcal/day unaccounted for). "
                "Intake may be over-logged or activity higher than usual."
            )
        return (
            f"Losing faster than your logged deficit predicts by ~{amount} kcal/day. "
            "Intake may be over-logged or maintenance higher than estimated."
        )


@dataclass(frozen=True)
class CalibrationFactor:
    """How this person partitions surpluses and deficits.

    Attributes:
        date: Latest body-fat anchor already folded into the factors
        muscle_gain_factor: Share of a surplus going to lean mass, in [0, 0.7]
        fat_loss_factor: Share of a deficit coming from fat, in [0.5, 1.0]
    """

    date: Optional[date] = None
    muscle_gain_factor: float = 0.3
    fat_loss_factor: float = 0.9

    def __post_init__(self) -> None:
        if not 0 <= self.muscle_gain_factor <= 0.7:
            raise InvalidSettingError(
                f"muscle_gain_factor must be within [0, 0.7], got {self.muscle_gain_factor}"
            )
        if not 0.5 <= self.fat_loss_factor <= 1.0:
            raise InvalidSettingError(
                f"fat_loss_factor must be within [0.5, 1.0], got {self.fat_loss_factor}"
            )

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat() if self.date else None,
            "muscle_gain_factor": self.muscle_gain_factor,
            "fat_loss_factor": self.fat_loss_factor,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CalibrationFactor":
        raw_date = data.get("date")
        return cls(
            date=date.fromisoformat(raw_date) if raw_date else None,
            muscle_gain_factor=float(data.get("muscle_gain_factor", 0.3)),
            fat_loss_factor=float(data.get("fat_loss_factor", 0.9)),
        )


@dataclass
class BodyCompositionEstimate:
    """Fat/lean split for one weigh-in."""

    date: date
    weight: float
    body_fat_percentage: float
    fat_mass: float
    lean_mass: float
    body_fat_ci: tuple[float, float]
    is_estimated: bool  # False for measured anchors and the starting point


@dataclass
class BodyCompositionResult:
    """Body-composition series plus any calibration the pass derived."""

    estimates: list[BodyCompositionEstimate] = field(default_factory=list)
    calibration: Optional[CalibrationFactor] = None  # None when nothing new

    @property
    def latest(self) -> Optional[BodyCompositionEstimate]:
        return self.estimates[-1] if self.estimates else None
