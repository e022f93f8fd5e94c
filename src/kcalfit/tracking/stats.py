"""Statistics primitives shared by the trend, period and empirical estimators.

Only what the estimators need: mean, sample standard deviation, z-based
confidence intervals and single-predictor least squares. Degenerate inputs
(too few points, no spread in x) give neutral zero results rather than NaN
or an exception, so callers can branch on the data instead of guarding
every call.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy import stats

from kcalfit.tracking.models import ConfidenceLevel


@dataclass
class Regression:
    """Ordinary least squares fit of y on x.

    Attributes:
        slope: Change in y per unit x
        intercept: y at x = 0
        r2: Coefficient of determination (0 when undefined)
        slope_se: Standard error of the slope, sqrt(MSE / SSx) with n-2 dof
        n: Number of points fitted
    """

    slope: float = 0.0
    intercept: float = 0.0
    r2: float = 0.0
    slope_se: float = 0.0
    n: int = 0

    @property
    def is_degenerate(self) -> bool:
        return self.n < 2

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


def mean(xs: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sequence."""
    if len(xs) == 0:
        return 0.0
    return float(np.mean(xs))


def sample_sd(xs: Sequence[float], xs_mean: float | None = None) -> float:
    """Sample standard deviation (n-1 denominator); 0 when n < 2."""
    n = len(xs)
    if n < 2:
        return 0.0
    if xs_mean is None:
        xs_mean = mean(xs)
    arr = np.asarray(xs, dtype=float)
    return float(math.sqrt(np.sum((arr - xs_mean) ** 2) / (n - 1)))


def confidence_interval(
    center: float,
    sd: float,
    n: int,
    level: ConfidenceLevel = ConfidenceLevel.P95,
) -> tuple[float, float]:
    """z-based interval center +/- z * sd / sqrt(n).

    Collapses to (center, center) when there is a single observation.
    """
    if n < 2:
        return (center, center)
    margin = level.z * sd / math.sqrt(n)
    return (center - margin, center + margin)


def linear_regression(x: Sequence[float], y: Sequence[float]) -> Regression:
    """Fit y = slope * x + intercept by ordinary least squares.

    Args:
        x: Predictor values
        y: Response values, same length as x

    Returns:
        Regression with slope, intercept, R^2 and slope standard error.
        Fewer than two points or zero variance in x returns an all-zero
        Regression (n still reports the point count).
    """
    n = len(x)
    if n < 2 or n != len(y):
        return Regression(n=n)

    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if np.ptp(x_arr) == 0:
        return Regression(n=n)

    fit = stats.linregress(x_arr, y_arr)
    slope_se = float(fit.stderr) if n > 2 and math.isfinite(fit.stderr) else 0.0
    r2 = float(fit.rvalue) ** 2 if math.isfinite(fit.rvalue) else 0.0

    return Regression(
        slope=float(fit.slope),
        intercept=float(fit.intercept),
        r2=r2,
        slope_se=slope_se,
        n=n,
    )


def slope_interval(
    regression: Regression,
    level: ConfidenceLevel = ConfidenceLevel.P95,
) -> tuple[float, float]:
    """Confidence interval on the slope, slope +/- z * SE."""
    margin = level.z * regression.slope_se
    return (regression.slope - margin, regression.slope + margin)


def pooled_standard_error(sd_a: float, n_a: int, sd_b: float, n_b: int) -> float:
    """Standard error of a difference of two means.

    A side with a single observation contributes nothing.
    """
    var_a = sd_a**2 / n_a if n_a > 1 else 0.0
    var_b = sd_b**2 / n_b if n_b > 1 else 0.0
    return math.sqrt(var_a + var_b)
