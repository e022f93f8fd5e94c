"""Tests for the statistics primitives."""

from __future__ import annotations

import math

import pytest

from kcalfit.tracking.models import ConfidenceLevel
from kcalfit.tracking.stats import (
    confidence_interval,
    linear_regression,
    mean,
    pooled_standard_error,
    sample_sd,
    slope_interval,
)


class TestLinearRegression:
    """Tests for linear_regression."""

    @pytest.mark.parametrize("x, y", [([], []), ([1.0], [5.0])])
    def test_fewer_than_two_points(self, x, y) -> None:
        """n < 2 gives an all-zero fit, never NaN."""
        reg = linear_regression(x, y)
        assert reg.slope == 0
        assert reg.intercept == 0
        assert reg.r2 == 0
        assert not math.isnan(reg.slope)
        assert reg.is_degenerate

    def test_zero_x_variance(self) -> None:
        """Identical x values cannot define a slope."""
        reg = linear_regression([3.0, 3.0, 3.0], [1.0, 2.0, 3.0])
        assert reg.slope == 0
        assert reg.r2 == 0
        assert reg.n == 3

    def test_exact_line(self) -> None:
        """A perfect line is recovered with R^2 = 1 and no slope error."""
        x = [0.0, 1.0, 2.0, 3.0, 4.0]
        y = [2.0 + 0.5 * v for v in x]
        reg = linear_regression(x, y)
        assert reg.slope == pytest.approx(0.5)
        assert reg.intercept == pytest.approx(2.0)
        assert reg.r2 == pytest.approx(1.0)
        assert reg.slope_se == pytest.approx(0.0, abs=1e-12)
        assert reg.predict(10) == pytest.approx(7.0)

    def test_two_points_have_no_standard_error(self) -> None:
        """With n = 2 there are no residual degrees of freedom."""
        reg = linear_regression([0.0, 1.0], [1.0, 3.0])
        assert reg.slope == pytest.approx(2.0)
        assert reg.slope_se == 0.0

    def test_noisy_slope_interval_contains_slope(self) -> None:
        """The slope CI is centred on the slope and widens with the level."""
        x = [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]
        y = [1.0, 1.4, 1.9, 2.8, 3.1, 3.9]
        reg = linear_regression(x, y)
        low95, high95 = slope_interval(reg, ConfidenceLevel.P95)
        low80, high80 = slope_interval(reg, ConfidenceLevel.P80)
        assert low95 < reg.slope < high95
        assert (high95 + low95) / 2 == pytest.approx(reg.slope)
        assert high95 - low95 > high80 - low80


class TestSummaryStatistics:
    """Tests for mean, SD and confidence intervals."""

    def test_mean(self) -> None:
        assert mean([1.0, 2.0, 6.0]) == pytest.approx(3.0)
        assert mean([]) == 0.0

    def test_sample_sd_uses_n_minus_one(self) -> None:
        """SD of [2, 4, 4, 4, 5, 5, 7, 9] with n-1 is ~2.138."""
        assert sample_sd([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.13809, rel=1e-4)

    def test_sample_sd_single_value(self) -> None:
        assert sample_sd([70.0]) == 0.0

    def test_confidence_interval_width(self) -> None:
        """Margin is z * sd / sqrt(n)."""
        low, high = confidence_interval(70.0, 1.0, 4, ConfidenceLevel.P95)
        assert low == pytest.approx(70.0 - 1.96 / 2)
        assert high == pytest.approx(70.0 + 1.96 / 2)

    def test_confidence_interval_single_observation(self) -> None:
        assert confidence_interval(70.0, 0.0, 1) == (70.0, 70.0)

    def test_pooled_standard_error_single_samples(self) -> None:
        """Sides with one observation contribute nothing."""
        assert pooled_standard_error(0.0, 1, 0.0, 1) == 0.0
        assert pooled_standard_error(2.0, 4, 5.0, 1) == pytest.approx(1.0)

    def test_pooled_standard_error(self) -> None:
        assert pooled_standard_error(2.0, 4, 3.0, 9) == pytest.approx(math.sqrt(2.0))


class TestConfidenceLevel:
    """Tests for the confidence level z-scores."""

    @pytest.mark.parametrize(
        "level, z",
        [
            (ConfidenceLevel.P80, 1.28),
            (ConfidenceLevel.P90, 1.645),
            (ConfidenceLevel.P95, 1.96),
            (ConfidenceLevel.P99, 2.576),
        ],
    )
    def test_z_scores(self, level, z) -> None:
        assert level.z == z
