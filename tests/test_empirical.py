"""Tests for the empirical kcal/kg estimator."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from kcalfit.tracking.empirical import (
    build_interval_pairs,
    empirical_kcal_per_kg,
    estimate_empirical_kcal_per_kg,
    label_stability,
)
from kcalfit.tracking.models import Stability, WeightEntry


class TestIntervalPairs:
    """Tests for build_interval_pairs."""

    def test_all_pairs_not_just_neighbours(self) -> None:
        entries = [
            WeightEntry(date(2024, 1, 1), 70.0, 2000),
            WeightEntry(date(2024, 1, 2), 70.2, 2400),
            WeightEntry(date(2024, 1, 4), 70.6, 2600),
        ]
        pairs = build_interval_pairs(entries)

        assert len(pairs) == 3
        first_to_last = pairs[1]
        assert (first_to_last.start, first_to_last.end) == (date(2024, 1, 1), date(2024, 1, 4))
        assert first_to_last.avg_calories == pytest.approx(2300)
        assert first_to_last.weight_rate == pytest.approx(0.2)

    def test_skips_days_without_calories(self) -> None:
        entries = [
            WeightEntry(date(2024, 1, 1), 70.0, 2000),
            WeightEntry(date(2024, 1, 2), 70.2),
            WeightEntry(date(2024, 1, 3), 70.4, 2200),
        ]
        pairs = build_interval_pairs(entries)
        assert len(pairs) == 1
        assert pairs[0].weight_rate == pytest.approx(0.2)


class TestEstimateEmpirical:
    """Tests for estimate_empirical_kcal_per_kg."""

    def test_too_few_intervals(self) -> None:
        entries = [
            WeightEntry(date(2024, 1, 1), 70.0, 2000),
            WeightEntry(date(2024, 1, 2), 70.1, 2500),
        ]
        result = estimate_empirical_kcal_per_kg(entries)
        assert result.empirical is None
        assert result.maintenance is None
        assert result.intervals == 1
        assert result.stability is Stability.INSUFFICIENT
        assert result.conversion() == 7700

    def test_flat_weight_is_insufficient(self) -> None:
        """Varying intake with no weight movement gives no estimate."""
        entries = [
            WeightEntry(date(2024, 1, 1) + timedelta(days=d), 70.0, 2000.0 + 100 * d)
            for d in range(10)
        ]
        result = estimate_empirical_kcal_per_kg(entries)
        assert result.empirical is None
        assert result.empirical_ci is None
        assert result.stability is Stability.INSUFFICIENT

    def test_constant_intake_is_insufficient(self, make_log) -> None:
        result = estimate_empirical_kcal_per_kg(make_log(20, 0.1, 2800.0))
        assert result.empirical is None
        assert result.intervals == 190

    def test_recovers_proportional_response(self, proportional_log) -> None:
        """Rates proportional to (intake - 2500) recover 7700 kcal/kg."""
        result = estimate_empirical_kcal_per_kg(proportional_log)

        assert result.stability is Stability.STABLE
        assert result.empirical == pytest.approx(7700, rel=1e-6)
        assert result.maintenance == pytest.approx(2500, rel=1e-6)
        assert result.r2 == pytest.approx(1.0)
        assert result.intervals == 30 * 29 // 2
        assert result.conversion(stable_only=True) == pytest.approx(7700, rel=1e-6)

    def test_point_view(self, proportional_log) -> None:
        empirical, maintenance, r2, intervals = empirical_kcal_per_kg(proportional_log)
        assert empirical == pytest.approx(7700, rel=1e-6)
        assert maintenance == pytest.approx(2500, rel=1e-6)
        assert r2 == pytest.approx(1.0)
        assert intervals == 435

    def test_scattered_response_is_noisy(self) -> None:
        """A real but loosely fitting response gives a wide kcal/kg interval.

        Pairs land at (2400, -0.1), (2900, 0.1) and (2500, 0.0): slope
        1/2800 with t close to 2.9, inside the 1.96 to 4.7 band where the
        interval excludes zero but is more than half the estimate wide.
        """
        entries = [
            WeightEntry(date(2024, 1, 1), 70.0, 2000),
            WeightEntry(date(2024, 1, 2), 69.9, 2800),
            WeightEntry(date(2024, 1, 3), 70.0, 3000),
        ]
        result = estimate_empirical_kcal_per_kg(entries)

        assert result.stability is Stability.NOISY
        assert result.empirical == pytest.approx(2800, rel=1e-3)
        assert result.maintenance == pytest.approx(2600, rel=1e-3)
        low, high = result.empirical_ci
        assert low < result.empirical < high
        assert result.relative_half_width > 0.5
        # Only stable estimates replace the default conversion downstream
        assert result.conversion(stable_only=True) == 7700
        assert result.conversion() == pytest.approx(2800, rel=1e-3)


class TestLabelStability:
    """Tests for label_stability."""

    def test_interval_touching_zero(self) -> None:
        assert label_stability(100.0, (0.0, 0.02)) == (Stability.INSUFFICIENT, None)
        assert label_stability(100.0, (-0.01, 0.02)) == (Stability.INSUFFICIENT, None)

    def test_half_width_at_the_threshold_is_stable(self) -> None:
        """kcal/kg interval (2, 4) around 2 has a relative half-width of exactly 0.5."""
        stability, interval = label_stability(2.0, (0.25, 0.5))
        assert stability is Stability.STABLE
        assert interval == (2.0, 4.0)

    def test_half_width_past_the_threshold_is_noisy(self) -> None:
        stability, interval = label_stability(1.9, (0.25, 0.5))
        assert stability is Stability.NOISY
        assert interval == (2.0, 4.0)

    def test_negative_slope_interval(self) -> None:
        stability, interval = label_stability(2.0, (-0.5, -0.25))
        assert stability is Stability.STABLE
        assert interval == (2.0, 4.0)
