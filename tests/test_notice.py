"""Tests for intake notices."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from kcalfit.tracking.models import (
    CaloricInference,
    EmpiricalEstimate,
    NoticeDirection,
    Stability,
    WeightEntry,
)
from kcalfit.tracking.notice import classify_direction, detect_intake_notice, reference_maintenance


class TestClassifyDirection:
    """Tests for classify_direction."""

    @pytest.mark.parametrize(
        "balance, observed, expected, direction",
        [
            (100, 0.05, 0.013, NoticeDirection.GAIN_LARGER_THAN_EXPECTED),
            (-300, 0.03, -0.039, NoticeDirection.GAIN_DESPITE_DEFICIT),
            (300, -0.03, 0.039, NoticeDirection.LOSS_DESPITE_SURPLUS),
            (-300, -0.1, -0.039, NoticeDirection.LOSS_LARGER_THAN_EXPECTED),
            (500, 0.01, 0.065, None),
            (-500, -0.01, -0.065, None),
        ],
    )
    def test_quadrants(self, balance, observed, expected, direction) -> None:
        assert classify_direction(balance, observed, expected) is direction

    def test_flat_weight_has_no_direction(self) -> None:
        assert classify_direction(300, 0.0, 0.039) is None
        assert classify_direction(-300, 0.0, -0.039) is None

    def test_zero_balance_follows_observation(self) -> None:
        assert classify_direction(0, 0.05, 0.0) is NoticeDirection.GAIN_LARGER_THAN_EXPECTED
        assert classify_direction(0, -0.05, 0.0) is NoticeDirection.LOSS_LARGER_THAN_EXPECTED


class TestReferenceMaintenance:
    """Tests for reference_maintenance."""

    def test_prefers_callers_value(self) -> None:
        empirical = EmpiricalEstimate(
            empirical=7000, maintenance=2300, r2=0.9, intervals=10, stability=Stability.STABLE
        )
        assert reference_maintenance(empirical, 2600) == 2600
        assert reference_maintenance(empirical) == 2300

    def test_insufficient_empirical_has_no_reference(self) -> None:
        empirical = EmpiricalEstimate(empirical=None, maintenance=None, r2=None, intervals=1)
        assert reference_maintenance(empirical) is None


class TestDetectIntakeNotice:
    """Tests for detect_intake_notice over straight-line logs."""

    def test_consistent_log_gives_no_notice(self, make_log) -> None:
        assert detect_intake_notice(make_log(31, 0.01, 2500.0), maintenance_calories=2500) is None

    def test_gain_larger_than_expected(self, make_log) -> None:
        notice = detect_intake_notice(make_log(31, 0.05, 2600.0), maintenance_calories=2500)

        assert notice is not None
        assert notice.direction is NoticeDirection.GAIN_LARGER_THAN_EXPECTED
        assert notice.suggested_adjustment == pytest.approx(285, abs=1)
        assert notice.kcal_per_kg == 7700
        assert notice.expected_rate == pytest.approx(100 / 7700)
        assert "faster" in notice.message

    def test_gain_despite_deficit(self, make_log) -> None:
        notice = detect_intake_notice(make_log(31, 0.03, 2200.0), maintenance_calories=2500)
        assert notice is not None
        assert notice.direction is NoticeDirection.GAIN_DESPITE_DEFICIT
        assert notice.suggested_adjustment > 0

    def test_loss_despite_surplus(self, make_log) -> None:
        notice = detect_intake_notice(make_log(31, -0.03, 2800.0), maintenance_calories=2500)
        assert notice is not None
        assert notice.direction is NoticeDirection.LOSS_DESPITE_SURPLUS
        assert notice.suggested_adjustment < 0

    def test_loss_larger_than_expected(self, make_log) -> None:
        notice = detect_intake_notice(make_log(31, -0.1, 2200.0), maintenance_calories=2500)
        assert notice is not None
        assert notice.direction is NoticeDirection.LOSS_LARGER_THAN_EXPECTED
        assert notice.suggested_adjustment < 0

    def test_flat_weight_at_a_surplus(self, make_log) -> None:
        """A steady weight is not reported as a loss."""
        assert detect_intake_notice(make_log(31, 0.0, 2800.0), maintenance_calories=2500) is None

    def test_smaller_change_in_expected_direction(self, make_log) -> None:
        assert detect_intake_notice(make_log(31, 0.01, 3000.0), maintenance_calories=2500) is None

    def test_too_short_a_log(self, make_log) -> None:
        assert detect_intake_notice(make_log(10, 0.2, 2200.0), maintenance_calories=2500) is None

    def test_no_calories(self, make_log) -> None:
        assert detect_intake_notice(make_log(31, 0.2, None), maintenance_calories=2500) is None

    def test_no_maintenance_reference(self, make_log) -> None:
        """Constant intake leaves the empirical estimate insufficient."""
        assert detect_intake_notice(make_log(31, 0.2, 2200.0)) is None


class TestDetectIntakeNoticeWithStubs:
    """Tests with injected inference and empirical collaborators."""

    @staticmethod
    def _entries() -> list[WeightEntry]:
        return [
            WeightEntry(date(2024, 1, 1) + timedelta(days=d), 80.0, 2500.0) for d in range(20)
        ]

    @staticmethod
    def _inference(rate: float) -> CaloricInference:
        return CaloricInference(
            maintenance_calories=2500,
            confidence_interval=(2400, 2600),
            weight_change_rate=rate,
            weight_change_rate_ci=(rate - 0.01, rate + 0.01),
            slope_ci=(rate - 0.01, rate + 0.01),
            intercept=80.0,
            days_of_data=30,
            r2=0.9,
            kcal_per_kg=7700,
        )

    def test_uses_stable_empirical_conversion(self) -> None:
        empirical = EmpiricalEstimate(
            empirical=5000,
            maintenance=2000,
            r2=0.95,
            intervals=50,
            stability=Stability.STABLE,
            empirical_ci=(4900, 5100),
        )
        notice = detect_intake_notice(
            self._entries(),
            infer=lambda entries, level: self._inference(0.3),
            estimate=lambda entries, level: empirical,
        )

        assert notice is not None
        assert notice.kcal_per_kg == 5000
        assert notice.maintenance_calories == 2000
        assert notice.expected_rate == pytest.approx(0.1)
        assert notice.suggested_adjustment == 1000
        assert notice.direction is NoticeDirection.GAIN_LARGER_THAN_EXPECTED

    def test_within_rate_uncertainty(self) -> None:
        empirical = EmpiricalEstimate(
            empirical=5000,
            maintenance=2000,
            r2=0.95,
            intervals=50,
            stability=Stability.STABLE,
            empirical_ci=(2000, 8000),
        )
        # Expected 0.1 kg/day with a 60% relative half-width swallows a 0.15 observation
        notice = detect_intake_notice(
            self._entries(),
            infer=lambda entries, level: self._inference(0.15),
            estimate=lambda entries, level: empirical,
        )
        assert notice is None
