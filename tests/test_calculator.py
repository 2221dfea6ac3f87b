"""Tests for SLI, burn-rate and error-budget arithmetic."""

from __future__ import annotations

import math
import uuid
from datetime import timedelta

import pytest

from fakes import NOW, make_check, make_slo
from statuspulse.domain.models import SLIType, Status
from statuspulse.slo import calculator
from statuspulse.slo.calculator import SLOConfigurationError, evaluate

SERVICE_ID = uuid.uuid4()


def _checks(*statuses: Status) -> list:
    return [make_check(SERVICE_ID, s, minutes_ago=i + 1) for i, s in enumerate(statuses)]


# ── SLI ─────────────────────────────────────────────────────────


class TestAvailability:
    def test_one_down_in_four(self) -> None:
        slo = make_slo(SERVICE_ID, target_percentage=99.9)
        result = evaluate(slo, _checks(Status.UP, Status.DOWN, Status.UP, Status.UP), NOW)
        assert result.current_sli == 75
        assert result.burn_rate == 250
        assert result.is_fast_burn is True

    def test_degraded_is_not_up(self) -> None:
        slo = make_slo(SERVICE_ID, target_percentage=50)
        result = evaluate(slo, _checks(Status.UP, Status.DEGRADED), NOW)
        assert result.current_sli == 50

    def test_checks_outside_window_ignored(self) -> None:
        slo = make_slo(SERVICE_ID, time_window_days=1)
        old = make_check(SERVICE_ID, Status.DOWN, checked_at=NOW - timedelta(days=2))
        result = evaluate(slo, [old, *_checks(Status.UP)], NOW)
        assert result.current_sli == 100

    def test_check_exactly_at_window_start_counts(self) -> None:
        slo = make_slo(SERVICE_ID, time_window_days=1)
        edge = make_check(SERVICE_ID, Status.DOWN, checked_at=NOW - timedelta(days=1))
        result = evaluate(slo, [edge, *_checks(Status.UP)], NOW)
        assert result.current_sli == 50


class TestLatency:
    def test_threshold_and_status_both_required(self) -> None:
        slo = make_slo(SERVICE_ID, sli_type=SLIType.LATENCY, latency_threshold_ms=500)
        checks = [
            make_check(SERVICE_ID, Status.UP, minutes_ago=4, response_time_ms=200),
            make_check(SERVICE_ID, Status.UP, minutes_ago=3, response_time_ms=300),
            make_check(SERVICE_ID, Status.DOWN, minutes_ago=2),
            make_check(SERVICE_ID, Status.UP, minutes_ago=1, response_time_ms=600),
        ]
        assert evaluate(slo, checks, NOW).current_sli == 50

    def test_fast_degraded_does_not_pass(self) -> None:
        slo = make_slo(SERVICE_ID, sli_type=SLIType.LATENCY, latency_threshold_ms=500, target_percentage=10)
        checks = [make_check(SERVICE_ID, Status.DEGRADED, response_time_ms=50)]
        assert evaluate(slo, checks, NOW).current_sli == 0

    def test_zero_response_time_passes(self) -> None:
        slo = make_slo(SERVICE_ID, sli_type=SLIType.LATENCY, latency_threshold_ms=500)
        checks = [make_check(SERVICE_ID, Status.UP, response_time_ms=0)]
        assert evaluate(slo, checks, NOW).current_sli == 100

    def test_missing_threshold_raises(self) -> None:
        slo = make_slo(SERVICE_ID, sli_type=SLIType.LATENCY, latency_threshold_ms=None)
        with pytest.raises(SLOConfigurationError):
            evaluate(slo, _checks(Status.UP), NOW)


# ── Burn rate and budget ────────────────────────────────────────


class TestBurnRate:
    def test_empty_checks_are_total_outage(self) -> None:
        result = evaluate(make_slo(SERVICE_ID), [], NOW)
        assert result.current_sli == 0
        assert result.error_rate == 100
        assert math.isinf(result.burn_rate)
        assert result.is_fast_burn is True

    def test_perfect_target_with_any_failure(self) -> None:
        slo = make_slo(SERVICE_ID, target_percentage=100)
        result = evaluate(slo, _checks(Status.UP, Status.DEGRADED), NOW)
        assert math.isinf(result.burn_rate)
        assert result.error_budget_consumed == 100

    def test_perfect_target_met(self) -> None:
        slo = make_slo(SERVICE_ID, target_percentage=100)
        result = evaluate(slo, _checks(Status.UP, Status.UP), NOW)
        assert result.burn_rate == 0
        assert result.error_budget_consumed == 0
        assert result.is_fast_burn is False

    def test_all_up_burns_nothing(self) -> None:
        result = evaluate(make_slo(SERVICE_ID), _checks(Status.UP, Status.UP), NOW)
        assert result.burn_rate == 0
        assert result.time_to_exhaustion_hours is None

    def test_fast_burn_boundary(self) -> None:
        assert calculator.is_fast_burn(14.4) is False
        assert calculator.is_fast_burn(14.41) is True

    def test_budget_clamped(self) -> None:
        assert calculator.error_budget_consumed(0.0, 99.0) == 100
        assert calculator.error_budget_consumed(100.0, 99.0) == 0
        assert calculator.error_budget_consumed(99.5, 99.0) == pytest.approx(50)

    @pytest.mark.parametrize("ups,downs", [(0, 3), (1, 1), (7, 1), (99, 1), (5, 0)])
    def test_sli_and_budget_in_range(self, ups: int, downs: int) -> None:
        checks = _checks(*([Status.UP] * ups + [Status.DOWN] * downs))
        result = evaluate(make_slo(SERVICE_ID, target_percentage=95), checks, NOW)
        assert 0 <= result.current_sli <= 100
        assert 0 <= result.error_budget_consumed <= 100


class TestTimeToExhaustion:
    def test_none_below_fast_burn(self) -> None:
        slo = make_slo(SERVICE_ID, target_percentage=99)
        assert calculator.time_to_exhaustion(slo, 5.0, 10.0) is None

    def test_none_when_not_burning(self) -> None:
        slo = make_slo(SERVICE_ID)
        assert calculator.time_to_exhaustion(slo, 0.0, 0.0) is None

    def test_zero_when_budget_gone(self) -> None:
        slo = make_slo(SERVICE_ID)
        assert calculator.time_to_exhaustion(slo, 250.0, 100.0) == 0

    def test_hours_from_remaining_budget(self) -> None:
        slo = make_slo(SERVICE_ID, time_window_days=30)
        # half the budget left, 30 days = 720h, burning at 20x
        assert calculator.time_to_exhaustion(slo, 20.0, 50.0) == pytest.approx(18.0)


class TestRounding:
    def test_two_decimals(self) -> None:
        slo = make_slo(SERVICE_ID, target_percentage=99)
        result = evaluate(slo, _checks(Status.UP, Status.UP, Status.DOWN), NOW)
        assert result.current_sli == 66.67
        assert result.error_rate == 33.33

    def test_threshold_compared_before_rounding(self) -> None:
        # 14.404 rounds to 14.4 but is still a fast burn
        assert calculator.is_fast_burn(14.404) is True
        assert calculator._round2(14.404) == 14.4

    def test_half_rounds_up(self) -> None:
        assert calculator._round2(0.125) == 0.13
