"""SLI, burn-rate and error-budget arithmetic.

Everything here is pure: results depend only on the SLO, the checks and the
``now`` used to cut the window. Values are rounded to two decimals on the way
out, after every threshold comparison has been made on the raw numbers.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from statuspulse.domain.models import SLO, CheckResult, SLOCalculationResult, SLIType, Status

# a 30-day budget consumed in 2 hours
FAST_BURN_THRESHOLD = 14.4
HOURS_IN_DAY = 24


class SLOConfigurationError(ValueError):
    pass


def window_start(slo: SLO, now: datetime) -> datetime:
    return now - timedelta(days=slo.time_window_days)


def availability_sli(checks: Sequence[CheckResult]) -> float:
    if not checks:
        return 0.0
    up = sum(1 for check in checks if check.status == Status.UP)
    return up / len(checks) * 100


def latency_sli(checks: Sequence[CheckResult], threshold_ms: int) -> float:
    # degraded never counts, however fast it was
    if not checks:
        return 0.0
    fast = sum(
        1
        for check in checks
        if check.status == Status.UP
        and check.response_time_ms is not None
        and check.response_time_ms <= threshold_ms
    )
    return fast / len(checks) * 100


def burn_rate(current_sli: float, target: float) -> float:
    actual_error_rate = (100 - current_sli) / 100
    if target >= 100:
        return math.inf if actual_error_rate > 0 else 0.0
    if current_sli == 0:
        return math.inf
    allowed_error_rate = (100 - target) / 100
    return actual_error_rate / allowed_error_rate


def error_budget_consumed(current_sli: float, target: float) -> float:
    if target >= 100:
        return 0.0 if current_sli >= 100 else 100.0
    allowed_error_rate = (100 - target) / 100
    actual_error_rate = (100 - current_sli) / 100
    return min(100.0, max(0.0, actual_error_rate / allowed_error_rate * 100))


def is_fast_burn(rate: float) -> bool:
    return rate > FAST_BURN_THRESHOLD


def time_to_exhaustion(slo: SLO, rate: float, consumed: float) -> float | None:
    """Hours left in the budget at the current burn rate.

    0 once the budget is gone, None when the budget is not burning fast.
    """
    remaining = 100 - consumed
    if rate <= 0 or remaining <= 0:
        return 0.0 if consumed >= 100 else None
    if not is_fast_burn(rate):
        return None
    hours = (remaining / 100) * slo.time_window_days * HOURS_IN_DAY / rate
    return max(0.0, hours)


def _round2(value: float) -> float:
    if math.isinf(value) or math.isnan(value):
        return value
    # half away from zero, not banker's rounding
    return math.floor(value * 100 + 0.5) / 100


def checks_in_window(slo: SLO, checks: Iterable[CheckResult], now: datetime) -> list[CheckResult]:
    start = window_start(slo, now)
    return [check for check in checks if check.checked_at >= start]


def current_sli(slo: SLO, checks: Sequence[CheckResult]) -> float:
    if slo.sli_type == SLIType.LATENCY:
        if not slo.latency_threshold_ms:
            raise SLOConfigurationError(f"Latency threshold required for latency SLO {slo.id}")
        return latency_sli(checks, slo.latency_threshold_ms)
    # anything that is not latency is measured as availability
    return availability_sli(checks)


def evaluate(
    slo: SLO,
    checks: Iterable[CheckResult],
    now: datetime | None = None,
) -> SLOCalculationResult:
    now = now or datetime.now(timezone.utc)
    relevant = checks_in_window(slo, checks, now)

    sli = current_sli(slo, relevant)
    rate = burn_rate(sli, slo.target_percentage)
    consumed = error_budget_consumed(sli, slo.target_percentage)
    fast = is_fast_burn(rate)
    hours = time_to_exhaustion(slo, rate, consumed)

    return SLOCalculationResult(
        current_sli=_round2(sli),
        error_rate=_round2(100 - sli),
        burn_rate=_round2(rate),
        error_budget_consumed=_round2(consumed),
        is_fast_burn=fast,
        time_to_exhaustion_hours=_round2(hours) if hours is not None else None,
    )
