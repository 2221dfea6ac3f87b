from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping

import httpx

from statuspulse.checks.base import Monitor, classify_latency
from statuspulse.checks.database import DatabaseMonitor
from statuspulse.checks.http import DEFAULT_USER_AGENT, ApiMonitor, ClientFactory, HttpMonitor, KeywordMonitor
from statuspulse.domain.models import CheckResult, MonitoredService, MonitorType, Status

logger = logging.getLogger(__name__)


def default_monitors(
    *,
    client_factory: ClientFactory | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
    database_probes: Mapping[str, str] | None = None,
    database_close_timeout_sec: float = 2.0,
) -> dict[MonitorType, Monitor]:
    return {
        MonitorType.HTTP: HttpMonitor(client_factory, user_agent),
        MonitorType.KEYWORD: KeywordMonitor(client_factory, user_agent),
        MonitorType.API: ApiMonitor(client_factory, user_agent),
        MonitorType.DATABASE: DatabaseMonitor(
            database_probes, close_timeout_sec=database_close_timeout_sec
        ),
    }


class HealthCheckExecutor:
    """Classifies one service per call. Never raises for check failures."""

    def __init__(
        self,
        monitors: Mapping[MonitorType, Monitor] | None = None,
        clock: Callable[[], float] | None = None,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        self._monitors = dict(monitors) if monitors is not None else default_monitors()
        self._clock = clock or (lambda: asyncio.get_running_loop().time())
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    async def perform_check(self, service: MonitoredService) -> CheckResult:
        monitor = self._monitors.get(service.monitor_type)
        if monitor is None:
            kind = getattr(service.monitor_type, "value", service.monitor_type)
            return self._down(service, f"Unsupported monitor type: {kind}")

        started = self._clock()
        try:
            outcome = await asyncio.wait_for(
                monitor.probe(service), timeout=service.timeout_ms / 1000
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._down(
                service, f"{monitor.timeout_label} timed out after {service.timeout_ms}ms"
            )
        except Exception as exc:
            logger.info(
                "check raised",
                extra={"service_id": str(service.id), "error": repr(exc)},
            )
            return self._down(service, monitor.describe_error(exc))

        elapsed_ms = int((self._clock() - started) * 1000)
        if not outcome.ok:
            return CheckResult(
                service_id=service.id,
                status=Status.DOWN,
                checked_at=self._now(),
                response_time_ms=elapsed_ms,
                status_code=outcome.status_code,
                error=outcome.error,
            )

        return CheckResult(
            service_id=service.id,
            status=classify_latency(elapsed_ms, service.timeout_ms),
            checked_at=self._now(),
            response_time_ms=elapsed_ms,
            status_code=outcome.status_code,
        )

    def _down(self, service: MonitoredService, error: str) -> CheckResult:
        return CheckResult(
            service_id=service.id,
            status=Status.DOWN,
            checked_at=self._now(),
            error=error,
        )
