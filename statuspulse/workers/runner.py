from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx

from statuspulse.alerts.dispatcher import NotificationDispatcher
from statuspulse.checks.executor import HealthCheckExecutor, default_monitors
from statuspulse.core.config import settings
from statuspulse.db.repository import SqlMonitoringRepository
from statuspulse.db.session import SessionLocal
from statuspulse.domain.models import CheckResult, MonitoredService, Status
from statuspulse.domain.repository import MonitoringRepository
from statuspulse.slo.burn import SLOMonitor

logger = logging.getLogger(__name__)


class MonitoringWorker:
    """One evaluation pass: health checks, then SLOs, then retention."""

    def __init__(
        self,
        repository: MonitoringRepository,
        executor: HealthCheckExecutor,
        slo_monitor: SLOMonitor,
        concurrency: int = 20,
        retention_days: int = 0,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._executor = executor
        self._slo_monitor = slo_monitor
        self._semaphore = asyncio.Semaphore(concurrency)
        self._retention_days = retention_days
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    async def run_forever(self, interval_sec: float) -> None:
        logger.info("worker started", extra={"interval_sec": interval_sec})
        while True:
            try:
                await self.run_pass()
            except Exception:
                # nothing could be enumerated; the next tick retries
                logger.exception("evaluation pass aborted")
            await asyncio.sleep(interval_sec)

    async def run_pass(self) -> None:
        await self.run_health_checks()
        await self._slo_monitor.evaluate_all()
        if self._retention_days > 0:
            await self.prune()

    async def run_health_checks(self) -> list[CheckResult]:
        services = await self._repo.list_enabled_services()
        outcomes = await asyncio.gather(
            *(self._run_job(service) for service in services),
            return_exceptions=True,
        )

        results: list[CheckResult] = []
        failed = 0
        for service, outcome in zip(services, outcomes):
            if isinstance(outcome, BaseException):
                failed += 1
                logger.error(
                    "check job aborted",
                    extra={"service_id": str(service.id), "error": repr(outcome)},
                )
                continue
            results.append(outcome)

        logger.info(
            "health checks finished",
            extra={"services": len(services), "completed": len(results), "failed": failed},
        )
        return results

    async def check_service(self, service: MonitoredService) -> CheckResult:
        try:
            result = await self._executor.perform_check(service)
        except Exception as exc:
            logger.exception("check job crashed", extra={"service_id": str(service.id)})
            result = CheckResult(
                service_id=service.id,
                status=Status.DOWN,
                checked_at=self._now(),
                error=str(exc) or type(exc).__name__,
            )
        try:
            await self._repo.append_check(result)
        except Exception:
            # the check still happened; only the write is lost
            logger.exception("persisting check failed", extra={"service_id": str(service.id)})
        if result.error:
            logger.info(
                "check failed",
                extra={"service_id": str(service.id), "status": result.status.value, "error": result.error},
            )
        return result

    async def prune(self) -> int:
        cutoff = self._now() - timedelta(days=self._retention_days)
        try:
            deleted = await self._repo.delete_checks_older_than(cutoff)
        except Exception:
            logger.exception("pruning checks failed")
            return 0
        logger.info("old checks pruned", extra={"deleted": deleted, "cutoff": cutoff.isoformat()})
        return deleted

    async def _run_job(self, service: MonitoredService) -> CheckResult:
        async with self._semaphore:
            return await self.check_service(service)


def build_worker() -> MonitoringWorker:
    repository = SqlMonitoringRepository(SessionLocal)
    executor = HealthCheckExecutor(
        default_monitors(
            client_factory=lambda: httpx.AsyncClient(follow_redirects=True),
            user_agent=settings.check_user_agent,
            database_probes=settings.database_probes,
            database_close_timeout_sec=settings.database_close_timeout_sec,
        )
    )
    dispatcher = NotificationDispatcher(timeout_sec=settings.webhook_timeout_sec, base_url=settings.base_url)
    return MonitoringWorker(
        repository,
        executor,
        SLOMonitor(repository, dispatcher, settings.base_url),
        concurrency=settings.checker_concurrency,
        retention_days=settings.check_retention_days,
    )


def main() -> None:
    logging.basicConfig(level=settings.log_level)
    worker = build_worker()
    asyncio.run(worker.run_forever(settings.evaluation_interval_sec))


if __name__ == "__main__":
    main()
