from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from statuspulse.domain.models import Category, CheckResult, MonitoredService, Status
from statuspulse.domain.repository import MonitoringRepository
from statuspulse.reporting.timeline import (
    UNKNOWN,
    CategoryStatus,
    HistoryPoint,
    build_grid,
    category_history,
    resample,
)

logger = logging.getLogger(__name__)

BANNERS = {
    CategoryStatus.OPERATIONAL: "All Systems Operational",
    CategoryStatus.DEGRADED: "Degraded Operations",
    CategoryStatus.MAJOR_OUTAGE: "Service Outage",
}


@dataclass(frozen=True)
class ServiceReport:
    id: uuid.UUID
    name: str
    status: str
    uptime: float
    response_time_ms: float | None = None
    history: list[HistoryPoint] = field(default_factory=list)


@dataclass(frozen=True)
class CategoryReport:
    id: uuid.UUID
    name: str
    description: str | None
    status: CategoryStatus
    uptime: float
    services: list[ServiceReport] = field(default_factory=list)
    history: list[HistoryPoint] = field(default_factory=list)


@dataclass(frozen=True)
class StatusReport:
    overall_status: CategoryStatus
    banner_message: str
    window_start: datetime
    window_end: datetime
    categories: list[CategoryReport] = field(default_factory=list)


def uptime_percentage(checks: Sequence[CheckResult]) -> float:
    # degraded still answers, so it counts as available here
    if not checks:
        return 0.0
    available = sum(1 for c in checks if c.status in (Status.UP, Status.DEGRADED))
    return available / len(checks) * 100


def current_category_status(services: Sequence[ServiceReport]) -> CategoryStatus:
    statuses = [s.status for s in services]
    if Status.DOWN in statuses:
        return CategoryStatus.MAJOR_OUTAGE
    if Status.DEGRADED in statuses:
        return CategoryStatus.DEGRADED
    return CategoryStatus.OPERATIONAL


def overall_status(categories: Sequence[CategoryReport]) -> CategoryStatus:
    # a service nobody has checked yet is not assumed healthy
    statuses = [
        Status.DEGRADED.value if s.status == UNKNOWN else s.status
        for category in categories
        for s in category.services
    ]
    if not statuses:
        return CategoryStatus.OPERATIONAL
    if all(s == Status.DOWN for s in statuses):
        return CategoryStatus.MAJOR_OUTAGE
    if any(s in (Status.DOWN, Status.DEGRADED) for s in statuses):
        return CategoryStatus.DEGRADED
    return CategoryStatus.OPERATIONAL


class StatusReportBuilder:
    def __init__(
        self,
        repository: MonitoringRepository,
        window_hours: int = 24,
        points: int = 90,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._window = timedelta(hours=window_hours)
        self._points = points
        self._now = now_func or (lambda: datetime.now(timezone.utc))

    async def build(self) -> StatusReport:
        window_end = self._now().replace(second=0, microsecond=0)
        window_start = window_end - self._window
        grid = build_grid(window_start, window_end, self._points)

        categories = await self._repo.list_enabled_categories()
        services = await self._repo.list_enabled_services()

        reports = [
            await self._category(category, [s for s in services if s.category_id == category.id], grid)
            for category in categories
        ]
        overall = overall_status(reports)
        logger.info(
            "status report built",
            extra={"categories": len(reports), "services": len(services), "overall": overall.value},
        )
        return StatusReport(
            overall_status=overall,
            banner_message=BANNERS[overall],
            window_start=window_start,
            window_end=window_end,
            categories=reports,
        )

    async def _category(
        self, category: Category, services: Sequence[MonitoredService], grid: Sequence[datetime]
    ) -> CategoryReport:
        service_reports = list(await asyncio.gather(*(self._service(s, grid) for s in services)))
        uptime = (
            sum(s.uptime for s in service_reports) / len(service_reports) if service_reports else 100.0
        )
        return CategoryReport(
            id=category.id,
            name=category.name,
            description=category.description,
            status=current_category_status(service_reports),
            uptime=uptime,
            services=service_reports,
            history=category_history([s.history for s in service_reports], grid),
        )

    async def _service(self, service: MonitoredService, grid: Sequence[datetime]) -> ServiceReport:
        latest, checks = await asyncio.gather(
            self._repo.find_latest_check(service.id),
            self._repo.find_checks_in_range(service.id, grid[0], grid[-1]),
        )
        if latest is not None:
            status = latest.status.value
        elif checks:
            status = max(checks, key=lambda c: c.checked_at).status.value
        else:
            status = UNKNOWN

        return ServiceReport(
            id=service.id,
            name=service.name,
            status=status,
            uptime=uptime_percentage(checks),
            response_time_ms=latest.response_time_ms if latest is not None else None,
            history=resample(checks, grid),
        )
