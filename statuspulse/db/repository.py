from __future__ import annotations

import uuid
from datetime import datetime
from typing import Sequence

from sqlalchemy.ext.asyncio import async_sessionmaker

from statuspulse.db import models
from statuspulse.domain.models import (
    SLO,
    BurnEvent,
    Category,
    CheckResult,
    MonitoredService,
    NotificationChannel,
    NotificationRule,
)
from statuspulse.services.catalog import ServiceCatalog
from statuspulse.services.slos import SLOStore
from statuspulse.services.status_history import StatusHistoryService


def _service(row: models.Service) -> MonitoredService:
    return MonitoredService(
        id=row.id,
        name=row.name,
        url=row.url,
        method=row.method,
        expected_status=row.expected_status,
        expected_content=row.expected_content,
        timeout_ms=row.timeout_ms,
        monitor_type=row.monitor_type,
        keyword=row.keyword,
        request_body=row.request_body,
        request_headers=dict(row.request_headers or {}),
        bearer_token=row.bearer_token,
        database_query=row.database_query,
        database_probe_id=row.database_probe_id,
        enabled=row.enabled,
        category_id=row.category_id,
    )


def _category(row: models.Category) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        description=row.description,
        display_order=row.display_order,
        enabled=row.enabled,
    )


def _check(row: models.CheckResult) -> CheckResult:
    return CheckResult(
        service_id=row.service_id,
        status=row.status,
        checked_at=row.checked_at,
        response_time_ms=row.response_time_ms,
        status_code=row.status_code,
        error=row.error,
    )


def _slo(row: models.SLO) -> SLO:
    return SLO(
        id=row.id,
        service_id=row.service_id,
        name=row.name,
        sli_type=row.sli_type,
        target_percentage=row.target_percentage,
        time_window_days=row.time_window_days,
        latency_threshold_ms=row.latency_threshold_ms,
        enabled=row.enabled,
    )


def _burn_event(row: models.BurnEvent) -> BurnEvent:
    return BurnEvent(
        id=row.id,
        slo_id=row.slo_id,
        burn_rate=row.burn_rate,
        error_budget_consumed=row.error_budget_consumed,
        triggered_at=row.triggered_at,
        time_to_exhaustion_hours=row.time_to_exhaustion_hours,
        resolved_at=row.resolved_at,
    )


def _rule(row: models.NotificationRule) -> NotificationRule:
    return NotificationRule(
        id=row.id,
        slo_id=row.slo_id,
        channel_id=row.channel_id,
        burn_rate_threshold=row.burn_rate_threshold,
        enabled=row.enabled,
    )


def _channel(row: models.NotificationChannel) -> NotificationChannel:
    return NotificationChannel(
        id=row.id,
        name=row.name,
        type=row.type,
        config=dict(row.config or {}),
        enabled=row.enabled,
    )


class SqlMonitoringRepository:
    """MonitoringRepository backed by the relational store, one session per call."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def list_enabled_services(self) -> Sequence[MonitoredService]:
        async with self._session_factory() as session:
            rows = await ServiceCatalog(session).list_enabled()
            return [_service(row) for row in rows]

    async def list_enabled_categories(self) -> Sequence[Category]:
        async with self._session_factory() as session:
            rows = await ServiceCatalog(session).list_enabled_categories()
            return [_category(row) for row in rows]

    async def find_service_by_id(self, service_id: uuid.UUID) -> MonitoredService | None:
        async with self._session_factory() as session:
            row = await ServiceCatalog(session).get(service_id)
            return _service(row) if row is not None else None

    async def find_checks_in_range(
        self, service_id: uuid.UUID, start: datetime, end: datetime
    ) -> Sequence[CheckResult]:
        async with self._session_factory() as session:
            rows = await StatusHistoryService(session).in_range(service_id, start, end)
            return [_check(row) for row in rows]

    async def find_latest_check(self, service_id: uuid.UUID) -> CheckResult | None:
        async with self._session_factory() as session:
            row = await StatusHistoryService(session).latest(service_id)
            return _check(row) if row is not None else None

    async def append_check(self, result: CheckResult) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await StatusHistoryService(session).record(
                    service_id=result.service_id,
                    status=result.status,
                    response_time_ms=result.response_time_ms,
                    status_code=result.status_code,
                    error=result.error,
                    checked_at=result.checked_at,
                )

    async def delete_checks_older_than(self, cutoff: datetime) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                return await StatusHistoryService(session).prune(cutoff)

    async def list_enabled_slos(self) -> Sequence[SLO]:
        async with self._session_factory() as session:
            rows = await SLOStore(session).list_enabled()
            return [_slo(row) for row in rows]

    async def find_slo_by_id(self, slo_id: uuid.UUID) -> SLO | None:
        async with self._session_factory() as session:
            row = await SLOStore(session).get(slo_id)
            return _slo(row) if row is not None else None

    async def find_open_burn_event(self, slo_id: uuid.UUID) -> BurnEvent | None:
        async with self._session_factory() as session:
            row = await SLOStore(session).get_open_burn_event(slo_id)
            return _burn_event(row) if row is not None else None

    async def create_burn_event(
        self,
        *,
        slo_id: uuid.UUID,
        burn_rate: float,
        error_budget_consumed: float,
        time_to_exhaustion_hours: float | None,
        triggered_at: datetime,
    ) -> BurnEvent:
        async with self._session_factory() as session:
            async with session.begin():
                row = await SLOStore(session).create_burn_event(
                    slo_id=slo_id,
                    burn_rate=burn_rate,
                    error_budget_consumed=error_budget_consumed,
                    time_to_exhaustion_hours=time_to_exhaustion_hours,
                    triggered_at=triggered_at,
                )
                return _burn_event(row)

    async def update_burn_event(self, event_id: uuid.UUID, **patch: object) -> BurnEvent | None:
        async with self._session_factory() as session:
            async with session.begin():
                row = await SLOStore(session).update_burn_event(event_id, **patch)
                return _burn_event(row) if row is not None else None

    async def list_enabled_notification_rules(self, slo_id: uuid.UUID) -> Sequence[NotificationRule]:
        async with self._session_factory() as session:
            rows = await SLOStore(session).list_enabled_rules(slo_id)
            return [_rule(row) for row in rows]

    async def find_channel(self, channel_id: uuid.UUID) -> NotificationChannel | None:
        async with self._session_factory() as session:
            row = await SLOStore(session).get_channel(channel_id)
            return _channel(row) if row is not None else None
