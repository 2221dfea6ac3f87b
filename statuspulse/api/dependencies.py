from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from statuspulse.alerts.dispatcher import NotificationDispatcher
from statuspulse.core.config import settings
from statuspulse.db.repository import SqlMonitoringRepository
from statuspulse.db.session import SessionLocal, get_session
from statuspulse.domain.repository import MonitoringRepository
from statuspulse.slo.burn import SLOMonitor


async def get_db_session() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_repository() -> MonitoringRepository:
    return SqlMonitoringRepository(SessionLocal)


def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(timeout_sec=settings.webhook_timeout_sec, base_url=settings.base_url)


def get_slo_monitor(
    repository: MonitoringRepository = Depends(get_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> SLOMonitor:
    return SLOMonitor(repository, dispatcher, settings.base_url)
