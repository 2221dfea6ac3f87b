from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import asc, delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspulse.db.models import CheckResult
from statuspulse.domain.models import Status


class StatusHistoryService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        *,
        service_id: uuid.UUID,
        status: Status,
        response_time_ms: int | None,
        status_code: int | None,
        error: str | None,
        checked_at: datetime | None = None,
    ) -> CheckResult:
        row = CheckResult(
            service_id=service_id,
            status=status,
            response_time_ms=response_time_ms,
            status_code=status_code,
            error=error,
            checked_at=checked_at or datetime.now(timezone.utc),
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def latest(self, service_id: uuid.UUID) -> CheckResult | None:
        row = await self.session.scalar(
            select(CheckResult)
            .where(CheckResult.service_id == service_id)
            .order_by(desc(CheckResult.checked_at), desc(CheckResult.seq))
            .limit(1)
        )
        return row

    async def in_range(
        self,
        service_id: uuid.UUID,
        start: datetime,
        end: datetime,
    ) -> Sequence[CheckResult]:
        rows = await self.session.scalars(
            select(CheckResult)
            .where(
                CheckResult.service_id == service_id,
                CheckResult.checked_at >= start,
                CheckResult.checked_at <= end,
            )
            .order_by(asc(CheckResult.checked_at), asc(CheckResult.seq))
        )
        return list(rows)

    async def prune(self, cutoff: datetime) -> int:
        result = await self.session.execute(
            delete(CheckResult).where(CheckResult.checked_at < cutoff)
        )
        return result.rowcount or 0
