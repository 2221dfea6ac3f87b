from __future__ import annotations

import uuid
from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspulse.db.models import SLO, BurnEvent, NotificationChannel, NotificationRule

_BURN_EVENT_FIELDS = frozenset(
    {"burn_rate", "error_budget_consumed", "time_to_exhaustion_hours", "resolved_at"}
)


class SLOStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, slo_id: uuid.UUID) -> SLO | None:
        return await self.session.get(SLO, slo_id)

    async def list_enabled(self) -> Sequence[SLO]:
        rows = await self.session.scalars(
            select(SLO).where(SLO.enabled.is_(True)).order_by(SLO.created_at)
        )
        return list(rows)

    async def get_open_burn_event(self, slo_id: uuid.UUID) -> BurnEvent | None:
        return await self.session.scalar(
            select(BurnEvent)
            .where(BurnEvent.slo_id == slo_id, BurnEvent.resolved_at.is_(None))
            .order_by(desc(BurnEvent.triggered_at))
            .limit(1)
        )

    async def create_burn_event(
        self,
        *,
        slo_id: uuid.UUID,
        burn_rate: float,
        error_budget_consumed: float,
        time_to_exhaustion_hours: float | None,
        triggered_at: datetime,
    ) -> BurnEvent:
        event = BurnEvent(
            slo_id=slo_id,
            burn_rate=burn_rate,
            error_budget_consumed=error_budget_consumed,
            time_to_exhaustion_hours=time_to_exhaustion_hours,
            triggered_at=triggered_at,
            resolved_at=None,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def update_burn_event(self, event_id: uuid.UUID, **patch: object) -> BurnEvent | None:
        unknown = set(patch) - _BURN_EVENT_FIELDS
        if unknown:
            raise ValueError(f"Unknown burn event fields: {sorted(unknown)}")
        event = await self.session.get(BurnEvent, event_id)
        if event is None:
            return None
        for key, value in patch.items():
            setattr(event, key, value)
        await self.session.flush()
        return event

    async def list_enabled_rules(self, slo_id: uuid.UUID) -> Sequence[NotificationRule]:
        rows = await self.session.scalars(
            select(NotificationRule).where(
                NotificationRule.slo_id == slo_id,
                NotificationRule.enabled.is_(True),
            )
        )
        return list(rows)

    async def get_channel(self, channel_id: uuid.UUID) -> NotificationChannel | None:
        return await self.session.get(NotificationChannel, channel_id)
