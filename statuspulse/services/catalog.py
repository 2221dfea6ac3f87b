from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspulse.db.models import Category, Service


class ServiceCatalog:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, service_id: uuid.UUID) -> Service | None:
        return await self.session.get(Service, service_id)

    async def list_enabled(self) -> Sequence[Service]:
        rows = await self.session.scalars(
            select(Service)
            .where(Service.enabled.is_(True))
            .order_by(Service.created_at)
        )
        return list(rows)

    async def list_enabled_categories(self) -> Sequence[Category]:
        rows = await self.session.scalars(
            select(Category)
            .where(Category.enabled.is_(True))
            .order_by(Category.display_order, Category.name)
        )
        return list(rows)
