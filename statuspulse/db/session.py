from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from statuspulse.core.config import settings


def make_engine(url: str, *, single_use: bool = False) -> AsyncEngine:
    """Engine for the status store, or a pool-less one for a one-off probe."""
    if single_use:
        # the connection really closes on release
        return create_async_engine(url, poolclass=NullPool)
    return create_async_engine(url, pool_pre_ping=True)


engine: AsyncEngine = make_engine(str(settings.database_url))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session
