from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from statuspulse.checks.base import ProbeOutcome
from statuspulse.db.session import make_engine
from statuspulse.domain.models import MonitoredService

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "SELECT 1"

EngineFactory = Callable[[str], AsyncEngine]


def _single_use_engine(dsn: str) -> AsyncEngine:
    return make_engine(dsn, single_use=True)


class DatabaseMonitor:
    """Runs one query through a short-lived connection resolved by probe id."""

    timeout_label = "Database query"

    def __init__(
        self,
        probes: Mapping[str, str] | None = None,
        engine_factory: EngineFactory | None = None,
        close_timeout_sec: float = 2.0,
    ) -> None:
        self._probes = dict(probes or {})
        self._engine_factory = engine_factory or _single_use_engine
        self._close_timeout = close_timeout_sec

    async def probe(self, service: MonitoredService) -> ProbeOutcome:
        if not service.database_probe_id:
            return ProbeOutcome(error="No database probe specified for database monitoring")
        dsn = self._probes.get(service.database_probe_id)
        if dsn is None:
            return ProbeOutcome(error=f"Database probe not found for ID: {service.database_probe_id}")

        query = service.database_query or DEFAULT_QUERY
        async with self.connect(dsn) as conn:
            await conn.execute(text(query))
        return ProbeOutcome()

    def describe_error(self, exc: Exception) -> str:
        return f"Database error: {exc}" if str(exc) else f"Database error: {exc.__class__.__name__}"

    @asynccontextmanager
    async def connect(self, dsn: str) -> AsyncIterator[AsyncConnection]:
        engine = self._engine_factory(dsn)
        try:
            conn = await engine.connect()
            try:
                yield conn
            finally:
                await self._bounded(conn.close(), "close")
        finally:
            await self._bounded(engine.dispose(), "dispose")

    async def _bounded(self, step: Awaitable[Any], name: str) -> None:
        try:
            await asyncio.wait_for(step, timeout=self._close_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "database teardown timed out",
                extra={"step": name, "timeout_sec": self._close_timeout},
            )
        except Exception:
            # the check outcome is already decided; a failed teardown only gets logged
            logger.warning("database teardown failed", extra={"step": name}, exc_info=True)
