from __future__ import annotations

import uuid
from datetime import datetime
from typing import Protocol, Sequence

from statuspulse.domain.models import (
    SLO,
    BurnEvent,
    Category,
    CheckResult,
    MonitoredService,
    NotificationChannel,
    NotificationRule,
)


class MonitoringRepository(Protocol):
    """Storage collaborator used by the worker, the SLO monitor and reports.

    Calls are independent; nothing here spans a transaction.
    """

    async def list_enabled_services(self) -> Sequence[MonitoredService]:  # pragma: no cover - interface
        ...

    async def list_enabled_categories(self) -> Sequence[Category]:  # pragma: no cover - interface
        ...

    async def list_enabled_slos(self) -> Sequence[SLO]:  # pragma: no cover - interface
        ...

    async def find_slo_by_id(self, slo_id: uuid.UUID) -> SLO | None:  # pragma: no cover - interface
        ...

    async def find_service_by_id(self, service_id: uuid.UUID) -> MonitoredService | None:  # pragma: no cover - interface
        ...

    async def find_checks_in_range(
        self, service_id: uuid.UUID, start: datetime, end: datetime
    ) -> Sequence[CheckResult]:  # pragma: no cover - interface
        ...

    async def find_latest_check(self, service_id: uuid.UUID) -> CheckResult | None:  # pragma: no cover - interface
        ...

    async def append_check(self, result: CheckResult) -> None:  # pragma: no cover - interface
        ...

    async def delete_checks_older_than(self, cutoff: datetime) -> int:  # pragma: no cover - interface
        ...

    async def find_open_burn_event(self, slo_id: uuid.UUID) -> BurnEvent | None:  # pragma: no cover - interface
        ...

    async def create_burn_event(
        self,
        *,
        slo_id: uuid.UUID,
        burn_rate: float,
        error_budget_consumed: float,
        time_to_exhaustion_hours: float | None,
        triggered_at: datetime,
    ) -> BurnEvent:  # pragma: no cover - interface
        ...

    async def update_burn_event(self, event_id: uuid.UUID, **patch: object) -> BurnEvent | None:  # pragma: no cover - interface
        ...

    async def list_enabled_notification_rules(self, slo_id: uuid.UUID) -> Sequence[NotificationRule]:  # pragma: no cover - interface
        ...

    async def find_channel(self, channel_id: uuid.UUID) -> NotificationChannel | None:  # pragma: no cover - interface
        ...
