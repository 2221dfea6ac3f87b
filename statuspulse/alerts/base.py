from __future__ import annotations

import enum
import math
import uuid
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from statuspulse.domain.models import SLO, MonitoredService, NotificationChannel, SLOCalculationResult, SLIType
from statuspulse.slo.calculator import FAST_BURN_THRESHOLD

DEFAULT_TEST_MESSAGE = (
    "This is a test webhook from your status monitoring service. "
    "If you receive this message, your webhook configuration is working correctly!"
)


class AlertEventType(str, enum.Enum):
    ALERT = "slo_burn_rate_alert"
    RESOLVED = "slo_burn_resolved"
    TEST = "test_webhook"


class Severity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class _PayloadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ServiceSummary(_PayloadModel):
    id: uuid.UUID
    name: str
    url: str


class SLOSummary(_PayloadModel):
    id: uuid.UUID
    name: str
    type: SLIType
    target: float
    time_window_days: int


class BurnSnapshot(_PayloadModel):
    burn_rate: float
    error_budget_consumed: float
    current_sli: float
    time_to_exhaustion_hours: float | None = None

    @field_serializer("burn_rate")
    def _finite_burn_rate(self, value: float) -> float | None:
        # JSON has no infinity; an unbounded burn goes out as null
        return value if math.isfinite(value) else None


class AlertPayload(_PayloadModel):
    event: AlertEventType
    timestamp: datetime
    severity: Severity
    service: ServiceSummary
    slo: SLOSummary
    alert: BurnSnapshot
    dashboard_url: str
    message: str | None = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AlertSender(Protocol):
    async def send_alert(self, payload: AlertPayload, channel: NotificationChannel) -> bool:  # pragma: no cover - interface
        ...


def severity_for(event: AlertEventType, burn_rate: float) -> Severity:
    if event != AlertEventType.ALERT:
        return Severity.INFO
    return Severity.CRITICAL if burn_rate >= FAST_BURN_THRESHOLD else Severity.WARNING


def build_alert_payload(
    event: AlertEventType,
    *,
    slo: SLO,
    service: MonitoredService,
    calculation: SLOCalculationResult,
    base_url: str,
    timestamp: datetime,
) -> AlertPayload:
    return AlertPayload(
        event=event,
        timestamp=timestamp,
        severity=severity_for(event, calculation.burn_rate),
        service=ServiceSummary(id=service.id, name=service.name, url=service.url),
        slo=SLOSummary(
            id=slo.id,
            name=slo.name,
            type=slo.sli_type,
            target=slo.target_percentage,
            time_window_days=slo.time_window_days,
        ),
        alert=BurnSnapshot(
            burn_rate=calculation.burn_rate,
            error_budget_consumed=calculation.error_budget_consumed,
            current_sli=calculation.current_sli,
            time_to_exhaustion_hours=calculation.time_to_exhaustion_hours,
        ),
        dashboard_url=f"{base_url.rstrip('/')}/slo/{slo.id}",
    )


def build_test_payload(
    *,
    base_url: str,
    timestamp: datetime,
    message: str = DEFAULT_TEST_MESSAGE,
) -> AlertPayload:
    placeholder = uuid.UUID(int=0)
    return AlertPayload(
        event=AlertEventType.TEST,
        timestamp=timestamp,
        severity=Severity.INFO,
        service=ServiceSummary(id=placeholder, name="Test Service", url="https://example.com/test"),
        slo=SLOSummary(
            id=placeholder,
            name="Test SLO",
            type=SLIType.AVAILABILITY,
            target=99.0,
            time_window_days=28,
        ),
        alert=BurnSnapshot(
            burn_rate=15.5,
            error_budget_consumed=87.3,
            current_sli=98.1,
            time_to_exhaustion_hours=1.2,
        ),
        dashboard_url=f"{base_url.rstrip('/')}/test",
        message=message,
    )
