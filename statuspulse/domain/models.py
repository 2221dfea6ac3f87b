from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class Status(str, enum.Enum):
    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"


class MonitorType(str, enum.Enum):
    HTTP = "http"
    KEYWORD = "keyword"
    API = "api"
    DATABASE = "database"


class SLIType(str, enum.Enum):
    AVAILABILITY = "availability"
    LATENCY = "latency"


class ChannelType(str, enum.Enum):
    WEBHOOK = "webhook"
    EMAIL = "email"
    SMS = "sms"


@dataclass(frozen=True)
class Category:
    id: uuid.UUID
    name: str
    description: str | None = None
    display_order: int = 0
    enabled: bool = True


@dataclass(frozen=True)
class MonitoredService:
    id: uuid.UUID
    name: str
    url: str
    method: str = "GET"
    expected_status: int = 200
    expected_content: str | None = None
    timeout_ms: int = 5000
    monitor_type: MonitorType = MonitorType.HTTP
    keyword: str | None = None
    request_body: str | None = None
    request_headers: dict[str, str] = field(default_factory=dict)
    bearer_token: str | None = None
    database_query: str | None = None
    database_probe_id: str | None = None
    enabled: bool = True
    category_id: uuid.UUID | None = None


@dataclass(frozen=True)
class CheckResult:
    service_id: uuid.UUID
    status: Status
    checked_at: datetime
    response_time_ms: int | None = None
    status_code: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class SLO:
    id: uuid.UUID
    service_id: uuid.UUID
    name: str
    sli_type: SLIType
    target_percentage: float
    time_window_days: int
    latency_threshold_ms: int | None = None
    enabled: bool = True


@dataclass(frozen=True)
class SLOCalculationResult:
    current_sli: float
    error_rate: float
    burn_rate: float
    error_budget_consumed: float
    is_fast_burn: bool
    time_to_exhaustion_hours: float | None = None


@dataclass(frozen=True)
class BurnEvent:
    id: uuid.UUID
    slo_id: uuid.UUID
    burn_rate: float
    error_budget_consumed: float
    triggered_at: datetime
    time_to_exhaustion_hours: float | None = None
    resolved_at: datetime | None = None


@dataclass(frozen=True)
class NotificationChannel:
    id: uuid.UUID
    name: str
    type: ChannelType
    config: dict[str, Any] = field(default_factory=dict)
    enabled: bool = True


@dataclass(frozen=True)
class NotificationRule:
    id: uuid.UUID
    slo_id: uuid.UUID
    channel_id: uuid.UUID
    burn_rate_threshold: float = 14.4
    enabled: bool = True
