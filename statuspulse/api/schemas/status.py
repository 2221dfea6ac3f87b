from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from statuspulse.reporting.timeline import CategoryStatus


class HistoryPointRead(BaseModel):
    timestamp: datetime
    status: str
    response_time_ms: float | None = None

    model_config = ConfigDict(from_attributes=True)


class ServiceStatusRead(BaseModel):
    id: uuid.UUID
    name: str
    status: str
    uptime: float
    response_time_ms: float | None = None
    history: list[HistoryPointRead]

    model_config = ConfigDict(from_attributes=True)


class CategoryStatusRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    status: CategoryStatus
    uptime: float
    services: list[ServiceStatusRead]
    history: list[HistoryPointRead]

    model_config = ConfigDict(from_attributes=True)


class StatusReportRead(BaseModel):
    overall_status: CategoryStatus
    banner_message: str
    window_start: datetime
    window_end: datetime
    categories: list[CategoryStatusRead]

    model_config = ConfigDict(from_attributes=True)
