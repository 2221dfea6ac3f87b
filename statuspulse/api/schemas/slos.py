from __future__ import annotations

import math
import uuid
from datetime import datetime

from pydantic import BaseModel, field_validator

from statuspulse.domain.models import SLIType
from statuspulse.slo.burn import SLOMetrics


class SLOMetricsRead(BaseModel):
    slo_id: uuid.UUID
    slo_name: str
    service_id: uuid.UUID
    service_name: str
    sli_type: SLIType
    target_percentage: float
    time_window_days: int
    check_count: int
    window_start: datetime
    window_end: datetime
    current_sli: float
    error_rate: float
    # null when unbounded
    burn_rate: float | None
    error_budget_consumed: float
    is_fast_burn: bool
    time_to_exhaustion_hours: float | None = None

    @field_validator("burn_rate")
    @classmethod
    def _finite(cls, value: float | None) -> float | None:
        if value is not None and not math.isfinite(value):
            return None
        return value

    @classmethod
    def from_metrics(cls, metrics: SLOMetrics) -> "SLOMetricsRead":
        calc = metrics.calculation
        return cls(
            slo_id=metrics.slo.id,
            slo_name=metrics.slo.name,
            service_id=metrics.service.id,
            service_name=metrics.service.name,
            sli_type=metrics.slo.sli_type,
            target_percentage=metrics.slo.target_percentage,
            time_window_days=metrics.slo.time_window_days,
            check_count=metrics.check_count,
            window_start=metrics.window_start,
            window_end=metrics.window_end,
            current_sli=calc.current_sli,
            error_rate=calc.error_rate,
            burn_rate=calc.burn_rate,
            error_budget_consumed=calc.error_budget_consumed,
            is_fast_burn=calc.is_fast_burn,
            time_to_exhaustion_hours=calc.time_to_exhaustion_hours,
        )
