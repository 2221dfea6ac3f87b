from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from statuspulse.api.dependencies import get_slo_monitor
from statuspulse.api.schemas.slos import SLOMetricsRead
from statuspulse.slo.burn import SLOMonitor

router = APIRouter(prefix="/slos", tags=["slos"])


@router.get("/{slo_id}/metrics", response_model=SLOMetricsRead)
async def get_slo_metrics(
    slo_id: uuid.UUID,
    monitor: SLOMonitor = Depends(get_slo_monitor),
) -> SLOMetricsRead:
    try:
        metrics = await monitor.calculate_metrics(slo_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SLOMetricsRead.from_metrics(metrics)
