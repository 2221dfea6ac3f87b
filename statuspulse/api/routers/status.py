from __future__ import annotations

from fastapi import APIRouter, Depends

from statuspulse.api.dependencies import get_repository
from statuspulse.api.schemas.status import StatusReportRead
from statuspulse.core.config import settings
from statuspulse.domain.repository import MonitoringRepository
from statuspulse.reporting.status_page import StatusReportBuilder

router = APIRouter(prefix="/status", tags=["status"])


@router.get("", response_model=StatusReportRead)
async def get_status(repository: MonitoringRepository = Depends(get_repository)) -> StatusReportRead:
    builder = StatusReportBuilder(
        repository,
        window_hours=settings.report_window_hours,
        points=settings.report_points,
    )
    report = await builder.build()
    return StatusReportRead.model_validate(report)
