from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from statuspulse.alerts.dispatcher import NotificationDispatcher
from statuspulse.api.dependencies import get_dispatcher, get_repository
from statuspulse.api.schemas.channels import TestWebhookResult
from statuspulse.domain.repository import MonitoringRepository

router = APIRouter(prefix="/channels", tags=["channels"])


@router.post("/{channel_id}/test", response_model=TestWebhookResult)
async def test_channel(
    channel_id: uuid.UUID,
    repository: MonitoringRepository = Depends(get_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> TestWebhookResult:
    channel = await repository.find_channel(channel_id)
    if channel is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    if not channel.enabled:
        return TestWebhookResult(success=False, error="Channel not found or disabled")

    if await dispatcher.send_test(channel):
        return TestWebhookResult(success=True, message="Test webhook sent successfully")
    return TestWebhookResult(success=False, error="Failed to send test webhook")
