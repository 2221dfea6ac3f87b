from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

import httpx

from statuspulse.alerts.base import AlertEventType, AlertPayload, build_test_payload
from statuspulse.alerts.formatters import format_for_channel
from statuspulse.domain.models import ChannelType, NotificationChannel, NotificationRule

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.AsyncClient]


def rules_for_payload(payload: AlertPayload, rules: Iterable[NotificationRule]) -> list[NotificationRule]:
    """Rules whose threshold the payload clears. Resolutions go to every rule."""
    if payload.event != AlertEventType.ALERT:
        return list(rules)
    return [rule for rule in rules if rule.burn_rate_threshold <= payload.alert.burn_rate]


class NotificationDispatcher:
    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        timeout_sec: float = 10.0,
        base_url: str = "http://localhost:8000",
    ) -> None:
        self._client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=timeout_sec))
        self._timeout = timeout_sec
        self._base_url = base_url

    async def send_alert(self, payload: AlertPayload, channel: NotificationChannel) -> bool:
        try:
            body = format_for_channel(payload, channel)
            if channel.type == ChannelType.WEBHOOK:
                return await self._send_webhook(body, channel)
            if channel.type in (ChannelType.EMAIL, ChannelType.SMS):
                logger.warning(
                    "notification channel not implemented",
                    extra={"channel_id": str(channel.id), "channel_type": channel.type.value},
                )
                return False
            logger.error("unsupported notification channel", extra={"channel_id": str(channel.id)})
            return False
        except Exception:
            logger.exception(
                "notification failed",
                extra={"channel_id": str(channel.id), "channel": channel.name},
            )
            return False

    async def send_test(self, channel: NotificationChannel | None, timestamp: datetime | None = None) -> bool:
        if channel is None or not channel.enabled:
            return False
        payload = build_test_payload(
            base_url=self._base_url,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        return await self.send_alert(payload, channel)

    async def _send_webhook(self, body: dict[str, Any], channel: NotificationChannel) -> bool:
        url = channel.config.get("url")
        if not url:
            logger.error("webhook url missing", extra={"channel_id": str(channel.id)})
            return False

        headers = {"Content-Type": "application/json"}
        headers.update(channel.config.get("headers") or {})
        async with self._client_factory() as client:
            resp = await client.post(url, json=body, headers=headers, timeout=self._timeout)

        if not resp.is_success:
            logger.warning(
                "webhook delivery failed",
                extra={"channel_id": str(channel.id), "status_code": resp.status_code},
            )
            return False
        return True
