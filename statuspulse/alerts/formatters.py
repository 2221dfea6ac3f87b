from __future__ import annotations

import math
from typing import Any, Callable

from statuspulse.alerts.base import AlertEventType, AlertPayload, Severity
from statuspulse.domain.models import ChannelType, NotificationChannel
from statuspulse.slo.calculator import FAST_BURN_THRESHOLD

BOT_NAME = "statuspulse"
DISCORD_AVATAR = "https://cdn.jsdelivr.net/gh/twitter/twemoji@14.0.2/assets/72x72/1f525.png"
TEST_FALLBACK_MESSAGE = "Test webhook sent successfully! 🎉"

_SLACK_COLORS = {
    Severity.CRITICAL: "danger",
    Severity.WARNING: "warning",
}
_DISCORD_COLORS = {
    Severity.CRITICAL: 0xFF0000,
    Severity.WARNING: 0xFFA500,
}
_GREEN_SLACK = "good"
_GREEN_TEST_SLACK = "#36a64f"
_GREEN_DISCORD = 0x00FF00


def _num(value: float) -> str:
    if math.isinf(value):
        return "∞"
    return str(int(value)) if float(value).is_integer() else str(value)


def _when(payload: AlertPayload) -> str:
    return payload.timestamp.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def _title(payload: AlertPayload, with_slo: bool) -> str:
    service = payload.service.name
    if payload.event == AlertEventType.TEST:
        return f"🧪 Test Webhook: {service}"
    suffix = f" {payload.slo.name}" if with_slo else ""
    if payload.event == AlertEventType.ALERT:
        return f"🚨 SLO Alert: {service}{suffix}"
    return f"✅ SLO Resolved: {service}{suffix}"


def _alert_extras(payload: AlertPayload) -> list[tuple[str, str]]:
    if payload.event != AlertEventType.ALERT:
        return []
    extras = [("Error Budget Consumed", f"{_num(payload.alert.error_budget_consumed)}%")]
    if payload.alert.time_to_exhaustion_hours:
        extras.append(("Time to Exhaustion", f"{payload.alert.time_to_exhaustion_hours:.1f} hours"))
    return extras


def format_slack(payload: AlertPayload) -> dict[str, Any]:
    if payload.event == AlertEventType.TEST:
        color = _GREEN_TEST_SLACK
        fields = [
            {"title": "Message", "value": payload.message or TEST_FALLBACK_MESSAGE, "short": False},
            {"title": "Timestamp", "value": _when(payload), "short": True},
            {"title": "Event Type", "value": "Test Notification", "short": True},
        ]
    else:
        color = _SLACK_COLORS.get(payload.severity, _GREEN_SLACK) if payload.event == AlertEventType.ALERT else _GREEN_SLACK
        fields = [
            {"title": "Service", "value": payload.service.name, "short": True},
            {"title": "SLO", "value": f"{payload.slo.name} ({_num(payload.slo.target)}%)", "short": True},
            {"title": "Current SLI", "value": f"{_num(payload.alert.current_sli)}%", "short": True},
            {"title": "Burn Rate", "value": f"{_num(payload.alert.burn_rate)}x", "short": True},
        ]
        fields += [{"title": t, "value": v, "short": True} for t, v in _alert_extras(payload)]

    return {
        "username": BOT_NAME,
        "icon_emoji": ":fire:",
        "text": _title(payload, with_slo=True),
        "attachments": [
            {
                "color": color,
                "fields": fields,
                "actions": [
                    {"type": "button", "text": "View Dashboard", "url": payload.dashboard_url},
                ],
                "footer": "Status Monitor",
                "ts": int(payload.timestamp.timestamp()),
            }
        ],
    }


def format_discord(payload: AlertPayload) -> dict[str, Any]:
    if payload.event == AlertEventType.TEST:
        color = _GREEN_DISCORD
        description = payload.message or TEST_FALLBACK_MESSAGE
        fields = [
            {"name": "Event Type", "value": "Test Notification", "inline": True},
            {"name": "Timestamp", "value": _when(payload), "inline": True},
        ]
    else:
        if payload.event == AlertEventType.ALERT:
            color = _DISCORD_COLORS.get(payload.severity, _GREEN_DISCORD)
            description = (
                f"**{payload.slo.name}** is burning error budget fast!\n"
                f"Burn rate: **{_num(payload.alert.burn_rate)}x** (threshold: {FAST_BURN_THRESHOLD}x)"
            )
        else:
            color = _GREEN_DISCORD
            description = f"**{payload.slo.name}** burn rate has returned to normal."
        fields = [
            {"name": "Service", "value": payload.service.name, "inline": True},
            {"name": "SLO Target", "value": f"{_num(payload.slo.target)}%", "inline": True},
            {"name": "Current SLI", "value": f"{_num(payload.alert.current_sli)}%", "inline": True},
            {"name": "Burn Rate", "value": f"{_num(payload.alert.burn_rate)}x", "inline": True},
        ]
        fields += [{"name": n, "value": v, "inline": True} for n, v in _alert_extras(payload)]

    return {
        "username": BOT_NAME,
        "avatar_url": DISCORD_AVATAR,
        "embeds": [
            {
                "title": _title(payload, with_slo=False),
                "description": description,
                "color": color,
                "fields": fields,
                "url": payload.dashboard_url,
                "timestamp": payload.timestamp.isoformat(),
                "footer": {"text": BOT_NAME, "icon_url": DISCORD_AVATAR},
            }
        ],
    }


def format_custom(payload: AlertPayload) -> dict[str, Any]:
    return payload.to_wire()


FORMATTERS: dict[str, Callable[[AlertPayload], dict[str, Any]]] = {
    "slack": format_slack,
    "discord": format_discord,
    "custom": format_custom,
}


def format_for_channel(payload: AlertPayload, channel: NotificationChannel) -> dict[str, Any]:
    """Shape the payload for the channel; unknown formats get the plain JSON payload."""
    if channel.type != ChannelType.WEBHOOK:
        return payload.to_wire()
    formatter = FORMATTERS.get(str(channel.config.get("format") or "custom"), format_custom)
    return formatter(payload)
