"""Burn event lifecycle per SLO.

An SLO is either clear (no open burn event) or burning (exactly one open
event). Alerts go out when an event opens and when it resolves, never while
it is only being refreshed.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import math
import uuid
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from statuspulse.alerts.base import AlertEventType, AlertSender, build_alert_payload
from statuspulse.alerts.dispatcher import rules_for_payload
from statuspulse.domain.models import SLO, BurnEvent, MonitoredService, SLOCalculationResult
from statuspulse.domain.repository import MonitoringRepository
from statuspulse.slo.calculator import SLOConfigurationError, evaluate, window_start

logger = logging.getLogger(__name__)

# what a vanished service looks like to the caller: total outage
WORST_CASE = SLOCalculationResult(
    current_sli=0.0,
    error_rate=100.0,
    burn_rate=math.inf,
    error_budget_consumed=100.0,
    is_fast_burn=True,
)


class Transition(str, enum.Enum):
    OPENED = "opened"
    REFRESHED = "refreshed"
    RESOLVED = "resolved"
    NONE = "none"
    SKIPPED = "skipped"


def decide_transition(is_fast_burn: bool, open_event: BurnEvent | None) -> Transition:
    if is_fast_burn:
        return Transition.REFRESHED if open_event is not None else Transition.OPENED
    return Transition.RESOLVED if open_event is not None else Transition.NONE


@dataclass(frozen=True)
class SLOMetrics:
    slo: SLO
    service: MonitoredService
    check_count: int
    window_start: datetime
    window_end: datetime
    calculation: SLOCalculationResult


class SLOMonitor:
    def __init__(
        self,
        repository: MonitoringRepository,
        sender: AlertSender,
        base_url: str,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        self._repo = repository
        self._sender = sender
        self._base_url = base_url
        self._now = now_func or (lambda: datetime.now(timezone.utc))
        self._locks: defaultdict[uuid.UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def evaluate_all(self) -> Counter[Transition]:
        slos = await self._repo.list_enabled_slos()
        logger.info("slo evaluation started", extra={"slos": len(slos)})

        outcome: Counter[Transition] = Counter()
        failed = 0
        for slo in slos:
            try:
                outcome[await self.evaluate_slo(slo)] += 1
            except SLOConfigurationError as exc:
                failed += 1
                logger.error("slo misconfigured", extra={"slo_id": str(slo.id), "error": str(exc)})
            except Exception:
                failed += 1
                logger.exception("slo evaluation failed", extra={"slo_id": str(slo.id)})

        logger.info(
            "slo evaluation finished",
            extra={"transitions": {t.value: n for t, n in outcome.items()}, "failed": failed},
        )
        return outcome

    async def evaluate_slo(self, slo: SLO) -> Transition:
        if not slo.enabled:
            logger.warning("slo disabled, skipping", extra={"slo_id": str(slo.id)})
            return Transition.SKIPPED

        async with self._locks[slo.id]:
            service = await self._repo.find_service_by_id(slo.service_id)
            if service is None:
                logger.warning(
                    "service not found for slo, skipping",
                    extra={"slo_id": str(slo.id), "service_id": str(slo.service_id)},
                )
                return Transition.SKIPPED

            now = self._now()
            checks = await self._repo.find_checks_in_range(slo.service_id, window_start(slo, now), now)
            calculation = evaluate(slo, checks, now)

            # latest state, read right before deciding
            open_event = await self._repo.find_open_burn_event(slo.id)
            transition = decide_transition(calculation.is_fast_burn, open_event)

            if transition == Transition.OPENED:
                event = await self._repo.create_burn_event(
                    slo_id=slo.id,
                    burn_rate=calculation.burn_rate,
                    error_budget_consumed=calculation.error_budget_consumed,
                    time_to_exhaustion_hours=calculation.time_to_exhaustion_hours,
                    triggered_at=now,
                )
                logger.info(
                    "burn event opened",
                    extra={"slo_id": str(slo.id), "event_id": str(event.id), "burn_rate": calculation.burn_rate},
                )
                await self._notify(AlertEventType.ALERT, slo, service, calculation, now)
            elif transition == Transition.REFRESHED:
                await self._repo.update_burn_event(
                    open_event.id,
                    burn_rate=calculation.burn_rate,
                    error_budget_consumed=calculation.error_budget_consumed,
                    time_to_exhaustion_hours=calculation.time_to_exhaustion_hours,
                )
                logger.debug("burn event refreshed", extra={"slo_id": str(slo.id), "event_id": str(open_event.id)})
            elif transition == Transition.RESOLVED:
                await self._repo.update_burn_event(open_event.id, resolved_at=now)
                logger.info("burn event resolved", extra={"slo_id": str(slo.id), "event_id": str(open_event.id)})
                await self._notify(AlertEventType.RESOLVED, slo, service, calculation, now)

            return transition

    async def evaluate_single(self, slo: SLO) -> SLOCalculationResult:
        """Calculation only; no burn events, no notifications."""
        service = await self._repo.find_service_by_id(slo.service_id)
        if service is None:
            logger.warning("service not found for slo", extra={"slo_id": str(slo.id)})
            return WORST_CASE
        now = self._now()
        checks = await self._repo.find_checks_in_range(slo.service_id, window_start(slo, now), now)
        return evaluate(slo, checks, now)

    async def calculate_metrics(self, slo_id: uuid.UUID) -> SLOMetrics:
        slo = await self._repo.find_slo_by_id(slo_id)
        if slo is None:
            raise LookupError(f"SLO {slo_id} not found")
        service = await self._repo.find_service_by_id(slo.service_id)
        if service is None:
            raise LookupError(f"Service {slo.service_id} not found for SLO {slo_id}")

        now = self._now()
        start = window_start(slo, now)
        checks = await self._repo.find_checks_in_range(slo.service_id, start, now)
        return SLOMetrics(
            slo=slo,
            service=service,
            check_count=len(checks),
            window_start=start,
            window_end=now,
            calculation=evaluate(slo, checks, now),
        )

    async def _notify(
        self,
        event: AlertEventType,
        slo: SLO,
        service: MonitoredService,
        calculation: SLOCalculationResult,
        now: datetime,
    ) -> int:
        try:
            rules = await self._repo.list_enabled_notification_rules(slo.id)
            if not rules:
                logger.info("no notification rules for slo", extra={"slo_id": str(slo.id)})
                return 0

            payload = build_alert_payload(
                event,
                slo=slo,
                service=service,
                calculation=calculation,
                base_url=self._base_url,
                timestamp=now,
            )
            targets = rules_for_payload(payload, rules)
            if not targets:
                logger.info(
                    "burn rate below every rule threshold",
                    extra={"slo_id": str(slo.id), "burn_rate": calculation.burn_rate},
                )
                return 0

            sent = 0
            for rule in targets:
                channel = await self._repo.find_channel(rule.channel_id)
                if channel is None or not channel.enabled:
                    logger.warning(
                        "notification channel missing or disabled",
                        extra={"slo_id": str(slo.id), "channel_id": str(rule.channel_id)},
                    )
                    continue
                if await self._sender.send_alert(payload, channel):
                    sent += 1
                else:
                    logger.warning(
                        "notification not delivered",
                        extra={"slo_id": str(slo.id), "channel": channel.name, "event": event.value},
                    )
            return sent
        except Exception:
            logger.exception("sending burn notifications failed", extra={"slo_id": str(slo.id)})
            return 0
