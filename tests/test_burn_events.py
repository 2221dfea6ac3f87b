"""Tests for SLOMonitor: burn event transitions, notifications, metrics."""

from __future__ import annotations

import math
import uuid

import pytest

from fakes import NOW, InMemoryRepository, RecordingSender, make_channel, make_check, make_service, make_slo
from statuspulse.alerts.base import AlertEventType, Severity
from statuspulse.domain.models import SLIType, Status
from statuspulse.slo.burn import WORST_CASE, SLOMonitor, Transition, decide_transition


# ── Helpers ─────────────────────────────────────────────────────


def _monitor(repo: InMemoryRepository, sender: RecordingSender) -> SLOMonitor:
    return SLOMonitor(repo, sender, "https://status.example.com", now_func=lambda: NOW)


def _setup(repo: InMemoryRepository, **slo_kw):
    service = repo.add_service(make_service())
    slo = repo.add_slo(make_slo(service.id, **slo_kw))
    return service, slo


def _set_checks(repo: InMemoryRepository, service_id: uuid.UUID, ups: int, downs: int) -> None:
    repo.checks = [c for c in repo.checks if c.service_id != service_id]
    statuses = [Status.UP] * ups + [Status.DOWN] * downs
    for i, status in enumerate(statuses):
        repo.checks.append(make_check(service_id, status, minutes_ago=i + 1))


# ── decide_transition ───────────────────────────────────────────


class TestDecideTransition:
    def test_table(self) -> None:
        event = object()
        assert decide_transition(True, None) == Transition.OPENED
        assert decide_transition(True, event) == Transition.REFRESHED
        assert decide_transition(False, event) == Transition.RESOLVED
        assert decide_transition(False, None) == Transition.NONE


# ── evaluate_slo ────────────────────────────────────────────────


class TestEvaluateSlo:
    async def test_fast_burn_opens_event_and_alerts(self, repo, sender) -> None:
        service, slo = _setup(repo)
        channel = repo.add_channel(make_channel(), slo.id)
        _set_checks(repo, service.id, ups=3, downs=1)

        assert await _monitor(repo, sender).evaluate_slo(slo) == Transition.OPENED

        [event] = repo.open_events(slo.id)
        assert event.burn_rate == 250
        assert event.triggered_at == NOW
        [(payload, sent_to)] = sender.sent
        assert sent_to == channel
        assert payload.event == AlertEventType.ALERT
        assert payload.severity == Severity.CRITICAL
        assert payload.dashboard_url == f"https://status.example.com/slo/{slo.id}"

    async def test_refresh_updates_in_place_without_alert(self, repo, sender) -> None:
        service, slo = _setup(repo)
        repo.add_channel(make_channel(), slo.id)
        monitor = _monitor(repo, sender)
        _set_checks(repo, service.id, ups=3, downs=1)
        await monitor.evaluate_slo(slo)

        _set_checks(repo, service.id, ups=1, downs=1)
        assert await monitor.evaluate_slo(slo) == Transition.REFRESHED

        [event] = repo.open_events(slo.id)
        assert event.burn_rate == 500
        assert len(repo.burn_events) == 1
        assert len(sender.sent) == 1

    async def test_recovery_resolves_with_one_resolved_notification(self, repo, sender) -> None:
        # target 90: 3 up / 1 down burns at 2.5x, below the fast threshold
        service, slo = _setup(repo, target_percentage=90)
        repo.add_channel(make_channel(), slo.id, threshold=1.0)
        monitor = _monitor(repo, sender)
        _set_checks(repo, service.id, ups=0, downs=2)
        await monitor.evaluate_slo(slo)
        sender.sent.clear()

        _set_checks(repo, service.id, ups=3, downs=1)
        assert await monitor.evaluate_slo(slo) == Transition.RESOLVED

        assert repo.open_events(slo.id) == []
        [event] = repo.burn_events.values()
        assert event.resolved_at == NOW
        [(payload, _)] = sender.sent
        assert payload.event == AlertEventType.RESOLVED
        assert payload.severity == Severity.INFO

    async def test_burn_rate_five_resolves(self, repo, sender) -> None:
        service, slo = _setup(repo, target_percentage=99)
        repo.add_channel(make_channel(), slo.id)
        monitor = _monitor(repo, sender)
        _set_checks(repo, service.id, ups=0, downs=1)
        await monitor.evaluate_slo(slo)
        sender.sent.clear()

        # 95% SLI against a 99% target is a 5.0x burn
        _set_checks(repo, service.id, ups=19, downs=1)
        assert await monitor.evaluate_slo(slo) == Transition.RESOLVED
        assert [p.event for p, _ in sender.sent] == [AlertEventType.RESOLVED]

    async def test_quiet_when_clear_and_healthy(self, repo, sender) -> None:
        service, slo = _setup(repo)
        repo.add_channel(make_channel(), slo.id)
        _set_checks(repo, service.id, ups=10, downs=0)

        assert await _monitor(repo, sender).evaluate_slo(slo) == Transition.NONE
        assert repo.burn_events == {}
        assert sender.sent == []

    async def test_disabled_slo_skipped(self, repo, sender) -> None:
        service, slo = _setup(repo, enabled=False)
        _set_checks(repo, service.id, ups=0, downs=3)

        assert await _monitor(repo, sender).evaluate_slo(slo) == Transition.SKIPPED
        assert repo.burn_events == {}

    async def test_missing_service_skipped(self, repo, sender) -> None:
        slo = repo.add_slo(make_slo(uuid.uuid4()))
        assert await _monitor(repo, sender).evaluate_slo(slo) == Transition.SKIPPED
        assert repo.burn_events == {}

    async def test_never_two_open_events(self, repo, sender) -> None:
        service, slo = _setup(repo, target_percentage=90)
        monitor = _monitor(repo, sender)
        pattern = [(0, 4), (0, 4), (9, 1), (9, 1), (0, 3), (0, 3), (10, 0), (0, 1)]
        for ups, downs in pattern:
            _set_checks(repo, service.id, ups, downs)
            await monitor.evaluate_slo(slo)
            assert len(repo.open_events(slo.id)) <= 1
        # opened three times, resolved twice
        assert len(repo.burn_events) == 3
        assert len(repo.open_events(slo.id)) == 1


class TestNotificationRouting:
    async def test_alert_skips_rules_above_burn_rate(self, repo, sender) -> None:
        service, slo = _setup(repo, target_percentage=99)
        low = repo.add_channel(make_channel(name="low"), slo.id, threshold=14.4)
        repo.add_channel(make_channel(name="high"), slo.id, threshold=1000)
        _set_checks(repo, service.id, ups=3, downs=1)

        await _monitor(repo, sender).evaluate_slo(slo)
        assert [ch for _, ch in sender.sent] == [low]

    async def test_resolution_ignores_thresholds(self, repo, sender) -> None:
        service, slo = _setup(repo, target_percentage=99)
        repo.add_channel(make_channel(name="a"), slo.id, threshold=1000)
        repo.add_channel(make_channel(name="b"), slo.id, threshold=14.4)
        monitor = _monitor(repo, sender)
        _set_checks(repo, service.id, ups=0, downs=2)
        await monitor.evaluate_slo(slo)
        sender.sent.clear()

        _set_checks(repo, service.id, ups=10, downs=0)
        await monitor.evaluate_slo(slo)
        assert sorted(ch.name for _, ch in sender.sent) == ["a", "b"]

    async def test_disabled_channel_skipped(self, repo, sender) -> None:
        service, slo = _setup(repo)
        repo.add_channel(make_channel(enabled=False), slo.id)
        _set_checks(repo, service.id, ups=0, downs=1)

        assert await _monitor(repo, sender).evaluate_slo(slo) == Transition.OPENED
        assert sender.sent == []

    async def test_failed_delivery_keeps_state(self, repo) -> None:
        service, slo = _setup(repo)
        repo.add_channel(make_channel(), slo.id)
        _set_checks(repo, service.id, ups=0, downs=1)

        failing = RecordingSender(succeed=False)
        assert await _monitor(repo, failing).evaluate_slo(slo) == Transition.OPENED
        assert len(repo.open_events(slo.id)) == 1


# ── evaluate_all ────────────────────────────────────────────────


class TestEvaluateAll:
    async def test_one_bad_slo_does_not_stop_others(self, repo, sender) -> None:
        service, good = _setup(repo)
        bad = repo.add_slo(make_slo(service.id, sli_type=SLIType.LATENCY, latency_threshold_ms=None))
        _set_checks(repo, service.id, ups=0, downs=1)

        outcome = await _monitor(repo, sender).evaluate_all()
        assert outcome[Transition.OPENED] == 1
        assert repo.open_events(good.id)
        assert not repo.open_events(bad.id)

    async def test_listing_failure_propagates(self, sender) -> None:
        class Broken(InMemoryRepository):
            async def list_enabled_slos(self):
                raise ConnectionError("db down")

        with pytest.raises(ConnectionError):
            await _monitor(Broken(), sender).evaluate_all()


# ── evaluate_single / calculate_metrics ─────────────────────────


class TestReadOnlyEvaluation:
    async def test_single_has_no_side_effects(self, repo, sender) -> None:
        service, slo = _setup(repo)
        repo.add_channel(make_channel(), slo.id)
        _set_checks(repo, service.id, ups=0, downs=1)

        result = await _monitor(repo, sender).evaluate_single(slo)
        assert result.is_fast_burn is True
        assert repo.burn_events == {}
        assert sender.sent == []

    async def test_single_missing_service_is_worst_case(self, repo, sender) -> None:
        slo = make_slo(uuid.uuid4())
        result = await _monitor(repo, sender).evaluate_single(slo)
        assert result == WORST_CASE
        assert math.isinf(result.burn_rate)

    async def test_metrics(self, repo, sender) -> None:
        service, slo = _setup(repo, time_window_days=7)
        _set_checks(repo, service.id, ups=3, downs=1)

        metrics = await _monitor(repo, sender).calculate_metrics(slo.id)
        assert metrics.check_count == 4
        assert metrics.service == service
        assert metrics.window_end == NOW
        assert (metrics.window_end - metrics.window_start).days == 7
        assert metrics.calculation.current_sli == 75

    async def test_metrics_unknown_slo(self, repo, sender) -> None:
        with pytest.raises(LookupError):
            await _monitor(repo, sender).calculate_metrics(uuid.uuid4())

    async def test_metrics_unknown_service(self, repo, sender) -> None:
        slo = repo.add_slo(make_slo(uuid.uuid4()))
        with pytest.raises(LookupError):
            await _monitor(repo, sender).calculate_metrics(slo.id)
