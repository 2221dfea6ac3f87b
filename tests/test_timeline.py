"""Tests for grid construction, resampling and category aggregation."""

from __future__ import annotations

import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from fakes import make_check
from statuspulse.domain.models import Status
from statuspulse.reporting.timeline import (
    CategoryStatus,
    HistoryPoint,
    aggregate_category_status,
    average_response_time,
    build_grid,
    category_history,
    resample,
)

T0 = datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)
SID = uuid.uuid4()


def _at(minutes: float, status: Status = Status.UP, rt: int | None = 100):
    return make_check(SID, status, checked_at=T0 + timedelta(minutes=minutes), response_time_ms=rt)


def _grid(points: int = 5, step_min: int = 10) -> list[datetime]:
    return build_grid(T0, T0 + timedelta(minutes=step_min * (points - 1)), points)


# ── build_grid ──────────────────────────────────────────────────


class TestBuildGrid:
    def test_inclusive_even_spacing(self) -> None:
        grid = build_grid(T0, T0 + timedelta(hours=24), 90)
        assert len(grid) == 90
        assert grid[0] == T0
        assert grid[-1] == T0 + timedelta(hours=24)
        gaps = {b - a for a, b in zip(grid, grid[1:])}
        assert max(gaps) - min(gaps) < timedelta(milliseconds=1)

    def test_two_points(self) -> None:
        end = T0 + timedelta(minutes=5)
        assert build_grid(T0, end, 2) == [T0, end]

    def test_rejects_single_point(self) -> None:
        with pytest.raises(ValueError):
            build_grid(T0, T0 + timedelta(hours=1), 1)

    def test_rejects_reversed_window(self) -> None:
        with pytest.raises(ValueError):
            build_grid(T0 + timedelta(hours=1), T0, 10)


# ── resample ────────────────────────────────────────────────────


class TestResample:
    def test_unknown_before_first_check(self) -> None:
        points = resample([_at(15)], _grid())
        assert [p.status for p in points] == ["unknown", "unknown", "up", "up", "up"]
        assert points[0].response_time_ms is None

    def test_carries_last_observation_forward(self) -> None:
        points = resample([_at(0, rt=80), _at(5, rt=120)], _grid())
        assert [p.response_time_ms for p in points] == [80, 120, 120, 120, 120]

    def test_first_incident_in_bucket_wins(self) -> None:
        checks = [
            _at(11, Status.DEGRADED, rt=900),
            _at(13, Status.DOWN, rt=None),
            _at(15, Status.UP, rt=90),
        ]
        points = resample([_at(0), *checks], _grid())
        assert points[2].status == "degraded"
        assert points[2].response_time_ms == 900
        # recovery is what carries into the next bucket
        assert points[3].status == "up"

    def test_bucket_is_half_open(self) -> None:
        # a down exactly on the previous grid point belongs to that point
        points = resample([_at(0), _at(10, Status.DOWN), _at(12)], _grid())
        assert points[1].status == "down"
        assert points[2].status == "up"

    def test_incident_at_first_point_uses_latest(self) -> None:
        points = resample([_at(0, Status.DOWN)], _grid())
        assert points[0].status == "down"

    def test_unsorted_input(self) -> None:
        checks = [_at(25, Status.DOWN), _at(5), _at(15)]
        assert [p.status for p in resample(checks, _grid())] == ["unknown", "up", "up", "down", "down"]

    def test_timestamps_are_grid(self) -> None:
        grid = _grid()
        assert [p.timestamp for p in resample([_at(3)], grid)] == grid

    def test_idempotent_on_aligned_history(self) -> None:
        grid = _grid(points=8)
        checks = [_at(2), _at(14, Status.DOWN), _at(17), _at(33, Status.DEGRADED, rt=700), _at(51)]
        once = resample(checks, grid)
        assert resample(once, grid) == once


# ── aggregate_category_status ───────────────────────────────────


class TestAggregate:
    @pytest.mark.parametrize(
        "statuses,expected",
        [
            (["unknown", "unknown"], CategoryStatus.UNKNOWN),
            (["down", "down"], CategoryStatus.MAJOR_OUTAGE),
            (["up", "up"], CategoryStatus.OPERATIONAL),
            (["up", "operational"], CategoryStatus.OPERATIONAL),
            (["up", "down"], CategoryStatus.DEGRADED),
            (["up", "degraded"], CategoryStatus.DEGRADED),
            (["degraded", "degraded"], CategoryStatus.DEGRADED),
            (["down", "unknown"], CategoryStatus.MAJOR_OUTAGE),
            (["up", "unknown"], CategoryStatus.OPERATIONAL),
            (["up", "down", "unknown"], CategoryStatus.DEGRADED),
            (["degraded", "unknown"], CategoryStatus.DEGRADED),
        ],
    )
    def test_cascade(self, statuses: list[str], expected: CategoryStatus) -> None:
        assert aggregate_category_status(statuses) == expected

    def test_accepts_status_enum(self) -> None:
        assert aggregate_category_status([Status.DOWN, Status.DOWN]) == CategoryStatus.MAJOR_OUTAGE

    def test_order_does_not_matter(self) -> None:
        statuses = ["up", "down", "unknown", "degraded"]
        results = {aggregate_category_status(p) for p in itertools.permutations(statuses)}
        assert len(results) == 1


class TestAverageResponseTime:
    def test_ignores_missing(self) -> None:
        assert average_response_time([100, None, 300]) == 200

    def test_zero_is_a_measurement(self) -> None:
        assert average_response_time([0, None]) == 0

    def test_no_data_is_none(self) -> None:
        assert average_response_time([None, None]) is None
        assert average_response_time([]) is None


class TestCategoryHistory:
    def test_combines_per_point(self) -> None:
        grid = _grid(points=3)
        a = [HistoryPoint(t, s, rt) for t, s, rt in zip(grid, ["up", "down", "up"], [100, None, 200])]
        b = [HistoryPoint(t, s, rt) for t, s, rt in zip(grid, ["unknown", "down", "up"], [None, None, 400])]

        history = category_history([a, b], grid)
        assert [p.status for p in history] == ["operational", "major_outage", "operational"]
        assert [p.response_time_ms for p in history] == [100, None, 300]

    def test_missing_point_counts_as_unknown(self) -> None:
        grid = _grid(points=2)
        a = [HistoryPoint(grid[0], "down")]
        history = category_history([a], grid)
        assert history[0].status == "major_outage"
        assert history[1].status == "unknown"

    def test_no_services(self) -> None:
        assert category_history([], _grid()) == []

    def test_service_order_irrelevant(self) -> None:
        grid = _grid(points=3)
        a = resample([_at(1), _at(12, Status.DOWN)], grid)
        b = resample([_at(11, Status.DEGRADED)], grid)
        c = resample([], grid)
        first = category_history([a, b, c], grid)
        for perm in itertools.permutations([a, b, c]):
            assert category_history(list(perm), grid) == first
