"""Aligns irregular per-service check history onto one shared time grid."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol, Sequence

from statuspulse.domain.models import Status

UNKNOWN = "unknown"
_CRITICAL = (Status.DOWN, Status.DEGRADED)


class CategoryStatus(str, enum.Enum):
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    MAJOR_OUTAGE = "major_outage"
    UNKNOWN = "unknown"


class Observation(Protocol):
    @property
    def checked_at(self) -> datetime: ...

    @property
    def status(self) -> str: ...

    @property
    def response_time_ms(self) -> float | None: ...


@dataclass(frozen=True)
class HistoryPoint:
    timestamp: datetime
    status: str
    response_time_ms: float | None = None

    @property
    def checked_at(self) -> datetime:
        return self.timestamp


def _value(status: str) -> str:
    return status.value if isinstance(status, enum.Enum) else status


def build_grid(start: datetime, end: datetime, points: int) -> list[datetime]:
    if points < 2:
        raise ValueError(f"a grid needs at least 2 points, got {points}")
    if end < start:
        raise ValueError("grid end precedes start")
    step = (end - start) / (points - 1)
    grid = [start + step * i for i in range(points - 1)]
    grid.append(end)
    return grid


def resample(checks: Iterable[Observation], grid: Sequence[datetime]) -> list[HistoryPoint]:
    """One point per grid timestamp.

    A down or degraded check inside ``(previous, current]`` wins over a later
    recovery in the same bucket; otherwise the latest observation is carried
    forward. Before the first observation a point is unknown.
    """
    ordered = sorted(checks, key=lambda c: c.checked_at)
    points: list[HistoryPoint] = []
    idx = 0
    last: Observation | None = None
    previous: datetime | None = None

    for at in grid:
        critical: Observation | None = None
        while idx < len(ordered) and ordered[idx].checked_at <= at:
            check = ordered[idx]
            if (
                critical is None
                and previous is not None
                and check.checked_at > previous
                and check.status in _CRITICAL
            ):
                critical = check
            last = check
            idx += 1

        chosen = critical or last
        if chosen is None:
            points.append(HistoryPoint(timestamp=at, status=UNKNOWN))
        else:
            points.append(
                HistoryPoint(timestamp=at, status=_value(chosen.status), response_time_ms=chosen.response_time_ms)
            )
        previous = at
    return points


def _classify_known(statuses: Sequence[str]) -> CategoryStatus | None:
    if all(s == Status.DOWN for s in statuses):
        return CategoryStatus.MAJOR_OUTAGE
    if all(s in (Status.UP, CategoryStatus.OPERATIONAL) for s in statuses):
        return CategoryStatus.OPERATIONAL
    if any(s in _CRITICAL for s in statuses):
        return CategoryStatus.DEGRADED
    return None


def aggregate_category_status(statuses: Iterable[str]) -> CategoryStatus:
    """Category status at one grid point. Rules apply in order, first match wins."""
    statuses = [_value(s) for s in statuses]
    if all(s == UNKNOWN for s in statuses):
        return CategoryStatus.UNKNOWN

    if UNKNOWN in statuses:
        # unmonitored services do not count against the known ones
        statuses = [s for s in statuses if s != UNKNOWN]

    return _classify_known(statuses) or CategoryStatus.OPERATIONAL


def average_response_time(values: Iterable[float | None]) -> float | None:
    measured = [v for v in values if v is not None]
    if not measured:
        return None
    return sum(measured) / len(measured)


def category_history(
    service_histories: Sequence[Sequence[HistoryPoint]],
    grid: Sequence[datetime],
) -> list[HistoryPoint]:
    if not service_histories:
        return []

    by_time = [{p.timestamp: p for p in history} for history in service_histories]
    out: list[HistoryPoint] = []
    for at in grid:
        found = [lookup.get(at) for lookup in by_time]
        status = aggregate_category_status(p.status if p is not None else UNKNOWN for p in found)
        out.append(
            HistoryPoint(
                timestamp=at,
                status=status.value,
                response_time_ms=average_response_time(p.response_time_ms for p in found if p is not None),
            )
        )
    return out
