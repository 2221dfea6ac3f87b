from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from statuspulse.domain.models import MonitoredService, Status

# share of the timeout after which a successful check counts as degraded
DEGRADED_LATENCY_RATIO = 0.8


@dataclass(frozen=True)
class ProbeOutcome:
    """What a monitor observed. ``error`` is None when the probe passed."""

    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Monitor(Protocol):
    timeout_label: str

    async def probe(self, service: MonitoredService) -> ProbeOutcome:  # pragma: no cover - interface
        ...

    def describe_error(self, exc: Exception) -> str:  # pragma: no cover - interface
        ...


def classify_latency(elapsed_ms: int, timeout_ms: int) -> Status:
    if elapsed_ms <= timeout_ms * DEGRADED_LATENCY_RATIO:
        return Status.UP
    return Status.DEGRADED
