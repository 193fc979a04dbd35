"""Request usage recording and daily summaries."""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from nutrition_diary.domain.admin import UsageEvent

P95 = 0.95

_logger = logging.getLogger(__name__)


class UsageRepository(Protocol):
    """Persistence interface for usage events."""

    def record_event(self, user_id: UUID, kind: str, latency_ms: int, ok: bool) -> None:
        """Store a single usage event."""

    def list_events(self, start: datetime, end: datetime) -> list[UsageEvent]:
        """Return events created in [start, end)."""


@dataclass
class UsageService:
    """Records handled requests and summarizes them for operators."""

    repository: UsageRepository

    def record(self, user_id: UUID, kind: str, latency_ms: int, ok: bool) -> None:
        """Store a usage event; failures are logged and not raised."""
        try:
            self.repository.record_event(user_id, kind, latency_ms, ok)
        except Exception:
            _logger.exception(
                "Failed to record usage event",
                extra={"user_id": str(user_id), "kind": kind},
            )

    def daily_summary(self, day: date, timezone_name: str) -> dict[str, object]:
        """Summarize one local calendar day of usage."""
        tz = ZoneInfo(timezone_name)
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = start + timedelta(days=1)
        events = self.repository.list_events(start.astimezone(UTC), end.astimezone(UTC))
        return summarize_events(day, events)


def summarize_events(day: date, events: list[UsageEvent]) -> dict[str, object]:
    """Compute active users, counts per kind and latency figures."""
    latencies = sorted(event.latency_ms for event in events)
    return {
        "day": day.isoformat(),
        "events": len(events),
        "active_users": len({event.user_id for event in events}),
        "by_kind": dict(Counter(event.kind for event in events)),
        "failed": sum(1 for event in events if not event.ok),
        "avg_latency_ms": round(sum(latencies) / len(latencies)) if latencies else None,
        "p95_latency_ms": percentile(latencies, P95),
    }


def percentile(sorted_values: list[int], fraction: float) -> int | None:
    """Nearest-rank percentile of an ascending list."""
    if not sorted_values:
        return None
    rank = max(math.ceil(fraction * len(sorted_values)), 1)
    return sorted_values[rank - 1]
