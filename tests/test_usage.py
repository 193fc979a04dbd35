import logging
from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from nutrition_diary.domain.admin import UsageEvent
from nutrition_diary.services.usage import UsageService, percentile, summarize_events
from tests.conftest import InMemoryUsageRepository


def _event(user_id, kind: str, latency_ms: int, ok: bool = True) -> UsageEvent:
    return UsageEvent(
        user_id=user_id,
        kind=kind,
        latency_ms=latency_ms,
        ok=ok,
        created_at=datetime(2025, 9, 22, 10, tzinfo=UTC),
    )


def test_summarize_events() -> None:
    alice, bob = uuid4(), uuid4()
    events = [
        _event(alice, "text", 900),
        _event(alice, "photo", 3000),
        _event(bob, "text", 1100, ok=False),
        _event(bob, "voice", 2000),
    ]

    summary = summarize_events(date(2025, 9, 22), events)

    assert summary == {
        "day": "2025-09-22",
        "events": 4,
        "active_users": 2,
        "by_kind": {"text": 2, "photo": 1, "voice": 1},
        "failed": 1,
        "avg_latency_ms": 1750,
        "p95_latency_ms": 3000,
    }


def test_empty_summary() -> None:
    summary = summarize_events(date(2025, 9, 22), [])

    assert summary["events"] == 0
    assert summary["avg_latency_ms"] is None
    assert summary["p95_latency_ms"] is None


def test_percentile_nearest_rank() -> None:
    values = list(range(1, 101))

    assert percentile(values, 0.95) == 95
    assert percentile([7], 0.95) == 7
    assert percentile([], 0.95) is None


def test_record_and_daily_summary() -> None:
    repository = InMemoryUsageRepository()
    service = UsageService(repository)
    user_id = uuid4()

    service.record(user_id, "text", 1200, True)
    today = datetime.now(tz=UTC).date()
    summary = service.daily_summary(today, "UTC")

    assert summary["events"] == 1
    assert summary["by_kind"] == {"text": 1}


def test_record_failure_is_logged(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("nutrition_diary"), "propagate", True)
    repository = InMemoryUsageRepository(fail=True)

    UsageService(repository).record(uuid4(), "text", 10, True)

    assert repository.events == []
    assert "Failed to record usage event" in caplog.text
