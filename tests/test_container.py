"""Tests for container wiring."""

import asyncio

import pytest

from nutrition_diary import containers
from nutrition_diary.adapters.supabase_entry_repository import SupabaseEntryRepository
from nutrition_diary.config import Settings
from nutrition_diary.containers import build_container


def test_build_container_creates_services(
    settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    created: list[tuple[str, str]] = []
    fake_client = object()

    def fake_create_client(url: str, key: str) -> object:
        created.append((url, key))
        return fake_client

    monkeypatch.setattr(containers, "create_client", fake_create_client)

    container = build_container(settings)

    assert created == [("https://example.supabase.co", "service-key")]
    assert isinstance(container.entry_service.repository, SupabaseEntryRepository)
    assert container.entry_service.repository.client is fake_client
    assert container.aggregator.timezone_name == "Europe/Warsaw"
    assert container.rate_limiter.limit == settings.rate_limit_events
    assert container.intake_service.max_voice_seconds == settings.max_voice_seconds
    assert container.coach_request_service.trainer_telegram_id is None
    asyncio.run(container.close_resources())
