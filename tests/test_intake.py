import asyncio
from dataclasses import dataclass

import pytest

from nutrition_diary.containers import AppContainer
from nutrition_diary.domain.extraction import ExtractedItem
from nutrition_diary.domain.nutrition import MacroProfile, Unit
from nutrition_diary.errors import (
    ExtractionTimeoutError,
    NothingRecognizedError,
    VoiceTooLongError,
)
from nutrition_diary.services.intake import PHOTO_PLACEHOLDER, build_line_item
from tests.conftest import (
    FakeExtractionClient,
    InMemoryEntryRepository,
    InMemoryUserRepository,
    extracted_item_payload,
)


@dataclass
class _SlowExtractionClient(FakeExtractionClient):
    delay: float = 1.0

    async def extract(self, **kwargs):  # type: ignore[override]
        await asyncio.sleep(self.delay)
        return self.payload


def _user_id(user_repository: InMemoryUserRepository):
    return user_repository.create_user(42).id


def test_build_line_item_prefers_declared_grams() -> None:
    item = ExtractedItem.model_validate(
        extracted_item_payload(
            name=" soup ", quantity=1, unit="piece", kcal=50, resolved_grams=300
        )
    )

    draft = build_line_item(item)

    assert draft.name == "soup"
    assert draft.unit is Unit.PIECE
    assert draft.grams == 300
    assert draft.macros.kcal == 150.0


def test_build_line_item_uses_density_for_volume() -> None:
    payload = extracted_item_payload(name="milk", quantity=200, unit="ml", kcal=50)
    payload["density_g_per_ml"] = 1.03
    item = ExtractedItem.model_validate(payload)

    draft = build_line_item(item)

    assert draft.grams == pytest.approx(206)
    assert draft.macros.kcal == 103.0


def test_log_text_stores_entry_with_scaled_items(
    container: AppContainer,
    user_repository: InMemoryUserRepository,
    entry_repository: InMemoryEntryRepository,
    extraction_client: FakeExtractionClient,
) -> None:
    extraction_client.payload = {
        "items": [
            extracted_item_payload(kcal=380, protein=13, fat=7, carbs=67, fiber=10)
        ]
    }
    user_id = _user_id(user_repository)

    logged = asyncio.run(container.intake_service.log_text(user_id, "oatmeal 60g"))

    assert logged.entry.raw_text == "oatmeal 60g"
    assert logged.items[0].grams == 60
    expected = MacroProfile(kcal=228.0, protein=7.8, fat=4.2, carbs=40.2, fiber=6.0)
    assert logged.items[0].macros == expected
    assert logged.totals == expected
    assert len(entry_repository.entries) == 1


def test_photo_without_caption_uses_placeholder(
    container: AppContainer,
    user_repository: InMemoryUserRepository,
    extraction_client: FakeExtractionClient,
) -> None:
    user_id = _user_id(user_repository)

    logged = asyncio.run(container.intake_service.log_photo(user_id, b"jpeg", "  "))

    assert logged.entry.raw_text == PHOTO_PLACEHOLDER
    assert extraction_client.calls[0]["image_data_url"] is not None


def test_failed_extraction_keeps_raw_entry(
    container: AppContainer,
    user_repository: InMemoryUserRepository,
    entry_repository: InMemoryEntryRepository,
    extraction_client: FakeExtractionClient,
) -> None:
    extraction_client.payload = {"items": []}
    user_id = _user_id(user_repository)

    with pytest.raises(NothingRecognizedError):
        asyncio.run(container.intake_service.log_text(user_id, "something tasty"))

    [entry] = entry_repository.entries.values()
    assert entry.raw_text == "something tasty"
    assert entry_repository.items == {}


def test_slow_extraction_times_out(
    container: AppContainer,
    user_repository: InMemoryUserRepository,
    entry_repository: InMemoryEntryRepository,
) -> None:
    container.intake_service.extraction_service.client = _SlowExtractionClient()
    container.intake_service.timeout_seconds = 0.01
    user_id = _user_id(user_repository)

    with pytest.raises(ExtractionTimeoutError):
        asyncio.run(container.intake_service.log_text(user_id, "oatmeal 60g"))

    assert len(entry_repository.entries) == 1


def test_voice_is_transcribed_then_logged(
    container: AppContainer,
    user_repository: InMemoryUserRepository,
    extraction_client: FakeExtractionClient,
) -> None:
    extraction_client.transcript = "oatmeal 60g"
    user_id = _user_id(user_repository)

    logged = asyncio.run(container.intake_service.log_voice(user_id, b"ogg", 12))

    assert logged.entry.raw_text == "oatmeal 60g"
    assert extraction_client.calls[0] == {"audio": b"ogg", "filename": "voice.ogg"}


def test_long_voice_is_rejected_before_transcription(
    container: AppContainer,
    user_repository: InMemoryUserRepository,
    extraction_client: FakeExtractionClient,
) -> None:
    user_id = _user_id(user_repository)

    with pytest.raises(VoiceTooLongError) as error:
        asyncio.run(container.intake_service.log_voice(user_id, b"ogg", 61))

    assert error.value.limit_seconds == 60
    assert extraction_client.calls == []
