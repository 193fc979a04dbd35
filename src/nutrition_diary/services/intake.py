"""Turns text, photo and voice submissions into stored food entries."""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar
from uuid import UUID

from nutrition_diary.domain.entries import LineItemDraft, LoggedEntry
from nutrition_diary.domain.extraction import ExtractedItem
from nutrition_diary.errors import (
    ExtractionError,
    ExtractionTimeoutError,
    VoiceTooLongError,
)
from nutrition_diary.services.dates import today_in
from nutrition_diary.services.entries import FoodEntryService
from nutrition_diary.services.extraction import ExtractionService
from nutrition_diary.services.macros import scale_profile
from nutrition_diary.services.units import resolve_grams

PHOTO_PLACEHOLDER = "[photo]"

_T = TypeVar("_T")

_logger = logging.getLogger(__name__)


def build_line_item(item: ExtractedItem) -> LineItemDraft:
    """Resolve grams for an extracted item and scale its per-100 g profile."""
    grams = resolve_grams(
        item.quantity,
        item.unit,
        density_g_per_ml=item.density_g_per_ml,
        piece_grams=item.piece_grams,
        model_declared_grams=item.resolved_grams,
    )
    return LineItemDraft(
        name=item.name.strip(),
        quantity=item.quantity,
        unit=item.unit,
        grams=grams,
        macros=scale_profile(grams, item.per100g.to_profile()),
    )


@dataclass
class IntakeService:
    """Runs extraction under a deadline and persists the result."""

    extraction_service: ExtractionService
    entry_service: FoodEntryService
    timezone_name: str
    timeout_seconds: float = 20.0
    max_voice_seconds: int = 60

    async def log_text(self, user_id: UUID, text: str) -> LoggedEntry:
        """Log a free-text meal description."""
        return await self._log(
            user_id, text, self.extraction_service.extract_from_text(text)
        )

    async def log_photo(
        self, user_id: UUID, image_bytes: bytes, caption: str | None = None
    ) -> LoggedEntry:
        """Log a meal photo, using the caption as extra context."""
        raw_text = caption.strip() if caption and caption.strip() else PHOTO_PLACEHOLDER
        return await self._log(
            user_id,
            raw_text,
            self.extraction_service.extract_from_image(image_bytes, caption),
        )

    def check_voice_duration(self, duration_seconds: int) -> None:
        """Reject voice notes longer than the configured limit."""
        if duration_seconds > self.max_voice_seconds:
            raise VoiceTooLongError(duration_seconds, self.max_voice_seconds)

    async def log_voice(
        self, user_id: UUID, audio: bytes, duration_seconds: int
    ) -> LoggedEntry:
        """Transcribe a voice note and log the transcript as text."""
        self.check_voice_duration(duration_seconds)
        transcript = await self._bounded(self.extraction_service.transcribe(audio))
        _logger.info("Transcribed voice note for user %s", user_id)
        return await self.log_text(user_id, transcript)

    async def _log(
        self,
        user_id: UUID,
        raw_text: str,
        extraction: Awaitable[list[ExtractedItem]],
    ) -> LoggedEntry:
        consumed_on = today_in(self.timezone_name)
        try:
            extracted = await self._bounded(extraction)
        except ExtractionError as exc:
            _logger.warning(
                "Extraction failed for user %s: %s", user_id, type(exc).__name__
            )
            self.entry_service.log_raw_entry(user_id, consumed_on, raw_text)
            raise
        drafts = [build_line_item(item) for item in extracted]
        return self.entry_service.log_entry(
            user_id=user_id,
            consumed_on=consumed_on,
            raw_text=raw_text,
            items=drafts,
        )

    async def _bounded(self, awaitable: Awaitable[_T]) -> _T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except TimeoutError as exc:
            raise ExtractionTimeoutError(
                f"No answer within {self.timeout_seconds:g}s"
            ) from exc
