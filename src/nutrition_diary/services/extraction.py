"""Structured food extraction and speech transcription via LLMs."""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_diary.domain.extraction import ExtractedItem, ExtractionResult
from nutrition_diary.domain.nutrition import Unit
from nutrition_diary.errors import (
    EmptyTranscriptError,
    ExtractionAuthError,
    ExtractionError,
    ExtractionRateLimitedError,
    ExtractionServiceError,
    ExtractionTimeoutError,
    MalformedExtractionError,
    NothingRecognizedError,
)

_logger = logging.getLogger(__name__)

_NULLABLE_NUMBER = {"anyOf": [{"type": "number"}, {"type": "null"}]}

EXTRACTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "quantity": {"type": "number"},
                    "unit": {"type": "string", "enum": [unit.value for unit in Unit]},
                    "per100g": {
                        "type": "object",
                        "properties": {
                            "kcal": {"type": "number"},
                            "protein": {"type": "number"},
                            "fat": {"type": "number"},
                            "carbs": {"type": "number"},
                            "fiber": {"type": "number"},
                        },
                        "required": ["kcal", "protein", "fat", "carbs", "fiber"],
                        "additionalProperties": False,
                    },
                    "density_g_per_ml": _NULLABLE_NUMBER,
                    "piece_grams": _NULLABLE_NUMBER,
                    "resolved_grams": _NULLABLE_NUMBER,
                },
                "required": [
                    "name",
                    "quantity",
                    "unit",
                    "per100g",
                    "density_g_per_ml",
                    "piece_grams",
                    "resolved_grams",
                ],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

_UNITS = ", ".join(unit.value for unit in Unit)

EXTRACTION_PROMPT = (
    "You are a nutritionist. Split the meal description into food items. "
    "For each item return the name, quantity and unit ({units}), the nutrient "
    "profile per 100 g (kcal, protein, fat, carbs, fiber) and resolved_grams: "
    "your best estimate of the eaten weight in grams given the context "
    "(a bowl of soup is about 300 g, a glass of milk 250 g, a slice of bread "
    "25 g, a tablespoon of oil 15 g). For ml estimate density_g_per_ml "
    "(water 1.00, milk 1.03). For piece or slice estimate piece_grams. "
    "Use null when a value does not apply. The user's timezone is {timezone}."
)

_AUTH_STATUS_CODES = {401, 403}
_RATE_LIMIT_STATUS_CODE = 429


class ExtractionClient(Protocol):
    """Interface for LLM-backed extraction and transcription."""

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        text: str | None,
        image_data_url: str | None,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return structured extraction data for text and/or an image."""

    async def transcribe(self, *, model: str, audio: bytes, filename: str) -> str:
        """Return the transcript of an audio file."""


@dataclass
class ExtractionService:
    """Service that prepares extraction prompts and validates results."""

    client: ExtractionClient
    model: str
    transcription_model: str
    store: bool
    timezone_name: str

    async def extract_from_text(self, text: str) -> list[ExtractedItem]:
        """Extract food items from a free-text meal description."""
        return await self._extract(text=text, image_data_url=None)

    async def extract_from_image(
        self, image_bytes: bytes, caption: str | None = None
    ) -> list[ExtractedItem]:
        """Extract food items from a meal photo and its optional caption."""
        return await self._extract(
            text=caption, image_data_url=_to_data_url(image_bytes)
        )

    async def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> str:
        """Transcribe a voice note; an empty transcript is an error."""
        try:
            transcript = await self.client.transcribe(
                model=self.transcription_model, audio=audio, filename=filename
            )
        except ExtractionError:
            raise
        except Exception as exc:
            raise _classify_provider_error(exc) from exc
        cleaned = transcript.strip()
        if not cleaned:
            raise EmptyTranscriptError("Transcription returned no text")
        return cleaned

    async def _extract(
        self, *, text: str | None, image_data_url: str | None
    ) -> list[ExtractedItem]:
        prompt = EXTRACTION_PROMPT.format(units=_UNITS, timezone=self.timezone_name)
        try:
            raw = await self.client.extract(
                model=self.model,
                store=self.store,
                prompt=prompt,
                text=text,
                image_data_url=image_data_url,
                schema=EXTRACTION_SCHEMA,
            )
        except ExtractionError:
            raise
        except json.JSONDecodeError as exc:
            raise MalformedExtractionError("Extractor returned invalid JSON") from exc
        except Exception as exc:
            raise _classify_provider_error(exc) from exc

        try:
            result = ExtractionResult.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Extraction payload failed validation: %s", exc)
            raise MalformedExtractionError("Extractor response broke schema") from exc
        if not result.items:
            raise NothingRecognizedError("Extractor found no food items")
        return result.items


def _classify_provider_error(exc: Exception) -> ExtractionError:
    """Map a provider exception to the extraction error taxonomy."""
    if isinstance(exc, TimeoutError):
        return ExtractionTimeoutError(str(exc) or "Extraction timed out")
    status_code = _status_code_from_exception(exc)
    if status_code in _AUTH_STATUS_CODES:
        return ExtractionAuthError(str(exc))
    if status_code == _RATE_LIMIT_STATUS_CODE:
        return ExtractionRateLimitedError(str(exc))
    _logger.warning(
        "Extraction provider failed (status=%s): %s", status_code or "n/a", exc
    )
    return ExtractionServiceError(f"{type(exc).__name__}: {exc}")


def _status_code_from_exception(exc: Exception) -> int | None:
    """Extract HTTP status code from an exception, if available."""
    status_code = getattr(exc, "status_code", None)
    if status_code is None:
        response = getattr(exc, "response", None)
        status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
