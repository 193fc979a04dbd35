"""Proportional rescaling of line items after a gram correction."""

import logging
import math
from dataclasses import dataclass, replace
from uuid import UUID

from nutrition_diary.domain.entries import LineItem
from nutrition_diary.errors import (
    InvalidGramsError,
    ItemNotFoundError,
    ZeroBaselineError,
)
from nutrition_diary.services.entries import EntryRepository
from nutrition_diary.services.macros import rescale

_logger = logging.getLogger(__name__)


def parse_grams(text: str) -> float:
    """Parse a user-typed gram amount such as ``120``, ``85,5`` or ``150 g``."""
    cleaned = text.strip().lower().replace(",", ".")
    for suffix in ("grams", "gram", "гр", "г", "g"):
        if cleaned.endswith(suffix):
            cleaned = cleaned[: -len(suffix)].strip()
            break
    try:
        value = float(cleaned)
    except ValueError as exc:
        raise InvalidGramsError(f"Not a number: {text!r}") from exc
    return validate_grams(value)


def validate_grams(value: float) -> float:
    """Return the value when it is a finite amount greater than zero."""
    if not math.isfinite(value) or value <= 0:
        raise InvalidGramsError(f"Grams must be greater than zero, got {value}")
    return value


@dataclass
class GramCorrectionService:
    """Applies user-supplied gram amounts to stored line items."""

    repository: EntryRepository

    def correct_grams(self, user_id: UUID, item_id: UUID, new_grams: float) -> LineItem:
        """Rescale every macro field of an item by ``new_grams / old_grams``."""
        validate_grams(new_grams)
        item = self.repository.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        entry = self.repository.get_entry(item.entry_id)
        if entry is None or entry.user_id != user_id:
            raise ItemNotFoundError(f"Item {item_id} not found")
        if item.grams <= 0:
            raise ZeroBaselineError(f"Item {item_id} has no stored weight to scale")

        ratio = new_grams / item.grams
        macros = rescale(item.macros, ratio)
        self.repository.update_item(item_id, new_grams, macros)
        _logger.info(
            "Corrected item %s from %sg to %sg (ratio %.4f)",
            item_id,
            item.grams,
            new_grams,
            ratio,
        )
        return replace(item, grams=new_grams, macros=macros, manually_edited=True)
