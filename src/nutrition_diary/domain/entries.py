"""Domain models for food entries and their line items."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from nutrition_diary.domain.nutrition import MacroProfile, Unit


class MealSlot(StrEnum):
    """Coarse classification of an entry within the day."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    UNSET = "unset"

    @classmethod
    def assignable(cls) -> list["MealSlot"]:
        """Return slots a user may pick for an entry."""
        return [cls.BREAKFAST, cls.LUNCH, cls.DINNER, cls.SNACK]


@dataclass(frozen=True)
class LineItemDraft:
    """A resolved line item that has not been persisted yet."""

    name: str
    quantity: float
    unit: Unit
    grams: float
    macros: MacroProfile


@dataclass(frozen=True)
class LineItem:
    """A persisted food component of an entry."""

    id: UUID
    entry_id: UUID
    name: str
    quantity: float
    unit: Unit
    grams: float
    macros: MacroProfile
    manually_edited: bool
    created_at: datetime


@dataclass(frozen=True)
class FoodEntry:
    """One logged eating event."""

    id: UUID
    user_id: UUID
    consumed_on: date
    raw_text: str
    meal_slot: MealSlot
    created_at: datetime


@dataclass(frozen=True)
class LoggedEntry:
    """An entry together with the items created for it."""

    entry: FoodEntry
    items: list[LineItem]
    totals: MacroProfile
