"""Food entry persistence and per-entry actions."""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_diary.domain.entries import (
    FoodEntry,
    LineItem,
    LineItemDraft,
    LoggedEntry,
    MealSlot,
)
from nutrition_diary.domain.nutrition import MacroProfile
from nutrition_diary.errors import (
    EntryNotFoundError,
    ItemNotFoundError,
    StorageError,
)
from nutrition_diary.services.macros import sum_profiles

_logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    """Persistence interface for food entries and line items."""

    def create_entry(
        self,
        user_id: UUID,
        consumed_on: date,
        raw_text: str,
        items: list[LineItemDraft],
    ) -> UUID:
        """Atomically create an entry with its items and return the entry id."""

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id."""

    def list_items(self, entry_id: UUID) -> list[LineItem]:
        """Return items of an entry in creation order."""

    def get_item(self, item_id: UUID) -> LineItem | None:
        """Return a line item by id."""

    def update_item(self, item_id: UUID, grams: float, macros: MacroProfile) -> None:
        """Persist new grams and macros and mark the item as manually edited."""

    def set_meal_slot(self, entry_id: UUID, slot: MealSlot) -> None:
        """Assign a meal slot to an entry."""

    def set_consumed_on(self, entry_id: UUID, consumed_on: date) -> None:
        """Change the consumption date of an entry."""

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry together with its items."""


@dataclass
class FoodEntryService:
    """Service that stores entries and applies user actions to them."""

    repository: EntryRepository

    def log_entry(
        self,
        user_id: UUID,
        consumed_on: date,
        raw_text: str,
        items: list[LineItemDraft],
    ) -> LoggedEntry:
        """Persist an entry and its resolved items in one unit of work."""
        entry_id = self.repository.create_entry(
            user_id=user_id,
            consumed_on=consumed_on,
            raw_text=raw_text,
            items=items,
        )
        entry = self.repository.get_entry(entry_id)
        if entry is None:
            raise StorageError(f"Entry {entry_id} missing right after creation")
        stored_items = self.repository.list_items(entry_id)
        _logger.info(
            "Logged entry %s with %s items for user %s",
            entry_id,
            len(stored_items),
            user_id,
        )
        return LoggedEntry(
            entry=entry,
            items=stored_items,
            totals=sum_profiles([item.macros for item in stored_items]),
        )

    def log_raw_entry(self, user_id: UUID, consumed_on: date, raw_text: str) -> UUID:
        """Keep the raw text of a submission whose items could not be extracted."""
        entry_id = self.repository.create_entry(
            user_id=user_id,
            consumed_on=consumed_on,
            raw_text=raw_text,
            items=[],
        )
        _logger.info("Stored raw fallback entry %s for user %s", entry_id, user_id)
        return entry_id

    def get_entry(self, user_id: UUID, entry_id: UUID) -> FoodEntry:
        """Return an entry owned by the user."""
        entry = self.repository.get_entry(entry_id)
        if entry is None or entry.user_id != user_id:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        return entry

    def list_items(self, user_id: UUID, entry_id: UUID) -> list[LineItem]:
        """Return the items of an entry owned by the user."""
        self.get_entry(user_id, entry_id)
        return self.repository.list_items(entry_id)

    def assign_meal_slot(
        self, user_id: UUID, entry_id: UUID, slot: MealSlot
    ) -> FoodEntry:
        """Set the meal slot of an entry."""
        entry = self.get_entry(user_id, entry_id)
        self.repository.set_meal_slot(entry_id, slot)
        return replace(entry, meal_slot=slot)

    def move_to_previous_day(self, user_id: UUID, entry_id: UUID) -> FoodEntry:
        """Shift an entry's consumption date back by one day."""
        entry = self.get_entry(user_id, entry_id)
        consumed_on = entry.consumed_on - timedelta(days=1)
        self.repository.set_consumed_on(entry_id, consumed_on)
        return replace(entry, consumed_on=consumed_on)

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry and all of its items."""
        self.get_entry(user_id, entry_id)
        self.repository.delete_entry(entry_id)
        _logger.info("Deleted entry %s for user %s", entry_id, user_id)

    def get_item(self, user_id: UUID, item_id: UUID) -> LineItem:
        """Return a line item whose entry is owned by the user."""
        item = self.repository.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        entry = self.repository.get_entry(item.entry_id)
        if entry is None or entry.user_id != user_id:
            raise ItemNotFoundError(f"Item {item_id} not found")
        return item
