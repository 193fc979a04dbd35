"""Supabase repository for reporting queries over entries and items."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from nutrition_diary.adapters.supabase_entry_repository import (
    ENTRY_COLUMNS,
    ITEM_COLUMNS,
    parse_entry,
    parse_item,
)
from nutrition_diary.domain.entries import FoodEntry
from nutrition_diary.domain.stats import ItemRow
from nutrition_diary.services.aggregation import StatsRepository


@dataclass
class SupabaseStatsRepository(StatsRepository):
    """Supabase implementation for stats queries."""

    client: Client

    def list_item_rows(self, user_id: UUID, start: date, end: date) -> list[ItemRow]:
        """Return items of entries consumed in the range, joined to their entry."""
        entries = {entry.id: entry for entry in self.list_entries(user_id, start, end)}
        if not entries:
            return []
        response = (
            self.client.table("line_items")
            .select(ITEM_COLUMNS)
            .in_("entry_id", [str(entry_id) for entry_id in entries])
            .order("created_at", desc=False)
            .execute()
        )
        rows = []
        for raw in response.data or []:
            item = parse_item(raw)
            entry = entries.get(item.entry_id)
            if entry is not None:
                rows.append(ItemRow(entry=entry, item=item))
        return rows

    def list_entries(self, user_id: UUID, start: date, end: date) -> list[FoodEntry]:
        """Return entries consumed in [start, end)."""
        response = (
            self.client.table("food_entries")
            .select(ENTRY_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("consumed_on", start.isoformat())
            .lt("consumed_on", end.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]

    def list_recent_entries(self, user_id: UUID, limit: int) -> list[FoodEntry]:
        """Return the most recently created entries."""
        response = (
            self.client.table("food_entries")
            .select(ENTRY_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]
