"""Supabase-backed repository for food entries and line items."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.entries import FoodEntry, LineItem, LineItemDraft, MealSlot
from nutrition_diary.domain.nutrition import MacroProfile, Unit
from nutrition_diary.errors import StorageError
from nutrition_diary.services.entries import EntryRepository

ENTRY_COLUMNS = "id, user_id, consumed_on, raw_text, meal_slot, created_at"
ITEM_COLUMNS = (
    "id, entry_id, name, quantity, unit, grams, kcal, protein, fat, carbs, fiber, "
    "manually_edited, created_at"
)


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for entry persistence."""

    client: Client

    def create_entry(
        self,
        user_id: UUID,
        consumed_on: date,
        raw_text: str,
        items: list[LineItemDraft],
    ) -> UUID:
        """Insert the entry and its items in one database transaction."""
        response = self.client.rpc(
            "log_food_entry",
            {
                "p_user_id": str(user_id),
                "p_consumed_on": consumed_on.isoformat(),
                "p_raw_text": raw_text,
                "p_items": [_draft_payload(item) for item in items],
            },
        ).execute()
        entry_id = response.data
        if isinstance(entry_id, list):
            entry_id = entry_id[0] if entry_id else None
        if not entry_id:
            raise StorageError("Failed to create food entry")
        return UUID(str(entry_id))

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id, if present."""
        response = (
            self.client.table("food_entries")
            .select(ENTRY_COLUMNS)
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_entry(response.data[0])

    def list_items(self, entry_id: UUID) -> list[LineItem]:
        """Return the items of an entry in creation order."""
        response = (
            self.client.table("line_items")
            .select(ITEM_COLUMNS)
            .eq("entry_id", str(entry_id))
            .order("created_at", desc=False)
            .execute()
        )
        return [parse_item(row) for row in response.data or []]

    def get_item(self, item_id: UUID) -> LineItem | None:
        """Return a line item by id, if present."""
        response = (
            self.client.table("line_items")
            .select(ITEM_COLUMNS)
            .eq("id", str(item_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_item(response.data[0])

    def update_item(self, item_id: UUID, grams: float, macros: MacroProfile) -> None:
        """Store corrected grams and macros and flag the item as edited."""
        response = (
            self.client.table("line_items")
            .update({"grams": grams, **macros.as_dict(), "manually_edited": True})
            .eq("id", str(item_id))
            .execute()
        )
        if not response.data:
            raise StorageError(f"Failed to update line item {item_id}")

    def set_meal_slot(self, entry_id: UUID, slot: MealSlot) -> None:
        """Assign a meal slot to an entry."""
        self.client.table("food_entries").update(
            {"meal_slot": None if slot is MealSlot.UNSET else slot.value}
        ).eq("id", str(entry_id)).execute()

    def set_consumed_on(self, entry_id: UUID, consumed_on: date) -> None:
        """Change the consumption date of an entry."""
        self.client.table("food_entries").update(
            {"consumed_on": consumed_on.isoformat()}
        ).eq("id", str(entry_id)).execute()

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry; items go with it through the foreign key cascade."""
        self.client.table("food_entries").delete().eq("id", str(entry_id)).execute()


def parse_entry(row: dict[str, object]) -> FoodEntry:
    """Build a FoodEntry from a ``food_entries`` row."""
    slot = row.get("meal_slot")
    return FoodEntry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        consumed_on=date.fromisoformat(str(row["consumed_on"])),
        raw_text=str(row.get("raw_text") or ""),
        meal_slot=MealSlot(slot) if slot else MealSlot.UNSET,
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def parse_item(row: dict[str, object]) -> LineItem:
    """Build a LineItem from a ``line_items`` row."""
    return LineItem(
        id=UUID(str(row["id"])),
        entry_id=UUID(str(row["entry_id"])),
        name=str(row["name"]),
        quantity=float(row["quantity"]),
        unit=Unit(row["unit"]),
        grams=float(row["grams"]),
        macros=MacroProfile(
            kcal=float(row.get("kcal") or 0.0),
            protein=float(row.get("protein") or 0.0),
            fat=float(row.get("fat") or 0.0),
            carbs=float(row.get("carbs") or 0.0),
            fiber=float(row.get("fiber") or 0.0),
        ),
        manually_edited=bool(row.get("manually_edited", False)),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def _draft_payload(item: LineItemDraft) -> dict[str, object]:
    return {
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit.value,
        "grams": item.grams,
        **item.macros.as_dict(),
    }
