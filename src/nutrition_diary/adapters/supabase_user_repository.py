"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.models import UserRecord
from nutrition_diary.errors import StorageError
from nutrition_diary.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_telegram_id(self, telegram_user_id: int) -> UserRecord | None:
        """Return the user for a Telegram user id, if present."""
        response = (
            self.client.table("users")
            .select("id, telegram_user_id")
            .eq("telegram_user_id", telegram_user_id)
            .limit(1)
            .execute()
        )
        if response.data:
            row = response.data[0]
            return UserRecord(
                id=UUID(row["id"]),
                telegram_user_id=row["telegram_user_id"],
            )
        return None

    def create_user(self, telegram_user_id: int) -> UserRecord:
        """Create a new user row and return it."""
        response = (
            self.client.table("users")
            .insert({"telegram_user_id": telegram_user_id})
            .execute()
        )
        if not response.data:
            raise StorageError("Failed to create user in Supabase")
        row = response.data[0]
        return UserRecord(id=UUID(row["id"]), telegram_user_id=row["telegram_user_id"])

    def touch_last_active(self, user_id: UUID) -> None:
        """Update the last_active_at timestamp for a user."""
        self.client.table("users").update(
            {"last_active_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(user_id)).execute()
