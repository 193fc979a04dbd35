"""Supabase admin data access."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.admin import AdminUser
from nutrition_diary.services.admin import AdminRepository

_COLUMNS = "id, telegram_user_id, created_at, last_active_at"


@dataclass
class SupabaseAdminRepository(AdminRepository):
    """Supabase implementation for admin queries."""

    client: Client

    def list_users(self) -> list[AdminUser]:
        """Return all users ordered by last activity."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .order("last_active_at", desc=True)
            .execute()
        )
        return [_parse_user(row) for row in response.data or []]

    def get_user(self, user_id: UUID) -> AdminUser | None:
        """Return a single user, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_user(response.data[0])


def _parse_user(row: dict[str, object]) -> AdminUser:
    return AdminUser(
        id=UUID(str(row["id"])),
        telegram_user_id=int(row["telegram_user_id"]),
        created_at=_parse_timestamp(row.get("created_at")),
        last_active_at=_parse_timestamp(row.get("last_active_at")),
    )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
