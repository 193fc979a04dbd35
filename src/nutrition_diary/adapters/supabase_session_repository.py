"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.sessions import SessionRecord, SessionStatus
from nutrition_diary.services.sessions import SessionRepository


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for chat sessions, one row per user."""

    client: Client

    def get_session(self, user_id: UUID) -> SessionRecord | None:
        """Return the user's active session, if any."""
        response = (
            self.client.table("chat_sessions")
            .select("user_id, status, context_json")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return SessionRecord(
            user_id=UUID(row["user_id"]),
            status=SessionStatus(row["status"]),
            context=row.get("context_json") or {},
        )

    def save_session(
        self, user_id: UUID, status: SessionStatus, context: dict[str, object]
    ) -> None:
        """Create or replace the user's session row."""
        self.client.table("chat_sessions").upsert(
            {
                "user_id": str(user_id),
                "status": status.value,
                "context_json": context,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def clear_session(self, user_id: UUID) -> None:
        """Remove the user's session row."""
        self.client.table("chat_sessions").delete().eq(
            "user_id", str(user_id)
        ).execute()
