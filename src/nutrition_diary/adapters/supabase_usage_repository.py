"""Supabase-backed usage event repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.admin import UsageEvent
from nutrition_diary.services.usage import UsageRepository


@dataclass
class SupabaseUsageRepository(UsageRepository):
    """Supabase implementation for usage events."""

    client: Client

    def record_event(self, user_id: UUID, kind: str, latency_ms: int, ok: bool) -> None:
        """Insert a usage event row."""
        self.client.table("usage_events").insert(
            {"user_id": str(user_id), "kind": kind, "latency_ms": latency_ms, "ok": ok}
        ).execute()

    def list_events(self, start: datetime, end: datetime) -> list[UsageEvent]:
        """Return events created in [start, end)."""
        response = (
            self.client.table("usage_events")
            .select("user_id, kind, latency_ms, ok, created_at")
            .gte("created_at", start.isoformat())
            .lt("created_at", end.isoformat())
            .execute()
        )
        return [
            UsageEvent(
                user_id=UUID(row["user_id"]),
                kind=row["kind"],
                latency_ms=int(row["latency_ms"]),
                ok=bool(row["ok"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in response.data or []
        ]
