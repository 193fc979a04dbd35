"""Supabase-backed coach request repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.coaching import (
    CoachQuestionnaire,
    CoachRequest,
    CoachRequestStatus,
)
from nutrition_diary.errors import StorageError
from nutrition_diary.services.coaching import CoachRequestRepository

_COLUMNS = "id, user_id, telegram_user_id, answers_json, status, created_at"


@dataclass
class SupabaseCoachRequestRepository(CoachRequestRepository):
    """Supabase implementation for coach requests."""

    client: Client

    def create_request(
        self, user_id: UUID, telegram_user_id: int, answers: CoachQuestionnaire
    ) -> CoachRequest:
        """Insert a request with status ``new`` and return it."""
        response = (
            self.client.table("coach_requests")
            .insert(
                {
                    "user_id": str(user_id),
                    "telegram_user_id": telegram_user_id,
                    "answers_json": {
                        "goal": answers.goal,
                        "constraints": answers.constraints,
                        "stats": answers.stats,
                        "contact": answers.contact,
                    },
                    "status": CoachRequestStatus.NEW.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise StorageError("Failed to create coach request")
        return _parse_request(response.data[0])

    def get_request(self, request_id: UUID) -> CoachRequest | None:
        """Return a request by id, if present."""
        response = (
            self.client.table("coach_requests")
            .select(_COLUMNS)
            .eq("id", str(request_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_request(response.data[0])

    def list_requests(
        self, status: CoachRequestStatus | None, limit: int
    ) -> list[CoachRequest]:
        """Return the newest requests, optionally filtered by status."""
        query = self.client.table("coach_requests").select(_COLUMNS)
        if status is not None:
            query = query.eq("status", status.value)
        response = query.order("created_at", desc=True).limit(limit).execute()
        return [_parse_request(row) for row in response.data or []]

    def update_status(self, request_id: UUID, status: CoachRequestStatus) -> None:
        """Change the status of a request."""
        self.client.table("coach_requests").update(
            {"status": status.value, "updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(request_id)).execute()


def _parse_request(row: dict[str, object]) -> CoachRequest:
    answers = row.get("answers_json") or {}
    return CoachRequest(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        telegram_user_id=int(row["telegram_user_id"]),
        answers=CoachQuestionnaire(
            goal=str(answers.get("goal", "")),
            constraints=str(answers.get("constraints", "")),
            stats=str(answers.get("stats", "")),
            contact=str(answers.get("contact", "")),
        ),
        status=CoachRequestStatus(row["status"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
