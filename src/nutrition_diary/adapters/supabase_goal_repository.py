"""Supabase-backed goal repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_diary.domain.goals import GoalSet, Nutrient
from nutrition_diary.services.goals import GoalRepository


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation for per-user goals, one row per user."""

    client: Client

    def get_goals(self, user_id: UUID) -> GoalSet | None:
        """Return the user's goal row, if present."""
        response = (
            self.client.table("goals")
            .select("calories, protein, fat, carbs, fiber")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return GoalSet(
            **{
                nutrient.value: _optional_float(row.get(nutrient.value))
                for nutrient in Nutrient
            }
        )

    def upsert_goal(
        self, user_id: UUID, nutrient: Nutrient, value: float | None
    ) -> None:
        """Create or update one nutrient column of the goal row."""
        self.client.table("goals").upsert(
            {
                "user_id": str(user_id),
                nutrient.value: value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def delete_goals(self, user_id: UUID) -> None:
        """Delete the user's goal row."""
        self.client.table("goals").delete().eq("user_id", str(user_id)).execute()


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None
