"""Admin service for reporting."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol
from uuid import UUID

from nutrition_diary.domain.admin import AdminUser
from nutrition_diary.domain.entries import FoodEntry
from nutrition_diary.domain.goals import Nutrient
from nutrition_diary.services.aggregation import StatsRepository
from nutrition_diary.services.dates import today_in
from nutrition_diary.services.goals import GoalRepository


class AdminRepository(Protocol):
    """Persistence interface for admin data."""

    def list_users(self) -> list[AdminUser]:
        """Return all users."""

    def get_user(self, user_id: UUID) -> AdminUser | None:
        """Return a single user, if present."""


@dataclass
class AdminService:
    """Service for admin dashboards."""

    admin_repository: AdminRepository
    stats_repository: StatsRepository
    goal_repository: GoalRepository
    timezone_name: str

    def list_users(self) -> list[dict[str, object]]:
        """Return users with entry counts for the last 7 and 30 days."""
        tomorrow = today_in(self.timezone_name) + timedelta(days=1)
        start_7d = tomorrow - timedelta(days=7)
        start_30d = tomorrow - timedelta(days=30)
        summaries = []
        for user in self.admin_repository.list_users():
            entries_30d = self.stats_repository.list_entries(
                user.id, start_30d, tomorrow
            )
            entries_7d = [
                entry for entry in entries_30d if entry.consumed_on >= start_7d
            ]
            summaries.append(
                {
                    **_serialize_user(user),
                    "entries_last_7d": len(entries_7d),
                    "entries_last_30d": len(entries_30d),
                    "active_days_7d": len({entry.consumed_on for entry in entries_7d}),
                }
            )
        return summaries

    def get_user_detail(self, user_id: UUID) -> dict[str, object] | None:
        """Return recent entries and goals for a user."""
        user = self.admin_repository.get_user(user_id)
        if user is None:
            return None
        recent = self.stats_repository.list_recent_entries(user_id, limit=20)
        goals = self.goal_repository.get_goals(user_id)
        return {
            **_serialize_user(user),
            "recent_entries": [_serialize_entry(entry) for entry in recent],
            "goals": {
                nutrient.value: goals.get(nutrient) if goals else None
                for nutrient in Nutrient
            },
        }


def _serialize_user(user: AdminUser) -> dict[str, object]:
    return {
        "id": str(user.id),
        "telegram_user_id": user.telegram_user_id,
        "created_at": _isoformat(user.created_at),
        "last_active_at": _isoformat(user.last_active_at),
    }


def _serialize_entry(entry: FoodEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "consumed_on": entry.consumed_on.isoformat(),
        "raw_text": entry.raw_text,
        "meal_slot": entry.meal_slot.value,
        "created_at": entry.created_at.isoformat(),
    }


def _isoformat(value: date | None) -> str | None:
    return value.isoformat() if value else None
