"""Tests for admin authentication and reporting."""

from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

from fastapi.testclient import TestClient

from nutrition_diary.api.app import create_app
from nutrition_diary.containers import AppContainer
from nutrition_diary.domain.admin import AdminUser
from nutrition_diary.domain.goals import Nutrient
from nutrition_diary.services.dates import today_in
from tests.conftest import (
    TIMEZONE,
    InMemoryAdminRepository,
    InMemoryEntryRepository,
    InMemoryGoalRepository,
    make_draft,
)


def test_admin_health_requires_token(container: AppContainer) -> None:
    app = create_app(container)
    client = TestClient(app)

    response = client.get("/admin/health")

    assert response.status_code == 401


def test_admin_health_rejects_wrong_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health", headers={"X-Admin-Token": "nope"})

    assert response.status_code == 401


def test_admin_health_accepts_valid_token(container: AppContainer) -> None:
    app = create_app(container)
    client = TestClient(app)

    response = client.get("/admin/health", headers={"X-Admin-Token": "admin-token"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_users_counts_recent_entries(
    container: AppContainer,
    admin_repository: InMemoryAdminRepository,
    entry_repository: InMemoryEntryRepository,
) -> None:
    user = AdminUser(
        id=uuid4(),
        telegram_user_id=111,
        created_at=datetime(2025, 1, 1, tzinfo=UTC),
        last_active_at=None,
    )
    admin_repository.users.append(user)
    today = today_in(TIMEZONE)
    entry_repository.add_entry(user.id, today, [make_draft()])
    entry_repository.add_entry(user.id, today, [make_draft()])
    entry_repository.add_entry(user.id, today - timedelta(days=10), [make_draft()])
    entry_repository.add_entry(user.id, today - timedelta(days=40), [make_draft()])

    [summary] = container.admin_service.list_users()

    assert summary["telegram_user_id"] == 111
    assert summary["created_at"] == "2025-01-01T00:00:00+00:00"
    assert summary["last_active_at"] is None
    assert summary["entries_last_7d"] == 2
    assert summary["entries_last_30d"] == 3
    assert summary["active_days_7d"] == 1


def test_user_detail_includes_goals_and_recent_entries(
    container: AppContainer,
    admin_repository: InMemoryAdminRepository,
    entry_repository: InMemoryEntryRepository,
    goal_repository: InMemoryGoalRepository,
) -> None:
    user = AdminUser(
        id=uuid4(), telegram_user_id=5, created_at=None, last_active_at=None
    )
    admin_repository.users.append(user)
    entry_repository.add_entry(user.id, date(2025, 9, 20), [make_draft()])
    goal_repository.upsert_goal(user.id, Nutrient.CALORIES, 2100)

    detail = container.admin_service.get_user_detail(user.id)

    assert detail is not None
    assert detail["goals"] == {
        "calories": 2100,
        "protein": None,
        "fat": None,
        "carbs": None,
        "fiber": None,
    }
    [entry] = detail["recent_entries"]
    assert entry["consumed_on"] == "2025-09-20"
    assert entry["meal_slot"] == "unset"


def test_user_detail_of_unknown_user(container: AppContainer) -> None:
    assert container.admin_service.get_user_detail(uuid4()) is None
