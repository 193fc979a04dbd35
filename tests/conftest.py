"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from nutrition_diary.adapters.telegram_client import TelegramClient
from nutrition_diary.config import Settings
from nutrition_diary.containers import AppContainer
from nutrition_diary.domain.admin import AdminUser, UsageEvent
from nutrition_diary.domain.coaching import (
    CoachQuestionnaire,
    CoachRequest,
    CoachRequestStatus,
)
from nutrition_diary.domain.entries import FoodEntry, LineItem, LineItemDraft, MealSlot
from nutrition_diary.domain.goals import GoalSet, Nutrient
from nutrition_diary.domain.models import UserRecord
from nutrition_diary.domain.nutrition import MacroProfile, Unit
from nutrition_diary.domain.sessions import SessionRecord, SessionStatus
from nutrition_diary.domain.stats import ItemRow
from nutrition_diary.services.admin import AdminRepository, AdminService
from nutrition_diary.services.aggregation import EntryAggregator, StatsRepository
from nutrition_diary.services.coaching import (
    CoachRequestRepository,
    CoachRequestService,
)
from nutrition_diary.services.commands import StartCommandHandler
from nutrition_diary.services.corrections import GramCorrectionService
from nutrition_diary.services.entries import EntryRepository, FoodEntryService
from nutrition_diary.services.extraction import ExtractionClient, ExtractionService
from nutrition_diary.services.goals import GoalRepository, GoalService
from nutrition_diary.services.intake import IntakeService
from nutrition_diary.services.rate_limit import SlidingWindowRateLimiter
from nutrition_diary.services.sessions import SessionRepository, SessionService
from nutrition_diary.services.trends import PeriodTrendAnalyzer
from nutrition_diary.services.usage import UsageRepository, UsageService
from nutrition_diary.services.users import UserRepository, UserService

TIMEZONE = "Europe/Warsaw"


def make_draft(  # noqa: PLR0913
    name: str = "oatmeal",
    grams: float = 100.0,
    kcal: float = 100.0,
    protein: float = 10.0,
    fat: float = 5.0,
    carbs: float = 20.0,
    fiber: float = 2.0,
    unit: Unit = Unit.G,
) -> LineItemDraft:
    """Build a resolved line item draft with explicit macros."""
    return LineItemDraft(
        name=name,
        quantity=grams,
        unit=unit,
        grams=grams,
        macros=MacroProfile(
            kcal=kcal, protein=protein, fat=fat, carbs=carbs, fiber=fiber
        ),
    )


def extracted_item_payload(  # noqa: PLR0913
    name: str = "oatmeal",
    quantity: float = 60,
    unit: str = "g",
    kcal: float = 370,
    protein: float = 13,
    fat: float = 7,
    carbs: float = 60,
    fiber: float = 10,
    resolved_grams: float | None = None,
) -> dict[str, object]:
    """Build one item of an extraction payload."""
    return {
        "name": name,
        "quantity": quantity,
        "unit": unit,
        "per100g": {
            "kcal": kcal,
            "protein": protein,
            "fat": fat,
            "carbs": carbs,
            "fiber": fiber,
        },
        "density_g_per_ml": None,
        "piece_grams": None,
        "resolved_grams": resolved_grams,
    }


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[int, UserRecord] = field(default_factory=dict)
    touched: list[UUID] = field(default_factory=list)

    def get_by_telegram_id(self, telegram_user_id: int) -> UserRecord | None:
        return self.users.get(telegram_user_id)

    def create_user(self, telegram_user_id: int) -> UserRecord:
        user = UserRecord(id=uuid4(), telegram_user_id=telegram_user_id)
        self.users[telegram_user_id] = user
        return user

    def touch_last_active(self, user_id: UUID) -> None:
        self.touched.append(user_id)


@dataclass
class InMemoryEntryRepository(EntryRepository, StatsRepository):
    """In-memory entry and stats repository for tests."""

    entries: dict[UUID, FoodEntry] = field(default_factory=dict)
    items: dict[UUID, LineItem] = field(default_factory=dict)
    created: int = 0

    def _next_timestamp(self) -> datetime:
        self.created += 1
        return datetime(2025, 1, 1, tzinfo=UTC) + timedelta(seconds=self.created)

    def create_entry(
        self,
        user_id: UUID,
        consumed_on: date,
        raw_text: str,
        items: list[LineItemDraft],
    ) -> UUID:
        entry = FoodEntry(
            id=uuid4(),
            user_id=user_id,
            consumed_on=consumed_on,
            raw_text=raw_text,
            meal_slot=MealSlot.UNSET,
            created_at=self._next_timestamp(),
        )
        self.entries[entry.id] = entry
        for draft in items:
            item = LineItem(
                id=uuid4(),
                entry_id=entry.id,
                name=draft.name,
                quantity=draft.quantity,
                unit=draft.unit,
                grams=draft.grams,
                macros=draft.macros,
                manually_edited=False,
                created_at=self._next_timestamp(),
            )
            self.items[item.id] = item
        return entry.id

    def add_entry(
        self,
        user_id: UUID,
        consumed_on: date,
        items: list[LineItemDraft],
        slot: MealSlot = MealSlot.UNSET,
    ) -> UUID:
        """Seed an entry directly, optionally with a meal slot."""
        entry_id = self.create_entry(user_id, consumed_on, "seeded", items)
        if slot is not MealSlot.UNSET:
            self.set_meal_slot(entry_id, slot)
        return entry_id

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        return self.entries.get(entry_id)

    def list_items(self, entry_id: UUID) -> list[LineItem]:
        return sorted(
            (item for item in self.items.values() if item.entry_id == entry_id),
            key=lambda item: item.created_at,
        )

    def get_item(self, item_id: UUID) -> LineItem | None:
        return self.items.get(item_id)

    def update_item(self, item_id: UUID, grams: float, macros: MacroProfile) -> None:
        self.items[item_id] = replace(
            self.items[item_id], grams=grams, macros=macros, manually_edited=True
        )

    def set_meal_slot(self, entry_id: UUID, slot: MealSlot) -> None:
        self.entries[entry_id] = replace(self.entries[entry_id], meal_slot=slot)

    def set_consumed_on(self, entry_id: UUID, consumed_on: date) -> None:
        self.entries[entry_id] = replace(
            self.entries[entry_id], consumed_on=consumed_on
        )

    def delete_entry(self, entry_id: UUID) -> None:
        self.entries.pop(entry_id, None)
        self.items = {
            item_id: item
            for item_id, item in self.items.items()
            if item.entry_id != entry_id
        }

    def list_item_rows(self, user_id: UUID, start: date, end: date) -> list[ItemRow]:
        entries = {entry.id: entry for entry in self.list_entries(user_id, start, end)}
        return [
            ItemRow(entry=entries[item.entry_id], item=item)
            for item in self.items.values()
            if item.entry_id in entries
        ]

    def list_entries(self, user_id: UUID, start: date, end: date) -> list[FoodEntry]:
        return [
            entry
            for entry in self.entries.values()
            if entry.user_id == user_id and start <= entry.consumed_on < end
        ]

    def list_recent_entries(self, user_id: UUID, limit: int) -> list[FoodEntry]:
        owned = [entry for entry in self.entries.values() if entry.user_id == user_id]
        return sorted(owned, key=lambda entry: entry.created_at, reverse=True)[:limit]


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory goal repository for tests."""

    goals: dict[UUID, GoalSet] = field(default_factory=dict)

    def get_goals(self, user_id: UUID) -> GoalSet | None:
        return self.goals.get(user_id)

    def upsert_goal(
        self, user_id: UUID, nutrient: Nutrient, value: float | None
    ) -> None:
        current = self.goals.get(user_id, GoalSet())
        self.goals[user_id] = replace(current, **{nutrient.value: value})

    def delete_goals(self, user_id: UUID) -> None:
        self.goals.pop(user_id, None)


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[UUID, SessionRecord] = field(default_factory=dict)

    def get_session(self, user_id: UUID) -> SessionRecord | None:
        return self.sessions.get(user_id)

    def save_session(
        self, user_id: UUID, status: SessionStatus, context: dict[str, object]
    ) -> None:
        self.sessions[user_id] = SessionRecord(
            user_id=user_id, status=status, context=dict(context)
        )

    def clear_session(self, user_id: UUID) -> None:
        self.sessions.pop(user_id, None)


@dataclass
class InMemoryCoachRequestRepository(CoachRequestRepository):
    """In-memory coach request repository for tests."""

    requests: dict[UUID, CoachRequest] = field(default_factory=dict)

    def create_request(
        self, user_id: UUID, telegram_user_id: int, answers: CoachQuestionnaire
    ) -> CoachRequest:
        request = CoachRequest(
            id=uuid4(),
            user_id=user_id,
            telegram_user_id=telegram_user_id,
            answers=answers,
            status=CoachRequestStatus.NEW,
            created_at=datetime(2025, 1, 1, tzinfo=UTC)
            + timedelta(minutes=len(self.requests)),
        )
        self.requests[request.id] = request
        return request

    def get_request(self, request_id: UUID) -> CoachRequest | None:
        return self.requests.get(request_id)

    def list_requests(
        self, status: CoachRequestStatus | None, limit: int
    ) -> list[CoachRequest]:
        matching = [
            request
            for request in self.requests.values()
            if status is None or request.status is status
        ]
        return sorted(matching, key=lambda item: item.created_at, reverse=True)[
            :limit
        ]

    def update_status(self, request_id: UUID, status: CoachRequestStatus) -> None:
        self.requests[request_id] = replace(self.requests[request_id], status=status)


@dataclass
class InMemoryUsageRepository(UsageRepository):
    """In-memory usage repository for tests."""

    events: list[UsageEvent] = field(default_factory=list)
    fail: bool = False

    def record_event(self, user_id: UUID, kind: str, latency_ms: int, ok: bool) -> None:
        if self.fail:
            raise RuntimeError("usage table unavailable")
        self.events.append(
            UsageEvent(
                user_id=user_id,
                kind=kind,
                latency_ms=latency_ms,
                ok=ok,
                created_at=datetime.now(tz=UTC),
            )
        )

    def list_events(self, start: datetime, end: datetime) -> list[UsageEvent]:
        return [event for event in self.events if start <= event.created_at < end]


@dataclass
class InMemoryAdminRepository(AdminRepository):
    """In-memory admin repository for tests."""

    users: list[AdminUser] = field(default_factory=list)

    def list_users(self) -> list[AdminUser]:
        return self.users

    def get_user(self, user_id: UUID) -> AdminUser | None:
        for user in self.users:
            if user.id == user_id:
                return user
        return None


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    markups: list[dict | None] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None
    fail_send: bool = False

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        if self.fail_send:
            raise RuntimeError("telegram unavailable")
        self.messages.append((chat_id, text))
        self.markups.append(reply_markup)

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None, show_alert: bool = False
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button


@dataclass
class FakeTelegramFileClient:
    """Fake Telegram file client that returns static bytes."""

    content: bytes = b"fake-file-bytes"
    downloaded: list[str] = field(default_factory=list)

    async def download_file_bytes(self, file_id: str) -> bytes:
        self.downloaded.append(file_id)
        return self.content


@dataclass
class FakeExtractionClient(ExtractionClient):
    """Fake extraction client returning fixed payloads."""

    payload: dict[str, object] = field(
        default_factory=lambda: {"items": [extracted_item_payload()]}
    )
    transcript: str = "oatmeal 60g"
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        prompt: str,
        text: str | None,
        image_data_url: str | None,
        schema: dict[str, object],
    ) -> dict[str, object]:
        self.calls.append({"text": text, "image_data_url": image_data_url})
        if self.error is not None:
            raise self.error
        return self.payload

    async def transcribe(self, *, model: str, audio: bytes, filename: str) -> str:
        self.calls.append({"audio": audio, "filename": filename})
        if self.error is not None:
            raise self.error
        return self.transcript


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        openai_api_key="openai-key",
        reference_timezone=TIMEZONE,
        environment="test",
    )


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def entry_repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def coach_repository() -> InMemoryCoachRequestRepository:
    return InMemoryCoachRequestRepository()


@pytest.fixture
def usage_repository() -> InMemoryUsageRepository:
    return InMemoryUsageRepository()


@pytest.fixture
def admin_repository() -> InMemoryAdminRepository:
    return InMemoryAdminRepository()


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def telegram_file_client() -> FakeTelegramFileClient:
    return FakeTelegramFileClient()


@pytest.fixture
def extraction_client() -> FakeExtractionClient:
    return FakeExtractionClient()


@pytest.fixture
def aggregator(entry_repository: InMemoryEntryRepository) -> EntryAggregator:
    return EntryAggregator(entry_repository, TIMEZONE)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    user_repository: InMemoryUserRepository,
    entry_repository: InMemoryEntryRepository,
    goal_repository: InMemoryGoalRepository,
    session_repository: InMemorySessionRepository,
    coach_repository: InMemoryCoachRequestRepository,
    usage_repository: InMemoryUsageRepository,
    admin_repository: InMemoryAdminRepository,
    telegram_client: FakeTelegramClient,
    telegram_file_client: FakeTelegramFileClient,
    extraction_client: FakeExtractionClient,
) -> AppContainer:
    user_service = UserService(user_repository)
    entry_service = FoodEntryService(entry_repository)
    extraction_service = ExtractionService(
        client=extraction_client,
        model=settings.openai_model,
        transcription_model=settings.openai_transcription_model,
        store=settings.openai_store,
        timezone_name=TIMEZONE,
    )
    intake_service = IntakeService(
        extraction_service=extraction_service,
        entry_service=entry_service,
        timezone_name=TIMEZONE,
        timeout_seconds=settings.extraction_timeout_seconds,
        max_voice_seconds=settings.max_voice_seconds,
    )
    aggregator = EntryAggregator(entry_repository, TIMEZONE)
    goal_service = GoalService(goal_repository)
    coach_request_service = CoachRequestService(
        repository=coach_repository,
        telegram_client=telegram_client,
        trainer_telegram_id=555,
    )
    session_service = SessionService(
        session_repository=session_repository,
        correction_service=GramCorrectionService(entry_repository),
        goal_service=goal_service,
        coach_request_service=coach_request_service,
        aggregator=aggregator,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        user_service=user_service,
        start_command_handler=StartCommandHandler(user_service, telegram_client),
        entry_service=entry_service,
        intake_service=intake_service,
        aggregator=aggregator,
        trend_analyzer=PeriodTrendAnalyzer(aggregator),
        goal_service=goal_service,
        session_service=session_service,
        coach_request_service=coach_request_service,
        usage_service=UsageService(usage_repository),
        rate_limiter=SlidingWindowRateLimiter(
            limit=settings.rate_limit_events,
            window_seconds=settings.rate_limit_window_seconds,
        ),
        admin_service=AdminService(
            admin_repository=admin_repository,
            stats_repository=entry_repository,
            goal_repository=goal_repository,
            timezone_name=TIMEZONE,
        ),
        close_resources=close_resources,
    )
