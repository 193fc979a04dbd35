"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_diary.adapters.openai_extraction_client import OpenAIExtractionClient
from nutrition_diary.adapters.supabase_admin_repository import SupabaseAdminRepository
from nutrition_diary.adapters.supabase_coach_repository import (
    SupabaseCoachRequestRepository,
)
from nutrition_diary.adapters.supabase_entry_repository import SupabaseEntryRepository
from nutrition_diary.adapters.supabase_goal_repository import SupabaseGoalRepository
from nutrition_diary.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from nutrition_diary.adapters.supabase_stats_repository import SupabaseStatsRepository
from nutrition_diary.adapters.supabase_usage_repository import SupabaseUsageRepository
from nutrition_diary.adapters.supabase_user_repository import SupabaseUserRepository
from nutrition_diary.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from nutrition_diary.adapters.telegram_file_client import (
    HttpxTelegramFileClient,
    TelegramFileClient,
)
from nutrition_diary.config import Settings
from nutrition_diary.services.admin import AdminService
from nutrition_diary.services.aggregation import EntryAggregator
from nutrition_diary.services.coaching import CoachRequestService
from nutrition_diary.services.commands import StartCommandHandler
from nutrition_diary.services.corrections import GramCorrectionService
from nutrition_diary.services.entries import FoodEntryService
from nutrition_diary.services.extraction import ExtractionService
from nutrition_diary.services.goals import GoalService
from nutrition_diary.services.intake import IntakeService
from nutrition_diary.services.rate_limit import SlidingWindowRateLimiter
from nutrition_diary.services.sessions import SessionService
from nutrition_diary.services.trends import PeriodTrendAnalyzer
from nutrition_diary.services.usage import UsageService
from nutrition_diary.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient
    user_service: UserService
    start_command_handler: StartCommandHandler
    entry_service: FoodEntryService
    intake_service: IntakeService
    aggregator: EntryAggregator
    trend_analyzer: PeriodTrendAnalyzer
    goal_service: GoalService
    session_service: SessionService
    coach_request_service: CoachRequestService
    usage_service: UsageService
    rate_limiter: SlidingWindowRateLimiter
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    timezone_name = resolved_settings.reference_timezone
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    entry_repository = SupabaseEntryRepository(supabase_client)
    stats_repository = SupabaseStatsRepository(supabase_client)
    goal_repository = SupabaseGoalRepository(supabase_client)
    session_repository = SupabaseSessionRepository(supabase_client)
    coach_repository = SupabaseCoachRequestRepository(supabase_client)
    usage_repository = SupabaseUsageRepository(supabase_client)
    admin_repository = SupabaseAdminRepository(supabase_client)

    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token
    )
    openai_client = OpenAIExtractionClient.create(resolved_settings.openai_api_key)

    user_service = UserService(user_repository)
    entry_service = FoodEntryService(entry_repository)
    extraction_service = ExtractionService(
        client=openai_client,
        model=resolved_settings.openai_model,
        transcription_model=resolved_settings.openai_transcription_model,
        store=resolved_settings.openai_store,
        timezone_name=timezone_name,
    )
    intake_service = IntakeService(
        extraction_service=extraction_service,
        entry_service=entry_service,
        timezone_name=timezone_name,
        timeout_seconds=resolved_settings.extraction_timeout_seconds,
        max_voice_seconds=resolved_settings.max_voice_seconds,
    )
    aggregator = EntryAggregator(stats_repository, timezone_name)
    goal_service = GoalService(goal_repository)
    coach_request_service = CoachRequestService(
        repository=coach_repository,
        telegram_client=telegram_client,
        trainer_telegram_id=resolved_settings.trainer_telegram_id,
    )
    session_service = SessionService(
        session_repository=session_repository,
        correction_service=GramCorrectionService(entry_repository),
        goal_service=goal_service,
        coach_request_service=coach_request_service,
        aggregator=aggregator,
    )
    admin_service = AdminService(
        admin_repository=admin_repository,
        stats_repository=stats_repository,
        goal_repository=goal_repository,
        timezone_name=timezone_name,
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
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
            limit=resolved_settings.rate_limit_events,
            window_seconds=resolved_settings.rate_limit_window_seconds,
        ),
        admin_service=admin_service,
        close_resources=close_resources,
    )
