"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request

from nutrition_diary.api.admin import router as admin_router
from nutrition_diary.api.telegram_models import (
    TelegramCallbackQuery,
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
    TelegramVoice,
)
from nutrition_diary.app_logging import configure_logging
from nutrition_diary.config import parse_allowed_user_ids
from nutrition_diary.containers import AppContainer
from nutrition_diary.domain.entries import LineItem, LoggedEntry, MealSlot
from nutrition_diary.domain.goals import Nutrient, NutrientProgress
from nutrition_diary.domain.stats import (
    DayReport,
    InsufficientData,
    MonthlyTrend,
    WeeklyTrend,
)
from nutrition_diary.errors import DiaryError
from nutrition_diary.formatting import (
    SLOT_TITLES,
    error_message,
    format_day_report,
    format_entry_items,
    format_goals,
    format_logged_entry,
    format_monthly,
    format_progress,
    format_weekly,
)
from nutrition_diary.services.commands import HELP_TEXT
from nutrition_diary.services.dates import parse_summary_request, resolve_day_token
from nutrition_diary.services.goals import (
    GoalService,
    evaluate_progress,
    parse_goal_value,
    parse_nutrient,
)
from nutrition_diary.services.sessions import SessionPrompt, inline_keyboard
from nutrition_diary.telegram_commands import CHAT_MENU_BUTTON, telegram_commands

GENERIC_ERROR = "Something went wrong. Please try again."
RATE_LIMITED = "Too many messages. Please wait a minute and try again."
GOAL_USAGE = (
    "Usage: /goal set <nutrient> <value>, /goal remove <nutrient> or /goal reset."
)
PLAN_INTRO = (
    "A coach can put together a personal nutrition plan for you. "
    "Answer four short questions to send a request."
)

_logger = logging.getLogger(__name__)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    allowed_user_ids = parse_allowed_user_ids(
        container.settings.telegram_allowed_user_ids
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.telegram_client.set_my_commands(
                telegram_commands()
            )
            await app.state.container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            _logger.exception("Failed to sync Telegram bot commands")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        user_id = _extract_user_id(update)
        if user_id is not None and not _is_user_allowed(user_id, allowed_user_ids):
            if update.callback_query:
                await state_container.telegram_client.answer_callback_query(
                    update.callback_query.id,
                    text="Not authorized.",
                )
                return {"status": "ok"}
            if update.message:
                await state_container.telegram_client.send_message(
                    chat_id=update.message.chat.id,
                    text="This bot is private.",
                )
                return {"status": "ok"}

        chat_id = _extract_chat_id(update)
        try:
            if update.callback_query:
                await _handle_callback(state_container, update.callback_query)
            elif update.message:
                await _handle_message(state_container, update.message)
        except Exception as exc:
            if isinstance(exc, DiaryError):
                _logger.warning(
                    "Update %s rejected: %s", update.update_id, type(exc).__name__
                )
            else:
                _logger.exception(
                    "Failed to handle Telegram update",
                    extra={"update_id": update.update_id},
                )
            if chat_id is not None:
                await state_container.telegram_client.send_message(
                    chat_id=chat_id, text=_format_error(state_container, exc)
                )
        return {"status": "ok"}

    return app


async def _handle_message(container: AppContainer, message: TelegramMessage) -> None:
    chat_id = message.chat.id
    telegram_user_id = message.from_user.id
    text = (message.text or "").strip()
    if text.startswith("/"):
        await _handle_command(container, message, text)
        return

    user = container.user_service.ensure_user(telegram_user_id)
    if message.voice:
        voice = message.voice

        async def log_voice() -> LoggedEntry:
            return await _log_voice(container, user.id, voice)

        await _run_intake(
            container, user.id, telegram_user_id, chat_id, "voice", log_voice
        )
        return

    if message.photo:
        photo = _select_largest_photo(message.photo)

        async def log_photo() -> LoggedEntry:
            image_bytes = await container.telegram_file_client.download_file_bytes(
                photo.file_id
            )
            return await container.intake_service.log_photo(
                user.id, image_bytes, message.caption
            )

        await _run_intake(
            container, user.id, telegram_user_id, chat_id, "photo", log_photo
        )
        return

    if not text:
        return
    prompt = await container.session_service.handle_text(
        user.id, telegram_user_id, text
    )
    if prompt:
        await _send_prompt(container, chat_id, prompt)
        return
    token = parse_summary_request(text)
    if token is not None:
        await _send_prompt(
            container, chat_id, SessionPrompt(_day_summary(container, user.id, token))
        )
        return

    async def log_text() -> LoggedEntry:
        return await container.intake_service.log_text(user.id, text)

    await _run_intake(container, user.id, telegram_user_id, chat_id, "text", log_text)


async def _log_voice(
    container: AppContainer, user_id: UUID, voice: TelegramVoice
) -> LoggedEntry:
    """Check the duration first so long notes are never downloaded."""
    container.intake_service.check_voice_duration(voice.duration)
    audio = await container.telegram_file_client.download_file_bytes(voice.file_id)
    return await container.intake_service.log_voice(user_id, audio, voice.duration)


async def _run_intake(  # noqa: PLR0913
    container: AppContainer,
    user_id: UUID,
    telegram_user_id: int,
    chat_id: int,
    kind: str,
    run: Callable[[], Awaitable[LoggedEntry]],
) -> None:
    if not container.rate_limiter.allow(telegram_user_id):
        await container.telegram_client.send_message(chat_id=chat_id, text=RATE_LIMITED)
        return
    started = time.perf_counter()
    ok = False
    try:
        logged = await run()
        ok = True
    finally:
        latency_ms = round((time.perf_counter() - started) * 1000)
        container.usage_service.record(user_id, kind, latency_ms, ok)
    await container.telegram_client.send_message(
        chat_id=chat_id,
        text=format_logged_entry(logged),
        reply_markup=_entry_keyboard(logged.entry.id),
    )


async def _handle_command(
    container: AppContainer, message: TelegramMessage, text: str
) -> None:
    parts = text.split()
    command = parts[0].split("@", maxsplit=1)[0].lower()
    if command == "/start":
        await container.start_command_handler.handle(
            telegram_user_id=message.from_user.id,
            chat_id=message.chat.id,
        )
        return
    if command == "/help":
        await container.telegram_client.send_message(
            chat_id=message.chat.id, text=HELP_TEXT
        )
        return
    user = container.user_service.ensure_user(message.from_user.id)
    prompt = _command_reply(container, user.id, command, parts[1:])
    await _send_prompt(container, message.chat.id, prompt)


def _command_reply(  # noqa: PLR0911
    container: AppContainer, user_id: UUID, command: str, args: list[str]
) -> SessionPrompt:
    if command == "/day":
        token = args[0] if args else "today"
        return SessionPrompt(_day_summary(container, user_id, token))
    if command == "/week":
        weekly = container.trend_analyzer.weekly(user_id)
        return SessionPrompt(
            format_weekly(weekly, _average_progress(container, user_id, weekly))
        )
    if command == "/month":
        monthly = container.trend_analyzer.monthly(user_id)
        return SessionPrompt(
            format_monthly(monthly, _average_progress(container, user_id, monthly))
        )
    if command == "/goals":
        return _goals_prompt(container, user_id)
    if command == "/goal":
        return SessionPrompt(_goal_command(container.goal_service, user_id, args))
    if command == "/plan":
        return SessionPrompt(
            PLAN_INTRO, inline_keyboard([("Start questionnaire", "coach:new")])
        )
    if command == "/cancel":
        cancelled = container.session_service.cancel(user_id)
        return cancelled or SessionPrompt("Nothing to cancel.")
    return SessionPrompt("Unknown command. Send /help for the list.")


def _day_summary(container: AppContainer, user_id: UUID, token: str) -> str:
    """Day report; goal progress is attached only for today."""
    today = container.aggregator.today()
    date_range = resolve_day_token(token, today)
    report = container.aggregator.day_report(user_id, date_range)
    progress = None
    if date_range.start == today and isinstance(report, DayReport):
        goals = container.goal_service.get_goals(user_id)
        progress = evaluate_progress(goals, report.totals)
    return format_day_report(report, progress)


def _average_progress(
    container: AppContainer,
    user_id: UUID,
    result: WeeklyTrend | MonthlyTrend | InsufficientData,
) -> dict[Nutrient, NutrientProgress] | None:
    """Compare a period's average day with the goals that are set."""
    if isinstance(result, InsufficientData):
        return None
    goals = container.goal_service.get_goals(user_id)
    if goals.is_empty():
        return None
    return evaluate_progress(goals, result.current.average)


def _goals_prompt(container: AppContainer, user_id: UUID) -> SessionPrompt:
    goals = container.goal_service.get_goals(user_id)
    sections = [format_goals(goals)]
    if not goals.is_empty():
        report = container.aggregator.day_report(user_id)
        totals = report.totals if isinstance(report, DayReport) else None
        sections.append(format_progress(evaluate_progress(goals, totals)))
    sections.append("Pick a nutrient to set its goal.")
    return SessionPrompt(
        "\n\n".join(sections),
        inline_keyboard(
            [
                (nutrient.value.capitalize(), f"goal:{nutrient.value}")
                for nutrient in Nutrient
            ]
        ),
    )


def _goal_command(goal_service: GoalService, user_id: UUID, args: list[str]) -> str:
    action = args[0].lower() if args else ""
    if action == "reset" and len(args) == 1:
        goal_service.reset_goals(user_id)
        return "All goals cleared."
    if action == "remove" and len(args) == 2:  # noqa: PLR2004
        return format_goals(goal_service.remove_goal(user_id, parse_nutrient(args[1])))
    if action == "set" and len(args) == 3:  # noqa: PLR2004
        nutrient = parse_nutrient(args[1])
        value = parse_goal_value(nutrient, args[2])
        return format_goals(goal_service.set_goal(user_id, nutrient, value))
    return GOAL_USAGE


async def _handle_callback(
    container: AppContainer, callback: TelegramCallbackQuery
) -> None:
    await container.telegram_client.answer_callback_query(callback.id)
    if not callback.data:
        return
    user = container.user_service.ensure_user(callback.from_user.id)
    prompt = _callback_reply(container, user.id, callback.data)
    if prompt is None:
        _logger.info("Ignoring unknown callback data %r", callback.data)
        return
    chat_id = callback.message.chat.id if callback.message else callback.from_user.id
    await _send_prompt(container, chat_id, prompt)


def _callback_reply(  # noqa: PLR0911, PLR0912
    container: AppContainer, user_id: UUID, data: str
) -> SessionPrompt | None:
    """Dispatch ``action:payload`` callback data."""
    action, _, payload = data.partition(":")
    if action == "slot":
        raw_slot, _, raw_id = payload.partition(":")
        entry_id = _parse_uuid(raw_id)
        if entry_id is None or raw_slot not in MealSlot.assignable():
            return None
        entry = container.entry_service.assign_meal_slot(
            user_id, entry_id, MealSlot(raw_slot)
        )
        return SessionPrompt(f"Saved as {SLOT_TITLES[entry.meal_slot].lower()}.")
    if action == "coach":
        if payload == "new":
            return container.session_service.begin_coach_request(user_id)
        if payload == "cancel":
            cancelled = container.session_service.cancel(user_id)
            return cancelled or SessionPrompt("Nothing to cancel.")
        return None
    if action == "goal":
        if payload not in {nutrient.value for nutrient in Nutrient}:
            return None
        return container.session_service.begin_goal_input(user_id, Nutrient(payload))

    target_id = _parse_uuid(payload)
    if target_id is None:
        return None
    if action == "mv":
        entry = container.entry_service.move_to_previous_day(user_id, target_id)
        return SessionPrompt(f"Moved to {entry.consumed_on:%d.%m.%Y}.")
    if action == "del":
        container.entry_service.delete_entry(user_id, target_id)
        return SessionPrompt("Entry deleted.")
    if action == "edit":
        items = container.entry_service.list_items(user_id, target_id)
        return SessionPrompt(
            format_entry_items(items), _items_keyboard(items) if items else None
        )
    if action == "item":
        item = container.entry_service.get_item(user_id, target_id)
        return container.session_service.begin_gram_edit(user_id, item)
    return None


async def _send_prompt(
    container: AppContainer, chat_id: int, prompt: SessionPrompt
) -> None:
    await container.telegram_client.send_message(
        chat_id=chat_id, text=prompt.text, reply_markup=prompt.reply_markup
    )


def _entry_keyboard(entry_id: UUID) -> dict:
    return {
        "inline_keyboard": [
            [
                {
                    "text": SLOT_TITLES[slot],
                    "callback_data": f"slot:{slot.value}:{entry_id}",
                }
                for slot in MealSlot.assignable()
            ],
            [
                {"text": "Edit grams", "callback_data": f"edit:{entry_id}"},
                {"text": "Previous day", "callback_data": f"mv:{entry_id}"},
                {"text": "Delete", "callback_data": f"del:{entry_id}"},
            ],
        ]
    }


def _items_keyboard(items: list[LineItem]) -> dict:
    return inline_keyboard(
        [(f"{item.name} ({item.grams:g} g)", f"item:{item.id}") for item in items]
    )


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _extract_user_id(update: TelegramUpdate) -> int | None:
    """Extract Telegram user id from update, if present."""
    if update.callback_query:
        return update.callback_query.from_user.id
    if update.message:
        return update.message.from_user.id
    return None


def _extract_chat_id(update: TelegramUpdate) -> int | None:
    """Return the chat that should receive replies for the update."""
    if update.callback_query:
        callback = update.callback_query
        return callback.message.chat.id if callback.message else callback.from_user.id
    if update.message:
        return update.message.chat.id
    return None


def _is_user_allowed(user_id: int, allowed: set[int] | None) -> bool:
    """Return true when the user is allowed to interact with the bot."""
    return allowed is None or user_id in allowed


def _parse_uuid(raw: str) -> UUID | None:
    try:
        return UUID(raw)
    except ValueError:
        return None


def _format_error(container: AppContainer, exc: Exception) -> str:
    """Return the user-facing message for an error, with local debug info."""
    message = error_message(exc)
    if message is not None:
        return message
    if container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{GENERIC_ERROR} (debug: {detail})"
    return GENERIC_ERROR
