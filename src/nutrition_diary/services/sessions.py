"""Per-user conversation state for multi-step flows."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_diary.domain.coaching import CoachQuestionnaire
from nutrition_diary.domain.entries import LineItem
from nutrition_diary.domain.goals import GOAL_RANGES, Nutrient
from nutrition_diary.domain.sessions import SessionRecord, SessionStatus
from nutrition_diary.errors import (
    GoalOutOfRangeError,
    InvalidGoalValueError,
    InvalidGramsError,
    ItemNotFoundError,
    ZeroBaselineError,
)
from nutrition_diary.formatting import (
    error_message,
    format_goals,
    format_item_corrected,
)
from nutrition_diary.services.aggregation import EntryAggregator
from nutrition_diary.services.coaching import CoachRequestService
from nutrition_diary.services.corrections import GramCorrectionService, parse_grams
from nutrition_diary.services.goals import GoalService, parse_goal_value

COACH_CANCEL_CALLBACK = "coach:cancel"

# status -> (answer key, next status); None ends the questionnaire
_COACH_STEPS: dict[SessionStatus, tuple[str, SessionStatus | None]] = {
    SessionStatus.COACH_GOAL: ("goal", SessionStatus.COACH_CONSTRAINTS),
    SessionStatus.COACH_CONSTRAINTS: ("constraints", SessionStatus.COACH_STATS),
    SessionStatus.COACH_STATS: ("stats", SessionStatus.COACH_CONTACT),
    SessionStatus.COACH_CONTACT: ("contact", None),
}

_COACH_QUESTIONS = {
    SessionStatus.COACH_GOAL: (
        "Step 1/4. What is your goal? For example: lose 5 kg, gain muscle, "
        "eat more regularly."
    ),
    SessionStatus.COACH_CONSTRAINTS: (
        "Step 2/4. Any allergies, intolerances or foods you avoid?"
    ),
    SessionStatus.COACH_STATS: "Step 3/4. Your height, weight and age?",
    SessionStatus.COACH_CONTACT: (
        "Step 4/4. How should the coach contact you? A Telegram handle or phone."
    ),
}


class SessionRepository(Protocol):
    """Persistence interface for per-user session state."""

    def get_session(self, user_id: UUID) -> SessionRecord | None:
        """Return the user's active session, if any."""

    def save_session(
        self, user_id: UUID, status: SessionStatus, context: dict[str, object]
    ) -> None:
        """Create or replace the user's session."""

    def clear_session(self, user_id: UUID) -> None:
        """Remove the user's session."""


@dataclass(frozen=True)
class SessionPrompt:
    """Represents the next user-facing prompt."""

    text: str
    reply_markup: dict | None = None


@dataclass
class SessionService:
    """State machine for gram edits, goal input and the coach questionnaire."""

    session_repository: SessionRepository
    correction_service: GramCorrectionService
    goal_service: GoalService
    coach_request_service: CoachRequestService
    aggregator: EntryAggregator

    def begin_gram_edit(self, user_id: UUID, item: LineItem) -> SessionPrompt:
        """Wait for a corrected gram amount for an item."""
        self.session_repository.save_session(
            user_id, SessionStatus.AWAITING_GRAMS, {"item_id": str(item.id)}
        )
        return SessionPrompt(
            text=(
                f"{item.name}: {item.grams:g} g now. "
                "Send the correct amount in grams, or /cancel."
            )
        )

    def begin_goal_input(self, user_id: UUID, nutrient: Nutrient) -> SessionPrompt:
        """Wait for a goal value for a nutrient."""
        self.session_repository.save_session(
            user_id,
            SessionStatus.AWAITING_GOAL_VALUE,
            {"nutrient": nutrient.value},
        )
        goal_range = GOAL_RANGES[nutrient]
        return SessionPrompt(
            text=(
                f"Send your daily {nutrient.value} goal in {nutrient.unit_label} "
                f"({goal_range.minimum:g}-{goal_range.maximum:g}), or /cancel."
            )
        )

    def begin_coach_request(self, user_id: UUID) -> SessionPrompt:
        """Start the coach questionnaire from its first step."""
        self.session_repository.save_session(user_id, SessionStatus.COACH_GOAL, {})
        return _coach_prompt(SessionStatus.COACH_GOAL)

    def cancel(self, user_id: UUID) -> SessionPrompt | None:
        """Leave whatever flow is active; None when nothing was active."""
        session = self.session_repository.get_session(user_id)
        if session is None:
            return None
        self.session_repository.clear_session(user_id)
        return SessionPrompt(text="Cancelled.")

    async def handle_text(
        self, user_id: UUID, telegram_user_id: int, text: str
    ) -> SessionPrompt | None:
        """Consume a text reply for the active flow; None when none is active."""
        session = self.session_repository.get_session(user_id)
        if session is None:
            return None
        if session.status is SessionStatus.AWAITING_GRAMS:
            return self._apply_grams(session, text)
        if session.status is SessionStatus.AWAITING_GOAL_VALUE:
            return self._apply_goal(session, text)
        return await self._advance_coach(session, telegram_user_id, text)

    def _apply_grams(self, session: SessionRecord, text: str) -> SessionPrompt:
        try:
            grams = parse_grams(text)
        except InvalidGramsError as exc:
            return SessionPrompt(text=str(error_message(exc)))
        item_id = UUID(str(session.context["item_id"]))
        try:
            item = self.correction_service.correct_grams(
                session.user_id, item_id, grams
            )
        except (ItemNotFoundError, ZeroBaselineError) as exc:
            self.session_repository.clear_session(session.user_id)
            return SessionPrompt(text=str(error_message(exc)))
        self.session_repository.clear_session(session.user_id)
        report = self.aggregator.day_report(session.user_id)
        return SessionPrompt(text=format_item_corrected(item, report))

    def _apply_goal(self, session: SessionRecord, text: str) -> SessionPrompt:
        nutrient = Nutrient(str(session.context["nutrient"]))
        try:
            value = parse_goal_value(nutrient, text)
        except (InvalidGoalValueError, GoalOutOfRangeError) as exc:
            return SessionPrompt(text=str(error_message(exc)))
        goals = self.goal_service.set_goal(session.user_id, nutrient, value)
        self.session_repository.clear_session(session.user_id)
        return SessionPrompt(text=format_goals(goals))

    async def _advance_coach(
        self, session: SessionRecord, telegram_user_id: int, text: str
    ) -> SessionPrompt:
        answer = text.strip()
        if not answer:
            return _coach_prompt(session.status)
        key, next_status = _COACH_STEPS[session.status]
        context = dict(session.context)
        context[key] = answer
        if next_status is not None:
            self.session_repository.save_session(
                session.user_id, next_status, context
            )
            return _coach_prompt(next_status)

        answers = CoachQuestionnaire(
            goal=str(context["goal"]),
            constraints=str(context["constraints"]),
            stats=str(context["stats"]),
            contact=str(context["contact"]),
        )
        self.session_repository.clear_session(session.user_id)
        await self.coach_request_service.submit(
            session.user_id, telegram_user_id, answers
        )
        return SessionPrompt(
            text="Thanks! Your request was sent to the coach, expect a reply soon."
        )


def _coach_prompt(status: SessionStatus) -> SessionPrompt:
    return SessionPrompt(
        text=_COACH_QUESTIONS[status],
        reply_markup=inline_keyboard([("Cancel", COACH_CANCEL_CALLBACK)]),
    )


def inline_keyboard(buttons: list[tuple[str, str]]) -> dict:
    """Build a Telegram inline keyboard payload."""
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": callback}] for label, callback in buttons
        ]
    }
