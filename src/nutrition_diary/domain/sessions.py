"""Domain models for per-user chat sessions."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class SessionStatus(StrEnum):
    """States a user's pending conversation can be in."""

    AWAITING_GRAMS = "AWAITING_GRAMS"
    AWAITING_GOAL_VALUE = "AWAITING_GOAL_VALUE"
    COACH_GOAL = "COACH_GOAL"
    COACH_CONSTRAINTS = "COACH_CONSTRAINTS"
    COACH_STATS = "COACH_STATS"
    COACH_CONTACT = "COACH_CONTACT"


@dataclass(frozen=True)
class SessionRecord:
    """Represents the persisted session state of a user."""

    user_id: UUID
    status: SessionStatus
    context: dict[str, object]
