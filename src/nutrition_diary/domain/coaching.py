"""Domain models for coach requests."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class CoachRequestStatus(StrEnum):
    """Lifecycle states of a coach request."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    REJECTED = "rejected"


@dataclass(frozen=True)
class CoachQuestionnaire:
    """Answers collected from the coach questionnaire."""

    goal: str
    constraints: str
    stats: str
    contact: str


@dataclass(frozen=True)
class CoachRequest:
    """A submitted request for a personal plan."""

    id: UUID
    user_id: UUID
    telegram_user_id: int
    answers: CoachQuestionnaire
    status: CoachRequestStatus
    created_at: datetime
