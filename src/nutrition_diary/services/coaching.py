"""Coach request submission and status tracking."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_diary.adapters.telegram_client import TelegramClient
from nutrition_diary.domain.coaching import (
    CoachQuestionnaire,
    CoachRequest,
    CoachRequestStatus,
)
from nutrition_diary.errors import CoachRequestNotFoundError

_logger = logging.getLogger(__name__)


class CoachRequestRepository(Protocol):
    """Persistence interface for coach requests."""

    def create_request(
        self, user_id: UUID, telegram_user_id: int, answers: CoachQuestionnaire
    ) -> CoachRequest:
        """Create a request with status ``new`` and return it."""

    def get_request(self, request_id: UUID) -> CoachRequest | None:
        """Return a request by id."""

    def list_requests(
        self, status: CoachRequestStatus | None, limit: int
    ) -> list[CoachRequest]:
        """Return the newest requests, optionally filtered by status."""

    def update_status(self, request_id: UUID, status: CoachRequestStatus) -> None:
        """Change the status of a request."""


@dataclass
class CoachRequestService:
    """Stores questionnaire submissions and notifies the trainer."""

    repository: CoachRequestRepository
    telegram_client: TelegramClient
    trainer_telegram_id: int | None = None

    async def submit(
        self, user_id: UUID, telegram_user_id: int, answers: CoachQuestionnaire
    ) -> CoachRequest:
        """Store a completed questionnaire and notify the trainer."""
        request = self.repository.create_request(user_id, telegram_user_id, answers)
        _logger.info("Coach request %s submitted by user %s", request.id, user_id)
        if self.trainer_telegram_id is not None:
            try:
                await self.telegram_client.send_message(
                    chat_id=self.trainer_telegram_id,
                    text=_format_trainer_notice(request),
                )
            except Exception:
                _logger.exception(
                    "Failed to notify trainer", extra={"request_id": str(request.id)}
                )
        return request

    def list_requests(
        self, status: CoachRequestStatus | None = None, limit: int = 20
    ) -> list[CoachRequest]:
        """Return the newest requests."""
        return self.repository.list_requests(status, limit)

    def set_status(self, request_id: UUID, status: CoachRequestStatus) -> CoachRequest:
        """Move a request to a new status."""
        request = self.repository.get_request(request_id)
        if request is None:
            raise CoachRequestNotFoundError(f"Coach request {request_id} not found")
        self.repository.update_status(request_id, status)
        return CoachRequest(
            id=request.id,
            user_id=request.user_id,
            telegram_user_id=request.telegram_user_id,
            answers=request.answers,
            status=status,
            created_at=request.created_at,
        )


def _format_trainer_notice(request: CoachRequest) -> str:
    answers = request.answers
    return "\n".join(
        [
            "New coach request",
            f"From Telegram user: {request.telegram_user_id}",
            f"Goal: {answers.goal}",
            f"Constraints: {answers.constraints}",
            f"Height / weight / age: {answers.stats}",
            f"Contact: {answers.contact}",
        ]
    )
