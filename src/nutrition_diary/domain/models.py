"""Domain models for the food diary."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    telegram_user_id: int
    created_at: datetime | None = None
