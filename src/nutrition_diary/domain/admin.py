"""Admin domain models."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class AdminUser:
    """Minimal admin view of a user."""

    id: UUID
    telegram_user_id: int
    created_at: datetime | None
    last_active_at: datetime | None


@dataclass(frozen=True)
class UsageEvent:
    """One handled request recorded for operator statistics."""

    user_id: UUID
    kind: str
    latency_ms: int
    ok: bool
    created_at: datetime
