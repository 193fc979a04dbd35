"""In-memory moving window rate limiting."""

from dataclasses import dataclass, field

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter


@dataclass
class SlidingWindowRateLimiter:
    """Allow at most ``limit`` events per key within ``window_seconds``."""

    limit: int
    window_seconds: int
    _item: RateLimitItem = field(init=False, repr=False)
    _strategy: MovingWindowRateLimiter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._item = RateLimitItemPerSecond(self.limit, self.window_seconds)
        self._strategy = MovingWindowRateLimiter(MemoryStorage())

    def allow(self, key: object) -> bool:
        """Record an event for ``key`` and return whether it is within the limit."""
        return self._strategy.hit(self._item, str(key))
