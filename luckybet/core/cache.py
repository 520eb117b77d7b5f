import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class TimedCache(Generic[T]):
    """
    One value plus the moment it was stored.

    Readers racing past expiry may all recompute; whoever calls ``set`` last
    wins. That staleness is acceptable for leaderboard-style data.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl_seconds
        self.clock = clock
        self._value: Optional[T] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[T]:
        if self._stored_at is None:
            return None
        if self.clock() - self._stored_at >= self.ttl:
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self.clock()
