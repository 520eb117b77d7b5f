"""Today's top net earners."""

import logging
import time
from typing import Callable, List, Sequence

from luckybet.core.cache import TimedCache
from luckybet.db.store import LuckyBetStore
from luckybet.schemas.lucky_bet import LeaderboardEntry
from luckybet.tasks.day_watcher import DayWatcher

logger = logging.getLogger(__name__)


class LeaderboardService:
    def __init__(
        self,
        store: LuckyBetStore,
        day: DayWatcher,
        exclude: Sequence[str] = (),
        size: int = 10,
        ttl_seconds: float = 120,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.day = day
        self.exclude = list(exclude)
        self.size = size
        self.cache: TimedCache[List[LeaderboardEntry]] = TimedCache(ttl_seconds, clock)

    async def top(self) -> List[LeaderboardEntry]:
        cached = self.cache.get()
        if cached is not None:
            return cached

        first = await self.day.first_round()
        if first is None:
            # 今天还没开过奖
            board: List[LeaderboardEntry] = []
        else:
            board = await self.store.aggregate_top(first, self.exclude, self.size)
        self.cache.set(board)
        logger.debug("leaderboard refreshed since round %s: %d entries", first, len(board))
        return board
