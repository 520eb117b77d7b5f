import logging
from datetime import datetime
from typing import Callable, Optional

from luckybet.core.timeutil import day_start, utc_now
from luckybet.db.store import LuckyBetStore

logger = logging.getLogger(__name__)


class DayWatcher:
    """
    Keeps "today's first round": the smallest round settled on or after the
    start of the current day. Re-queried on day rollover, on first use, and
    while no round has settled yet today.
    """

    def __init__(self, store: LuckyBetStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self._day: Optional[datetime] = None
        self._first_round: Optional[int] = None

    async def tick(self) -> Optional[int]:
        today = day_start(self.clock())
        if self._day == today and self._first_round is not None:
            return self._first_round

        first = await self.store.first_round_since(today)
        if self._day != today:
            logger.info("day rolled over to %s, first round=%s", today.date(), first)
        self._day = today
        self._first_round = first
        return first

    async def first_round(self) -> Optional[int]:
        return await self.tick()


async def day_watch_job(watcher: DayWatcher):
    try:
        await watcher.tick()
    except Exception as e:
        logger.exception("[day_watch_job] error: %s", e)
