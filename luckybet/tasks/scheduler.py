# luckybet/tasks/scheduler.py
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from luckybet.tasks.block_watcher import BlockWatcher, block_watch_job
from luckybet.tasks.day_watcher import DayWatcher, day_watch_job

logger = logging.getLogger(__name__)


def build_scheduler(
    block_watcher: BlockWatcher,
    day_watcher: DayWatcher,
    block_poll_seconds: int,
    day_poll_seconds: int,
) -> AsyncIOScheduler:
    """
    两个常驻任务：
      - 区块/开奖同步
      - 当日首期刷新
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        block_watch_job,
        "interval",
        args=[block_watcher],
        seconds=block_poll_seconds,
        id="block_watcher",
        replace_existing=True,
        coalesce=True,          # 合并堆积触发
        max_instances=1,        # 同一时间只跑一个，断点不会被并发推进
        misfire_grace_time=10,
    )

    scheduler.add_job(
        day_watch_job,
        "interval",
        args=[day_watcher],
        seconds=day_poll_seconds,
        id="day_watcher",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=10,
    )
    return scheduler
