from datetime import datetime

from luckybet.models.result import Result, Reward, RoundStake
from luckybet.services.leaderboard_service import LeaderboardService
from luckybet.tasks.day_watcher import DayWatcher

TODAY_NOON = datetime(2026, 10, 19, 12, 0)


async def settle(store, round_id, when, rewards=(), stakes=()):
    await store.save_settlement(
        Result(round=round_id, height=round_id * 10, lucky_number=1,
               total=len(stakes), win=sum(t for _, _, t in rewards),
               award=sum(r for _, r, _ in rewards), time=when),
        [Reward(round=round_id, account=a, reward=r, times=t) for a, r, t in rewards],
        [RoundStake(round=round_id, account=a, bet=b) for a, b in stakes],
    )


class Clock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class CountingStore:
    def __init__(self, inner):
        self.inner = inner
        self.aggregations = 0

    async def aggregate_top(self, *args, **kwargs):
        self.aggregations += 1
        return await self.inner.aggregate_top(*args, **kwargs)


def board(store, exclude=(), clock=None, day_clock=lambda: TODAY_NOON):
    return LeaderboardService(
        store, DayWatcher(store, clock=day_clock),
        exclude=exclude, size=10, ttl_seconds=120, clock=clock or Clock(),
    )


async def test_ranks_by_net_earn(store):
    await settle(store, 1, datetime(2026, 10, 19, 0, 5),
                 rewards=[("X", 100, 1), ("Y", 50, 1)],
                 stakes=[("X", 40), ("Y", 60)])

    top = await board(store).top()

    assert [(e.account_id, e.net_earn) for e in top] == [("X", 60), ("Y", -10)]
    x = top[0]
    assert (x.total_win_amount, x.total_bet_amount, x.total_win_times) == (100, 40, 1)


async def test_only_todays_rounds_count(store):
    await settle(store, 1, datetime(2026, 10, 18, 23, 59), rewards=[("OLD", 999, 1)], stakes=[("OLD", 1)])
    await settle(store, 2, datetime(2026, 10, 19, 0, 1), rewards=[("X", 10, 1)], stakes=[("X", 5)])
    await settle(store, 3, datetime(2026, 10, 19, 9, 0), rewards=[], stakes=[("X", 5), ("Y", 5)])

    top = await board(store).top()

    assert [(e.account_id, e.net_earn) for e in top] == [("X", 0), ("Y", -5)]


async def test_robots_excluded_and_ties_sorted_by_account(store):
    await settle(store, 1, datetime(2026, 10, 19, 1, 0),
                 rewards=[("robot", 500, 1), ("bb", 20, 1), ("aa", 20, 1)],
                 stakes=[("robot", 1), ("bb", 10), ("aa", 10)])

    top = await board(store, exclude=["robot"]).top()

    assert [e.account_id for e in top] == ["aa", "bb"]


async def test_empty_when_no_round_today(store):
    await settle(store, 1, datetime(2026, 10, 18, 8, 0), rewards=[("X", 10, 1)], stakes=[("X", 1)])
    assert await board(store).top() == []


async def test_cached_within_window_recomputed_after(store):
    await settle(store, 1, datetime(2026, 10, 19, 1, 0), rewards=[("X", 10, 1)], stakes=[("X", 1)])
    counting = CountingStore(store)
    clock = Clock(1000.0)
    svc = LeaderboardService(counting, DayWatcher(store, clock=lambda: TODAY_NOON),
                             ttl_seconds=120, clock=clock)

    first = await svc.top()
    await settle(store, 2, datetime(2026, 10, 19, 2, 0), rewards=[("Y", 50, 1)], stakes=[("Y", 1)])

    clock.now += 90
    second = await svc.top()
    assert second == first
    assert counting.aggregations == 1

    clock.now += 31
    third = await svc.top()
    assert counting.aggregations == 2
    assert [e.account_id for e in third] == ["Y", "X"]


async def test_day_watcher_rolls_over(store):
    now = {"t": datetime(2026, 10, 19, 23, 0)}
    day = DayWatcher(store, clock=lambda: now["t"])
    await settle(store, 5, datetime(2026, 10, 19, 0, 30))
    await settle(store, 6, datetime(2026, 10, 19, 22, 0))

    assert await day.first_round() == 5

    now["t"] = datetime(2026, 10, 20, 0, 10)
    assert await day.tick() is None

    await settle(store, 7, datetime(2026, 10, 20, 0, 5))
    assert await day.tick() == 7
    # 找到以后不再重复查询也保持不变
    await settle(store, 8, datetime(2026, 10, 20, 0, 6))
    assert await day.first_round() == 7
