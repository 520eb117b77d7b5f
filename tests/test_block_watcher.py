from datetime import datetime

import pytest

from conftest import CONTRACT
from luckybet.core.errors import ChainTransportError
from luckybet.schemas.chain import ChainBlock, ChainEvent
from luckybet.tasks.block_watcher import BlockWatcher, block_watch_job


def settle_event(round_id, lucky=7, rewards=None, records=None, win=None, contract=CONTRACT):
    rewards = rewards if rewards is not None else [
        {"account": "X", "reward": 100, "times": 1},
        {"account": "Y", "reward": 50, "times": 1},
    ]
    records = records if records is not None else [
        {"account": "X", "bet": 40},
        {"account": "Y", "bet": 60},
        {"account": "Z", "bet": 10},
    ]
    return ChainEvent(contract=contract, action="settle", data={
        "round": round_id,
        "lucky_number": lucky,
        "total": len(records),
        "win": win if win is not None else sum(r["times"] for r in rewards),
        "award": sum(r["reward"] for r in rewards),
        "rewards": rewards,
        "records": records,
    })


def block(height, *events):
    return ChainBlock(height=height, time=datetime(2026, 10, 19, 1, 0, height), events=list(events))


def watcher(chain, store, **kw):
    kw.setdefault("start_height", 1)
    return BlockWatcher(chain, store, CONTRACT, **kw)


async def test_tick_records_round_rewards_and_checkpoint(chain, store):
    chain.head = 3
    chain.blocks[2] = block(2, settle_event(1))

    assert await watcher(chain, store).tick() == 3

    results = await store.list_results(10)
    assert [(r.round, r.height, r.lucky_number, r.win, r.award) for r in results] == [(1, 2, 7, 2, 150)]
    rewards = await store.rewards_for_round(1)
    assert [(r.account, r.reward, r.times) for r in rewards] == [("X", 100, 1), ("Y", 50, 1)]
    assert sum(r.times for r in rewards) == results[0].win
    assert (await store.last_block()).height == 3
    assert (await store.block_info(2)).time == datetime(2026, 10, 19, 1, 0, 2)


async def test_replayed_round_is_written_once(chain, store):
    chain.head = 3
    chain.blocks[2] = block(2, settle_event(1))
    # 同一期在后面的块里又出现一次
    chain.blocks[3] = block(3, settle_event(1))
    w = watcher(chain, store)
    await w.tick()

    # 重启后从旧断点重放
    assert await w.process_block(chain.blocks[2]) == 0

    assert [r.round for r in await store.list_results(10)] == [1]
    assert len(await store.rewards_for_round(1)) == 2
    board = await store.aggregate_top(1)
    assert {e.account_id: e.total_bet_amount for e in board} == {"X": 40, "Y": 60, "Z": 10}


async def test_rounds_and_heights_are_monotonic(chain, store):
    chain.head = 6
    chain.blocks[2] = block(2, settle_event(1))
    chain.blocks[4] = block(4, settle_event(2), settle_event(3))
    chain.blocks[6] = block(6, settle_event(1, lucky=3))   # stale round

    await watcher(chain, store).tick()

    results = list(reversed(await store.list_results(10)))
    assert [r.round for r in results] == [1, 2, 3]
    assert all(b.round > a.round and b.height >= a.height for a, b in zip(results, results[1:]))
    assert (await store.result_for_round(1)).lucky_number == 7


async def test_inconsistent_settlement_is_skipped(chain, store):
    chain.head = 2
    chain.blocks[1] = block(1, settle_event(1, win=3))
    chain.blocks[2] = block(2, settle_event(2))

    await watcher(chain, store).tick()

    assert [r.round for r in await store.list_results(10)] == [2]
    assert (await store.last_block()).height == 2


async def test_foreign_contract_and_bad_payload_are_ignored(chain, store):
    chain.head = 1
    chain.blocks[1] = block(
        1,
        settle_event(1, contract="ContractOther"),
        ChainEvent(contract=CONTRACT, action="settle", data={"raw": "oops"}),
        ChainEvent(contract=CONTRACT, action="bet", data={"round": 9}),
    )

    await watcher(chain, store).tick()

    assert await store.last_round() is None
    assert (await store.last_block()).height == 1


async def test_resumes_from_checkpoint_in_batches(chain, store):
    chain.head = 4
    w = watcher(chain, store, batch=2)

    assert await w.tick() == 2
    assert await w.tick() == 2
    assert await w.tick() == 0
    assert chain.block_requests == [1, 2, 3, 4]


async def test_no_checkpoint_and_no_start_height_begins_at_head(chain, store):
    chain.head = 50
    w = watcher(chain, store, start_height=0)
    assert await w.tick() == 1
    assert chain.block_requests == [50]


class FlakyChain:
    def __init__(self, inner, bad_height):
        self.inner = inner
        self.bad_height = bad_height

    async def get_block_height(self):
        return await self.inner.get_block_height()

    async def get_block(self, height):
        if height == self.bad_height:
            self.bad_height = None
            raise ChainTransportError("timeout")
        return await self.inner.get_block(height)


async def test_failed_tick_resumes_from_last_checkpoint(chain, store):
    chain.head = 4
    w = watcher(FlakyChain(chain, bad_height=3), store)

    with pytest.raises(ChainTransportError):
        await w.tick()
    assert (await store.last_block()).height == 2

    # 任务包装里异常被记录，不会抛出
    await block_watch_job(w)
    assert (await store.last_block()).height == 4
    assert chain.block_requests == [1, 2, 3, 4]
