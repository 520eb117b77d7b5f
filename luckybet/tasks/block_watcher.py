# luckybet/tasks/block_watcher.py
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from pydantic import ValidationError

from luckybet.chain.base import ChainClient
from luckybet.constants import SETTLE_ACTION
from luckybet.core.errors import InconsistentSettlement
from luckybet.db.store import LuckyBetStore
from luckybet.models.block import BlockInfo
from luckybet.models.result import Result, Reward, RoundStake
from luckybet.schemas.chain import ChainBlock, Settlement

logger = logging.getLogger(__name__)


def build_rows(s: Settlement, block: ChainBlock) -> Tuple[Result, List[Reward], List[RoundStake]]:
    """
    Turn a settle receipt into table rows. Duplicate accounts are merged so
    the (round, account) keys stay unique; reward times must add up to ``win``.
    """
    wins: Dict[str, List[int]] = {}
    for r in s.rewards:
        if r.times < 1:
            continue
        acc = wins.setdefault(r.account, [0, 0])
        acc[0] += r.reward
        acc[1] += r.times

    total_times = sum(v[1] for v in wins.values())
    if total_times != s.win:
        raise InconsistentSettlement(
            f"round {s.round}: reward times sum {total_times} != win {s.win}"
        )

    stakes: Dict[str, int] = {}
    for rec in s.records:
        stakes[rec.account] = stakes.get(rec.account, 0) + rec.bet

    result = Result(
        round=s.round,
        height=block.height,
        lucky_number=s.lucky_number,
        total=s.total,
        win=s.win,
        award=s.award,
        time=block.time,
    )
    rewards = [Reward(round=s.round, account=a, reward=v[0], times=v[1]) for a, v in wins.items()]
    round_stakes = [RoundStake(round=s.round, account=a, bet=b) for a, b in stakes.items()]
    return result, rewards, round_stakes


class BlockWatcher:
    """
    Mirrors settled rounds from the chain. Each tick resumes from the last
    recorded block and walks heights in order; the block row is written only
    after everything in the block has been stored.
    """

    def __init__(
        self,
        chain: ChainClient,
        store: LuckyBetStore,
        contract: str,
        start_height: int = 0,
        batch: int = 100,
    ):
        self.chain = chain
        self.store = store
        self.contract = contract
        self.start_height = start_height
        self.batch = batch

    async def tick(self) -> int:
        """Process the next batch of blocks; returns how many were processed."""
        head = await self.chain.get_block_height()
        last = await self.store.last_block()
        if last is not None:
            nxt = last.height + 1
        elif self.start_height > 0:
            nxt = self.start_height
        else:
            # 没有断点也没配置起始高度：从当前块开始追
            nxt = head

        end = min(head, nxt + self.batch - 1)
        n = 0
        for height in range(nxt, end + 1):
            block = await self.chain.get_block(height)
            await self.process_block(block)
            n += 1
        return n

    async def process_block(self, block: ChainBlock) -> int:
        settled = 0
        for ev in block.events:
            if ev.contract != self.contract or ev.action != SETTLE_ACTION:
                continue
            try:
                s = Settlement.model_validate(ev.data)
            except ValidationError as e:
                logger.error("block %s: bad settle receipt %r: %s", block.height, ev.data, e)
                continue
            try:
                if await self.record_settlement(s, block):
                    settled += 1
            except InconsistentSettlement as e:
                logger.error("block %s: %s, skipped", block.height, e)

        # 断点最后推进
        await self.store.insert_block(BlockInfo(height=block.height, time=block.time))
        return settled

    async def record_settlement(self, s: Settlement, block: ChainBlock) -> bool:
        result, rewards, stakes = build_rows(s, block)

        last = await self.store.last_round()
        if last is not None and s.round <= last:
            if s.round < last and await self.store.result_for_round(s.round) is None:
                logger.warning("round %s arrived after round %s, skipped", s.round, last)
            return False

        ok = await self.store.save_settlement(result, rewards, stakes)
        if ok:
            logger.info("第%s期开奖：号码 %s，%s 注中 %s 注，派奖 %s（高度 %s）",
                        s.round, s.lucky_number, s.total, s.win, s.award, block.height)
        return ok


async def block_watch_job(watcher: BlockWatcher):
    try:
        await watcher.tick()
    except Exception as e:
        # 下一轮从断点继续
        logger.exception("[block_watch_job] error: %s", e)
