"""Typed repository over the four lucky-bet tables."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, literal, select, union_all
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from luckybet.models.bet import Bet
from luckybet.models.block import BlockInfo
from luckybet.models.result import Result, Reward, RoundStake
from luckybet.schemas.lucky_bet import LeaderboardEntry

logger = logging.getLogger(__name__)


class LuckyBetStore:
    def __init__(self, sessionmaker: async_sessionmaker):
        self.sessionmaker = sessionmaker

    # ------------------------------
    # 写入
    # ------------------------------
    async def insert_bet(self, bet: Bet) -> Bet:
        async with self.sessionmaker() as s:
            async with s.begin():
                s.add(bet)
        return bet

    async def save_settlement(
        self,
        result: Result,
        rewards: Iterable[Reward],
        stakes: Iterable[RoundStake] = (),
    ) -> bool:
        """
        Write a round's result together with its rewards and stakes in one
        transaction. Returns False when the round is already recorded.
        """
        try:
            async with self.sessionmaker() as s:
                async with s.begin():
                    exists = await s.scalar(select(Result.id).where(Result.round == result.round))
                    if exists:
                        return False
                    s.add(result)
                    s.add_all(list(rewards))
                    s.add_all(list(stakes))
        except IntegrityError:
            # 并发写入同一期，唯一索引兜底
            logger.info("round %s already recorded", result.round)
            return False
        return True

    async def insert_block(self, info: BlockInfo) -> bool:
        try:
            async with self.sessionmaker() as s:
                async with s.begin():
                    exists = await s.scalar(select(BlockInfo.id).where(BlockInfo.height == info.height))
                    if exists:
                        return False
                    s.add(info)
        except IntegrityError:
            logger.info("block %s already recorded", info.height)
            return False
        return True

    # ------------------------------
    # 查询
    # ------------------------------
    async def list_results(self, limit: int) -> List[Result]:
        async with self.sessionmaker() as s:
            rs = await s.execute(select(Result).order_by(Result.round.desc()).limit(limit))
            return list(rs.scalars().all())

    async def last_round(self) -> Optional[int]:
        async with self.sessionmaker() as s:
            return await s.scalar(select(func.max(Result.round)))

    async def result_for_round(self, round_id: int) -> Optional[Result]:
        async with self.sessionmaker() as s:
            return await s.scalar(select(Result).where(Result.round == round_id))

    async def rewards_for_round(self, round_id: int) -> List[Reward]:
        async with self.sessionmaker() as s:
            rs = await s.execute(
                select(Reward)
                .where(Reward.round == round_id, Reward.times >= 1)
                .order_by(Reward.reward.desc(), Reward.account.asc())
            )
            return list(rs.scalars().all())

    async def block_info(self, height: int) -> Optional[BlockInfo]:
        async with self.sessionmaker() as s:
            return await s.scalar(select(BlockInfo).where(BlockInfo.height == height))

    async def last_block(self) -> Optional[BlockInfo]:
        async with self.sessionmaker() as s:
            return await s.scalar(select(BlockInfo).order_by(BlockInfo.height.desc()).limit(1))

    async def bets_for_account(self, account: str, offset: int, limit: int) -> List[Bet]:
        async with self.sessionmaker() as s:
            rs = await s.execute(
                select(Bet)
                .where(Bet.account == account)
                .order_by(Bet.bet_time.desc(), Bet.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return list(rs.scalars().all())

    async def bet_count(self, account: str) -> int:
        async with self.sessionmaker() as s:
            n = await s.scalar(select(func.count(Bet.id)).where(Bet.account == account))
            return int(n or 0)

    async def first_round_since(self, since: datetime) -> Optional[int]:
        async with self.sessionmaker() as s:
            return await s.scalar(
                select(Result.round)
                .where(Result.time >= since)
                .order_by(Result.time.asc(), Result.round.asc())
                .limit(1)
            )

    async def aggregate_top(
        self,
        since_round: int,
        exclude: Sequence[str] = (),
        limit: int = 10,
    ) -> List[LeaderboardEntry]:
        """
        Per-account sums of reward, stake and win times for rounds >= since_round.
        Sorted by net earn desc, account asc.
        """
        wins = select(
            Reward.account.label("account"),
            Reward.reward.label("reward"),
            literal(0).label("bet"),
            Reward.times.label("times"),
        ).where(Reward.round >= since_round)
        stakes = select(
            RoundStake.account.label("account"),
            literal(0).label("reward"),
            RoundStake.bet.label("bet"),
            literal(0).label("times"),
        ).where(RoundStake.round >= since_round)
        if exclude:
            wins = wins.where(Reward.account.not_in(list(exclude)))
            stakes = stakes.where(RoundStake.account.not_in(list(exclude)))

        u = union_all(wins, stakes).subquery()
        total_win = func.sum(u.c.reward)
        total_bet = func.sum(u.c.bet)
        net = (total_win - total_bet).label("net_earn")

        stmt = (
            select(
                u.c.account,
                total_win.label("total_win"),
                total_bet.label("total_bet"),
                func.sum(u.c.times).label("total_times"),
                net,
            )
            .group_by(u.c.account)
            .order_by(net.desc(), u.c.account.asc())
            .limit(limit)
        )
        async with self.sessionmaker() as s:
            rows = (await s.execute(stmt)).all()

        return [
            LeaderboardEntry(
                account_id=row.account,
                total_win_amount=int(row.total_win or 0),
                total_bet_amount=int(row.total_bet or 0),
                total_win_times=int(row.total_times or 0),
                net_earn=int(row.net_earn or 0),
            )
            for row in rows
        ]
