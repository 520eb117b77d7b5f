import logging
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.ext.asyncio import AsyncEngine

from luckybet.chain.base import ChainClient
from luckybet.chain.iost import IOSTChainClient
from luckybet.core.config import Settings, settings
from luckybet.core.errors import ChainTransportError
from luckybet.db.redis import make_redis
from luckybet.db.session import init_db, make_engine, make_sessionmaker
from luckybet.db.store import LuckyBetStore
from luckybet.models.bet import Bet
from luckybet.models.block import BlockInfo
from luckybet.models.result import Result, Reward
from luckybet.schemas.lucky_bet import BetIn, LeaderboardEntry
from luckybet.services.bet_service import BetReceipt, BetService
from luckybet.services.leaderboard_service import LeaderboardService
from luckybet.services.nonce_service import NonceAllocator
from luckybet.tasks.block_watcher import BlockWatcher
from luckybet.tasks.day_watcher import DayWatcher
from luckybet.tasks.scheduler import build_scheduler

logger = logging.getLogger(__name__)


class LuckyBetContext:
    """
    Owns everything the request handlers and the watchers share: store,
    chain client, nonce allocator, leaderboard cache and watcher state.
    """

    def __init__(
        self,
        store: LuckyBetStore,
        chain: ChainClient,
        nonces: NonceAllocator,
        cfg: Settings = settings,
        engine: Optional[AsyncEngine] = None,
        redis=None,
    ):
        self.cfg = cfg
        self.store = store
        self.chain = chain
        self.nonces = nonces
        self.engine = engine
        self.redis = redis

        self.bets = BetService(chain, nonces, store, cfg)
        self.day_watcher = DayWatcher(store)
        self.block_watcher = BlockWatcher(
            chain, store, cfg.CONTRACT_ID,
            start_height=cfg.WATCH_START_HEIGHT,
            batch=cfg.WATCH_BATCH,
        )
        self.leaderboard = LeaderboardService(
            store, self.day_watcher,
            exclude=cfg.ROBOT_ACCOUNTS,
            size=cfg.LEADERBOARD_SIZE,
            ttl_seconds=cfg.LEADERBOARD_TTL_SECONDS,
        )
        self.scheduler: Optional[AsyncIOScheduler] = None

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "LuckyBetContext":
        engine = make_engine(cfg.MYSQL_DSN)
        redis = make_redis(cfg.REDIS_URL)
        return cls(
            store=LuckyBetStore(make_sessionmaker(engine)),
            chain=IOSTChainClient(cfg.CHAIN_API_URL, timeout=cfg.CHAIN_TIMEOUT_SECONDS),
            nonces=NonceAllocator(redis),
            cfg=cfg,
            engine=engine,
            redis=redis,
        )

    # ------------------------------
    # 生命周期
    # ------------------------------
    async def start(self, watch: bool = False) -> None:
        if self.engine is not None:
            await init_db(self.engine)
        if watch:
            self.start_watchers()

    def start_watchers(self) -> None:
        if self.scheduler is None:
            self.scheduler = build_scheduler(
                self.block_watcher,
                self.day_watcher,
                self.cfg.WATCH_POLL_SECONDS,
                self.cfg.DAY_WATCH_POLL_SECONDS,
            )
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("watchers started")

    async def stop(self) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("watchers stopped")
        await self.chain.close()
        if self.redis is not None:
            await self.redis.aclose()
        if self.engine is not None:
            await self.engine.dispose()

    # ------------------------------
    # 对外操作
    # ------------------------------
    async def submit_bet(self, req: BetIn) -> BetReceipt:
        return await self.bets.submit_bet(req)

    async def list_results(self, limit: int) -> List[Result]:
        return await self.store.list_results(limit)

    async def last_settled_round(self) -> Optional[int]:
        return await self.store.last_round()

    async def result_for_round(self, round_id: int) -> Optional[Result]:
        return await self.store.result_for_round(round_id)

    async def rewards_for_round(self, round_id: int) -> List[Reward]:
        return await self.store.rewards_for_round(round_id)

    async def block_info(self, height: int) -> Optional[BlockInfo]:
        return await self.store.block_info(height)

    async def bets_for_account(self, account: str, offset: int, limit: int) -> List[Bet]:
        return await self.store.bets_for_account(account, offset, limit)

    async def bet_count_for_account(self, account: str) -> int:
        return await self.store.bet_count(account)

    async def top_leaderboard(self) -> List[LeaderboardEntry]:
        return await self.leaderboard.top()

    async def last_nonce(self, account: str) -> Optional[int]:
        return await self.nonces.peek(account)

    async def head_height(self) -> Optional[int]:
        try:
            return await self.chain.get_block_height()
        except ChainTransportError as e:
            logger.warning("head height unavailable: %s", e)
            return None
