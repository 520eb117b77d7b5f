import asyncio
from datetime import datetime
from typing import Dict, List, Optional

import base58
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from solders.keypair import Keypair
from sqlalchemy.pool import StaticPool

from luckybet.chain.base import ChainClient
from luckybet.core.config import Settings
from luckybet.core.errors import ChainTransportError
from luckybet.db.session import init_db, make_engine, make_sessionmaker
from luckybet.db.store import LuckyBetStore
from luckybet.schemas.chain import ChainBlock, TxResult, TxStatus

CONTRACT = "ContractLuckyBet"


class FakeRedis:
    """Just enough of redis.asyncio for the nonce allocator."""

    def __init__(self, down: bool = False):
        self.data: Dict[str, int] = {}
        self.down = down
        self._lock = asyncio.Lock()

    async def incr(self, key: str) -> int:
        if self.down:
            raise RedisConnectionError("connection refused")
        async with self._lock:
            await asyncio.sleep(0)
            self.data[key] = self.data.get(key, 0) + 1
            return self.data[key]

    async def get(self, key: str) -> Optional[str]:
        if self.down:
            raise RedisConnectionError("connection refused")
        v = self.data.get(key)
        return str(v) if v is not None else None


class FakeChain(ChainClient):
    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.send_failures = 0           # fail this many sends first
        self.sent: List[dict] = []       # every attempt, failed or not
        self.receipts: List[TxResult] = []  # consumed in order; last one repeats
        self.balance_down = False
        self.head = 0
        self.blocks: Dict[int, ChainBlock] = {}
        self.block_requests: List[int] = []

    async def get_balance(self, account: str) -> int:
        if self.balance_down:
            raise ChainTransportError("node down")
        return self.balances.get(account, 0)

    async def send_transaction(self, signed_tx: dict) -> str:
        self.sent.append(signed_tx)
        if len(self.sent) <= self.send_failures:
            raise ChainTransportError("connection reset")
        return "tx-" + signed_tx["actions"][0]["data"]

    async def get_transaction_result(self, tx_hash: str) -> TxResult:
        if not self.receipts:
            return TxResult(status=TxStatus.SUCCESS, tx_hash=tx_hash)
        r = self.receipts.pop(0) if len(self.receipts) > 1 else self.receipts[0]
        return r.model_copy(update={"tx_hash": tx_hash})

    async def get_block_height(self) -> int:
        return self.head

    async def get_block(self, height: int) -> ChainBlock:
        self.block_requests.append(height)
        if height in self.blocks:
            return self.blocks[height]
        return ChainBlock(height=height, time=datetime(2026, 10, 19, 0, 0, height % 60))


def new_wallet():
    kp = Keypair()
    return str(kp.pubkey()), base58.b58encode(bytes(kp)).decode()


def make_settings(**overrides) -> Settings:
    cfg = Settings()
    cfg.CONTRACT_ID = CONTRACT
    cfg.SEND_RETRY_TIMES = 3
    cfg.SEND_RETRY_INTERVAL = 0
    cfg.CONFIRM_POLLS = 5
    cfg.CONFIRM_INTERVAL = 0
    cfg.BET_AMOUNT_MIN = 1
    cfg.BET_AMOUNT_MAX = 5
    cfg.LUCKY_NUMBER_MIN = 0
    cfg.LUCKY_NUMBER_MAX = 9
    for k, v in overrides.items():
        setattr(cfg, k, v)
    return cfg


@pytest.fixture
async def store():
    engine = make_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield LuckyBetStore(make_sessionmaker(engine))
    await engine.dispose()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def wallet():
    return new_wallet()
