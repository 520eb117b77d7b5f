from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class TxStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class TxResult(BaseModel):
    status: TxStatus
    tx_hash: str
    message: str = ""
    block_height: Optional[int] = None


class ChainEvent(BaseModel):
    """A contract receipt found in a block."""
    contract: str
    action: str
    data: dict = Field(default_factory=dict)


class ChainBlock(BaseModel):
    height: int
    time: datetime
    events: List[ChainEvent] = []


# 开奖事件内容（合约 settle 回执）
class SettledReward(BaseModel):
    account: str
    reward: int = 0
    times: int = 0


class SettledStake(BaseModel):
    account: str
    bet: int = 0


class Settlement(BaseModel):
    round: int
    lucky_number: int
    total: int = 0
    win: int = 0
    award: int = 0
    rewards: List[SettledReward] = []
    records: List[SettledStake] = []
