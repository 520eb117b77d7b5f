from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# 下注入参（原样接收，校验在 BetService 里做）
class BetIn(BaseModel):
    account: Any = Field("", alias="address")
    bet_amount: Any = Field("", alias="betAmount")
    lucky_number: Any = Field("", alias="luckyNumber")
    private_key: Any = Field("", alias="privKey")
    client_ip: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class BetOut(BaseModel):
    account: str
    lucky_number: int
    bet_amount: int
    bet_time: datetime
    client_ip: str | None = None
    nonce: int | None = None
    tx_hash: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BetReceiptOut(BaseModel):
    ret: int = 0
    msg: str = "ok"
    tx_hash: str
    bet: BetOut
    warning: Optional[dict] = None


class ResultOut(BaseModel):
    round: int
    height: int
    lucky_number: int
    total: int
    win: int
    award: int
    time: datetime

    model_config = ConfigDict(from_attributes=True)


class RewardOut(BaseModel):
    round: int
    account: str
    reward: int
    times: int

    model_config = ConfigDict(from_attributes=True)


class BlockInfoOut(BaseModel):
    height: int
    time: datetime

    model_config = ConfigDict(from_attributes=True)


class RoundOut(BaseModel):
    result: Optional[ResultOut] = None
    rewards: List[RewardOut] = []


class AccountBetsOut(BaseModel):
    account: str
    total: int
    list: List[BetOut]


class LatestBetInfoOut(BaseModel):
    round: int
    head_block: Optional[int] = None
    results: List[ResultOut]


class LeaderboardEntry(BaseModel):
    account_id: str
    total_win_amount: int
    total_bet_amount: int
    total_win_times: int
    net_earn: int


class NonceOut(BaseModel):
    account: str
    nonce: Optional[int] = None
