import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Optional

import base58
from solders.keypair import Keypair
from sqlalchemy.exc import SQLAlchemyError

from luckybet.chain.base import ChainClient
from luckybet.chain.signer import build_bet_tx, load_keypair, public_key_of, sign_tx
from luckybet.core.config import Settings, settings
from luckybet.core.errors import (
    ChainTransportError,
    ChainUnavailable,
    ConfirmationTimeout,
    InsufficientBalance,
    InvalidInput,
    PersistenceWarning,
    SendExhausted,
    TransactionFailed,
)
from luckybet.core.timeutil import utc_now
from luckybet.db.store import LuckyBetStore
from luckybet.models.bet import Bet
from luckybet.schemas.chain import TxStatus
from luckybet.schemas.lucky_bet import BetIn
from luckybet.services.nonce_service import NonceAllocator

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")


@dataclass
class ValidBet:
    account: str
    bet_amount: int
    lucky_number: int
    keypair: Keypair
    client_ip: Optional[str]


@dataclass
class BetReceipt:
    bet: Bet
    tx_hash: str
    warning: Optional[PersistenceWarning] = None


def _parse_int(v, field: str) -> int:
    if isinstance(v, bool):
        raise InvalidInput(f"{field} must be an integer")
    if isinstance(v, int):
        return v
    s = str(v).strip()
    if not _INT_RE.match(s):
        raise InvalidInput(f"{field} must be an integer")
    return int(s)


class BetService:
    """
    validate → 查余额 → 取 nonce → 发交易（有限重试）→ 轮询回执 → 落库
    """

    def __init__(
        self,
        chain: ChainClient,
        nonces: NonceAllocator,
        store: LuckyBetStore,
        cfg: Settings = settings,
        sleep=asyncio.sleep,
        clock=utc_now,
    ):
        self.chain = chain
        self.nonces = nonces
        self.store = store
        self.cfg = cfg
        self.sleep = sleep
        self.clock = clock

    def validate(self, req: BetIn) -> ValidBet:
        cfg = self.cfg
        amount = _parse_int(req.bet_amount, "betAmount")
        if not cfg.BET_AMOUNT_MIN <= amount <= cfg.BET_AMOUNT_MAX:
            raise InvalidInput(f"betAmount must be in [{cfg.BET_AMOUNT_MIN}, {cfg.BET_AMOUNT_MAX}]")
        lucky = _parse_int(req.lucky_number, "luckyNumber")
        if not cfg.LUCKY_NUMBER_MIN <= lucky <= cfg.LUCKY_NUMBER_MAX:
            raise InvalidInput(f"luckyNumber must be in [{cfg.LUCKY_NUMBER_MIN}, {cfg.LUCKY_NUMBER_MAX}]")

        account = str(req.account or "").strip()
        try:
            if len(base58.b58decode(account)) != 32:
                raise ValueError("not a 32 byte public key")
        except ValueError:
            raise InvalidInput("address is malformed")

        try:
            kp = load_keypair(str(req.private_key or ""))
        except ValueError:
            raise InvalidInput("privKey is malformed")
        if public_key_of(kp) != account:
            raise InvalidInput("privKey does not belong to address")

        return ValidBet(account, amount, lucky, kp, req.client_ip)

    async def submit_bet(self, req: BetIn) -> BetReceipt:
        bet = self.validate(req)

        # 余额不足直接返回，不发交易
        try:
            balance = await self.chain.get_balance(bet.account)
        except ChainTransportError as e:
            raise ChainUnavailable(f"balance query failed: {e}") from e
        if balance < bet.bet_amount:
            raise InsufficientBalance(balance=balance)

        nonce = await self.nonces.next(bet.account)

        # 一笔下注只签一次；重试发送同一笔交易，nonce 不变
        tx = build_bet_tx(
            contract=self.cfg.CONTRACT_ID,
            account=bet.account,
            lucky_number=bet.lucky_number,
            bet_amount=bet.bet_amount,
            nonce=nonce,
            chain_id=self.cfg.CHAIN_ID,
            gas_ratio=self.cfg.GAS_RATIO,
            gas_limit=self.cfg.GAS_LIMIT,
            expiration_seconds=self.cfg.TX_EXPIRATION_SECONDS,
        )
        signed = sign_tx(tx, bet.keypair)

        tx_hash = await self._send(signed, bet.account, nonce)
        await self._confirm(tx_hash)

        row = Bet(
            account=bet.account,
            lucky_number=bet.lucky_number,
            bet_amount=bet.bet_amount,
            bet_time=self.clock(),
            client_ip=bet.client_ip,
            nonce=nonce,
            tx_hash=tx_hash,
        )
        warning = None
        try:
            await self.store.insert_bet(row)
        except SQLAlchemyError as e:
            logger.exception("bet confirmed but insert failed tx=%s account=%s", tx_hash, bet.account)
            warning = PersistenceWarning(tx_hash=tx_hash, error=str(e))

        logger.info("bet ok account=%s number=%s amount=%s nonce=%s tx=%s",
                    bet.account, bet.lucky_number, bet.bet_amount, nonce, tx_hash)
        return BetReceipt(bet=row, tx_hash=tx_hash, warning=warning)

    async def _send(self, signed: dict, account: str, nonce: int) -> str:
        times = self.cfg.SEND_RETRY_TIMES
        last_err: Optional[Exception] = None
        for attempt in range(1, times + 1):
            try:
                return await self.chain.send_transaction(signed)
            except ChainTransportError as e:
                last_err = e
                logger.warning("sendTx failed account=%s nonce=%s (attempt %d/%d): %s",
                               account, nonce, attempt, times, e)
                if attempt < times:
                    await self.sleep(self.cfg.SEND_RETRY_INTERVAL)
        raise SendExhausted(f"send transaction out of retry times: {last_err}", error=str(last_err))

    async def _confirm(self, tx_hash: str) -> None:
        polls = self.cfg.CONFIRM_POLLS
        for i in range(polls):
            try:
                res = await self.chain.get_transaction_result(tx_hash)
            except ChainTransportError as e:
                logger.warning("receipt poll failed tx=%s: %s", tx_hash, e)
                res = None

            if res is not None and res.status == TxStatus.SUCCESS:
                return
            if res is not None and res.status == TxStatus.FAILED:
                raise TransactionFailed(f"transaction failed: {res.message}", tx_hash=tx_hash)

            if i < polls - 1:
                await self.sleep(self.cfg.CONFIRM_INTERVAL)

        # 交易可能之后仍会上链，把 hash 返回给前端自行查询
        raise ConfirmationTimeout(tx_hash=tx_hash)
