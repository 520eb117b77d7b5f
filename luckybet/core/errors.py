"""Typed failures of the bet pipeline.

Every error carries a stable ``code`` (the ``ret`` field of the JSON body the
old clients already understand) and a human-readable message.
"""
from typing import Any, Dict, Optional


class LuckyBetError(Exception):
    code = 99
    default_message = "internal error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"ret": self.code, "msg": self.message}
        body.update({k: v for k, v in self.extra.items() if v is not None})
        return body


class InvalidInput(LuckyBetError):
    code = 1
    default_message = "invalid input"


class ChainUnavailable(LuckyBetError):
    code = 2
    default_message = "blockchain node unavailable"


class SendExhausted(LuckyBetError):
    code = 3
    default_message = "send transaction out of retry times"


class ConfirmationTimeout(LuckyBetError):
    code = 4
    default_message = "transaction not confirmed in time, query it later by tx hash"

    @property
    def tx_hash(self) -> Optional[str]:
        return self.extra.get("tx_hash")


class NonceUnavailable(LuckyBetError):
    code = 5
    default_message = "nonce service unavailable"


class InsufficientBalance(LuckyBetError):
    code = 6
    default_message = "insufficient balance"

    @property
    def balance(self) -> Optional[int]:
        return self.extra.get("balance")


class PersistenceWarning(LuckyBetError):
    """Bet is on chain but the local record could not be written."""
    code = 7
    default_message = "bet confirmed on chain but not recorded locally"


class TransactionFailed(LuckyBetError):
    code = 8
    default_message = "transaction failed on chain"


class ChainTransportError(Exception):
    """Raised by chain clients when the node cannot be reached or answers garbage."""


class InconsistentSettlement(Exception):
    """A settlement event whose reward rows disagree with its win count."""
