import logging
from typing import Optional

from redis.exceptions import RedisError

from luckybet.constants import k_nonce
from luckybet.core.errors import NonceUnavailable

logger = logging.getLogger(__name__)


class NonceAllocator:
    """
    Per-account sequence numbers backed by a Redis counter.

    INCR is atomic on the server, so concurrent bets from one account always
    get distinct, increasing values. This class is the only writer of the key.
    """

    def __init__(self, redis):
        self.r = redis

    async def next(self, account: str) -> int:
        try:
            return int(await self.r.incr(k_nonce(account)))
        except RedisError as e:
            logger.error("nonce incr failed account=%s: %s", account, e)
            raise NonceUnavailable(f"nonce service unavailable: {e}") from e

    async def peek(self, account: str) -> Optional[int]:
        """Last issued nonce, None if the account never bet."""
        try:
            v = await self.r.get(k_nonce(account))
        except RedisError as e:
            raise NonceUnavailable(f"nonce service unavailable: {e}") from e
        return int(v) if v is not None else None
