import asyncio

import pytest

from conftest import FakeRedis
from luckybet.core.errors import NonceUnavailable
from luckybet.services.nonce_service import NonceAllocator


async def test_concurrent_nonces_are_distinct_and_ordered(redis):
    nonces = NonceAllocator(redis)

    got = await asyncio.gather(*[nonces.next("alice") for _ in range(50)])

    assert len(set(got)) == 50
    # gather 按调用顺序返回结果
    assert got == sorted(got)
    assert await nonces.peek("alice") == 50


async def test_accounts_have_independent_counters(redis):
    nonces = NonceAllocator(redis)
    assert await nonces.next("alice") == 1
    assert await nonces.next("bob") == 1
    assert await nonces.next("alice") == 2
    assert await nonces.peek("carol") is None


async def test_backing_store_down_raises_nonce_unavailable():
    nonces = NonceAllocator(FakeRedis(down=True))
    with pytest.raises(NonceUnavailable) as ei:
        await nonces.next("alice")
    assert ei.value.code == 5
