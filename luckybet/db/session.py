from sqlalchemy import BigInteger, Integer
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# sqlite 只对 INTEGER 主键自增
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def make_engine(dsn: str, **kwargs) -> AsyncEngine:
    if dsn.startswith("mysql"):
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 3600)
    return create_async_engine(dsn, **kwargs)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    # 确保模型已注册到 Base.metadata
    import luckybet.models.bet  # noqa: F401
    import luckybet.models.result  # noqa: F401
    import luckybet.models.block  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
