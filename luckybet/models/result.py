from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, BigInteger, UniqueConstraint, func
from luckybet.db.session import Base, BigIntPK


class Result(Base):
    """One settled round. ``round`` is never reused."""
    __tablename__ = "results"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    round: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    lucky_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[int] = mapped_column(Integer, default=0)   # 参与注数
    win: Mapped[int] = mapped_column(Integer, default=0)     # 中奖注数
    award: Mapped[int] = mapped_column(BigInteger, default=0)
    time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (
        UniqueConstraint("round", "account", name="uq_rewards_round_account"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    round: Mapped[int] = mapped_column(BigInteger, nullable=False)
    account: Mapped[str] = mapped_column(String(64), nullable=False)
    reward: Mapped[int] = mapped_column(BigInteger, default=0)
    times: Mapped[int] = mapped_column(Integer, default=0)


class RoundStake(Base):
    """Amount an account staked in a round, as reported by the settlement."""
    __tablename__ = "round_stakes"
    __table_args__ = (
        UniqueConstraint("round", "account", name="uq_round_stakes_round_account"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    round: Mapped[int] = mapped_column(BigInteger, nullable=False)
    account: Mapped[str] = mapped_column(String(64), nullable=False)
    bet: Mapped[int] = mapped_column(BigInteger, default=0)
