from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, BigInteger, Index, func
from luckybet.db.session import Base, BigIntPK


class Bet(Base):
    __tablename__ = "bets"
    __table_args__ = (
        Index("ix_bets_account_time", "account", "bet_time"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    account: Mapped[str] = mapped_column(String(64), nullable=False)
    lucky_number: Mapped[int] = mapped_column(Integer, nullable=False)
    bet_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    bet_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    client_ip: Mapped[str | None] = mapped_column(String(64))
    nonce: Mapped[int | None] = mapped_column(BigInteger)
    tx_hash: Mapped[str | None] = mapped_column(String(128), unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
