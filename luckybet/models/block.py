from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, BigInteger
from luckybet.db.session import Base, BigIntPK


class BlockInfo(Base):
    __tablename__ = "blocks"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    height: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
