"""SQLAlchemy ORM model for the rounds table.

Used for type reference only; persistence.py uses raw text() SQL.
Alembic migrations (003_create_rounds.py) are the authoritative DDL source.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Numeric, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.cr_common.database import Base


class RoundORM(Base):
    __tablename__ = "rounds"
    __table_args__ = (UniqueConstraint("symbol", "start_time", name="uq_rounds_symbol_start"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    timeframe: Mapped[str] = mapped_column(String(8), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    total_green: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_red: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    bonus_boost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    fee_rate_bps: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    winner_side: Mapped[str | None] = mapped_column(String(10))
    multiplier_green: Mapped[Decimal | None] = mapped_column(Numeric(20, 8))
    multiplier_red: Mapped[Decimal | None] = mapped_column(Numeric(20, 8))
    open_price: Mapped[Decimal | None] = mapped_column(Numeric(38, 18))
    close_price: Mapped[Decimal | None] = mapped_column(Numeric(38, 18))
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
