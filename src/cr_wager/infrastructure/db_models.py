"""SQLAlchemy ORM model for the wagers table.

Used for type reference only; persistence.py uses raw text() SQL.
Alembic migrations (004_create_wagers.py) are the authoritative DDL source.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.cr_common.database import Base


class WagerORM(Base):
    __tablename__ = "wagers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    round_id: Mapped[str] = mapped_column(String(64), ForeignKey("rounds.id"), nullable=False)
    owner_key: Mapped[str] = mapped_column(String(128), nullable=False)
    side: Mapped[str] = mapped_column(String(10), nullable=False)
    net_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    paid_asset: Mapped[str] = mapped_column(String(16), nullable=False)
    gross_paid: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    quote_received: Mapped[int] = mapped_column(BigInteger, nullable=False)
    platform_fee: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_ref: Mapped[str | None] = mapped_column(String(128))
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="PENDING")
    payout: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    payout_confirmation: Mapped[str | None] = mapped_column(String(128))
    payout_claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    username: Mapped[str | None] = mapped_column(String(64))
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
