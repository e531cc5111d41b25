"""SQLAlchemy ORM model for the accounts table.

Used for type reference only; persistence.py uses raw text() SQL.
Alembic migrations (002_create_accounts.py) are the authoritative DDL source.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.cr_common.database import Base


class AccountORM(Base):
    __tablename__ = "accounts"

    owner_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    total_wagers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_volume: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_profit: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    username: Mapped[str | None] = mapped_column(String(64))
    avatar: Mapped[str | None] = mapped_column(String(512))
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
