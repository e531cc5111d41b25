"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_round.domain.models import Round


class RoundRepositoryProtocol(Protocol):
    async def get_round_by_id(
        self, db: AsyncSession, round_id: str
    ) -> Round | None: ...

    async def get_current_open_round(
        self, db: AsyncSession, symbol: str
    ) -> Round | None: ...

    async def list_settled_rounds(
        self, db: AsyncSession, symbol: str, limit: int
    ) -> list[Round]: ...

    async def insert_round_if_absent(
        self,
        db: AsyncSession,
        round_id: str,
        symbol: str,
        timeframe: str,
        start_time: datetime,
        end_time: datetime,
        bonus_boost: int,
        fee_rate_bps: int,
    ) -> bool: ...

    async def lock_due_rounds(
        self, db: AsyncSession, now: datetime
    ) -> list[tuple[str, str]]: ...

    async def list_settleable_rounds(
        self, db: AsyncSession, now: datetime
    ) -> list[Round]: ...

    async def mark_settled(
        self,
        db: AsyncSession,
        round_id: str,
        winner_side: str,
        multiplier_green: Decimal | None,
        multiplier_red: Decimal | None,
        open_price: Decimal,
        close_price: Decimal,
        settled_at: datetime,
    ) -> bool: ...
