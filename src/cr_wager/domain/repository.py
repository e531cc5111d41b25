"""Repository Protocol: dependency inversion for testability."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_wager.domain.models import Wager


class WagerRepositoryProtocol(Protocol):
    async def insert_wager(self, db: AsyncSession, wager: Wager) -> Wager: ...

    async def list_by_round(self, db: AsyncSession, round_id: str) -> list[Wager]: ...

    async def list_by_owner(
        self,
        db: AsyncSession,
        owner_key: str,
        cursor_id: str | None,
        limit: int,
    ) -> list[Wager]: ...

    async def list_recent(self, db: AsyncSession, limit: int) -> list[Wager]: ...

    async def apply_settlement(
        self,
        db: AsyncSession,
        wager_id: str,
        status: str,
        payout: int,
        settled_at: datetime,
    ) -> bool: ...

    async def list_awaiting_payout(self, db: AsyncSession, limit: int) -> list[Wager]: ...

    async def claim_payout(
        self,
        db: AsyncSession,
        wager_id: str,
        now: datetime,
        stale_before: datetime,
    ) -> bool: ...

    async def release_payout_claim(self, db: AsyncSession, wager_id: str) -> None: ...

    async def record_payout_confirmation(
        self,
        db: AsyncSession,
        wager_id: str,
        confirmation: str,
        paid_at: datetime,
    ) -> bool: ...
