"""Repository Protocol: dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.models import Account


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, owner_key: str) -> Account | None: ...

    async def record_wager(
        self,
        db: AsyncSession,
        owner_key: str,
        net_amount: int,
        username: str | None,
        is_anonymous: bool,
    ) -> None: ...

    async def record_win(self, db: AsyncSession, owner_key: str, profit: int) -> None: ...

    async def record_loss(self, db: AsyncSession, owner_key: str, net_amount: int) -> None: ...

    async def update_profile(
        self,
        db: AsyncSession,
        owner_key: str,
        username: str | None,
        avatar: str | None,
        is_anonymous: bool,
    ) -> Account: ...

    async def list_rankings(
        self, db: AsyncSession, sort_by: str, limit: int
    ) -> list[Account]: ...
