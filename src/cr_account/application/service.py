"""AccountApplicationService: profile reads/updates and the leaderboard.

get_profile and get_rankings are read-only. update_profile commits its own
transaction. Rollup writes (record_wager/win/loss) are not exposed here: they
run inside the wager, settlement and payout transactions.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.application.schemas import (
    AccountResponse,
    RankingEntry,
    RankingsResponse,
    UpdateProfileRequest,
)
from src.cr_account.domain.models import Account
from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.enums import RankingSort


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_profile(self, db: AsyncSession, owner_key: str) -> AccountResponse:
        account = await self._repo.get_account(db, owner_key)
        # An owner with no wagers and no profile yet reads as an empty account.
        return AccountResponse.from_domain(account or Account(owner_key=owner_key))

    async def update_profile(
        self, db: AsyncSession, owner_key: str, body: UpdateProfileRequest
    ) -> AccountResponse:
        try:
            account = await self._repo.update_profile(
                db, owner_key, body.username, body.avatar, body.is_anonymous
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return AccountResponse.from_domain(account)

    async def get_rankings(
        self, db: AsyncSession, sort_by: RankingSort, limit: int
    ) -> RankingsResponse:
        accounts = await self._repo.list_rankings(db, sort_by.value, limit)
        return RankingsResponse(
            sort_by=sort_by.value,
            items=[RankingEntry.from_domain(i + 1, a) for i, a in enumerate(accounts)],
        )
