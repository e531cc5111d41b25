"""AccountRepository: raw SQL persistence for the per-owner rollup.

Every rollup write is a single-statement upsert or increment, so concurrent
wagers and settlements for the same owner never lose an update.

Transaction ownership: the CALLER commits or rolls back. record_wager runs in
the wager transaction; record_loss in the settlement transaction; record_win
in the payout confirmation transaction.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.models import Account
from src.cr_common.enums import RankingSort

_SELECT_COLUMNS = """
    owner_key, total_wagers, total_volume, total_wins, total_losses, total_profit,
    username, avatar, is_anonymous, created_at, updated_at
"""

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM accounts
    WHERE owner_key = :owner_key
""")

_RECORD_WAGER_SQL = text("""
    INSERT INTO accounts (owner_key, total_wagers, total_volume, username, is_anonymous)
    VALUES (:owner_key, 1, :net_amount, :username, :is_anonymous)
    ON CONFLICT (owner_key) DO UPDATE
    SET total_wagers = accounts.total_wagers + 1,
        total_volume = accounts.total_volume + EXCLUDED.total_volume,
        username = COALESCE(accounts.username, EXCLUDED.username),
        updated_at = NOW()
""")

_RECORD_WIN_SQL = text("""
    UPDATE accounts
    SET total_wins = total_wins + 1,
        total_profit = total_profit + :profit,
        updated_at = NOW()
    WHERE owner_key = :owner_key
""")

_RECORD_LOSS_SQL = text("""
    UPDATE accounts
    SET total_losses = total_losses + 1,
        total_profit = total_profit - :net_amount,
        updated_at = NOW()
    WHERE owner_key = :owner_key
""")

_UPDATE_PROFILE_SQL = text(f"""
    INSERT INTO accounts (owner_key, username, avatar, is_anonymous)
    VALUES (:owner_key, :username, :avatar, :is_anonymous)
    ON CONFLICT (owner_key) DO UPDATE
    SET username = EXCLUDED.username,
        avatar = EXCLUDED.avatar,
        is_anonymous = EXCLUDED.is_anonymous,
        updated_at = NOW()
    RETURNING {_SELECT_COLUMNS}
""")

# ORDER BY cannot be a bind parameter; map the validated sort key to a fixed clause.
_RANKING_ORDER = {
    RankingSort.PROFIT: "total_profit DESC, total_wins DESC",
    RankingSort.VOLUME: "total_volume DESC, total_wagers DESC",
    RankingSort.WINS: "total_wins DESC, total_profit DESC",
}

_RANKINGS_SQL = {
    sort: text(f"""
        SELECT {_SELECT_COLUMNS}
        FROM accounts
        WHERE total_wagers > 0
        ORDER BY {order_by}, owner_key
        LIMIT :limit
    """)
    for sort, order_by in _RANKING_ORDER.items()
}


def _row_to_account(row: Any) -> Account:
    return Account(
        owner_key=row.owner_key,
        total_wagers=row.total_wagers,
        total_volume=row.total_volume,
        total_wins=row.total_wins,
        total_losses=row.total_losses,
        total_profit=row.total_profit,
        username=row.username,
        avatar=row.avatar,
        is_anonymous=row.is_anonymous,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class AccountRepository:
    async def get_account(self, db: AsyncSession, owner_key: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"owner_key": owner_key})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def record_wager(
        self,
        db: AsyncSession,
        owner_key: str,
        net_amount: int,
        username: str | None,
        is_anonymous: bool,
    ) -> None:
        """Create the account on first wager; bump count and volume."""
        await db.execute(
            _RECORD_WAGER_SQL,
            {
                "owner_key": owner_key,
                "net_amount": net_amount,
                "username": username,
                "is_anonymous": is_anonymous,
            },
        )

    async def record_win(self, db: AsyncSession, owner_key: str, profit: int) -> None:
        await db.execute(_RECORD_WIN_SQL, {"owner_key": owner_key, "profit": profit})

    async def record_loss(self, db: AsyncSession, owner_key: str, net_amount: int) -> None:
        await db.execute(
            _RECORD_LOSS_SQL, {"owner_key": owner_key, "net_amount": net_amount}
        )

    async def update_profile(
        self,
        db: AsyncSession,
        owner_key: str,
        username: str | None,
        avatar: str | None,
        is_anonymous: bool,
    ) -> Account:
        result = await db.execute(
            _UPDATE_PROFILE_SQL,
            {
                "owner_key": owner_key,
                "username": username,
                "avatar": avatar,
                "is_anonymous": is_anonymous,
            },
        )
        return _row_to_account(result.fetchone())

    async def list_rankings(
        self, db: AsyncSession, sort_by: str, limit: int
    ) -> list[Account]:
        sql = _RANKINGS_SQL[RankingSort(sort_by)]
        result = await db.execute(sql, {"limit": limit})
        return [_row_to_account(row) for row in result.fetchall()]
