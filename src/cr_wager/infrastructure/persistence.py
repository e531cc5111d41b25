"""WagerRepository: raw SQL persistence implementation.

Settlement and payout writes are conditional:
  - settlement:   WHERE status = 'PENDING'              (set exactly once)
  - claim:        WHERE payout_confirmation IS NULL AND claim free or stale
  - confirmation: WHERE payout_confirmation IS NULL     (set at most once)

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_wager.domain.models import Wager

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, round_id, owner_key, side, net_amount,
    paid_asset, gross_paid, quote_received, platform_fee, transaction_ref,
    status, payout, payout_confirmation, payout_claimed_at,
    username, is_anonymous, settled_at, paid_at, created_at, updated_at
"""

_INSERT_WAGER_SQL = text(f"""
    INSERT INTO wagers (id, round_id, owner_key, side, net_amount,
        paid_asset, gross_paid, quote_received, platform_fee, transaction_ref,
        status, payout, username, is_anonymous)
    VALUES (:id, :round_id, :owner_key, :side, :net_amount,
        :paid_asset, :gross_paid, :quote_received, :platform_fee, :transaction_ref,
        'PENDING', 0, :username, :is_anonymous)
    RETURNING {_SELECT_COLUMNS}
""")

_LIST_BY_ROUND_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    WHERE round_id = :round_id
    ORDER BY id
""")

_LIST_BY_OWNER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    WHERE owner_key = :owner_key
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_RECENT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    ORDER BY id DESC
    LIMIT :limit
""")

_APPLY_SETTLEMENT_SQL = text("""
    UPDATE wagers
    SET status = :status,
        payout = :payout,
        settled_at = :settled_at,
        updated_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING id
""")

_LIST_AWAITING_PAYOUT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wagers
    WHERE payout > 0
      AND payout_confirmation IS NULL
      AND status IN ('WON', 'REFUNDED')
    ORDER BY settled_at, id
    LIMIT :limit
""")

_CLAIM_PAYOUT_SQL = text("""
    UPDATE wagers
    SET payout_claimed_at = :now,
        updated_at = NOW()
    WHERE id = :id
      AND payout > 0
      AND payout_confirmation IS NULL
      AND (payout_claimed_at IS NULL OR payout_claimed_at < :stale_before)
    RETURNING id
""")

_RELEASE_CLAIM_SQL = text("""
    UPDATE wagers
    SET payout_claimed_at = NULL,
        updated_at = NOW()
    WHERE id = :id AND payout_confirmation IS NULL
""")

_RECORD_CONFIRMATION_SQL = text("""
    UPDATE wagers
    SET payout_confirmation = :confirmation,
        paid_at = :paid_at,
        updated_at = NOW()
    WHERE id = :id AND payout_confirmation IS NULL
    RETURNING id
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_wager(row: Any) -> Wager:
    return Wager(
        id=row.id,
        round_id=row.round_id,
        owner_key=row.owner_key,
        side=row.side,
        net_amount=row.net_amount,
        paid_asset=row.paid_asset,
        gross_paid=row.gross_paid,
        quote_received=row.quote_received,
        platform_fee=row.platform_fee,
        transaction_ref=row.transaction_ref,
        status=row.status,
        payout=row.payout,
        payout_confirmation=row.payout_confirmation,
        payout_claimed_at=row.payout_claimed_at,
        username=row.username,
        is_anonymous=row.is_anonymous,
        settled_at=row.settled_at,
        paid_at=row.paid_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class WagerRepository:
    async def insert_wager(self, db: AsyncSession, wager: Wager) -> Wager:
        result = await db.execute(
            _INSERT_WAGER_SQL,
            {
                "id": wager.id,
                "round_id": wager.round_id,
                "owner_key": wager.owner_key,
                "side": wager.side,
                "net_amount": wager.net_amount,
                "paid_asset": wager.paid_asset,
                "gross_paid": wager.gross_paid,
                "quote_received": wager.quote_received,
                "platform_fee": wager.platform_fee,
                "transaction_ref": wager.transaction_ref,
                "username": wager.username,
                "is_anonymous": wager.is_anonymous,
            },
        )
        return _row_to_wager(result.fetchone())

    async def list_by_round(self, db: AsyncSession, round_id: str) -> list[Wager]:
        result = await db.execute(_LIST_BY_ROUND_SQL, {"round_id": round_id})
        return [_row_to_wager(row) for row in result.fetchall()]

    async def list_by_owner(
        self,
        db: AsyncSession,
        owner_key: str,
        cursor_id: str | None,
        limit: int,
    ) -> list[Wager]:
        result = await db.execute(
            _LIST_BY_OWNER_SQL,
            {"owner_key": owner_key, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_wager(row) for row in result.fetchall()]

    async def list_recent(self, db: AsyncSession, limit: int) -> list[Wager]:
        result = await db.execute(_LIST_RECENT_SQL, {"limit": limit})
        return [_row_to_wager(row) for row in result.fetchall()]

    async def apply_settlement(
        self,
        db: AsyncSession,
        wager_id: str,
        status: str,
        payout: int,
        settled_at: datetime,
    ) -> bool:
        """PENDING -> WON/LOST/REFUNDED. False if the wager was already settled."""
        result = await db.execute(
            _APPLY_SETTLEMENT_SQL,
            {"id": wager_id, "status": status, "payout": payout, "settled_at": settled_at},
        )
        return result.fetchone() is not None

    async def list_awaiting_payout(self, db: AsyncSession, limit: int) -> list[Wager]:
        """Settled wagers owed money with no confirmation yet, oldest settlement first."""
        result = await db.execute(_LIST_AWAITING_PAYOUT_SQL, {"limit": limit})
        return [_row_to_wager(row) for row in result.fetchall()]

    async def claim_payout(
        self,
        db: AsyncSession,
        wager_id: str,
        now: datetime,
        stale_before: datetime,
    ) -> bool:
        """Take the payout lease. False if confirmed or another worker holds a live claim."""
        result = await db.execute(
            _CLAIM_PAYOUT_SQL,
            {"id": wager_id, "now": now, "stale_before": stale_before},
        )
        return result.fetchone() is not None

    async def release_payout_claim(self, db: AsyncSession, wager_id: str) -> None:
        await db.execute(_RELEASE_CLAIM_SQL, {"id": wager_id})

    async def record_payout_confirmation(
        self,
        db: AsyncSession,
        wager_id: str,
        confirmation: str,
        paid_at: datetime,
    ) -> bool:
        result = await db.execute(
            _RECORD_CONFIRMATION_SQL,
            {"id": wager_id, "confirmation": confirmation, "paid_at": paid_at},
        )
        return result.fetchone() is not None
