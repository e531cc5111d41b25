"""RoundRepository: concrete implementation of RoundRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Every lifecycle write is conditional on the current status, so a repeated or
concurrent scheduler run can never move a round backwards or twice:
  - insert:  ON CONFLICT (symbol, start_time) DO NOTHING
  - lock:    WHERE status = 'OPEN'   AND start_time <= now
  - settle:  WHERE status = 'LOCKED' (compare-and-swap, 0 rows = lost the race)

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_round.domain.models import Round

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_ROUND_COLUMNS = """
    id, symbol, timeframe, start_time, end_time, status,
    total_green, total_red, bonus_boost, fee_rate_bps,
    winner_side, multiplier_green, multiplier_red,
    open_price, close_price, locked_at, settled_at,
    created_at, updated_at
"""

_GET_ROUND_SQL = text(f"""
    SELECT {_ROUND_COLUMNS}
    FROM rounds
    WHERE id = :round_id
""")

_GET_CURRENT_OPEN_SQL = text(f"""
    SELECT {_ROUND_COLUMNS}
    FROM rounds
    WHERE symbol = :symbol AND status = 'OPEN'
    ORDER BY start_time DESC
    LIMIT 1
""")

_LIST_SETTLED_SQL = text(f"""
    SELECT {_ROUND_COLUMNS}
    FROM rounds
    WHERE symbol = :symbol AND status = 'SETTLED'
    ORDER BY end_time DESC
    LIMIT :limit
""")

_INSERT_ROUND_SQL = text("""
    INSERT INTO rounds
        (id, symbol, timeframe, start_time, end_time, status,
         total_green, total_red, bonus_boost, fee_rate_bps)
    VALUES
        (:id, :symbol, :timeframe, :start_time, :end_time, 'OPEN',
         0, 0, :bonus_boost, :fee_rate_bps)
    ON CONFLICT (symbol, start_time) DO NOTHING
    RETURNING id
""")

_LOCK_DUE_SQL = text("""
    UPDATE rounds
    SET status = 'LOCKED',
        locked_at = :now,
        updated_at = NOW()
    WHERE status = 'OPEN' AND start_time <= :now
    RETURNING id, symbol
""")

_LIST_SETTLEABLE_SQL = text(f"""
    SELECT {_ROUND_COLUMNS}
    FROM rounds
    WHERE status = 'LOCKED' AND end_time <= :now
    ORDER BY end_time, id
""")

_MARK_SETTLED_SQL = text("""
    UPDATE rounds
    SET status = 'SETTLED',
        winner_side = :winner_side,
        multiplier_green = :multiplier_green,
        multiplier_red = :multiplier_red,
        open_price = :open_price,
        close_price = :close_price,
        settled_at = :settled_at,
        updated_at = NOW()
    WHERE id = :round_id AND status = 'LOCKED'
    RETURNING id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_round(row: object) -> Round:
    return Round(
        id=row.id,  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        timeframe=row.timeframe,  # type: ignore[attr-defined]
        start_time=row.start_time,  # type: ignore[attr-defined]
        end_time=row.end_time,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        total_green=row.total_green,  # type: ignore[attr-defined]
        total_red=row.total_red,  # type: ignore[attr-defined]
        bonus_boost=row.bonus_boost,  # type: ignore[attr-defined]
        fee_rate_bps=row.fee_rate_bps,  # type: ignore[attr-defined]
        winner_side=row.winner_side,  # type: ignore[attr-defined]
        multiplier_green=row.multiplier_green,  # type: ignore[attr-defined]
        multiplier_red=row.multiplier_red,  # type: ignore[attr-defined]
        open_price=row.open_price,  # type: ignore[attr-defined]
        close_price=row.close_price,  # type: ignore[attr-defined]
        locked_at=row.locked_at,  # type: ignore[attr-defined]
        settled_at=row.settled_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RoundRepository:
    """Concrete repository: lifecycle writes are conditional UPDATEs."""

    async def get_round_by_id(
        self, db: AsyncSession, round_id: str
    ) -> Round | None:
        result = await db.execute(_GET_ROUND_SQL, {"round_id": round_id})
        row = result.fetchone()
        return _row_to_round(row) if row else None

    async def get_current_open_round(
        self, db: AsyncSession, symbol: str
    ) -> Round | None:
        result = await db.execute(_GET_CURRENT_OPEN_SQL, {"symbol": symbol})
        row = result.fetchone()
        return _row_to_round(row) if row else None

    async def list_settled_rounds(
        self, db: AsyncSession, symbol: str, limit: int
    ) -> list[Round]:
        result = await db.execute(_LIST_SETTLED_SQL, {"symbol": symbol, "limit": limit})
        return [_row_to_round(row) for row in result.fetchall()]

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
    ) -> bool:
        """Return True if inserted, False if (symbol, start_time) already had a round."""
        result = await db.execute(
            _INSERT_ROUND_SQL,
            {
                "id": round_id,
                "symbol": symbol,
                "timeframe": timeframe,
                "start_time": start_time,
                "end_time": end_time,
                "bonus_boost": bonus_boost,
                "fee_rate_bps": fee_rate_bps,
            },
        )
        return result.fetchone() is not None

    async def lock_due_rounds(
        self, db: AsyncSession, now: datetime
    ) -> list[tuple[str, str]]:
        """OPEN -> LOCKED for every round whose window has started. Returns (id, symbol)."""
        result = await db.execute(_LOCK_DUE_SQL, {"now": now})
        return [(row.id, row.symbol) for row in result.fetchall()]

    async def list_settleable_rounds(
        self, db: AsyncSession, now: datetime
    ) -> list[Round]:
        result = await db.execute(_LIST_SETTLEABLE_SQL, {"now": now})
        return [_row_to_round(row) for row in result.fetchall()]

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
    ) -> bool:
        """LOCKED -> SETTLED compare-and-swap. False means another run already settled it."""
        result = await db.execute(
            _MARK_SETTLED_SQL,
            {
                "round_id": round_id,
                "winner_side": winner_side,
                "multiplier_green": multiplier_green,
                "multiplier_red": multiplier_red,
                "open_price": open_price,
                "close_price": close_price,
                "settled_at": settled_at,
            },
        )
        return result.fetchone() is not None
