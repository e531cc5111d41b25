"""Pool Accountant: the only writer of round pool totals.

A contribution is one atomic unit with its wager row: the conditional pool
UPDATE and the wager INSERT run in the caller's transaction, so both commit
or neither does.

The UPDATE is conditional on status = 'OPEN' and takes the round's row lock,
which serializes concurrent contributions to the same round (no lost updates)
and also orders them against the scheduler's OPEN -> LOCKED write. Once a
round is LOCKED its totals can no longer change, so settlement reads them
without holding any lock.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.enums import WagerSide
from src.cr_common.errors import (
    InvalidContributionError,
    RoundNotFoundError,
    RoundNotOpenError,
)
from src.cr_wager.domain.models import Wager
from src.cr_wager.domain.repository import WagerRepositoryProtocol

logger = logging.getLogger(__name__)

_CREDIT_GREEN_SQL = text("""
    UPDATE rounds
    SET total_green = total_green + :amount,
        updated_at = NOW()
    WHERE id = :round_id AND status = 'OPEN'
    RETURNING total_green, total_red
""")

_CREDIT_RED_SQL = text("""
    UPDATE rounds
    SET total_red = total_red + :amount,
        updated_at = NOW()
    WHERE id = :round_id AND status = 'OPEN'
    RETURNING total_green, total_red
""")

_ROUND_STATUS_SQL = text("SELECT status FROM rounds WHERE id = :round_id")


async def apply_contribution(
    db: AsyncSession,
    wager: Wager,
    wager_repo: WagerRepositoryProtocol,
) -> Wager:
    """Credit `wager.net_amount` to `wager.side` of its round and persist the wager.

    Raises:
        InvalidContributionError: net_amount <= 0.
        RoundNotFoundError: the round does not exist.
        RoundNotOpenError: the round already locked or settled; pools unchanged.
    """
    if wager.net_amount <= 0:
        raise InvalidContributionError(f"net amount must be > 0, got {wager.net_amount}")

    credit_sql = _CREDIT_GREEN_SQL if wager.side == WagerSide.GREEN else _CREDIT_RED_SQL
    result = await db.execute(
        credit_sql, {"round_id": wager.round_id, "amount": wager.net_amount}
    )
    row = result.fetchone()
    if row is None:
        status_row = (
            await db.execute(_ROUND_STATUS_SQL, {"round_id": wager.round_id})
        ).fetchone()
        if status_row is None:
            raise RoundNotFoundError(wager.round_id)
        raise RoundNotOpenError(wager.round_id, status_row.status)

    stored = await wager_repo.insert_wager(db, wager)
    logger.debug(
        "Contribution applied: round=%s side=%s net=%d pools=(%d, %d)",
        wager.round_id,
        wager.side,
        wager.net_amount,
        row.total_green,
        row.total_red,
    )
    return stored
