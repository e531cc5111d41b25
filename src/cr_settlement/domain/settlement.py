"""Settlement Engine: LOCKED -> SETTLED for one round.

Sequence for a round whose window has ended:
  1. Observe (open, close) from the price oracle. No database work happens
     before this call, so a slow or failing oracle never holds a transaction.
     ObservationUnavailableError propagates and the round stays LOCKED.
  2. Read the round's wagers and compute the plan (pure, see settlement_plan).
  3. One transaction: round CAS (WHERE status = 'LOCKED'), every wager's
     status/payout (WHERE status = 'PENDING'), and the LOST account rollups.
     A CAS miss means a concurrent run already settled the round: roll back
     and report SKIPPED. The plan is never recomputed over a settled round.

Payout transfers are not made here. Settled wagers with payout > 0 and no
confirmation are picked up by PayoutDispatcher.sweep(), which is also how a
crash between commit and payout recovers.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.datetime_utils import utc_now
from src.cr_common.enums import RoundStatus, WagerStatus
from src.cr_oracle.domain.oracle import PriceOracleProtocol
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.models import Round
from src.cr_round.domain.repository import RoundRepositoryProtocol
from src.cr_round.infrastructure.persistence import RoundRepository
from src.cr_settlement.domain.settlement_plan import SettlementPlan, plan_settlement
from src.cr_wager.domain.repository import WagerRepositoryProtocol
from src.cr_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


class SettleStatus(str, Enum):
    SETTLED = "settled"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SettlementResult:
    round_id: str
    status: SettleStatus
    plan: SettlementPlan | None = None


class SettlementEngine:
    def __init__(
        self,
        config: RoundConfig,
        oracle: PriceOracleProtocol,
        round_repo: RoundRepositoryProtocol | None = None,
        wager_repo: WagerRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._config = config
        self._oracle = oracle
        self._round_repo: RoundRepositoryProtocol = round_repo or RoundRepository()
        self._wager_repo: WagerRepositoryProtocol = wager_repo or WagerRepository()
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()

    async def settle_round(self, db: AsyncSession, round_: Round) -> SettlementResult:
        """Settle one LOCKED round. Safe to call repeatedly and concurrently.

        Raises:
            ObservationUnavailableError: no price for the window; round untouched.
        """
        if round_.status != RoundStatus.LOCKED:
            return SettlementResult(round_.id, SettleStatus.SKIPPED)

        observation = await self._oracle.get_window_observation(
            round_.symbol, round_.start_time, round_.end_time
        )

        try:
            wagers = await self._wager_repo.list_by_round(db, round_.id)
            plan = plan_settlement(round_, wagers, observation, self._config)
            settled_at = utc_now()

            claimed = await self._round_repo.mark_settled(
                db,
                round_.id,
                plan.winner_side.value,
                plan.multiplier_green,
                plan.multiplier_red,
                plan.open_price,
                plan.close_price,
                settled_at,
            )
            if not claimed:
                await db.rollback()
                logger.info("Round %s already settled by another run, skipping", round_.id)
                return SettlementResult(round_.id, SettleStatus.SKIPPED)

            for ws in plan.wagers:
                applied = await self._wager_repo.apply_settlement(
                    db, ws.wager_id, ws.status.value, ws.payout, settled_at
                )
                if not applied:
                    logger.warning(
                        "Wager %s in round %s was not PENDING at settlement",
                        ws.wager_id,
                        round_.id,
                    )
                    continue
                if ws.status == WagerStatus.LOST:
                    await self._account_repo.record_loss(db, ws.owner_key, ws.net_amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Round %s settled: %s winner=%s open=%s close=%s mult=(%s, %s) "
            "won=%d lost=%d refunded=%d payout=%d",
            round_.id,
            round_.symbol,
            plan.winner_side.value,
            plan.open_price,
            plan.close_price,
            plan.multiplier_green,
            plan.multiplier_red,
            plan.count(WagerStatus.WON),
            plan.count(WagerStatus.LOST),
            plan.count(WagerStatus.REFUNDED),
            plan.total_payout,
        )
        return SettlementResult(round_.id, SettleStatus.SETTLED, plan)
