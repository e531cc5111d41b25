"""WagerApplicationService: wager placement and wager reads.

place_wager flow:
  1. Reject unknown symbols and rounds that are missing or no longer OPEN.
  2. Normalize the payment to net quote units (swap + fee). This talks to the
     payment rail, so it runs before any write: a failed swap changes nothing.
  3. One transaction: pool credit + wager insert (Pool Accountant) and the
     owner's account rollup. The pool credit re-checks status = 'OPEN' under
     the round's row lock, so a round that locked during step 2 still rejects.

estimate runs step 2 against a rail quote instead of a swap and writes nothing.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.datetime_utils import utc_now
from src.cr_common.enums import RoundStatus
from src.cr_common.errors import (
    InternalError,
    InvalidSymbolError,
    RoundNotFoundError,
    RoundNotOpenError,
)
from src.cr_common.id_generator import generate_id
from src.cr_common.units import units_to_display
from src.cr_payment.domain.normalization import (
    NormalizationPolicy,
    estimate_contribution,
    normalize_contribution,
)
from src.cr_payment.domain.rail import SwapClientProtocol
from src.cr_round.application.schemas import CurrentRoundResponse
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.repository import RoundRepositoryProtocol
from src.cr_round.infrastructure.persistence import RoundRepository
from src.cr_wager.application.schemas import (
    ContributionEstimateResponse,
    LiveWagerFeed,
    LiveWagerItem,
    PlaceWagerRequest,
    PlaceWagerResponse,
    WagerListResponse,
    WagerResponse,
    cursor_decode,
    cursor_encode,
)
from src.cr_wager.domain.models import Wager
from src.cr_wager.domain.pool_accountant import apply_contribution
from src.cr_wager.domain.repository import WagerRepositoryProtocol
from src.cr_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


class WagerApplicationService:
    def __init__(
        self,
        config: RoundConfig,
        policy: NormalizationPolicy,
        swap_client: SwapClientProtocol,
        round_repo: RoundRepositoryProtocol | None = None,
        wager_repo: WagerRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._config = config
        self._policy = policy
        self._swap_client = swap_client
        self._round_repo: RoundRepositoryProtocol = round_repo or RoundRepository()
        self._wager_repo: WagerRepositoryProtocol = wager_repo or WagerRepository()
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()

    async def place_wager(
        self, db: AsyncSession, body: PlaceWagerRequest
    ) -> PlaceWagerResponse:
        if body.symbol not in self._config.active_symbols:
            raise InvalidSymbolError(body.symbol)

        round_ = await self._round_repo.get_round_by_id(db, body.round_id)
        if round_ is None or round_.symbol != body.symbol:
            raise RoundNotFoundError(body.round_id)
        if round_.status != RoundStatus.OPEN:
            raise RoundNotOpenError(round_.id, round_.status)

        normalized = await normalize_contribution(
            body.paid_asset, body.paid_amount, self._swap_client, self._policy
        )

        wager = Wager(
            id=generate_id(),
            round_id=round_.id,
            owner_key=body.owner_key,
            side=body.side,
            net_amount=normalized.net_amount,
            paid_asset=normalized.paid_asset,
            gross_paid=normalized.gross_paid,
            quote_received=normalized.quote_received,
            platform_fee=normalized.platform_fee,
            transaction_ref=body.transaction_ref or normalized.transaction_ref,
            username=body.username,
            is_anonymous=body.is_anonymous,
        )
        try:
            stored = await apply_contribution(db, wager, self._wager_repo)
            await self._account_repo.record_wager(
                db, wager.owner_key, wager.net_amount, wager.username, wager.is_anonymous
            )
            updated_round = await self._round_repo.get_round_by_id(db, round_.id)
            if updated_round is None:
                raise InternalError(f"Round {round_.id} vanished during wager placement")
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Wager placed: id=%s round=%s side=%s net=%d fee=%d asset=%s",
            stored.id,
            stored.round_id,
            stored.side,
            stored.net_amount,
            stored.platform_fee,
            stored.paid_asset,
        )
        return PlaceWagerResponse(
            wager=WagerResponse.from_domain(stored),
            round=CurrentRoundResponse.from_domain(updated_round, utc_now()),
        )

    async def list_wagers(
        self,
        db: AsyncSession,
        owner_key: str,
        cursor: str | None,
        limit: int,
    ) -> WagerListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        wagers = await self._wager_repo.list_by_owner(db, owner_key, cursor_id, limit + 1)
        has_more = len(wagers) > limit
        page = wagers[:limit]
        return WagerListResponse(
            items=[WagerResponse.from_domain(w) for w in page],
            next_cursor=cursor_encode(page[-1]) if has_more and page else None,
            has_more=has_more,
        )

    async def live_feed(self, db: AsyncSession, limit: int) -> LiveWagerFeed:
        wagers = await self._wager_repo.list_recent(db, limit)
        return LiveWagerFeed(items=[LiveWagerItem.from_domain(w) for w in wagers])

    async def estimate(self, asset: str, amount: Decimal) -> ContributionEstimateResponse:
        estimate = await estimate_contribution(asset, amount, self._swap_client, self._policy)
        return ContributionEstimateResponse(
            paid_asset=estimate.paid_asset,
            paid_amount=str(amount),
            quote_units=estimate.quote_received,
            platform_fee_units=estimate.platform_fee,
            fee_rate_bps=self._policy.fee_bps_for(estimate.paid_asset),
            net_amount_units=estimate.net_amount,
            net_amount_display=units_to_display(estimate.net_amount),
        )
