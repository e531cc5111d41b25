"""Payout orchestration: exactly one effective transfer per owed wager.

Per wager, three short transactions around one external call:
  1. claim    payout_claimed_at = now, only if unconfirmed and the claim is
              free or older than the claim TTL. Losing the claim -> skip.
  2. transfer issuer.transfer(owner, payout, idempotency_key=wager.id),
              outside any transaction.
  3. confirm  payout_confirmation recorded (only if still NULL) together with
              the WON account rollup. On TransferFailedError the claim is
              released instead, and the next sweep retries.

If the process dies between 2 and 3 the claim goes stale, a later sweep
transfers again with the same idempotency key, and the rail returns the
original confirmation instead of paying twice.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.database import SessionFactory
from src.cr_common.datetime_utils import utc_now
from src.cr_common.enums import WagerStatus
from src.cr_common.errors import TransferFailedError
from src.cr_payment.domain.rail import PayoutIssuerProtocol
from src.cr_round.domain.config import RoundConfig
from src.cr_wager.domain.models import Wager
from src.cr_wager.domain.repository import WagerRepositoryProtocol
from src.cr_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


class PayoutOutcome(str, Enum):
    PAID = "paid"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PayoutSweepResult:
    paid: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.paid + self.failed + self.skipped


class PayoutDispatcher:
    def __init__(
        self,
        session_factory: SessionFactory,
        issuer: PayoutIssuerProtocol,
        config: RoundConfig,
        wager_repo: WagerRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._issuer = issuer
        self._claim_ttl = timedelta(seconds=config.payout_claim_ttl_seconds)
        self._sweep_limit = config.payout_sweep_limit
        self._wager_repo: WagerRepositoryProtocol = wager_repo or WagerRepository()
        self._account_repo: AccountRepositoryProtocol = account_repo or AccountRepository()

    async def sweep(self, limit: int | None = None) -> PayoutSweepResult:
        """Pay every settled wager still owed money, oldest settlement first."""
        async with self._session_factory() as db:
            wagers = await self._wager_repo.list_awaiting_payout(
                db, limit or self._sweep_limit
            )

        result = PayoutSweepResult()
        for wager in wagers:
            try:
                outcome = await self.pay_wager(wager)
            except Exception as exc:
                # Claim stays until it goes stale; the wager is retried then.
                logger.exception("Payout for wager %s failed unexpectedly", wager.id)
                result.failed += 1
                result.failures.append(f"{wager.id}: {exc}")
                continue
            if outcome == PayoutOutcome.PAID:
                result.paid += 1
            elif outcome == PayoutOutcome.FAILED:
                result.failed += 1
                result.failures.append(f"{wager.id}: transfer failed")
            else:
                result.skipped += 1
        return result

    async def pay_wager(self, wager: Wager) -> PayoutOutcome:
        now = utc_now()
        async with self._session_factory() as db:
            try:
                claimed = await self._wager_repo.claim_payout(
                    db, wager.id, now, now - self._claim_ttl
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        if not claimed:
            logger.debug("Wager %s payout claimed elsewhere or already confirmed", wager.id)
            return PayoutOutcome.SKIPPED

        try:
            confirmation = await self._issuer.transfer(
                wager.owner_key, wager.payout, idempotency_key=wager.id
            )
        except TransferFailedError as exc:
            logger.warning("Payout for wager %s deferred: %s", wager.id, exc.message)
            await self._release(wager.id)
            return PayoutOutcome.FAILED

        async with self._session_factory() as db:
            try:
                recorded = await self._wager_repo.record_payout_confirmation(
                    db, wager.id, confirmation, utc_now()
                )
                if recorded and wager.status == WagerStatus.WON:
                    await self._account_repo.record_win(
                        db, wager.owner_key, wager.payout - wager.net_amount
                    )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if not recorded:
            logger.info("Wager %s already confirmed, ignoring %s", wager.id, confirmation)
            return PayoutOutcome.SKIPPED
        logger.info(
            "Payout confirmed: wager=%s owner=%s amount=%d confirmation=%s",
            wager.id,
            wager.owner_key,
            wager.payout,
            confirmation,
        )
        return PayoutOutcome.PAID

    async def _release(self, wager_id: str) -> None:
        async with self._session_factory() as db:
            try:
                await self._wager_repo.release_payout_claim(db, wager_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
