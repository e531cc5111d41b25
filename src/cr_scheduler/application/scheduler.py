"""Round Lifecycle Scheduler: one polling pass over every round.

Steps, in order, each isolated from the others:
  ensure   create the OPEN round for every active symbol's next window,
           one transaction per symbol
  lock     OPEN -> LOCKED for rounds whose window has started
  settle   LOCKED -> SETTLED for rounds whose window has ended, one at a time
  payouts  sweep settled wagers still owed money

Every write is conditional (unique key or status predicate), so overlapping
runs and retries are harmless; a run only ever moves rounds forward.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.database import SessionFactory
from src.cr_common.datetime_utils import next_window_start, utc_now
from src.cr_common.errors import DuplicateRoundWindowError, ObservationUnavailableError
from src.cr_common.id_generator import generate_id
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.models import RoundWindow
from src.cr_round.domain.repository import RoundRepositoryProtocol
from src.cr_round.infrastructure.persistence import RoundRepository
from src.cr_settlement.domain.payouts import PayoutDispatcher
from src.cr_settlement.domain.settlement import SettlementEngine, SettleStatus

logger = logging.getLogger(__name__)


@dataclass
class SchedulerRunReport:
    started_at: datetime
    finished_at: datetime | None = None
    rounds_created: int = 0
    rounds_existing: int = 0
    rounds_locked: int = 0
    rounds_settled: int = 0
    rounds_skipped: int = 0
    rounds_deferred: int = 0
    payouts_paid: int = 0
    payouts_failed: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def summary(self) -> str:
        text = (
            f"created={self.rounds_created} existing={self.rounds_existing} "
            f"locked={self.rounds_locked} settled={self.rounds_settled} "
            f"skipped={self.rounds_skipped} deferred={self.rounds_deferred} "
            f"paid={self.payouts_paid} payout_failures={self.payouts_failed}"
        )
        if self.failures:
            text += f"; {len(self.failures)} failure(s): " + "; ".join(self.failures)
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.summary,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "rounds_created": self.rounds_created,
            "rounds_existing": self.rounds_existing,
            "rounds_locked": self.rounds_locked,
            "rounds_settled": self.rounds_settled,
            "rounds_skipped": self.rounds_skipped,
            "rounds_deferred": self.rounds_deferred,
            "payouts_paid": self.payouts_paid,
            "payouts_failed": self.payouts_failed,
            "failures": list(self.failures),
        }


class RoundScheduler:
    def __init__(
        self,
        session_factory: SessionFactory,
        config: RoundConfig,
        engine: SettlementEngine,
        dispatcher: PayoutDispatcher,
        round_repo: RoundRepositoryProtocol | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._config = config
        self._engine = engine
        self._dispatcher = dispatcher
        self._round_repo: RoundRepositoryProtocol = round_repo or RoundRepository()

    async def run(self, now: datetime | None = None) -> SchedulerRunReport:
        now = now or utc_now()
        report = SchedulerRunReport(started_at=now)
        for step_name, step in (
            ("ensure", self.ensure_rounds),
            ("lock", self.lock_rounds),
            ("settle", self.settle_rounds),
        ):
            try:
                await step(now, report)
            except Exception as exc:
                logger.exception("Scheduler step %s failed", step_name)
                report.failures.append(f"{step_name}: {exc}")
        try:
            await self.sweep_payouts(report)
        except Exception as exc:
            logger.exception("Scheduler step payouts failed")
            report.failures.append(f"payouts: {exc}")

        report.finished_at = utc_now()
        logger.info("Scheduler run finished (success=%s): %s", report.success, report.summary)
        return report

    # ------------------------------------------------------------------
    # ensure
    # ------------------------------------------------------------------

    async def ensure_rounds(
        self, now: datetime, report: SchedulerRunReport
    ) -> list[RoundWindow]:
        start = next_window_start(now, self._config.window)
        end = start + self._config.window
        windows: list[RoundWindow] = []
        for symbol in self._config.active_symbols:
            async with self._session_factory() as db:
                try:
                    round_id = await self._create_round(db, symbol, start, end)
                    await db.commit()
                    report.rounds_created += 1
                except DuplicateRoundWindowError:
                    await db.rollback()
                    round_id = None
                    report.rounds_existing += 1
                except Exception as exc:
                    await db.rollback()
                    logger.exception(
                        "Creating the %s round for %s failed", symbol, start.isoformat()
                    )
                    report.failures.append(f"ensure {symbol}: {exc}")
                    continue
            windows.append(RoundWindow(symbol, start, end, round_id))
        created = [w for w in windows if w.round_id]
        if created:
            logger.info(
                "Created %d round(s) for %s..%s: %s",
                len(created),
                start.isoformat(),
                end.isoformat(),
                ", ".join(w.symbol for w in created),
            )
        return windows

    async def _create_round(
        self, db: AsyncSession, symbol: str, start: datetime, end: datetime
    ) -> str:
        round_id = generate_id()
        inserted = await self._round_repo.insert_round_if_absent(
            db,
            round_id,
            symbol,
            self._config.timeframe,
            start,
            end,
            self._config.bonus_boost_units,
            self._config.fee_rate_bps,
        )
        if not inserted:
            raise DuplicateRoundWindowError(symbol, start.isoformat())
        return round_id

    # ------------------------------------------------------------------
    # lock
    # ------------------------------------------------------------------

    async def lock_rounds(self, now: datetime, report: SchedulerRunReport) -> None:
        async with self._session_factory() as db:
            try:
                locked = await self._round_repo.lock_due_rounds(db, now)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        report.rounds_locked += len(locked)
        for round_id, symbol in locked:
            logger.info("Locked round %s (%s)", round_id, symbol)

    # ------------------------------------------------------------------
    # settle
    # ------------------------------------------------------------------

    async def settle_rounds(self, now: datetime, report: SchedulerRunReport) -> None:
        async with self._session_factory() as db:
            rounds = await self._round_repo.list_settleable_rounds(db, now)

        for round_ in rounds:
            async with self._session_factory() as db:
                try:
                    result = await self._engine.settle_round(db, round_)
                except ObservationUnavailableError as exc:
                    logger.warning("Round %s stays LOCKED: %s", round_.id, exc.message)
                    report.rounds_deferred += 1
                    report.failures.append(f"{round_.id}: {exc.message}")
                    continue
                except Exception as exc:
                    logger.exception("Settlement of round %s failed", round_.id)
                    report.failures.append(f"{round_.id}: {exc}")
                    continue
            if result.status == SettleStatus.SETTLED:
                report.rounds_settled += 1
            else:
                report.rounds_skipped += 1

    # ------------------------------------------------------------------
    # payouts
    # ------------------------------------------------------------------

    async def sweep_payouts(self, report: SchedulerRunReport) -> None:
        result = await self._dispatcher.sweep()
        report.payouts_paid += result.paid
        report.payouts_failed += result.failed
        report.failures.extend(f"payout {f}" for f in result.failures)
