"""Pure settlement math: round snapshot + wagers + observation -> SettlementPlan.

No I/O here. The SettlementEngine reads the inputs, calls plan_settlement()
and writes the plan in one transaction, so replaying a plan for the same
inputs always yields the same payouts.

Branches:
  unilateral  -> every wager REFUNDED at net * (1 - retention), winner DRAW,
                 both multipliers undefined. Overrides the price outcome.
  flat candle -> every wager REFUNDED at exactly net, winner DRAW,
                 both multipliers undefined.
  GREEN / RED -> winners WON at floor(net * D / pool_winner), losers LOST at 0.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal

from src.cr_common.enums import WagerStatus, WinnerSide
from src.cr_common.units import BPS_DENOMINATOR, apply_bps
from src.cr_oracle.domain.oracle import WindowObservation
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.models import Round
from src.cr_settlement.domain.distribution import compute_distribution
from src.cr_settlement.domain.outcome import is_unilateral, resolve_outcome
from src.cr_wager.domain.models import Wager


@dataclass(frozen=True)
class WagerSettlement:
    wager_id: str
    owner_key: str
    side: str
    net_amount: int
    status: WagerStatus
    payout: int


@dataclass(frozen=True)
class SettlementPlan:
    round_id: str
    winner_side: WinnerSide
    multiplier_green: Decimal | None
    multiplier_red: Decimal | None
    open_price: Decimal
    close_price: Decimal
    unilateral: bool
    wagers: list[WagerSettlement] = field(default_factory=list)

    @property
    def total_payout(self) -> int:
        return sum(w.payout for w in self.wagers)

    def count(self, status: WagerStatus) -> int:
        return sum(1 for w in self.wagers if w.status == status)


def _refund_all(
    wagers: list[Wager], payout_of: Callable[[int], int]
) -> list[WagerSettlement]:
    return [
        WagerSettlement(
            wager_id=w.id,
            owner_key=w.owner_key,
            side=w.side,
            net_amount=w.net_amount,
            status=WagerStatus.REFUNDED,
            payout=payout_of(w.net_amount),
        )
        for w in wagers
    ]


def plan_settlement(
    round_: Round,
    wagers: list[Wager],
    observation: WindowObservation,
    config: RoundConfig,
) -> SettlementPlan:
    """Decide the outcome and every wager's status and payout for one round."""
    if is_unilateral(round_.total_green, round_.total_red):
        keep_bps = BPS_DENOMINATOR - config.unilateral_retention_bps
        return SettlementPlan(
            round_id=round_.id,
            winner_side=WinnerSide.DRAW,
            multiplier_green=None,
            multiplier_red=None,
            open_price=observation.open_price,
            close_price=observation.close_price,
            unilateral=True,
            wagers=_refund_all(wagers, lambda net: apply_bps(net, keep_bps)),
        )

    outcome = resolve_outcome(observation.open_price, observation.close_price)

    if outcome == WinnerSide.DRAW:
        return SettlementPlan(
            round_id=round_.id,
            winner_side=WinnerSide.DRAW,
            multiplier_green=None,
            multiplier_red=None,
            open_price=observation.open_price,
            close_price=observation.close_price,
            unilateral=False,
            wagers=_refund_all(wagers, lambda net: net),
        )

    distribution = compute_distribution(
        round_.total_green, round_.total_red, round_.bonus_boost, round_.fee_rate_bps
    )
    settlements = []
    for w in wagers:
        won = w.side == outcome.value
        settlements.append(
            WagerSettlement(
                wager_id=w.id,
                owner_key=w.owner_key,
                side=w.side,
                net_amount=w.net_amount,
                status=WagerStatus.WON if won else WagerStatus.LOST,
                payout=distribution.winning_payout(w.net_amount, w.side) if won else 0,
            )
        )

    return SettlementPlan(
        round_id=round_.id,
        winner_side=outcome,
        multiplier_green=distribution.multiplier_green,
        multiplier_red=distribution.multiplier_red,
        open_price=observation.open_price,
        close_price=observation.close_price,
        unilateral=False,
        wagers=settlements,
    )
