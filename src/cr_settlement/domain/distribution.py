"""Multiplier / Distribution Calculator.

    L   = total_green + total_red
    fee = ceil(L * fee_rate_bps / 10000)
    D   = L + bonus_boost - fee
    multiplier_side = D / pool_side   (8 dp, rounded down; None if pool_side == 0)

Winning payouts are computed per wager on integers, floor(net * D / pool_side),
never as net * multiplier: the rounded multiplier would drift, and flooring
each payout keeps the sum of payouts at or below D.
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from src.cr_common.enums import WagerSide
from src.cr_common.units import calculate_fee, validate_rate_bps

MULTIPLIER_QUANTUM = Decimal("0.00000001")


@dataclass(frozen=True)
class Distribution:
    total_green: int
    total_red: int
    total_pool: int          # L
    fee: int
    distributable: int       # D
    multiplier_green: Decimal | None
    multiplier_red: Decimal | None

    def pool_for(self, side: str) -> int:
        return self.total_green if side == WagerSide.GREEN else self.total_red

    def multiplier_for(self, side: str) -> Decimal | None:
        return self.multiplier_green if side == WagerSide.GREEN else self.multiplier_red

    def winning_payout(self, net_amount: int, side: str) -> int:
        """Proportional share of D for a wager on the winning `side`."""
        pool = self.pool_for(side)
        if pool == 0:
            return 0
        return net_amount * self.distributable // pool


def _multiplier(distributable: int, pool: int) -> Decimal | None:
    if pool == 0:
        return None
    return (Decimal(distributable) / Decimal(pool)).quantize(
        MULTIPLIER_QUANTUM, rounding=ROUND_DOWN
    )


def compute_distribution(
    total_green: int,
    total_red: int,
    bonus_boost: int,
    fee_rate_bps: int,
) -> Distribution:
    """Compute fee, distributable amount and per-side multipliers.

    Raises:
        ValueError: negative pool or boost, or fee rate outside [0, 10000) bps.
    """
    if total_green < 0 or total_red < 0:
        raise ValueError(f"Pools must be >= 0, got ({total_green}, {total_red})")
    if bonus_boost < 0:
        raise ValueError(f"Bonus boost must be >= 0, got {bonus_boost}")
    validate_rate_bps(fee_rate_bps)

    total_pool = total_green + total_red
    fee = calculate_fee(total_pool, fee_rate_bps)
    distributable = total_pool + bonus_boost - fee
    return Distribution(
        total_green=total_green,
        total_red=total_red,
        total_pool=total_pool,
        fee=fee,
        distributable=distributable,
        multiplier_green=_multiplier(distributable, total_green),
        multiplier_red=_multiplier(distributable, total_red),
    )
