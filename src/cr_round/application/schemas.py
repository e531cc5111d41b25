"""Pydantic schemas for cr_round API responses.

Multipliers and prices are serialized as strings so no precision is lost to
JSON floats. Live multipliers on an OPEN round are indicative only (4 dp);
the settled multipliers (8 dp) are the authoritative ones.
"""

from datetime import datetime
from decimal import ROUND_DOWN, Decimal

from pydantic import BaseModel

from src.cr_common.units import units_to_display
from src.cr_round.domain.models import Round
from src.cr_settlement.domain.distribution import compute_distribution

LIVE_MULTIPLIER_QUANTUM = Decimal("0.0001")


def _dec(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _iso(dt: datetime | None) -> str | None:
    return None if dt is None else dt.isoformat()


def _live(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(LIVE_MULTIPLIER_QUANTUM, rounding=ROUND_DOWN)


class RoundView(BaseModel):
    id: str
    symbol: str
    timeframe: str
    start_time: str
    end_time: str
    status: str
    total_green_units: int
    total_red_units: int
    total_pool_units: int
    total_pool_display: str
    bonus_boost_units: int
    fee_rate_bps: int
    multiplier_green: str | None
    multiplier_red: str | None
    winner_side: str | None
    open_price: str | None
    close_price: str | None
    locked_at: str | None
    settled_at: str | None

    @classmethod
    def from_domain(cls, r: Round) -> "RoundView":
        if r.status == "SETTLED":
            mult_green, mult_red = r.multiplier_green, r.multiplier_red
        else:
            dist = compute_distribution(
                r.total_green, r.total_red, r.bonus_boost, r.fee_rate_bps
            )
            mult_green, mult_red = _live(dist.multiplier_green), _live(dist.multiplier_red)
        return cls(
            id=r.id,
            symbol=r.symbol,
            timeframe=r.timeframe,
            start_time=r.start_time.isoformat(),
            end_time=r.end_time.isoformat(),
            status=r.status,
            total_green_units=r.total_green,
            total_red_units=r.total_red,
            total_pool_units=r.total_pool,
            total_pool_display=units_to_display(r.total_pool),
            bonus_boost_units=r.bonus_boost,
            fee_rate_bps=r.fee_rate_bps,
            multiplier_green=_dec(mult_green),
            multiplier_red=_dec(mult_red),
            winner_side=r.winner_side,
            open_price=_dec(r.open_price),
            close_price=_dec(r.close_price),
            locked_at=_iso(r.locked_at),
            settled_at=_iso(r.settled_at),
        )


class CurrentRoundResponse(BaseModel):
    round: RoundView
    time_remaining_ms: int    # until the round locks and stops accepting wagers

    @classmethod
    def from_domain(cls, r: Round, now: datetime) -> "CurrentRoundResponse":
        remaining = int((r.start_time - now).total_seconds() * 1000)
        return cls(round=RoundView.from_domain(r), time_remaining_ms=max(0, remaining))


class RoundHistoryResponse(BaseModel):
    symbol: str
    items: list[RoundView]
