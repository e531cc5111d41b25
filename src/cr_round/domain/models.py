"""Domain models for cr_round: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Round:
    id: str
    symbol: str
    timeframe: str
    start_time: datetime
    end_time: datetime
    status: str
    total_green: int            # units, frozen once LOCKED
    total_red: int              # units, frozen once LOCKED
    bonus_boost: int            # units, platform-funded top-up
    fee_rate_bps: int
    winner_side: str | None = None
    multiplier_green: Decimal | None = None   # None = undefined (empty pool)
    multiplier_red: Decimal | None = None
    open_price: Decimal | None = None
    close_price: Decimal | None = None
    locked_at: datetime | None = None
    settled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_pool(self) -> int:
        return self.total_green + self.total_red


@dataclass
class RoundWindow:
    """A round created (or found already present) by the scheduler's ensure step."""

    symbol: str
    start_time: datetime
    end_time: datetime
    round_id: str | None  # None when the window already had a round
