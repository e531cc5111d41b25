"""Domain models for cr_wager: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Wager:
    id: str
    round_id: str
    owner_key: str
    side: str                       # WagerSide value
    net_amount: int                 # units credited to the pool (post-fee, post-swap)
    paid_asset: str
    gross_paid: Decimal             # in paid_asset's own denomination
    quote_received: int             # units the swap produced before the platform fee
    platform_fee: int               # units
    status: str = "PENDING"         # WagerStatus value
    payout: int = 0                 # units, set once at settlement
    transaction_ref: str | None = None
    username: str | None = None
    is_anonymous: bool = False
    payout_confirmation: str | None = None
    payout_claimed_at: datetime | None = None
    settled_at: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def awaiting_payout(self) -> bool:
        return self.payout > 0 and self.payout_confirmation is None
