"""Domain models for cr_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    owner_key: str
    total_wagers: int = 0
    total_volume: int = 0    # units
    total_wins: int = 0
    total_losses: int = 0
    total_profit: int = 0    # signed units
    username: str | None = None
    avatar: str | None = None
    is_anonymous: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def decided_wagers(self) -> int:
        """Wagers that won or lost; refunds count for neither."""
        return self.total_wins + self.total_losses

    @property
    def win_rate(self) -> float:
        if self.decided_wagers == 0:
            return 0.0
        return round(self.total_wins / self.decided_wagers * 100, 2)

    @property
    def display_name(self) -> str:
        if self.is_anonymous or not self.username:
            return mask_owner_key(self.owner_key)
        return self.username


def mask_owner_key(owner_key: str) -> str:
    """'7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU' -> '7xKX...gAsU'."""
    if len(owner_key) <= 8:
        return owner_key
    return f"{owner_key[:4]}...{owner_key[-4:]}"
