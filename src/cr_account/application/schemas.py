"""Pydantic schemas for cr_account API requests and responses."""

from pydantic import BaseModel, Field, field_validator

from src.cr_account.domain.models import Account
from src.cr_common.units import units_to_display


class UpdateProfileRequest(BaseModel):
    username: str | None = Field(None, max_length=32)
    avatar: str | None = Field(None, max_length=512)
    is_anonymous: bool = False

    @field_validator("username")
    @classmethod
    def _strip_username(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class AccountStats(BaseModel):
    total_wagers: int
    total_wins: int
    total_losses: int
    win_rate: float
    total_volume_units: int
    total_volume_display: str
    total_profit_units: int
    total_profit_display: str


class AccountResponse(BaseModel):
    owner_key: str
    username: str | None
    avatar: str | None
    is_anonymous: bool
    stats: AccountStats

    @classmethod
    def from_domain(cls, a: Account) -> "AccountResponse":
        return cls(
            owner_key=a.owner_key,
            username=a.username,
            avatar=a.avatar,
            is_anonymous=a.is_anonymous,
            stats=AccountStats(
                total_wagers=a.total_wagers,
                total_wins=a.total_wins,
                total_losses=a.total_losses,
                win_rate=a.win_rate,
                total_volume_units=a.total_volume,
                total_volume_display=units_to_display(a.total_volume),
                total_profit_units=a.total_profit,
                total_profit_display=units_to_display(a.total_profit),
            ),
        )


class RankingEntry(BaseModel):
    rank: int
    display_name: str
    avatar: str | None
    total_wagers: int
    total_wins: int
    win_rate: float
    total_volume_units: int
    total_profit_units: int
    total_profit_display: str

    @classmethod
    def from_domain(cls, rank: int, a: Account) -> "RankingEntry":
        return cls(
            rank=rank,
            display_name=a.display_name,
            avatar=a.avatar,
            total_wagers=a.total_wagers,
            total_wins=a.total_wins,
            win_rate=a.win_rate,
            total_volume_units=a.total_volume,
            total_profit_units=a.total_profit,
            total_profit_display=units_to_display(a.total_profit),
        )


class RankingsResponse(BaseModel):
    sort_by: str
    items: list[RankingEntry]
