"""RoundConfig: explicit configuration value for the scheduler and settlement.

Built once from Settings and passed in at construction, so settlement math
never reads ambient global state.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from src.cr_common.units import validate_rate_bps
from src.cr_oracle.domain.oracle import KLINE_INTERVALS

if TYPE_CHECKING:
    from config.settings import Settings


@dataclass(frozen=True)
class RoundConfig:
    active_symbols: tuple[str, ...]
    window_seconds: int = 300
    fee_rate_bps: int = 500
    bonus_boost_units: int = 0
    unilateral_retention_bps: int = 200
    payout_claim_ttl_seconds: int = 120
    payout_sweep_limit: int = 200

    def __post_init__(self) -> None:
        if self.window_seconds not in KLINE_INTERVALS:
            raise ValueError(
                f"window_seconds must be one of {sorted(KLINE_INTERVALS)}, "
                f"got {self.window_seconds}"
            )
        validate_rate_bps(self.fee_rate_bps)
        validate_rate_bps(self.unilateral_retention_bps)
        if self.bonus_boost_units < 0:
            raise ValueError("bonus_boost_units must be >= 0")

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    @property
    def timeframe(self) -> str:
        """Kline interval label for the window, e.g. '5m'."""
        return KLINE_INTERVALS[self.window_seconds]

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RoundConfig":
        return cls(
            active_symbols=tuple(settings.ACTIVE_SYMBOLS),
            window_seconds=settings.ROUND_WINDOW_SECONDS,
            fee_rate_bps=settings.ROUND_FEE_RATE_BPS,
            bonus_boost_units=settings.ROUND_BONUS_BOOST_UNITS,
            unilateral_retention_bps=settings.UNILATERAL_RETENTION_BPS,
            payout_claim_ttl_seconds=settings.PAYOUT_CLAIM_TTL_SECONDS,
            payout_sweep_limit=settings.PAYOUT_SWEEP_LIMIT,
        )
