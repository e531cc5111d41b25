"""Price oracle contract: what the settlement engine needs from a price feed."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class WindowObservation:
    """Open and close price of one symbol over [start_time, end_time)."""

    symbol: str
    start_time: datetime
    end_time: datetime
    open_price: Decimal
    close_price: Decimal


class PriceOracleProtocol(Protocol):
    async def get_window_observation(
        self, symbol: str, start_time: datetime, end_time: datetime
    ) -> WindowObservation:
        """Raises ObservationUnavailableError if no data covers the window."""
        ...


# Window length (seconds) -> exchange kline interval label. A round window
# must be one of these so a single candle covers it exactly.
KLINE_INTERVALS: dict[int, str] = {
    60: "1m",
    180: "3m",
    300: "5m",
    900: "15m",
    1800: "30m",
    3600: "1h",
}
