"""BinanceKlineOracle: window open/close from the public klines endpoint.

The kline whose open time equals the window start is the observation. If the
exchange has no such candle (too early, symbol halted, wrong interval) the
window is unobservable and settlement waits; there is no fallback to the
latest candle, which would settle a round against the wrong window.

Kline wire format: [open_time_ms, open, high, low, close, volume, close_time_ms, ...]
Prices are decimal strings and are parsed as Decimal, never float.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

import httpx

from src.cr_common.errors import ObservationUnavailableError
from src.cr_oracle.domain.oracle import KLINE_INTERVALS, WindowObservation

logger = logging.getLogger(__name__)

_KLINES_PATH = "/api/v3/klines"


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class BinanceKlineOracle:
    """PriceOracleProtocol implementation backed by httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_window_observation(
        self, symbol: str, start_time: datetime, end_time: datetime
    ) -> WindowObservation:
        window_seconds = int((end_time - start_time).total_seconds())
        interval = KLINE_INTERVALS.get(window_seconds)
        if interval is None:
            raise ObservationUnavailableError(
                symbol, f"no kline interval for a {window_seconds}s window"
            )

        start_ms = _to_ms(start_time)
        params = {
            "symbol": symbol,
            "interval": interval,
            "startTime": start_ms,
            "endTime": _to_ms(end_time) - 1,
            "limit": 1,
        }
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            ) as client:
                resp = await client.get(_KLINES_PATH, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise ObservationUnavailableError(
                symbol, f"HTTP {exc.response.status_code} from kline endpoint"
            ) from exc
        except httpx.HTTPError as exc:
            raise ObservationUnavailableError(symbol, f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise ObservationUnavailableError(symbol, "malformed JSON body") from exc

        if not isinstance(data, list) or not data:
            raise ObservationUnavailableError(
                symbol, f"no candle for window starting {start_time.isoformat()}"
            )

        kline = data[0]
        try:
            open_time_ms = int(kline[0])
            open_price = Decimal(str(kline[1]))
            close_price = Decimal(str(kline[4]))
        except (IndexError, TypeError, ValueError, InvalidOperation) as exc:
            raise ObservationUnavailableError(symbol, f"malformed kline: {kline!r}") from exc

        if open_time_ms != start_ms:
            raise ObservationUnavailableError(
                symbol,
                f"candle opens at {open_time_ms}, window starts at {start_ms}",
            )
        if not open_price.is_finite() or not close_price.is_finite():
            raise ObservationUnavailableError(symbol, f"non-finite prices in {kline!r}")

        logger.info(
            "Observed %s %s..%s open=%s close=%s",
            symbol,
            start_time.isoformat(),
            end_time.isoformat(),
            open_price,
            close_price,
        )
        return WindowObservation(
            symbol=symbol,
            start_time=start_time,
            end_time=end_time,
            open_price=open_price,
            close_price=close_price,
        )
