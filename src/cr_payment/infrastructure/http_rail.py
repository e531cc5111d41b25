"""HTTP adapters for the payment rail (swap + payout transfer).

Wire contract (JSON, bearer API key):
  POST /v1/swaps      {"asset", "amount"}                        -> {"quote_units", "reference"}
  POST /v1/quotes     {"asset", "amount"}                        -> {"quote_units"}
  POST /v1/transfers  {"recipient", "amount_units", "asset"}     -> {"confirmation"}
                      header Idempotency-Key: <wager id>

The rail deduplicates transfers by Idempotency-Key, which is what makes a
payout retry after a crash safe.
"""

import logging
from decimal import Decimal

import httpx

from src.cr_common.errors import SwapFailedError, TransferFailedError
from src.cr_payment.domain.rail import SwapResult

logger = logging.getLogger(__name__)


class _RailClient:
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def _post(
        self, path: str, payload: dict, headers: dict[str, str] | None = None
    ) -> dict:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers=self._headers,
        ) as client:
            resp = await client.post(path, json=payload, headers=headers)
            resp.raise_for_status()
            return resp.json()


class HttpSwapClient(_RailClient):
    """SwapClientProtocol over the rail's swap endpoint."""

    async def swap_to_quote(self, asset: str, amount: Decimal) -> SwapResult:
        body, quote_units = await self._price("/v1/swaps", asset, amount)
        return SwapResult(quote_units=quote_units, reference=body.get("reference"))

    async def quote(self, asset: str, amount: Decimal) -> SwapResult:
        _, quote_units = await self._price("/v1/quotes", asset, amount)
        return SwapResult(quote_units=quote_units)

    async def _price(self, path: str, asset: str, amount: Decimal) -> tuple[dict, int]:
        try:
            body = await self._post(path, {"asset": asset, "amount": str(amount)})
            quote_units = int(body["quote_units"])
        except httpx.HTTPStatusError as exc:
            raise SwapFailedError(asset, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise SwapFailedError(asset, f"{type(exc).__name__}: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise SwapFailedError(asset, "malformed swap response") from exc

        if quote_units <= 0:
            raise SwapFailedError(asset, f"swap produced {quote_units} units")
        return body, quote_units


class HttpPayoutIssuer(_RailClient):
    """PayoutIssuerProtocol over the rail's transfer endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        asset: str = "USDC",
    ) -> None:
        super().__init__(base_url, api_key, timeout, transport)
        self._asset = asset

    async def transfer(
        self, recipient_key: str, amount_units: int, idempotency_key: str
    ) -> str:
        if amount_units <= 0:
            raise TransferFailedError(recipient_key, f"amount must be > 0, got {amount_units}")
        payload = {
            "recipient": recipient_key,
            "amount_units": amount_units,
            "asset": self._asset,
        }
        try:
            body = await self._post(
                "/v1/transfers", payload, headers={"Idempotency-Key": idempotency_key}
            )
            confirmation = body["confirmation"]
        except httpx.HTTPStatusError as exc:
            raise TransferFailedError(
                recipient_key, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransferFailedError(recipient_key, f"{type(exc).__name__}: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise TransferFailedError(recipient_key, "malformed transfer response") from exc

        if not confirmation:
            raise TransferFailedError(recipient_key, "empty confirmation")
        logger.info(
            "Transfer sent: %d units to %s (key=%s, confirmation=%s)",
            amount_units,
            recipient_key,
            idempotency_key,
            confirmation,
        )
        return str(confirmation)
