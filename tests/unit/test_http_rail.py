"""Unit tests for the payment rail HTTP adapters."""

import json
from decimal import Decimal

import httpx
import pytest

from src.cr_common.errors import SwapFailedError, TransferFailedError
from src.cr_payment.infrastructure.http_rail import HttpPayoutIssuer, HttpSwapClient


def _transport(status: int = 200, body: dict | None = None, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=body if body is not None else {})

    return httpx.MockTransport(handler)


class TestHttpSwapClient:
    @pytest.mark.asyncio
    async def test_swap(self) -> None:
        seen: list[httpx.Request] = []
        client = HttpSwapClient(
            "http://rail.test",
            api_key="k-1",
            transport=_transport(body={"quote_units": 14_000_000, "reference": "sw-1"}, seen=seen),
        )

        result = await client.swap_to_quote("SOL", Decimal("0.1"))

        assert result.quote_units == 14_000_000
        assert result.reference == "sw-1"
        assert seen[0].url.path == "/v1/swaps"
        assert seen[0].headers["Authorization"] == "Bearer k-1"
        assert json.loads(seen[0].content) == {"asset": "SOL", "amount": "0.1"}

    @pytest.mark.asyncio
    async def test_quote_uses_quote_endpoint(self) -> None:
        seen: list[httpx.Request] = []
        client = HttpSwapClient(
            "http://rail.test",
            transport=_transport(body={"quote_units": 14_000_000}, seen=seen),
        )

        result = await client.quote("SOL", Decimal("0.1"))

        assert result.quote_units == 14_000_000
        assert result.reference is None
        assert seen[0].url.path == "/v1/quotes"

    @pytest.mark.asyncio
    async def test_quote_http_error(self) -> None:
        client = HttpSwapClient("http://rail.test", transport=_transport(status=503))

        with pytest.raises(SwapFailedError, match="HTTP 503"):
            await client.quote("SOL", Decimal("1"))

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        client = HttpSwapClient("http://rail.test", transport=_transport(status=502))

        with pytest.raises(SwapFailedError, match="HTTP 502"):
            await client.swap_to_quote("SOL", Decimal("1"))

    @pytest.mark.asyncio
    async def test_missing_field(self) -> None:
        client = HttpSwapClient("http://rail.test", transport=_transport(body={"ok": True}))

        with pytest.raises(SwapFailedError, match="malformed"):
            await client.swap_to_quote("SOL", Decimal("1"))

    @pytest.mark.asyncio
    async def test_zero_quote_rejected(self) -> None:
        client = HttpSwapClient("http://rail.test", transport=_transport(body={"quote_units": 0}))

        with pytest.raises(SwapFailedError):
            await client.swap_to_quote("BONK", Decimal("1"))


class TestHttpPayoutIssuer:
    @pytest.mark.asyncio
    async def test_transfer_sends_idempotency_key(self) -> None:
        seen: list[httpx.Request] = []
        issuer = HttpPayoutIssuer(
            "http://rail.test",
            transport=_transport(body={"confirmation": "sig-9"}, seen=seen),
        )

        confirmation = await issuer.transfer("owner-1", 14_250_000, idempotency_key="W1")

        assert confirmation == "sig-9"
        assert seen[0].url.path == "/v1/transfers"
        assert seen[0].headers["Idempotency-Key"] == "W1"
        assert "Authorization" not in seen[0].headers
        assert json.loads(seen[0].content) == {
            "recipient": "owner-1",
            "amount_units": 14_250_000,
            "asset": "USDC",
        }

    @pytest.mark.asyncio
    async def test_non_positive_amount_never_sent(self) -> None:
        seen: list[httpx.Request] = []
        issuer = HttpPayoutIssuer("http://rail.test", transport=_transport(seen=seen))

        with pytest.raises(TransferFailedError):
            await issuer.transfer("owner-1", 0, idempotency_key="W1")
        assert seen == []

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        issuer = HttpPayoutIssuer("http://rail.test", transport=_transport(status=503))

        with pytest.raises(TransferFailedError, match="HTTP 503"):
            await issuer.transfer("owner-1", 1, idempotency_key="W1")

    @pytest.mark.asyncio
    async def test_empty_confirmation(self) -> None:
        issuer = HttpPayoutIssuer(
            "http://rail.test", transport=_transport(body={"confirmation": ""})
        )

        with pytest.raises(TransferFailedError, match="empty confirmation"):
            await issuer.transfer("owner-1", 1, idempotency_key="W1")
