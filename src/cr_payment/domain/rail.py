"""Payment rail contracts: swap normalization in, payout transfers out."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class SwapResult:
    quote_units: int                # quote-currency units produced by the swap
    reference: str | None = None    # rail-side swap id, kept as transaction_ref


class SwapClientProtocol(Protocol):
    async def swap_to_quote(self, asset: str, amount: Decimal) -> SwapResult:
        """Raises SwapFailedError."""
        ...

    async def quote(self, asset: str, amount: Decimal) -> SwapResult:
        """Price `amount` of `asset` in quote units without swapping.

        The result has no reference. Raises SwapFailedError.
        """
        ...


class PayoutIssuerProtocol(Protocol):
    async def transfer(
        self, recipient_key: str, amount_units: int, idempotency_key: str
    ) -> str:
        """Send `amount_units` of the quote currency; returns a confirmation token.

        Repeating a call with the same idempotency_key must not pay twice.
        Raises TransferFailedError (retryable).
        """
        ...
