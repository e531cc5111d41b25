"""Contribution normalization: whatever the user paid -> net quote units.

    quote_received = paid amount in quote units (swapped unless already quote)
    platform_fee   = ceil(quote_received * fee_bps / 10000)
                     fee_bps: stablecoins 300, everything else 600 (covers swap cost)
    net_amount     = quote_received - platform_fee        (must be > 0)

Normalization happens before any database write, so a failed swap leaves no
trace in the round or the wager table.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from src.cr_common.errors import InvalidContributionError, UnsupportedAssetError
from src.cr_common.units import calculate_fee, to_units, validate_rate_bps
from src.cr_payment.domain.rail import SwapClientProtocol

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationPolicy:
    quote_asset: str = "USDC"
    supported_assets: frozenset[str] = frozenset({"USDC", "USDT", "SOL", "BONK"})
    stable_assets: frozenset[str] = frozenset({"USDC", "USDT"})
    stable_fee_bps: int = 300
    volatile_fee_bps: int = 600

    def __post_init__(self) -> None:
        validate_rate_bps(self.stable_fee_bps)
        validate_rate_bps(self.volatile_fee_bps)

    def fee_bps_for(self, asset: str) -> int:
        return self.stable_fee_bps if asset in self.stable_assets else self.volatile_fee_bps

    @classmethod
    def from_settings(cls, settings: "Settings") -> "NormalizationPolicy":
        return cls(
            quote_asset=settings.QUOTE_ASSET.upper(),
            supported_assets=frozenset(a.upper() for a in settings.SUPPORTED_ASSETS),
            stable_assets=frozenset(a.upper() for a in settings.STABLE_ASSETS),
            stable_fee_bps=settings.STABLE_ASSET_FEE_BPS,
            volatile_fee_bps=settings.VOLATILE_ASSET_FEE_BPS,
        )


@dataclass(frozen=True)
class NormalizedContribution:
    paid_asset: str
    gross_paid: Decimal
    quote_received: int
    platform_fee: int
    net_amount: int
    transaction_ref: str | None


async def normalize_contribution(
    asset: str,
    amount: Decimal,
    swap_client: SwapClientProtocol,
    policy: NormalizationPolicy,
) -> NormalizedContribution:
    """Convert a raw payment into the net amount credited to a pool.

    Raises:
        UnsupportedAssetError: asset not accepted.
        InvalidContributionError: amount <= 0, or nothing left after the fee.
        SwapFailedError: propagated from the swap client.
    """
    asset = _check_payment(asset, amount, policy)
    reference = None
    if asset == policy.quote_asset:
        quote_received = to_units(amount)
    else:
        swap = await swap_client.swap_to_quote(asset, amount)
        quote_received = swap.quote_units
        reference = swap.reference
        logger.info(
            "Swapped %s %s -> %d quote units (ref=%s)", amount, asset, quote_received, reference
        )

    return _net_of_fee(asset, amount, quote_received, reference, policy)


async def estimate_contribution(
    asset: str,
    amount: Decimal,
    swap_client: SwapClientProtocol,
    policy: NormalizationPolicy,
) -> NormalizedContribution:
    """Same arithmetic as normalize_contribution, priced by a quote instead of a swap.

    Nothing moves on the rail; the real net may differ by the swap's slippage.
    """
    asset = _check_payment(asset, amount, policy)
    if asset == policy.quote_asset:
        quote_received = to_units(amount)
    else:
        quote_received = (await swap_client.quote(asset, amount)).quote_units
    return _net_of_fee(asset, amount, quote_received, None, policy)


def _check_payment(asset: str, amount: Decimal, policy: NormalizationPolicy) -> str:
    asset = asset.upper()
    if asset not in policy.supported_assets:
        raise UnsupportedAssetError(asset)
    if amount <= 0:
        raise InvalidContributionError(f"paid amount must be > 0, got {amount}")
    return asset


def _net_of_fee(
    asset: str,
    amount: Decimal,
    quote_received: int,
    reference: str | None,
    policy: NormalizationPolicy,
) -> NormalizedContribution:
    platform_fee = calculate_fee(quote_received, policy.fee_bps_for(asset))
    net_amount = quote_received - platform_fee
    if net_amount <= 0:
        raise InvalidContributionError(
            f"{amount} {asset} is worth {quote_received} units, nothing left after fee"
        )
    return NormalizedContribution(
        paid_asset=asset,
        gross_paid=amount,
        quote_received=quote_received,
        platform_fee=platform_fee,
        net_amount=net_amount,
        transaction_ref=reference,
    )
