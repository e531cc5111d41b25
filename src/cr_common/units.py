"""Integer arithmetic for quote-currency amounts.

All pool totals, wager amounts, fees and payouts are int units of the quote
currency (micro-USDC, 6 decimals). Rates are int basis points. Only
multipliers and oracle prices are Decimal.
"""

from decimal import ROUND_DOWN, Decimal

QUOTE_DECIMALS = 6
UNITS_PER_QUOTE = 10**QUOTE_DECIMALS
BPS_DENOMINATOR = 10_000


def to_units(amount: Decimal | int | str) -> int:
    """Convert a quote-currency amount to units, truncating sub-unit dust."""
    scaled = Decimal(amount) * UNITS_PER_QUOTE
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def units_to_decimal(units: int) -> Decimal:
    return Decimal(units) / UNITS_PER_QUOTE


def units_to_display(units: int) -> str:
    """Convert units to display string: 14250000 -> '14.25 USDC', -1500000 -> '-1.50 USDC'."""
    sign = "-" if units < 0 else ""
    whole, frac = divmod(abs(units), UNITS_PER_QUOTE)
    cents = frac // (UNITS_PER_QUOTE // 100)
    return f"{sign}{whole:,}.{cents:02d} USDC"


def validate_rate_bps(rate_bps: int) -> None:
    """A rate must be a fraction in [0, 1), i.e. [0, 10000) bps."""
    if not (0 <= rate_bps < BPS_DENOMINATOR):
        raise ValueError(f"Rate must be between 0 and 9999 bps, got {rate_bps}")


def calculate_fee(amount_units: int, fee_rate_bps: int) -> int:
    """Calculate fee with ceiling division (platform never under-collects).

    fee = ceil(amount_units * fee_rate_bps / 10000)
    """
    if amount_units == 0 or fee_rate_bps == 0:
        return 0
    return (amount_units * fee_rate_bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR


def apply_bps(amount_units: int, rate_bps: int) -> int:
    """Return floor(amount_units * rate_bps / 10000)."""
    return amount_units * rate_bps // BPS_DENOMINATOR
