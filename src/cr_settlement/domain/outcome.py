"""Outcome Resolver: which side of the candle won.

Pure functions; prices are Decimal and compared exactly.
"""

from decimal import Decimal

from src.cr_common.enums import WinnerSide


def resolve_outcome(open_price: Decimal, close_price: Decimal) -> WinnerSide:
    """GREEN if the candle closed above its open, RED if below, DRAW if flat."""
    if close_price > open_price:
        return WinnerSide.GREEN
    if close_price < open_price:
        return WinnerSide.RED
    return WinnerSide.DRAW


def is_unilateral(total_green: int, total_red: int) -> bool:
    """Exactly one side has stake. An empty round is not unilateral."""
    return (total_green == 0) != (total_red == 0)
