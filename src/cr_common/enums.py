"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class RoundStatus(str, Enum):
    OPEN = "OPEN"
    LOCKED = "LOCKED"
    SETTLED = "SETTLED"


class WagerSide(str, Enum):
    """GREEN wins when the window closes above its open, RED when below."""
    GREEN = "GREEN"
    RED = "RED"


class WinnerSide(str, Enum):
    GREEN = "GREEN"
    RED = "RED"
    DRAW = "DRAW"


class WagerStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    REFUNDED = "REFUNDED"


class RankingSort(str, Enum):
    PROFIT = "profit"
    VOLUME = "volume"
    WINS = "wins"
