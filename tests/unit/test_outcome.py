"""Unit tests for the outcome resolver."""

from decimal import Decimal

import pytest

from src.cr_common.enums import WinnerSide
from src.cr_settlement.domain.outcome import is_unilateral, resolve_outcome


class TestResolveOutcome:
    def test_close_above_open_is_green(self) -> None:
        assert resolve_outcome(Decimal("100"), Decimal("100.01")) == WinnerSide.GREEN

    def test_close_below_open_is_red(self) -> None:
        assert resolve_outcome(Decimal("100"), Decimal("99.99")) == WinnerSide.RED

    def test_flat_candle_is_draw(self) -> None:
        assert resolve_outcome(Decimal("100.00"), Decimal("100")) == WinnerSide.DRAW

    def test_tiny_difference_not_lost(self) -> None:
        assert resolve_outcome(
            Decimal("64000.00000001"), Decimal("64000.00000002")
        ) == WinnerSide.GREEN


class TestIsUnilateral:
    @pytest.mark.parametrize(
        ("green", "red", "expected"),
        [
            (100, 0, True),
            (0, 100, True),
            (100, 50, False),
            (0, 0, False),
        ],
    )
    def test_cases(self, green: int, red: int, expected: bool) -> None:
        assert is_unilateral(green, red) is expected
