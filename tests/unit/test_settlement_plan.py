"""Unit tests for plan_settlement (pure settlement math)."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from src.cr_common.enums import WagerStatus, WinnerSide
from src.cr_oracle.domain.oracle import WindowObservation
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.models import Round
from src.cr_settlement.domain.settlement_plan import plan_settlement
from src.cr_wager.domain.models import Wager

USDC = 1_000_000
START = datetime(2026, 3, 1, 12, 5, tzinfo=UTC)
END = START + timedelta(minutes=5)
CONFIG = RoundConfig(active_symbols=("BTCUSDT",))


def _make_wager(wager_id: str, side: str, net: int, owner: str = "owner-aaaaaaaa") -> Wager:
    return Wager(
        id=wager_id, round_id="R1", owner_key=owner, side=side, net_amount=net,
        paid_asset="USDC", gross_paid=Decimal(net) / USDC, quote_received=net, platform_fee=0,
    )


def _make_round(wagers: list[Wager], **kwargs) -> Round:
    defaults = dict(
        id="R1", symbol="BTCUSDT", timeframe="5m", start_time=START, end_time=END,
        status="LOCKED",
        total_green=sum(w.net_amount for w in wagers if w.side == "GREEN"),
        total_red=sum(w.net_amount for w in wagers if w.side == "RED"),
        bonus_boost=0, fee_rate_bps=500,
    )
    defaults.update(kwargs)
    return Round(**defaults)


def _obs(open_price: str, close_price: str) -> WindowObservation:
    return WindowObservation("BTCUSDT", START, END, Decimal(open_price), Decimal(close_price))


class TestTwoSided:
    def setup_method(self) -> None:
        self.wagers = [
            _make_wager("W1", "GREEN", 10 * USDC),
            _make_wager("W2", "GREEN", 90 * USDC),
            _make_wager("W3", "RED", 50 * USDC),
        ]
        self.round = _make_round(self.wagers)

    def test_green_wins(self) -> None:
        plan = plan_settlement(self.round, self.wagers, _obs("100", "101"), CONFIG)
        assert plan.winner_side == WinnerSide.GREEN
        assert plan.unilateral is False
        assert plan.multiplier_green == Decimal("1.425")
        assert plan.multiplier_red == Decimal("2.85")
        by_id = {w.wager_id: w for w in plan.wagers}
        assert by_id["W1"].status == WagerStatus.WON
        assert by_id["W1"].payout == 14_250_000
        assert by_id["W2"].payout == 128_250_000
        assert by_id["W3"].status == WagerStatus.LOST
        assert by_id["W3"].payout == 0

    def test_winning_payouts_sum_to_distributable(self) -> None:
        plan = plan_settlement(self.round, self.wagers, _obs("100", "99"), CONFIG)
        assert plan.winner_side == WinnerSide.RED
        # D = 142.5 USDC, single red wager takes all of it
        assert plan.total_payout == 142_500_000
        assert plan.count(WagerStatus.LOST) == 2

    def test_same_inputs_same_plan(self) -> None:
        first = plan_settlement(self.round, self.wagers, _obs("100", "101"), CONFIG)
        second = plan_settlement(self.round, self.wagers, _obs("100", "101"), CONFIG)
        assert first == second


class TestDraw:
    def test_flat_candle_refunds_exact_net(self) -> None:
        wagers = [_make_wager("W1", "GREEN", 100 * USDC), _make_wager("W2", "RED", 50 * USDC)]
        plan = plan_settlement(_make_round(wagers), wagers, _obs("100", "100"), CONFIG)
        assert plan.winner_side == WinnerSide.DRAW
        assert all(w.status == WagerStatus.REFUNDED for w in plan.wagers)
        assert [w.payout for w in plan.wagers] == [100 * USDC, 50 * USDC]
        assert plan.multiplier_green is None
        assert plan.multiplier_red is None


class TestUnilateral:
    def test_one_sided_refund_keeps_two_percent(self) -> None:
        wagers = [_make_wager("W1", "GREEN", 60 * USDC), _make_wager("W2", "GREEN", 40 * USDC)]
        plan = plan_settlement(_make_round(wagers), wagers, _obs("100", "105"), CONFIG)
        assert plan.unilateral is True
        assert plan.winner_side == WinnerSide.DRAW
        assert plan.multiplier_green is None
        assert plan.multiplier_red is None
        assert [w.payout for w in plan.wagers] == [58_800_000, 39_200_000]
        assert all(w.status == WagerStatus.REFUNDED for w in plan.wagers)

    def test_unilateral_overrides_losing_price(self) -> None:
        wagers = [_make_wager("W1", "RED", 100 * USDC)]
        plan = plan_settlement(_make_round(wagers), wagers, _obs("100", "105"), CONFIG)
        assert plan.wagers[0].status == WagerStatus.REFUNDED
        assert plan.wagers[0].payout == 98 * USDC

    def test_retention_from_config(self) -> None:
        wagers = [_make_wager("W1", "GREEN", 100 * USDC)]
        config = RoundConfig(active_symbols=("BTCUSDT",), unilateral_retention_bps=0)
        plan = plan_settlement(_make_round(wagers), wagers, _obs("1", "2"), config)
        assert plan.wagers[0].payout == 100 * USDC


class TestEmptyRound:
    def test_no_wagers_settles_with_price_outcome(self) -> None:
        plan = plan_settlement(_make_round([]), [], _obs("100", "101"), CONFIG)
        assert plan.winner_side == WinnerSide.GREEN
        assert plan.wagers == []
        assert plan.multiplier_green is None
        assert plan.multiplier_red is None
