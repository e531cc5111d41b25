"""Unit tests for SettlementEngine using mock repositories and oracle."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cr_common.errors import ObservationUnavailableError
from src.cr_oracle.domain.oracle import WindowObservation
from src.cr_round.domain.config import RoundConfig
from src.cr_round.domain.models import Round
from src.cr_settlement.domain.settlement import SettlementEngine, SettleStatus
from src.cr_wager.domain.models import Wager

USDC = 1_000_000
START = datetime(2026, 3, 1, 12, 5, tzinfo=UTC)
END = START + timedelta(minutes=5)


def _make_round(**kwargs) -> Round:
    defaults = dict(
        id="R1", symbol="BTCUSDT", timeframe="5m", start_time=START, end_time=END,
        status="LOCKED", total_green=100 * USDC, total_red=50 * USDC,
        bonus_boost=0, fee_rate_bps=500,
    )
    defaults.update(kwargs)
    return Round(**defaults)


def _wagers() -> list[Wager]:
    def w(wid: str, side: str, net: int, owner: str) -> Wager:
        return Wager(
            id=wid, round_id="R1", owner_key=owner, side=side, net_amount=net,
            paid_asset="USDC", gross_paid=Decimal(net) / USDC, quote_received=net,
            platform_fee=0,
        )

    return [
        w("W1", "GREEN", 10 * USDC, "owner-green-1"),
        w("W2", "GREEN", 90 * USDC, "owner-green-2"),
        w("W3", "RED", 50 * USDC, "owner-red-1"),
    ]


@pytest.fixture
def oracle():
    mock = MagicMock()
    mock.get_window_observation = AsyncMock(
        return_value=WindowObservation(
            "BTCUSDT", START, END, Decimal("64000.10"), Decimal("64012.55")
        )
    )
    return mock


@pytest.fixture
def round_repo():
    repo = MagicMock()
    repo.mark_settled = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def wager_repo():
    repo = MagicMock()
    repo.list_by_round = AsyncMock(return_value=_wagers())
    repo.apply_settlement = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def account_repo():
    repo = MagicMock()
    repo.record_loss = AsyncMock()
    return repo


@pytest.fixture
def engine(oracle, round_repo, wager_repo, account_repo) -> SettlementEngine:
    return SettlementEngine(
        RoundConfig(active_symbols=("BTCUSDT",)),
        oracle,
        round_repo=round_repo,
        wager_repo=wager_repo,
        account_repo=account_repo,
    )


class TestSettleRound:
    @pytest.mark.asyncio
    async def test_settles_and_commits_once(
        self, engine, round_repo, wager_repo, account_repo
    ) -> None:
        db = AsyncMock()

        result = await engine.settle_round(db, _make_round())

        assert result.status == SettleStatus.SETTLED
        args = round_repo.mark_settled.call_args.args
        assert args[1] == "R1"
        assert args[2] == "GREEN"
        assert args[3] == Decimal("1.425")
        assert args[4] == Decimal("2.85")
        assert args[5] == Decimal("64000.10")

        writes = {c.args[1]: c.args[2:4] for c in wager_repo.apply_settlement.call_args_list}
        assert writes == {
            "W1": ("WON", 14_250_000),
            "W2": ("WON", 128_250_000),
            "W3": ("LOST", 0),
        }
        account_repo.record_loss.assert_awaited_once_with(db, "owner-red-1", 50 * USDC)
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oracle_failure_leaves_round_locked(self, engine, oracle, round_repo) -> None:
        oracle.get_window_observation.side_effect = ObservationUnavailableError(
            "BTCUSDT", "no candle"
        )
        db = AsyncMock()

        with pytest.raises(ObservationUnavailableError):
            await engine.settle_round(db, _make_round())

        round_repo.mark_settled.assert_not_awaited()
        db.execute.assert_not_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cas_miss_rolls_back_and_skips(
        self, engine, round_repo, wager_repo, account_repo
    ) -> None:
        round_repo.mark_settled.return_value = False
        db = AsyncMock()

        result = await engine.settle_round(db, _make_round())

        assert result.status == SettleStatus.SKIPPED
        wager_repo.apply_settlement.assert_not_awaited()
        account_repo.record_loss.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_already_settled_round_is_skipped_without_oracle(
        self, engine, oracle
    ) -> None:
        db = AsyncMock()

        result = await engine.settle_round(db, _make_round(status="SETTLED"))

        assert result.status == SettleStatus.SKIPPED
        oracle.get_window_observation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_settling_twice_yields_one_transition(self, engine, round_repo) -> None:
        round_repo.mark_settled.side_effect = [True, False]
        first = await engine.settle_round(AsyncMock(), _make_round())
        second = await engine.settle_round(AsyncMock(), _make_round())

        assert first.status == SettleStatus.SETTLED
        assert second.status == SettleStatus.SKIPPED
        assert first.plan is not None
        assert first.plan.total_payout == 142_500_000

    @pytest.mark.asyncio
    async def test_unilateral_round_refunds(self, engine, wager_repo, account_repo) -> None:
        green_only = [w for w in _wagers() if w.side == "GREEN"]
        wager_repo.list_by_round.return_value = green_only

        result = await engine.settle_round(
            AsyncMock(), _make_round(total_green=100 * USDC, total_red=0)
        )

        assert result.plan is not None
        assert result.plan.winner_side == "DRAW"
        payouts = [c.args[3] for c in wager_repo.apply_settlement.call_args_list]
        assert payouts == [9_800_000, 88_200_000]
        account_repo.record_loss.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flat_candle_stores_no_multipliers(
        self, engine, oracle, round_repo, wager_repo, account_repo
    ) -> None:
        oracle.get_window_observation.return_value = WindowObservation(
            "BTCUSDT", START, END, Decimal("64000.10"), Decimal("64000.1")
        )

        await engine.settle_round(AsyncMock(), _make_round())

        args = round_repo.mark_settled.call_args.args
        assert args[2:5] == ("DRAW", None, None)
        writes = {c.args[1]: c.args[2:4] for c in wager_repo.apply_settlement.call_args_list}
        assert writes == {
            "W1": ("REFUNDED", 10 * USDC),
            "W2": ("REFUNDED", 90 * USDC),
            "W3": ("REFUNDED", 50 * USDC),
        }
        account_repo.record_loss.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_failure_rolls_back(self, engine, wager_repo) -> None:
        wager_repo.apply_settlement.side_effect = RuntimeError("connection lost")
        db = AsyncMock()

        with pytest.raises(RuntimeError):
            await engine.settle_round(db, _make_round())

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
