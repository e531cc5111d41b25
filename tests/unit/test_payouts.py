"""Unit tests for PayoutDispatcher: claim, transfer, confirm, release."""

from contextlib import asynccontextmanager
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cr_common.errors import TransferFailedError
from src.cr_round.domain.config import RoundConfig
from src.cr_settlement.domain.payouts import PayoutDispatcher, PayoutOutcome
from src.cr_wager.domain.models import Wager


def _make_wager(wager_id: str = "W1", status: str = "WON", payout: int = 14_250_000) -> Wager:
    return Wager(
        id=wager_id,
        round_id="R1",
        owner_key="owner-green-1",
        side="GREEN",
        net_amount=10_000_000,
        paid_asset="USDC",
        gross_paid=Decimal("10.309279"),
        quote_received=10_309_279,
        platform_fee=309_279,
        status=status,
        payout=payout,
    )


def _session_factory(db: AsyncMock):
    @asynccontextmanager
    async def factory():
        yield db

    return factory


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def wager_repo():
    repo = MagicMock()
    repo.list_awaiting_payout = AsyncMock(return_value=[])
    repo.claim_payout = AsyncMock(return_value=True)
    repo.release_payout_claim = AsyncMock()
    repo.record_payout_confirmation = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def account_repo():
    repo = MagicMock()
    repo.record_win = AsyncMock()
    return repo


@pytest.fixture
def issuer():
    mock = MagicMock()
    mock.transfer = AsyncMock(return_value="sig-abc")
    return mock


@pytest.fixture
def dispatcher(db, issuer, wager_repo, account_repo) -> PayoutDispatcher:
    return PayoutDispatcher(
        _session_factory(db),
        issuer,
        RoundConfig(active_symbols=("BTCUSDT",), payout_claim_ttl_seconds=60),
        wager_repo=wager_repo,
        account_repo=account_repo,
    )


class TestPayWager:
    @pytest.mark.asyncio
    async def test_winner_paid_and_profit_recorded(
        self, dispatcher, issuer, wager_repo, account_repo, db
    ) -> None:
        outcome = await dispatcher.pay_wager(_make_wager())

        assert outcome == PayoutOutcome.PAID
        issuer.transfer.assert_awaited_once_with(
            "owner-green-1", 14_250_000, idempotency_key="W1"
        )
        args = wager_repo.record_payout_confirmation.call_args.args
        assert args[1:3] == ("W1", "sig-abc")
        account_repo.record_win.assert_awaited_once_with(db, "owner-green-1", 4_250_000)
        assert db.commit.await_count == 2

    @pytest.mark.asyncio
    async def test_claim_uses_ttl_for_staleness(self, dispatcher, wager_repo) -> None:
        await dispatcher.pay_wager(_make_wager())

        _, wager_id, now, stale_before = wager_repo.claim_payout.call_args.args
        assert wager_id == "W1"
        assert (now - stale_before).total_seconds() == 60

    @pytest.mark.asyncio
    async def test_refund_does_not_touch_win_stats(
        self, dispatcher, account_repo
    ) -> None:
        outcome = await dispatcher.pay_wager(_make_wager(status="REFUNDED", payout=9_800_000))

        assert outcome == PayoutOutcome.PAID
        account_repo.record_win.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lost_claim_skips_transfer(self, dispatcher, issuer, wager_repo) -> None:
        wager_repo.claim_payout.return_value = False

        outcome = await dispatcher.pay_wager(_make_wager())

        assert outcome == PayoutOutcome.SKIPPED
        issuer.transfer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transfer_failure_releases_claim(
        self, dispatcher, issuer, wager_repo, account_repo
    ) -> None:
        issuer.transfer.side_effect = TransferFailedError("owner-green-1", "HTTP 503")

        outcome = await dispatcher.pay_wager(_make_wager())

        assert outcome == PayoutOutcome.FAILED
        wager_repo.release_payout_claim.assert_awaited_once()
        assert wager_repo.release_payout_claim.call_args.args[1] == "W1"
        wager_repo.record_payout_confirmation.assert_not_awaited()
        account_repo.record_win.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_already_confirmed_is_skipped(
        self, dispatcher, wager_repo, account_repo
    ) -> None:
        wager_repo.record_payout_confirmation.return_value = False

        outcome = await dispatcher.pay_wager(_make_wager())

        assert outcome == PayoutOutcome.SKIPPED
        account_repo.record_win.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_confirm_failure_rolls_back(self, dispatcher, wager_repo, db) -> None:
        wager_repo.record_payout_confirmation.side_effect = RuntimeError("db gone")

        with pytest.raises(RuntimeError):
            await dispatcher.pay_wager(_make_wager())

        db.rollback.assert_awaited_once()


class TestSweep:
    @pytest.mark.asyncio
    async def test_counts_each_outcome(self, dispatcher, issuer, wager_repo) -> None:
        wager_repo.list_awaiting_payout.return_value = [
            _make_wager("W1"),
            _make_wager("W2"),
            _make_wager("W3"),
        ]
        wager_repo.claim_payout.side_effect = [True, True, False]
        issuer.transfer.side_effect = ["sig-1", TransferFailedError("owner", "timeout")]

        result = await dispatcher.sweep()

        assert (result.paid, result.failed, result.skipped) == (1, 1, 1)
        assert result.attempted == 3
        assert result.failures == ["W2: transfer failed"]

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_stop_sweep(
        self, dispatcher, issuer, wager_repo
    ) -> None:
        wager_repo.list_awaiting_payout.return_value = [_make_wager("W1"), _make_wager("W2")]
        issuer.transfer.side_effect = [RuntimeError("boom"), "sig-2"]

        result = await dispatcher.sweep()

        assert result.paid == 1
        assert result.failed == 1
        assert result.failures[0].startswith("W1:")

    @pytest.mark.asyncio
    async def test_uses_configured_limit(self, dispatcher, wager_repo) -> None:
        await dispatcher.sweep()
        assert wager_repo.list_awaiting_payout.call_args.args[1] == 200

        await dispatcher.sweep(limit=5)
        assert wager_repo.list_awaiting_payout.call_args.args[1] == 5
