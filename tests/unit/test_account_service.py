"""Unit tests for account models, AccountApplicationService and AccountRepository."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from src.cr_account.application.schemas import (
    AccountResponse,
    RankingEntry,
    UpdateProfileRequest,
)
from src.cr_account.application.service import AccountApplicationService
from src.cr_account.domain.models import Account, mask_owner_key
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.enums import RankingSort

OWNER = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


def _make_account(**kwargs) -> Account:
    defaults = dict(
        owner_key=OWNER, total_wagers=10, total_volume=100_000_000, total_wins=3,
        total_losses=5, total_profit=-1_500_000,
    )
    defaults.update(kwargs)
    return Account(**defaults)


class TestAccountModel:
    def test_win_rate_ignores_refunds(self) -> None:
        # 10 wagers, 2 refunded: 3 wins out of 8 decided
        assert _make_account().win_rate == 37.5

    def test_win_rate_without_decided_wagers(self) -> None:
        assert Account(owner_key=OWNER, total_wagers=2).win_rate == 0.0

    def test_win_rate_rounds_to_two_places(self) -> None:
        assert _make_account(total_wins=1, total_losses=2).win_rate == 33.33

    def test_display_name(self) -> None:
        assert _make_account(username="alice").display_name == "alice"
        assert _make_account(username="alice", is_anonymous=True).display_name == "7xKX...gAsU"
        assert _make_account().display_name == "7xKX...gAsU"

    def test_mask_short_key_unchanged(self) -> None:
        assert mask_owner_key("abcd1234") == "abcd1234"


class TestAccountSchemas:
    def test_response_display_values(self) -> None:
        resp = AccountResponse.from_domain(_make_account())

        assert resp.stats.total_profit_display == "-1.50 USDC"
        assert resp.stats.total_volume_display == "100.00 USDC"
        assert resp.stats.win_rate == 37.5

    def test_ranking_entry_hides_owner_key(self) -> None:
        entry = RankingEntry.from_domain(1, _make_account(is_anonymous=True, username="x"))

        assert entry.rank == 1
        assert entry.display_name == "7xKX...gAsU"
        assert "owner_key" not in entry.model_dump()

    def test_blank_username_becomes_none(self) -> None:
        assert UpdateProfileRequest(username="   ").username is None

    def test_username_too_long(self) -> None:
        with pytest.raises(ValidationError):
            UpdateProfileRequest(username="x" * 33)


class TestAccountApplicationService:
    @pytest.mark.asyncio
    async def test_unknown_owner_reads_as_empty_account(self) -> None:
        repo = MagicMock()
        repo.get_account = AsyncMock(return_value=None)

        resp = await AccountApplicationService(repo).get_profile(AsyncMock(), OWNER)

        assert resp.owner_key == OWNER
        assert resp.stats.total_wagers == 0

    @pytest.mark.asyncio
    async def test_update_profile_commits(self) -> None:
        repo = MagicMock()
        repo.update_profile = AsyncMock(return_value=_make_account(username="alice"))
        db = AsyncMock()

        resp = await AccountApplicationService(repo).update_profile(
            db, OWNER, UpdateProfileRequest(username=" alice ", is_anonymous=False)
        )

        repo.update_profile.assert_awaited_once_with(db, OWNER, "alice", None, False)
        assert resp.username == "alice"
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_profile_rolls_back_on_error(self) -> None:
        repo = MagicMock()
        repo.update_profile = AsyncMock(side_effect=RuntimeError("db"))
        db = AsyncMock()

        with pytest.raises(RuntimeError):
            await AccountApplicationService(repo).update_profile(
                db, OWNER, UpdateProfileRequest()
            )
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rankings_are_numbered(self) -> None:
        repo = MagicMock()
        repo.list_rankings = AsyncMock(
            return_value=[_make_account(username="a"), _make_account(username="b")]
        )
        db = AsyncMock()

        resp = await AccountApplicationService(repo).get_rankings(db, RankingSort.VOLUME, 5)

        repo.list_rankings.assert_awaited_once_with(db, "volume", 5)
        assert resp.sort_by == "volume"
        assert [(e.rank, e.display_name) for e in resp.items] == [(1, "a"), (2, "b")]


class TestAccountRepository:
    @pytest.mark.asyncio
    async def test_record_wager_upserts(self) -> None:
        db = AsyncMock()

        await AccountRepository().record_wager(db, OWNER, 9_700_000, "alice", False)

        sql, params = db.execute.call_args.args
        assert "ON CONFLICT (owner_key)" in str(sql)
        assert params == {
            "owner_key": OWNER,
            "net_amount": 9_700_000,
            "username": "alice",
            "is_anonymous": False,
        }

    @pytest.mark.asyncio
    async def test_record_loss_subtracts_net(self) -> None:
        db = AsyncMock()

        await AccountRepository().record_loss(db, OWNER, 50_000_000)

        sql, params = db.execute.call_args.args
        assert "total_profit - :net_amount" in str(sql)
        assert params["net_amount"] == 50_000_000

    @pytest.mark.asyncio
    async def test_rankings_order_by_sort_key(self) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.fetchall.return_value = []
        db.execute.return_value = result

        await AccountRepository().list_rankings(db, "wins", 10)

        sql, params = db.execute.call_args.args
        assert "ORDER BY total_wins DESC" in str(sql)
        assert params == {"limit": 10}

    @pytest.mark.asyncio
    async def test_rankings_reject_unknown_sort(self) -> None:
        with pytest.raises(ValueError):
            await AccountRepository().list_rankings(AsyncMock(), "losses", 10)
