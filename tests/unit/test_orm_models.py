"""The ORM models mirror the migrations; keep them in step with the domain rows."""

import dataclasses

import pytest

from src.cr_account.domain.models import Account
from src.cr_account.infrastructure import persistence as account_persistence
from src.cr_account.infrastructure.db_models import AccountORM
from src.cr_round.domain.models import Round
from src.cr_round.infrastructure import persistence as round_persistence
from src.cr_round.infrastructure.db_models import RoundORM
from src.cr_wager.domain.models import Wager
from src.cr_wager.infrastructure import persistence as wager_persistence
from src.cr_wager.infrastructure.db_models import WagerORM


def _columns(sql_fragment: str) -> set[str]:
    return {c.strip() for c in sql_fragment.split(",")}


@pytest.mark.parametrize(
    ("orm", "model", "table"),
    [
        (RoundORM, Round, "rounds"),
        (WagerORM, Wager, "wagers"),
        (AccountORM, Account, "accounts"),
    ],
)
def test_orm_columns_match_domain_fields(orm, model, table) -> None:
    assert orm.__tablename__ == table
    assert set(orm.__table__.columns.keys()) == {f.name for f in dataclasses.fields(model)}


def test_selected_columns_cover_every_orm_column() -> None:
    assert _columns(round_persistence._ROUND_COLUMNS) == set(RoundORM.__table__.columns.keys())
    assert _columns(wager_persistence._SELECT_COLUMNS) == set(WagerORM.__table__.columns.keys())
    assert _columns(account_persistence._SELECT_COLUMNS) == set(
        AccountORM.__table__.columns.keys()
    )


def test_round_window_is_unique_per_symbol() -> None:
    unique = [
        tuple(c.name for c in constraint.columns)
        for constraint in RoundORM.__table__.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]
    assert ("symbol", "start_time") in unique


def test_wager_references_round() -> None:
    fks = {fk.target_fullname for fk in WagerORM.__table__.c.round_id.foreign_keys}
    assert fks == {"rounds.id"}
