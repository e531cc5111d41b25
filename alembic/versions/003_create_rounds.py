"""003: create rounds table

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE rounds (
            id                  VARCHAR(64)     PRIMARY KEY,
            symbol              VARCHAR(20)     NOT NULL,
            timeframe           VARCHAR(8)      NOT NULL,
            start_time          TIMESTAMPTZ     NOT NULL,
            end_time            TIMESTAMPTZ     NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            total_green         BIGINT          NOT NULL DEFAULT 0,
            total_red           BIGINT          NOT NULL DEFAULT 0,
            bonus_boost         BIGINT          NOT NULL DEFAULT 0,
            fee_rate_bps        SMALLINT        NOT NULL DEFAULT 500,
            winner_side         VARCHAR(10),
            multiplier_green    NUMERIC(20, 8),
            multiplier_red      NUMERIC(20, 8),
            open_price          NUMERIC(38, 18),
            close_price         NUMERIC(38, 18),
            locked_at           TIMESTAMPTZ,
            settled_at          TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_rounds_symbol_start       UNIQUE (symbol, start_time),
            CONSTRAINT ck_rounds_window             CHECK (end_time > start_time),
            CONSTRAINT ck_rounds_green_gte_0        CHECK (total_green >= 0),
            CONSTRAINT ck_rounds_red_gte_0          CHECK (total_red >= 0),
            CONSTRAINT ck_rounds_boost_gte_0        CHECK (bonus_boost >= 0),
            CONSTRAINT ck_rounds_fee CHECK (fee_rate_bps >= 0 AND fee_rate_bps < 10000),
            CONSTRAINT ck_rounds_status CHECK (status IN ('OPEN', 'LOCKED', 'SETTLED')),
            CONSTRAINT ck_rounds_winner CHECK (
                winner_side IS NULL OR winner_side IN ('GREEN', 'RED', 'DRAW')
            ),
            CONSTRAINT ck_rounds_settled_outputs CHECK (
                (status = 'SETTLED') = (winner_side IS NOT NULL AND settled_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_rounds_status_start ON rounds (status, start_time);")
    op.execute("CREATE INDEX idx_rounds_status_end ON rounds (status, end_time);")
    op.execute("CREATE INDEX idx_rounds_symbol_status ON rounds (symbol, status, start_time DESC);")
    op.execute("""
        CREATE TRIGGER trg_rounds_updated_at
            BEFORE UPDATE ON rounds
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TRIGGER trg_rounds_status_guard
            BEFORE UPDATE OF status ON rounds
            FOR EACH ROW EXECUTE FUNCTION fn_guard_round_status();
    """)
    op.execute("COMMENT ON TABLE rounds IS 'One pari-mutuel round per (symbol, window): pools, lifecycle, settlement outputs';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS rounds CASCADE;")
