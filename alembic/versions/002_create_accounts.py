"""002: create accounts table

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            owner_key       VARCHAR(128)    PRIMARY KEY,
            total_wagers    INT             NOT NULL DEFAULT 0,
            total_volume    BIGINT          NOT NULL DEFAULT 0,
            total_wins      INT             NOT NULL DEFAULT 0,
            total_losses    INT             NOT NULL DEFAULT 0,
            total_profit    BIGINT          NOT NULL DEFAULT 0,
            username        VARCHAR(64),
            avatar          VARCHAR(512),
            is_anonymous    BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_wagers_gte_0   CHECK (total_wagers >= 0),
            CONSTRAINT ck_accounts_volume_gte_0   CHECK (total_volume >= 0),
            CONSTRAINT ck_accounts_decided_lte_wagers
                CHECK (total_wins + total_losses <= total_wagers)
        );
    """)
    op.execute("CREATE INDEX idx_accounts_profit ON accounts (total_profit DESC);")
    op.execute("CREATE INDEX idx_accounts_volume ON accounts (total_volume DESC);")
    op.execute("CREATE INDEX idx_accounts_wins ON accounts (total_wins DESC);")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Per-wallet rollup: wager count/volume, wins/losses, profit, profile';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
