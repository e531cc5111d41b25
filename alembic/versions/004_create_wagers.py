"""004: create wagers table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wagers (
            id                      VARCHAR(64)     PRIMARY KEY,
            round_id                VARCHAR(64)     NOT NULL REFERENCES rounds(id),
            owner_key               VARCHAR(128)    NOT NULL,
            side                    VARCHAR(10)     NOT NULL,
            net_amount              BIGINT          NOT NULL,
            paid_asset              VARCHAR(16)     NOT NULL,
            gross_paid              NUMERIC(38, 18) NOT NULL,
            quote_received          BIGINT          NOT NULL,
            platform_fee            BIGINT          NOT NULL DEFAULT 0,
            transaction_ref         VARCHAR(128),
            status                  VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            payout                  BIGINT          NOT NULL DEFAULT 0,
            payout_confirmation     VARCHAR(128),
            payout_claimed_at       TIMESTAMPTZ,
            username                VARCHAR(64),
            is_anonymous            BOOLEAN         NOT NULL DEFAULT FALSE,
            settled_at              TIMESTAMPTZ,
            paid_at                 TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wagers_side CHECK (side IN ('GREEN', 'RED')),
            CONSTRAINT ck_wagers_status CHECK (status IN ('PENDING', 'WON', 'LOST', 'REFUNDED')),
            CONSTRAINT ck_wagers_net_gt_0           CHECK (net_amount > 0),
            CONSTRAINT ck_wagers_gross_gt_0         CHECK (gross_paid > 0),
            CONSTRAINT ck_wagers_fee_gte_0          CHECK (platform_fee >= 0),
            CONSTRAINT ck_wagers_net_consistency    CHECK (net_amount = quote_received - platform_fee),
            CONSTRAINT ck_wagers_payout_gte_0       CHECK (payout >= 0),
            CONSTRAINT ck_wagers_pending_unpaid CHECK (
                status <> 'PENDING' OR (payout = 0 AND payout_confirmation IS NULL)
            ),
            CONSTRAINT ck_wagers_lost_unpaid CHECK (status <> 'LOST' OR payout = 0)
        );
    """)
    op.execute("CREATE INDEX idx_wagers_round ON wagers (round_id);")
    op.execute("CREATE INDEX idx_wagers_owner ON wagers (owner_key, id DESC);")
    op.execute("""
        CREATE INDEX idx_wagers_awaiting_payout ON wagers (settled_at, id)
            WHERE payout > 0 AND payout_confirmation IS NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_wagers_updated_at
            BEFORE UPDATE ON wagers
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE wagers IS 'One stake on one side of a round; status/payout set once at settlement';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wagers CASCADE;")
