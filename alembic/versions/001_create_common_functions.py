"""001: create common functions

Revision ID: 001
Revises:
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Rounds only move forward: OPEN -> LOCKED -> SETTLED, never back, never skipping.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_guard_round_status()
        RETURNS TRIGGER AS $$
        BEGIN
            IF NEW.status <> OLD.status AND NOT (
                (OLD.status = 'OPEN' AND NEW.status = 'LOCKED')
                OR (OLD.status = 'LOCKED' AND NEW.status = 'SETTLED')
            ) THEN
                RAISE EXCEPTION 'illegal round transition % -> % for %',
                    OLD.status, NEW.status, OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_guard_round_status();")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
