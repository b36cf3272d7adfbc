"""message ledger

Revision ID: 5c1e2a9d7b40
Revises:
Create Date: 2026-10-19 09:12:44.301552

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create identity, ledger bookkeeping, record and event tables."""
    op.create_table(
        "identity",
        sa.Column("user_id", sa.LargeBinary(length=32), nullable=False),
        sa.Column("pubkey", sa.LargeBinary(length=32), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("pubkey"),
    )
    op.create_table(
        "ledger_state",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("total_messages", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "message_record",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("content_handle", sa.LargeBinary(length=32), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("owner_user_id", sa.LargeBinary(length=32), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_message_record_owner_id",
        "message_record",
        ["owner_user_id", "id"],
        unique=False,
    )
    op.create_table(
        "ledger_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("owner_user_id", sa.LargeBinary(length=32), nullable=False),
        sa.Column("message_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=True),
        sa.Column("recorded_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_ledger_event_message_id"),
        "ledger_event",
        ["message_id"],
        unique=False,
    )


def downgrade() -> None:
    """Drop all ledger tables."""
    op.drop_index(op.f("ix_ledger_event_message_id"), table_name="ledger_event")
    op.drop_table("ledger_event")
    op.drop_index("ix_message_record_owner_id", table_name="message_record")
    op.drop_table("message_record")
    op.drop_table("ledger_state")
    op.drop_table("identity")
