"""initial queue schema

Revision ID: 5c1e2a9f0b7d
Revises:
Create Date: 2025-11-03 09:12:44.218031

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9f0b7d"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create branches, tickets, counters, pointers and statistics tables."""
    op.create_table(
        "branch",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("slug", sa.String(length=64), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index(op.f("ix_branch_slug"), "branch", ["slug"], unique=True)

    op.create_table(
        "queue_ticket",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("branch_code", sa.String(length=64), nullable=False),
        sa.Column("branch_name", sa.Text(), nullable=True),
        sa.Column("date_key", sa.String(length=10), nullable=False),
        sa.Column("group", sa.String(length=1), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("pax", sa.Integer(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("priority_class", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("called_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("branch_code", "date_key", "group", "number", name="uq_ticket_number"),
    )
    op.create_index(
        "ix_ticket_lane_status",
        "queue_ticket",
        ["branch_code", "date_key", "group", "status"],
    )
    op.create_index("ix_ticket_called", "queue_ticket", ["branch_code", "group", "status"])

    op.create_table(
        "queue_counter",
        sa.Column("branch_code", sa.String(length=64), nullable=False),
        sa.Column("date_key", sa.String(length=10), nullable=False),
        sa.Column("group", sa.String(length=1), nullable=False),
        sa.Column("current", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("branch_code", "date_key", "group"),
    )

    op.create_table(
        "now_serving",
        sa.Column("branch_code", sa.String(length=64), nullable=False),
        sa.Column("slot", sa.String(length=16), nullable=False),
        sa.Column("ticket_id", sa.String(length=32), nullable=True),
        sa.Column("group", sa.String(length=1), nullable=True),
        sa.Column("code", sa.String(length=16), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("pax", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("branch_code", "slot"),
    )

    op.create_table(
        "wait_stat_bucket",
        sa.Column("branch_code", sa.String(length=64), nullable=False),
        sa.Column("group", sa.String(length=1), nullable=False),
        sa.Column("bucket_id", sa.String(length=16), nullable=False),
        sa.Column("ema_wait_min", sa.Float(), nullable=True),
        sa.Column("sample_count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("branch_code", "group", "bucket_id"),
    )

    op.create_table(
        "daily_stat",
        sa.Column("date_key", sa.String(length=10), nullable=False),
        sa.Column("branch_code", sa.String(length=64), nullable=False),
        sa.Column("branch_name", sa.Text(), nullable=True),
        sa.Column("reserved", sa.Integer(), nullable=False),
        sa.Column("seated", sa.Integer(), nullable=False),
        sa.Column("skipped", sa.Integer(), nullable=False),
        sa.Column("waiting_p", sa.Integer(), nullable=False),
        sa.Column("waiting_a", sa.Integer(), nullable=False),
        sa.Column("waiting_b", sa.Integer(), nullable=False),
        sa.Column("waiting_c", sa.Integer(), nullable=False),
        sa.Column("legacy_totals", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("date_key", "branch_code"),
    )

    op.create_table(
        "daily_stat_event",
        sa.Column("date_key", sa.String(length=10), nullable=False),
        sa.Column("branch_code", sa.String(length=64), nullable=False),
        sa.Column("event_key", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("ticket_id", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["date_key", "branch_code"],
            ["daily_stat.date_key", "daily_stat.branch_code"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("date_key", "branch_code", "event_key"),
    )


def downgrade() -> None:
    """Drop every queue table."""
    op.drop_table("daily_stat_event")
    op.drop_table("daily_stat")
    op.drop_table("wait_stat_bucket")
    op.drop_table("now_serving")
    op.drop_table("queue_counter")
    op.drop_index("ix_ticket_called", table_name="queue_ticket")
    op.drop_index("ix_ticket_lane_status", table_name="queue_ticket")
    op.drop_table("queue_ticket")
    op.drop_index(op.f("ix_branch_slug"), table_name="branch")
    op.drop_table("branch")
