"""Add user_entitlements and usage_counters tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create user_entitlements and usage_counters tables."""
    op.create_table(
        "user_entitlements",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tier", sa.String(16), nullable=False, server_default="free"),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("has_used_trial", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index(
        op.f("ix_user_entitlements_tier"), "user_entitlements", ["tier"], unique=False
    )
    op.create_index(
        op.f("ix_user_entitlements_period_end"),
        "user_entitlements",
        ["period_end"],
        unique=False,
    )

    op.create_table(
        "usage_counters",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("action_type", sa.String(32), nullable=False),
        sa.Column("day_key", sa.Date(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("user_id", "action_type", "day_key"),
    )


def downgrade() -> None:
    """Drop usage_counters and user_entitlements tables."""
    op.drop_table("usage_counters")
    op.drop_index(op.f("ix_user_entitlements_period_end"), table_name="user_entitlements")
    op.drop_index(op.f("ix_user_entitlements_tier"), table_name="user_entitlements")
    op.drop_table("user_entitlements")
