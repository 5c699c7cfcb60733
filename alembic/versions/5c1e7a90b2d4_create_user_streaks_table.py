"""Create user_streaks table

Revision ID: 5c1e7a90b2d4
Revises:
Create Date: 2026-01-08 16:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c1e7a90b2d4'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """One streak row per user; history kept as a JSONB array."""
    op.create_table(
        "user_streaks",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("current_streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("streak_freezes", sa.Integer, nullable=False, server_default="0"),
        # User's local calendar day, stored without any timezone conversion
        sa.Column("last_activity_date", sa.Date, nullable=True),
        sa.Column(
            "streak_history",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("streak_freezes >= 0", name="ck_user_streaks_freezes_nonneg"),
        sa.CheckConstraint("current_streak >= 0", name="ck_user_streaks_current_nonneg"),
    )


def downgrade() -> None:
    op.drop_table("user_streaks")
