"""Progress store: children, ladders, milestone progress, sessions, day logs, plans."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20260301_01_progress_store"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "children",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("profile_id", sa.String(length=64), nullable=True, unique=True),
        sa.Column("document", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "ladders",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("child_id", sa.String(length=64), nullable=True),
        sa.Column("domain", sa.String(length=64), nullable=True),
        sa.Column("document", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_ladders_child_id", "ladders", ["child_id"])

    op.create_table(
        "milestone_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("child_id", sa.String(length=64), nullable=False),
        sa.Column("ladder_id", sa.String(length=128), nullable=False),
        sa.Column("rung_id", sa.String(length=128), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="locked"),
        sa.Column("document", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("child_id", "ladder_id", "rung_id", name="uq_milestone_progress_rung"),
    )
    op.create_index("ix_milestone_progress_ladder_id", "milestone_progress", ["ladder_id"])

    op.create_table(
        "practice_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("child_id", sa.String(length=64), nullable=False),
        sa.Column("ladder_id", sa.String(length=128), nullable=False),
        sa.Column("target_rung_order", sa.Integer(), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.String(length=40), nullable=False),
        sa.Column("document", sa.JSON(), nullable=False),
    )
    op.create_index("ix_practice_sessions_rung", "practice_sessions", ["ladder_id", "target_rung_order"])
    op.create_index("ix_practice_sessions_child_date", "practice_sessions", ["child_id", "date"])

    op.create_table(
        "day_logs",
        sa.Column("doc_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("child_id", sa.String(length=64), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("document", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_day_logs_child_id", "day_logs", ["child_id"])
    op.create_index("ix_day_logs_date", "day_logs", ["date"])

    op.create_table(
        "week_plans",
        sa.Column("start_date", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("end_date", sa.String(length=10), nullable=True),
        sa.Column("document", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "daily_plans",
        sa.Column("doc_id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("child_id", sa.String(length=64), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("document", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("child_id", "date", name="uq_daily_plans_child_date"),
    )


def downgrade() -> None:
    op.drop_table("daily_plans")
    op.drop_table("week_plans")
    op.drop_index("ix_day_logs_date", table_name="day_logs")
    op.drop_index("ix_day_logs_child_id", table_name="day_logs")
    op.drop_table("day_logs")
    op.drop_index("ix_practice_sessions_child_date", table_name="practice_sessions")
    op.drop_index("ix_practice_sessions_rung", table_name="practice_sessions")
    op.drop_table("practice_sessions")
    op.drop_index("ix_milestone_progress_ladder_id", table_name="milestone_progress")
    op.drop_table("milestone_progress")
    op.drop_index("ix_ladders_child_id", table_name="ladders")
    op.drop_table("ladders")
    op.drop_table("children")
