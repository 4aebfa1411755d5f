"""Add per-child ladder card progress.

Revision ID: 20260315_01_card_progress
Revises: 20260301_01_progress_store
Create Date: 2026-03-15 09:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision = "20260315_01_card_progress"
down_revision = "20260301_01_progress_store"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "card_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("child_id", sa.String(length=64), nullable=False),
        sa.Column("ladder_key", sa.String(length=64), nullable=False),
        sa.Column("current_rung_id", sa.String(length=16), nullable=False),
        sa.Column("document", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("child_id", "ladder_key", name="uq_card_progress_child_card"),
    )
    op.create_index("ix_card_progress_child_id", "card_progress", ["child_id"])


def downgrade() -> None:
    op.drop_index("ix_card_progress_child_id", table_name="card_progress")
    op.drop_table("card_progress")
