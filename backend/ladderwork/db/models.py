"""ORM models backing the progress store.

Each table keeps the full record as a JSON document next to the handful of
columns used for lookups, so documents round-trip unchanged.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


class ChildModel(TimestampMixin, Base):
    __tablename__ = "children"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    profile_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, unique=True)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class LadderModel(TimestampMixin, Base):
    __tablename__ = "ladders"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    child_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    domain: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class MilestoneProgressModel(TimestampMixin, Base):
    __tablename__ = "milestone_progress"
    __table_args__ = (
        UniqueConstraint("child_id", "ladder_id", "rung_id", name="uq_milestone_progress_rung"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    child_id: Mapped[str] = mapped_column(String(64), nullable=False)
    ladder_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    rung_id: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="locked", nullable=False)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class SessionModel(Base):
    """Append-only practice sessions; rows are inserted, never updated."""

    __tablename__ = "practice_sessions"
    __table_args__ = (
        Index("ix_practice_sessions_rung", "ladder_id", "target_rung_order"),
        Index("ix_practice_sessions_child_date", "child_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    child_id: Mapped[str] = mapped_column(String(64), nullable=False)
    ladder_id: Mapped[str] = mapped_column(String(128), nullable=False)
    target_rung_order: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class DayLogModel(TimestampMixin, Base):
    __tablename__ = "day_logs"

    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    child_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class WeekPlanModel(TimestampMixin, Base):
    __tablename__ = "week_plans"

    start_date: Mapped[str] = mapped_column(String(10), primary_key=True)
    end_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class DailyPlanModel(TimestampMixin, Base):
    __tablename__ = "daily_plans"
    __table_args__ = (UniqueConstraint("child_id", "date", name="uq_daily_plans_child_date"),)

    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    child_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


class CardProgressModel(TimestampMixin, Base):
    __tablename__ = "card_progress"
    __table_args__ = (UniqueConstraint("child_id", "ladder_key", name="uq_card_progress_child_card"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    child_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    ladder_key: Mapped[str] = mapped_column(String(64), nullable=False)
    current_rung_id: Mapped[str] = mapped_column(String(16), nullable=False)
    document: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)


__all__ = [
    "CardProgressModel",
    "ChildModel",
    "DailyPlanModel",
    "DayLogModel",
    "LadderModel",
    "MilestoneProgressModel",
    "SessionModel",
    "WeekPlanModel",
]
