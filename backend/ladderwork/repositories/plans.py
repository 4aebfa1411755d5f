"""Week plans and per-child daily plans."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..calendar_keys import parse_date_key, week_range
from ..db.models import DailyPlanModel, WeekPlanModel
from ..doc_ids import daily_plan_doc_id
from ..records import DailyPlan, WeekPlan, to_document


class WeekPlanRepository:
    def get(self, session: Session, start_date: str) -> Optional[WeekPlan]:
        model = session.get(WeekPlanModel, start_date)
        if model is None:
            return None
        return WeekPlan.model_validate(model.document)

    def for_date(self, session: Session, date: str) -> Optional[WeekPlan]:
        """The plan whose range covers ``date``, falling back to the Monday key."""
        stmt = (
            select(WeekPlanModel)
            .where(WeekPlanModel.start_date <= date, WeekPlanModel.end_date >= date)
            .order_by(WeekPlanModel.start_date.desc())
            .limit(1)
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is not None:
            return WeekPlan.model_validate(model.document)
        parsed = parse_date_key(date)
        if parsed is None:
            return None
        monday, _ = week_range(parsed)
        return self.get(session, monday)

    def upsert(self, session: Session, plan: WeekPlan) -> WeekPlan:
        model = session.get(WeekPlanModel, plan.start_date)
        if model is None:
            model = WeekPlanModel(start_date=plan.start_date)
            session.add(model)
        model.end_date = plan.end_date
        model.document = to_document(plan)
        session.flush()
        return plan


class DailyPlanRepository:
    """At most one plan per (child, date); regenerating replaces it."""

    def get(self, session: Session, child_id: str, date: str) -> Optional[DailyPlan]:
        stmt = select(DailyPlanModel).where(
            DailyPlanModel.child_id == child_id,
            DailyPlanModel.date == date,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            return None
        return DailyPlan.model_validate(model.document)

    def put(self, session: Session, plan: DailyPlan) -> DailyPlan:
        doc_id = daily_plan_doc_id(plan.date, plan.child_id)
        stored = plan.model_copy(update={"id": plan.id or doc_id})
        model = session.get(DailyPlanModel, doc_id)
        if model is None:
            model = DailyPlanModel(doc_id=doc_id, child_id=plan.child_id, date=plan.date)
            session.add(model)
        model.document = to_document(stored)
        session.flush()
        return stored


week_plans = WeekPlanRepository()
daily_plans = DailyPlanRepository()

__all__ = ["DailyPlanRepository", "WeekPlanRepository", "daily_plans", "week_plans"]
