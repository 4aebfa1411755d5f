"""Append-only log of practice sessions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import SessionModel
from ..records import Session as PracticeSession
from ..records import to_document
from ..telemetry import emit_event


class SessionLogRepository:
    """Sessions are inserted once and never updated or deleted."""

    def append(self, session: Session, record: PracticeSession) -> PracticeSession:
        stamped = record.model_copy(
            update={
                "id": record.id or str(uuid.uuid4()),
                "created_at": record.created_at or datetime.now(timezone.utc).isoformat(),
            }
        )
        session.add(
            SessionModel(
                id=stamped.id,
                child_id=stamped.child_id,
                ladder_id=stamped.ladder_id,
                target_rung_order=stamped.target_rung_order,
                date=stamped.date,
                created_at=stamped.created_at,
                document=to_document(stamped),
            )
        )
        session.flush()
        emit_event(
            "session_logged",
            child_id=stamped.child_id,
            ladder_id=stamped.ladder_id,
            rung=stamped.target_rung_order,
            result=stamped.result,
        )
        return stamped

    def for_child(
        self,
        session: Session,
        child_id: str,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[PracticeSession]:
        stmt = select(SessionModel).where(SessionModel.child_id == child_id)
        if start_date:
            stmt = stmt.where(SessionModel.date >= start_date)
        if end_date:
            stmt = stmt.where(SessionModel.date <= end_date)
        stmt = stmt.order_by(SessionModel.created_at.desc())
        return [PracticeSession.model_validate(model.document) for model in session.execute(stmt).scalars()]

    def for_rung(
        self, session: Session, ladder_id: str, target_rung_order: int
    ) -> List[PracticeSession]:
        stmt = (
            select(SessionModel)
            .where(
                SessionModel.ladder_id == ladder_id,
                SessionModel.target_rung_order == target_rung_order,
            )
            .order_by(SessionModel.created_at.desc())
        )
        return [PracticeSession.model_validate(model.document) for model in session.execute(stmt).scalars()]


session_log = SessionLogRepository()

__all__ = ["SessionLogRepository", "session_log"]
