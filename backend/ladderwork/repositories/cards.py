"""Ladder card progress per (child, card)."""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..card_ladders import CardSessionOutcome, apply_card_session, create_initial_progress
from ..db.models import CardProgressModel
from ..records import CardProgress, LadderCard, SessionResult, SupportLevel, to_document
from ..telemetry import emit_event


class CardProgressRepository:
    def _model(self, session: Session, child_id: str, ladder_key: str) -> Optional[CardProgressModel]:
        stmt = select(CardProgressModel).where(
            CardProgressModel.child_id == child_id,
            CardProgressModel.ladder_key == ladder_key,
        )
        return session.execute(stmt).scalar_one_or_none()

    def get(self, session: Session, child_id: str, ladder_key: str) -> Optional[CardProgress]:
        model = self._model(session, child_id, ladder_key)
        if model is None:
            return None
        return CardProgress.model_validate(model.document)

    def get_or_initial(self, session: Session, child_id: str, card: LadderCard) -> CardProgress:
        return self.get(session, child_id, card.ladder_key) or create_initial_progress(child_id, card)

    def for_child(self, session: Session, child_id: str) -> Dict[str, CardProgress]:
        stmt = select(CardProgressModel).where(CardProgressModel.child_id == child_id)
        return {
            model.ladder_key: CardProgress.model_validate(model.document)
            for model in session.execute(stmt).scalars()
        }

    def save(self, session: Session, progress: CardProgress) -> CardProgress:
        model = self._model(session, progress.child_id, progress.ladder_key)
        if model is None:
            model = CardProgressModel(child_id=progress.child_id, ladder_key=progress.ladder_key)
            session.add(model)
        model.current_rung_id = progress.current_rung_id
        model.document = to_document(progress)
        session.flush()
        return progress

    def apply_session(
        self,
        session: Session,
        child_id: str,
        card: LadderCard,
        date: str,
        result: SessionResult,
        support_level: SupportLevel,
        note: Optional[str] = None,
    ) -> CardSessionOutcome:
        previous = self.get_or_initial(session, child_id, card)
        outcome = apply_card_session(previous, card, date, result, support_level, note)
        self.save(session, outcome.progress)
        if outcome.promoted:
            emit_event(
                "card_promoted",
                child_id=child_id,
                ladder_key=card.ladder_key,
                from_rung=previous.current_rung_id,
                to_rung=outcome.new_rung_id,
            )
        return outcome


card_progress = CardProgressRepository()

__all__ = ["CardProgressRepository", "card_progress"]
