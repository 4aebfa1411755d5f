"""Persisted ladder definitions."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import LadderModel
from ..ladder_catalog import LadderCatalog, create_literacy_ladder, create_math_ladder
from ..records import Ladder, to_document

logger = logging.getLogger(__name__)


class LadderRepository:
    def get(self, session: Session, ladder_id: str) -> Optional[Ladder]:
        model = session.get(LadderModel, ladder_id)
        if model is None:
            return None
        return Ladder.model_validate(model.document)

    def for_child(self, session: Session, child_id: str) -> List[Ladder]:
        stmt = select(LadderModel).where(LadderModel.child_id == child_id).order_by(LadderModel.id)
        return [Ladder.model_validate(model.document) for model in session.execute(stmt).scalars()]

    def upsert(self, session: Session, ladder: Ladder) -> Ladder:
        model = session.get(LadderModel, ladder.id)
        if model is None:
            model = LadderModel(id=ladder.id)
            session.add(model)
        model.child_id = ladder.child_id
        model.domain = ladder.domain
        model.document = to_document(ladder)
        session.flush()
        return ladder

    def catalog_for_child(self, session: Session, child_id: str) -> LadderCatalog:
        return LadderCatalog(self.for_child(session, child_id))

    def seed_child(self, session: Session, child_id: str) -> List[Ladder]:
        """Store the default literacy and math ladders the child does not have yet."""
        seeded: List[Ladder] = []
        for factory in (create_literacy_ladder, create_math_ladder):
            ladder = factory(child_id)
            if session.get(LadderModel, ladder.id) is None:
                seeded.append(self.upsert(session, ladder))
        if seeded:
            logger.info("Seeded %d ladders for child=%s", len(seeded), child_id)
        return seeded


ladders = LadderRepository()

__all__ = ["LadderRepository", "ladders"]
