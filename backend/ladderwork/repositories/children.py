"""Child records and their profile bindings."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import ChildModel
from ..profiles import ProfileDirectory
from ..records import Child, to_document
from . import ProfileAlreadyBound, RecordNotFound


class ChildRepository:
    def get(self, session: Session, child_id: str) -> Optional[Child]:
        model = session.get(ChildModel, child_id)
        if model is None:
            return None
        return Child.model_validate(model.document)

    def require(self, session: Session, child_id: str) -> Child:
        child = self.get(session, child_id)
        if child is None:
            raise RecordNotFound(f"Unknown child {child_id!r}.")
        return child

    def list(self, session: Session) -> List[Child]:
        models = session.execute(select(ChildModel).order_by(ChildModel.name)).scalars().all()
        return [Child.model_validate(model.document) for model in models]

    def upsert(self, session: Session, child: Child, *, profile_id: Optional[str] = None) -> Child:
        """Write ``child``; a non-empty ``profile_id`` binds it, an empty one unbinds it."""
        normalized = profile_id.strip().lower() if profile_id is not None else None
        if normalized:
            bound = self.profile_directory(session).resolve(normalized)
            if bound is not None and bound != child.id:
                raise ProfileAlreadyBound(normalized, bound)
        model = session.get(ChildModel, child.id)
        if model is None:
            model = ChildModel(id=child.id, name=child.name)
            session.add(model)
        model.name = child.name
        model.document = to_document(child)
        if normalized is not None:
            model.profile_id = normalized or None
        session.flush()
        return child

    def profile_directory(self, session: Session) -> ProfileDirectory:
        rows = session.execute(
            select(ChildModel.profile_id, ChildModel.id).where(ChildModel.profile_id.is_not(None))
        ).all()
        return ProfileDirectory({profile_id: child_id for profile_id, child_id in rows})


children = ChildRepository()

__all__ = ["ChildRepository", "children"]
