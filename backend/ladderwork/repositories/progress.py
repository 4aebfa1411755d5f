"""Milestone progress per (child, ladder, rung).

Rows are created lazily: a rung nobody has touched reads back as a fresh
``locked`` record and is only written on its first status change or win.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import MilestoneProgressModel
from ..ladder_catalog import rung_id_for, sorted_rungs
from ..promotion import (
    PromotionRules,
    RungStatusSummary,
    derive_rung_statuses,
    record_win,
    transition_milestone,
)
from ..records import Ladder, MilestoneProgress, MilestoneStatus, to_document
from ..telemetry import emit_event
from . import RecordNotFound

logger = logging.getLogger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MilestoneProgressRepository:
    def _model(
        self, session: Session, child_id: str, ladder_id: str, rung_id: str
    ) -> Optional[MilestoneProgressModel]:
        stmt = select(MilestoneProgressModel).where(
            MilestoneProgressModel.child_id == child_id,
            MilestoneProgressModel.ladder_id == ladder_id,
            MilestoneProgressModel.rung_id == rung_id,
        )
        return session.execute(stmt).scalar_one_or_none()

    def get(
        self, session: Session, child_id: str, ladder_id: str, rung_id: str
    ) -> Optional[MilestoneProgress]:
        model = self._model(session, child_id, ladder_id, rung_id)
        if model is None:
            return None
        return MilestoneProgress.model_validate(model.document)

    def get_or_default(
        self, session: Session, child_id: str, ladder_id: str, rung_id: str
    ) -> MilestoneProgress:
        existing = self.get(session, child_id, ladder_id, rung_id)
        if existing is not None:
            return existing
        return MilestoneProgress(
            id=f"{child_id}-{ladder_id}-{rung_id}",
            child_id=child_id,
            ladder_id=ladder_id,
            rung_id=rung_id,
        )

    def progress_by_rung_id(
        self, session: Session, child_id: str, ladder_id: str
    ) -> Dict[str, MilestoneProgress]:
        stmt = select(MilestoneProgressModel).where(
            MilestoneProgressModel.child_id == child_id,
            MilestoneProgressModel.ladder_id == ladder_id,
        )
        return {
            model.rung_id: MilestoneProgress.model_validate(model.document)
            for model in session.execute(stmt).scalars()
        }

    def rung_statuses(self, session: Session, child_id: str, ladder: Ladder) -> RungStatusSummary:
        return derive_rung_statuses(ladder.rungs, self.progress_by_rung_id(session, child_id, ladder.id))

    def save(self, session: Session, progress: MilestoneProgress) -> MilestoneProgress:
        model = self._model(session, progress.child_id, progress.ladder_id, progress.rung_id)
        if model is None:
            model = MilestoneProgressModel(
                child_id=progress.child_id,
                ladder_id=progress.ladder_id,
                rung_id=progress.rung_id,
            )
            session.add(model)
        model.status = "achieved" if progress.is_achieved else progress.status
        model.document = to_document(progress)
        session.flush()
        return progress

    def set_status(
        self,
        session: Session,
        child_id: str,
        ladder_id: str,
        rung_id: str,
        target: MilestoneStatus,
        *,
        achieved_at: Optional[str] = None,
    ) -> MilestoneProgress:
        """Move a rung to ``target``; raises ``InvalidMilestoneTransition`` on a skip."""
        current = self.get_or_default(session, child_id, ladder_id, rung_id)
        updated = transition_milestone(
            current,
            target,
            achieved_at=achieved_at or (_utcnow_iso() if target == "achieved" else None),
        )
        self.save(session, updated)
        emit_event(
            "milestone_transition",
            child_id=child_id,
            ladder_id=ladder_id,
            rung_id=rung_id,
            from_status=current.status,
            to_status=target,
        )
        return updated

    def record_win(
        self,
        session: Session,
        child_id: str,
        ladder: Ladder,
        rung_id: str,
        win_date: str,
        today: str,
        rules: Optional[PromotionRules] = None,
    ) -> Tuple[MilestoneProgress, bool]:
        """Append a win and, when it promotes the rung, activate the next one.

        The derived active rung may still be stored as ``locked`` because rows
        are created lazily; it is activated before the win is applied.
        """
        rung_ids = [rung_id_for(rung) for rung in sorted_rungs(ladder.rungs)]
        if rung_id not in rung_ids:
            raise RecordNotFound(f"Ladder {ladder.id!r} has no rung {rung_id!r}.")

        summary = self.rung_statuses(session, child_id, ladder)
        progress = self.get_or_default(session, child_id, ladder.id, rung_id)
        if summary.active_rung_id == rung_id and progress.status == "locked" and not progress.is_achieved:
            progress = self.set_status(session, child_id, ladder.id, rung_id, "active")

        updated, promoted = record_win(
            progress,
            win_date,
            today,
            rules or PromotionRules.from_settings(),
            achieved_at=_utcnow_iso(),
        )
        self.save(session, updated)
        if not promoted:
            return updated, False

        logger.info("Rung %s on ladder %s achieved for child=%s", rung_id, ladder.id, child_id)
        emit_event(
            "milestone_transition",
            child_id=child_id,
            ladder_id=ladder.id,
            rung_id=rung_id,
            from_status="active",
            to_status="achieved",
            wins=len(updated.wins),
        )
        position = rung_ids.index(rung_id)
        if position + 1 < len(rung_ids):
            next_id = rung_ids[position + 1]
            following = self.get_or_default(session, child_id, ladder.id, next_id)
            if following.status == "locked" and not following.is_achieved:
                self.set_status(session, child_id, ladder.id, next_id, "active")
        return updated, True


milestone_progress = MilestoneProgressRepository()

__all__ = ["MilestoneProgressRepository", "milestone_progress"]
