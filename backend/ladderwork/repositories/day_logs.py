"""Day log storage with lookup across historical key formats.

Reads try each ``DayLogLocator`` in order and stop at the first hit. A log
found under a legacy key is re-saved under the canonical ``{date}_{childId}``
key; the legacy row is left in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import DayLogModel
from ..day_status import create_default_day_log, new_log_block_types
from ..doc_ids import day_log_doc_id, legacy_day_log_doc_id
from ..instructions import TemplateRegistry
from ..records import Child, DayLog, to_document
from ..telemetry import emit_event

logger = logging.getLogger(__name__)


def _any_owner(document: Dict[str, Any], child_id: str) -> bool:
    return True


def _unowned_or_matching(document: Dict[str, Any], child_id: str) -> bool:
    owner = document.get("childId")
    return not owner or owner == child_id


@dataclass(frozen=True)
class DayLogLocator:
    name: str
    doc_id: Callable[[str, str], str]
    accepts: Callable[[Dict[str, Any], str], bool] = _any_owner


DAY_LOG_LOCATORS: List[DayLogLocator] = [
    DayLogLocator("canonical", lambda child_id, date: day_log_doc_id(date, child_id)),
    DayLogLocator("legacy", lambda child_id, date: legacy_day_log_doc_id(child_id, date)),
    DayLogLocator("bare-date", lambda child_id, date: date, _unowned_or_matching),
]


@dataclass(frozen=True)
class LocatedDayLog:
    doc_id: str
    locator: str
    day_log: DayLog


class DayLogRepository:
    def __init__(self, locators: Optional[List[DayLogLocator]] = None) -> None:
        self._locators = locators or DAY_LOG_LOCATORS

    def locate(self, session: Session, child_id: str, date: str) -> Optional[LocatedDayLog]:
        for locator in self._locators:
            doc_id = locator.doc_id(child_id, date)
            model = session.get(DayLogModel, doc_id)
            if model is None or not locator.accepts(model.document, child_id):
                continue
            document = {**model.document, "childId": child_id, "date": date}
            return LocatedDayLog(
                doc_id=doc_id,
                locator=locator.name,
                day_log=DayLog.model_validate(document),
            )
        return None

    def get(self, session: Session, child_id: str, date: str) -> Optional[DayLog]:
        located = self.locate(session, child_id, date)
        if located is None:
            return None
        if located.locator != "canonical":
            logger.info(
                "Migrating day log %s (%s key) to %s",
                located.doc_id,
                located.locator,
                day_log_doc_id(date, child_id),
            )
            self.save(session, located.day_log)
            emit_event(
                "day_log_migrated",
                child_id=child_id,
                date=date,
                from_doc_id=located.doc_id,
                locator=located.locator,
            )
        return located.day_log

    def for_child(self, session: Session, child_id: str) -> List[DayLog]:
        """Every log stored for the child, one per date, newest first."""
        stmt = (
            select(DayLogModel)
            .where(DayLogModel.child_id == child_id)
            .order_by(DayLogModel.date.desc())
        )
        by_date: Dict[str, DayLog] = {}
        for model in session.execute(stmt).scalars():
            document = {**model.document, "childId": child_id, "date": model.date}
            canonical = model.doc_id == day_log_doc_id(model.date, child_id)
            if canonical or model.date not in by_date:
                by_date[model.date] = DayLog.model_validate(document)
        return list(by_date.values())

    def load_or_create(
        self,
        session: Session,
        child: Child,
        date: str,
        templates: Optional[TemplateRegistry] = None,
    ) -> DayLog:
        existing = self.get(session, child.id, date)
        if existing is not None:
            return existing
        created = create_default_day_log(child.id, date, new_log_block_types(child, templates))
        return self.save(
            session,
            created.model_copy(update={"created_at": datetime.now(timezone.utc).isoformat()}),
        )

    def save(self, session: Session, day_log: DayLog) -> DayLog:
        """Write the whole document under the canonical key."""
        stamped = day_log.model_copy(update={"updated_at": datetime.now(timezone.utc).isoformat()})
        doc_id = day_log_doc_id(stamped.date, stamped.child_id)
        model = session.get(DayLogModel, doc_id)
        if model is None:
            model = DayLogModel(doc_id=doc_id, date=stamped.date)
            session.add(model)
        model.child_id = stamped.child_id
        model.date = stamped.date
        model.document = to_document(stamped)
        session.flush()
        return stamped


day_logs = DayLogRepository()

__all__ = ["DAY_LOG_LOCATORS", "DayLogLocator", "DayLogRepository", "LocatedDayLog", "day_logs"]
