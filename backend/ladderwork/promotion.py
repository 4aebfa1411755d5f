"""Promotion rules over practice sessions and recorded milestone wins.

Two independent mechanisms decide when a child is ready for the next rung:

* **Level-up** looks at the session stream for one (ladder, rung) pair and
  fires when the most recent attempts are all hits.
* **Milestone promotion** looks at the wins recorded on a rung and fires on
  either enough wins overall or enough wins inside a trailing window.

Both are pure: they read snapshots and return a signal. Writing the outcome
back (activating a rung, stamping ``achievedAt``) is left to
``repositories.progress``, which uses ``transition_milestone`` to keep the
locked → active → achieved order intact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .calendar_keys import shift_date_key
from .config import Settings, get_settings
from .ladder_catalog import LadderCatalog, rung_id_for, sorted_rungs
from .records import MilestoneProgress, MilestoneStatus, Rung, Session, StreamId, Win

logger = logging.getLogger(__name__)

LEVEL_UP_WINDOW = 3

_ALLOWED_TRANSITIONS = {
    ("locked", "active"),
    ("active", "achieved"),
    ("active", "locked"),
    ("achieved", "active"),
}


class InvalidMilestoneTransition(ValueError):
    """Raised when a milestone would skip the ``active`` state."""

    def __init__(self, current: MilestoneStatus, target: MilestoneStatus) -> None:
        super().__init__(f"Cannot move milestone from {current} to {target}.")
        self.current = current
        self.target = target


@dataclass(frozen=True)
class PromotionRules:
    total_wins: int = 5
    wins_in_window: int = 3
    window_days: int = 7

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PromotionRules":
        settings = settings or get_settings()
        return cls(
            total_wins=settings.promotion_total_wins,
            wins_in_window=settings.promotion_wins_in_window,
            window_days=settings.promotion_window_days,
        )


@dataclass(frozen=True)
class LevelUpTarget:
    stream_id: StreamId
    ladder_id: str
    current_rung: int


@dataclass(frozen=True)
class ResultTally:
    hits: int = 0
    nears: int = 0
    misses: int = 0


@dataclass
class RungStatusSummary:
    active_rung_id: Optional[str]
    status_by_rung_id: Dict[str, MilestoneStatus] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return self.active_rung_id is None and bool(self.status_by_rung_id)


# ----- level-up --------------------------------------------------------------


def _sessions_for_rung(sessions: Iterable[Session], ladder_id: str, rung_order: int) -> List[Session]:
    relevant = [
        session
        for session in sessions
        if session.ladder_id == ladder_id and session.target_rung_order == rung_order
    ]
    relevant.sort(key=lambda session: session.created_at or "", reverse=True)
    return relevant


def evaluate_level_up(
    sessions: Iterable[Session],
    ladder_id: str,
    target_rung_order: int,
    *,
    window: int = LEVEL_UP_WINDOW,
    catalog: Optional[LadderCatalog] = None,
) -> bool:
    """True iff the ``window`` most recent sessions at this rung are all hits.

    When a catalog is supplied, sessions against a ladder it does not know
    are treated as orphans and never signal.
    """
    if catalog is not None and catalog.get(ladder_id) is None:
        logger.debug("Level-up skipped for unknown ladder %s", ladder_id)
        return False
    recent = _sessions_for_rung(sessions, ladder_id, target_rung_order)[:window]
    if len(recent) < window:
        return False
    return all(session.result == "hit" for session in recent)


def find_level_up_candidates(
    sessions: Iterable[Session],
    child_id: str,
    targets: Iterable[LevelUpTarget],
    *,
    window: int = LEVEL_UP_WINDOW,
    catalog: Optional[LadderCatalog] = None,
) -> List[LevelUpTarget]:
    child_sessions = [session for session in sessions if session.child_id == child_id]
    return [
        target
        for target in targets
        if evaluate_level_up(
            child_sessions,
            target.ladder_id,
            target.current_rung,
            window=window,
            catalog=catalog,
        )
    ]


def count_results(
    sessions: Iterable[Session],
    child_id: str,
    ladder_id: str,
    target_rung_order: int,
    start_date: str,
    end_date: str,
) -> ResultTally:
    """Tally hit/near/miss for one rung between two inclusive date keys."""
    hits = nears = misses = 0
    for session in sessions:
        if (
            session.child_id != child_id
            or session.ladder_id != ladder_id
            or session.target_rung_order != target_rung_order
            or not start_date <= session.date <= end_date
        ):
            continue
        if session.result == "hit":
            hits += 1
        elif session.result == "near":
            nears += 1
        else:
            misses += 1
    return ResultTally(hits=hits, nears=nears, misses=misses)


# ----- milestone promotion ---------------------------------------------------


def _win_date(win: Any) -> Optional[str]:
    if isinstance(win, Win):
        return win.date
    if isinstance(win, Mapping):
        value = win.get("date")
        return value if isinstance(value, str) else None
    return None


def evaluate_milestone_promotion(
    wins: Sequence[Any],
    today: str,
    rules: Optional[PromotionRules] = None,
) -> bool:
    """Total wins reach the threshold, or enough wins fall in the trailing window.

    Date keys are zero-padded, so comparing them as strings is chronological.
    The cutoff day itself counts as inside the window.
    """
    rules = rules or PromotionRules()
    if len(wins) >= rules.total_wins:
        return True
    cutoff = shift_date_key(today, -rules.window_days)
    recent = [date for date in map(_win_date, wins) if date is not None and date >= cutoff]
    return len(recent) >= rules.wins_in_window


# ----- rung statuses ---------------------------------------------------------


def _is_achieved(progress: Any) -> bool:
    if isinstance(progress, MilestoneProgress):
        return progress.is_achieved
    if isinstance(progress, Mapping):
        return progress.get("status") == "achieved" or bool(progress.get("achieved"))
    return False


def derive_rung_statuses(
    rungs: Iterable[Rung],
    progress_by_rung_id: Mapping[str, Any],
) -> RungStatusSummary:
    """The lowest unachieved rung is active; everything above it is locked.

    Achievement recorded on a rung above the active one is not shown until
    the rungs below it are achieved.
    """
    summary = RungStatusSummary(active_rung_id=None)
    for rung in sorted_rungs(rungs):
        rung_id = rung_id_for(rung)
        if summary.active_rung_id is not None:
            summary.status_by_rung_id[rung_id] = "locked"
        elif _is_achieved(progress_by_rung_id.get(rung_id)):
            summary.status_by_rung_id[rung_id] = "achieved"
        else:
            summary.active_rung_id = rung_id
            summary.status_by_rung_id[rung_id] = "active"
    return summary


# ----- milestone state changes -----------------------------------------------


def transition_milestone(
    progress: MilestoneProgress,
    target: MilestoneStatus,
    *,
    achieved_at: Optional[str] = None,
) -> MilestoneProgress:
    """Return a copy of ``progress`` in ``target`` state."""
    current: MilestoneStatus = "achieved" if progress.is_achieved else progress.status
    if current == target:
        return progress.model_copy(deep=True)
    if (current, target) not in _ALLOWED_TRANSITIONS:
        raise InvalidMilestoneTransition(current, target)

    update: Dict[str, Any] = {"status": target, "achieved": None}
    if target == "achieved":
        update["achieved_at"] = achieved_at
        update["attempts_to_achieve"] = len(progress.wins)
    else:
        update["achieved_at"] = None
    return progress.model_copy(update=update, deep=True)


def record_win(
    progress: MilestoneProgress,
    win_date: str,
    today: str,
    rules: Optional[PromotionRules] = None,
    *,
    achieved_at: Optional[str] = None,
) -> tuple[MilestoneProgress, bool]:
    """Append a win and promote an active rung when the rules are met.

    Returns the updated copy and whether it was promoted. Wins on locked or
    achieved rungs are recorded without a status change.
    """
    updated = progress.model_copy(update={"wins": [*progress.wins, Win(date=win_date)]}, deep=True)
    if updated.status != "active" or updated.is_achieved:
        return updated, False
    if not evaluate_milestone_promotion(updated.wins, today, rules):
        return updated, False
    return transition_milestone(updated, "achieved", achieved_at=achieved_at or today), True


__all__ = [
    "InvalidMilestoneTransition",
    "LEVEL_UP_WINDOW",
    "LevelUpTarget",
    "PromotionRules",
    "ResultTally",
    "RungStatusSummary",
    "count_results",
    "derive_rung_statuses",
    "evaluate_level_up",
    "evaluate_milestone_promotion",
    "find_level_up_candidates",
    "record_win",
    "transition_milestone",
]
