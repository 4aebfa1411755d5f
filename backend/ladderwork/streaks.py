"""Consecutive-day activity streaks and per-day activity metrics."""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Union

from .calendar_keys import days_between, is_date_key, shift_date_key, today_key
from .records import DayLog, ReadingRoutine, Session

ActivityEvent = Union[Session, DayLog]

XP_VALUES = {
    "handwriting": 1,
    "spelling": 1,
    "sight_words": 1,
    "minecraft": 2,
    "reading_eggs": 1,
    "math": 2,
}

_CORE_READING_ITEMS = ("handwriting", "spelling", "sight_words", "minecraft", "reading_eggs")


def _reading_logged(reading: Optional[ReadingRoutine]) -> bool:
    if reading is None:
        return False
    return any(getattr(reading, name).done for name in _CORE_READING_ITEMS)


def count_logged_categories(day_log: DayLog) -> int:
    """Number of subject categories with at least one completed item."""
    count = 1 if _reading_logged(day_log.reading) else 0
    for sub_record in (
        day_log.math,
        day_log.speech,
        day_log.formation,
        day_log.together,
        day_log.movement,
        day_log.project,
    ):
        if sub_record is not None and sub_record.done:
            count += 1
    return count


def calculate_xp(day_log: DayLog) -> int:
    xp = 0
    if day_log.reading is not None:
        for name in _CORE_READING_ITEMS:
            if getattr(day_log.reading, name).done:
                xp += XP_VALUES[name]
    if day_log.math is not None and day_log.math.done:
        xp += XP_VALUES["math"]
    return xp


def _qualifies(event: ActivityEvent) -> bool:
    if isinstance(event, Session):
        return True
    if isinstance(event, DayLog):
        return count_logged_categories(event) > 0
    return False


def activity_dates(events: Iterable[ActivityEvent], child_id: str) -> List[str]:
    """Distinct qualifying date keys for the child, newest first."""
    dates: Set[str] = set()
    for event in events:
        if getattr(event, "child_id", None) != child_id:
            continue
        if is_date_key(event.date) and _qualifies(event):
            dates.add(event.date)
    return sorted(dates, reverse=True)


def compute_streak(
    events: Iterable[ActivityEvent],
    child_id: str,
    today: Optional[str] = None,
) -> int:
    """Length of the run of consecutive active days ending today or yesterday."""
    dates = activity_dates(events, child_id)
    if not dates:
        return 0

    today = today or today_key()
    if dates[0] not in (today, shift_date_key(today, -1)):
        return 0

    streak = 1
    for newer, older in zip(dates, dates[1:]):
        if days_between(newer, older) != 1:
            break
        streak += 1
    return streak


__all__ = [
    "ActivityEvent",
    "XP_VALUES",
    "activity_dates",
    "calculate_xp",
    "compute_streak",
    "count_logged_categories",
]
