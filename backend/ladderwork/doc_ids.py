"""Composite document keys for day logs.

Three key formats coexist in stored data:

* ``{date}_{childId}``: canonical, used for every write.
* ``{childId}_{date}``: legacy.
* ``{date}``: oldest legacy, written before logs were per child.
"""

from __future__ import annotations

from typing import Optional

from .calendar_keys import is_date_key

DATE_KEY_LENGTH = 10


def day_log_doc_id(date_key: str, child_id: str) -> str:
    return f"{date_key}_{child_id}"


def legacy_day_log_doc_id(child_id: str, date_key: str) -> str:
    return f"{child_id}_{date_key}"


def daily_plan_doc_id(date_key: str, child_id: str) -> str:
    return f"{date_key}_{child_id}"


def parse_date_from_doc_id(doc_id: str) -> str:
    """Extract the date from a composite key, or return the key unchanged."""
    prefix = doc_id[:DATE_KEY_LENGTH]
    if is_date_key(prefix):
        return prefix
    suffix = doc_id[-DATE_KEY_LENGTH:]
    if is_date_key(suffix):
        return suffix
    return doc_id


def derive_child_id_from_doc_id(doc_id: str) -> Optional[str]:
    """Return the child segment of ``{date}_{child}`` or ``{child}_{date}``."""
    first, sep, rest = doc_id.partition("_")
    if not sep:
        return None
    if is_date_key(first) and rest:
        return rest
    # Child ids may themselves contain underscores; the date is the tail.
    head, sep, tail = doc_id.rpartition("_")
    if sep and is_date_key(tail) and head:
        return head
    return None


__all__ = [
    "daily_plan_doc_id",
    "day_log_doc_id",
    "derive_child_id_from_doc_id",
    "legacy_day_log_doc_id",
    "parse_date_from_doc_id",
]
