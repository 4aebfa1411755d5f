"""Helpers for canonical ``YYYY-MM-DD`` calendar keys."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import get_settings

logger = logging.getLogger(__name__)

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_date_key(value: str) -> bool:
    return bool(DATE_KEY_RE.match(value))


def parse_date_key(value: str) -> Optional[date]:
    if not is_date_key(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def format_date_key(value: date) -> str:
    return value.isoformat()


def _zone(raw: Optional[str]) -> ZoneInfo:
    name = raw or get_settings().timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; falling back to UTC", name)
        return ZoneInfo("UTC")


def today_key(timezone_name: Optional[str] = None) -> str:
    """Today's date in the configured family time zone."""
    return format_date_key(datetime.now(_zone(timezone_name)).date())


def shift_date_key(value: str, days: int) -> str:
    """Move a date key by whole calendar days; malformed keys come back unchanged."""
    parsed = parse_date_key(value)
    if parsed is None:
        return value
    return format_date_key(parsed + timedelta(days=days))


def days_between(later: str, earlier: str) -> Optional[int]:
    later_date = parse_date_key(later)
    earlier_date = parse_date_key(earlier)
    if later_date is None or earlier_date is None:
        return None
    return (later_date - earlier_date).days


def week_range(value: date) -> Tuple[str, str]:
    """Monday-to-Sunday week containing ``value``."""
    start = value - timedelta(days=value.weekday())
    return format_date_key(start), format_date_key(start + timedelta(days=6))


__all__ = [
    "DATE_KEY_RE",
    "days_between",
    "format_date_key",
    "is_date_key",
    "parse_date_key",
    "shift_date_key",
    "today_key",
    "week_range",
]
