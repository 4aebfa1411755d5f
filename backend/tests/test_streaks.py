from __future__ import annotations

from ladderwork.records import DayLog, MathRoutine, ReadingRoutine, Session, SpeechRoutine
from ladderwork.streaks import activity_dates, calculate_xp, compute_streak, count_logged_categories


def _session(date: str, child_id: str = "lincoln") -> Session:
    return Session(
        child_id=child_id,
        date=date,
        stream_id="Math",
        ladder_id=f"{child_id}-math",
        target_rung_order=1,
        result="miss",
        created_at=f"{date}T10:00:00Z",
    )


def test_streak_empty_is_zero() -> None:
    assert compute_streak([], "lincoln", "2026-02-16") == 0


def test_streak_counts_consecutive_days_from_today() -> None:
    sessions = [_session("2026-02-16"), _session("2026-02-15"), _session("2026-02-14")]
    assert compute_streak(sessions, "lincoln", "2026-02-16") == 3


def test_streak_anchored_at_yesterday() -> None:
    sessions = [_session("2026-02-15"), _session("2026-02-14"), _session("2026-02-12")]
    assert compute_streak(sessions, "lincoln", "2026-02-16") == 2


def test_streak_breaks_without_recent_activity() -> None:
    assert compute_streak([_session("2026-02-06")], "lincoln", "2026-02-16") == 0


def test_streak_ignores_duplicate_dates_and_other_children() -> None:
    sessions = [
        _session("2026-02-16"),
        _session("2026-02-16"),
        _session("2026-02-15", child_id="london"),
    ]
    assert compute_streak(sessions, "lincoln", "2026-02-16") == 1
    assert activity_dates(sessions, "london") == ["2026-02-15"]


def test_day_logs_qualify_only_with_a_logged_category() -> None:
    empty = DayLog(child_id="lincoln", date="2026-02-16", reading=ReadingRoutine())
    logged = DayLog(child_id="lincoln", date="2026-02-15", math=MathRoutine(done=True))
    assert compute_streak([empty, logged], "lincoln", "2026-02-16") == 1
    assert compute_streak([empty], "lincoln", "2026-02-16") == 0


def test_xp_and_logged_categories() -> None:
    reading = ReadingRoutine()
    reading.handwriting.done = True
    reading.minecraft.done = True
    day_log = DayLog(
        child_id="lincoln",
        date="2026-02-16",
        reading=reading,
        math=MathRoutine(done=True),
        speech=SpeechRoutine(done=False),
    )
    assert calculate_xp(day_log) == 5
    assert count_logged_categories(day_log) == 2
