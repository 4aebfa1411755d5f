"""Level-up, milestone promotion and rung status rules."""

from __future__ import annotations

from typing import List, Optional

import pytest

from ladderwork.ladder_catalog import LadderCatalog, create_literacy_ladder
from ladderwork.promotion import (
    InvalidMilestoneTransition,
    LevelUpTarget,
    PromotionRules,
    count_results,
    derive_rung_statuses,
    evaluate_level_up,
    evaluate_milestone_promotion,
    find_level_up_candidates,
    record_win,
    transition_milestone,
)
from ladderwork.records import MilestoneProgress, Rung, Session, Win


def _session(
    result: str,
    created_at: str,
    *,
    ladder_id: str = "lincoln-reading",
    order: int = 2,
    child_id: str = "lincoln",
    date: Optional[str] = None,
) -> Session:
    return Session(
        child_id=child_id,
        date=date or created_at[:10],
        stream_id="Reading",
        ladder_id=ladder_id,
        target_rung_order=order,
        result=result,
        created_at=created_at,
    )


def _rungs(count: int) -> List[Rung]:
    return [Rung(id=f"r{order}", title=f"Rung {order}", order=order) for order in range(1, count + 1)]


def test_level_up_requires_three_recent_hits() -> None:
    sessions = [
        _session("hit", "2026-02-10T09:00:00Z"),
        _session("hit", "2026-02-11T09:00:00Z"),
        _session("hit", "2026-02-12T09:00:00Z"),
    ]
    assert evaluate_level_up(sessions, "lincoln-reading", 2) is True
    assert evaluate_level_up(sessions[:2], "lincoln-reading", 2) is False
    assert evaluate_level_up([], "lincoln-reading", 2) is False


def test_level_up_uses_most_recent_by_timestamp() -> None:
    sessions = [
        _session("hit", "2026-02-12T09:00:00Z"),
        _session("miss", "2026-02-09T09:00:00Z"),
        _session("hit", "2026-02-11T09:00:00Z"),
        _session("hit", "2026-02-10T09:00:00Z"),
    ]
    assert evaluate_level_up(sessions, "lincoln-reading", 2) is True

    sessions.append(_session("near", "2026-02-13T09:00:00Z"))
    assert evaluate_level_up(sessions, "lincoln-reading", 2) is False


def test_level_up_ignores_other_ladders_and_rungs() -> None:
    sessions = [
        _session("hit", "2026-02-10T09:00:00Z"),
        _session("hit", "2026-02-11T09:00:00Z", order=3),
        _session("hit", "2026-02-12T09:00:00Z", ladder_id="lincoln-math"),
    ]
    assert evaluate_level_up(sessions, "lincoln-reading", 2) is False


def test_level_up_with_catalog_skips_unknown_ladder() -> None:
    sessions = [_session("hit", f"2026-02-1{day}T09:00:00Z", ladder_id="ghost") for day in range(3)]
    catalog = LadderCatalog([create_literacy_ladder("lincoln")])
    assert evaluate_level_up(sessions, "ghost", 2) is True
    assert evaluate_level_up(sessions, "ghost", 2, catalog=catalog) is False


def test_find_level_up_candidates_filters_by_child() -> None:
    sessions = [_session("hit", f"2026-02-1{day}T09:00:00Z") for day in range(3)]
    sessions.append(_session("miss", "2026-02-15T09:00:00Z", child_id="london"))
    targets = [
        LevelUpTarget(stream_id="Reading", ladder_id="lincoln-reading", current_rung=2),
        LevelUpTarget(stream_id="Math", ladder_id="lincoln-math", current_rung=1),
    ]
    candidates = find_level_up_candidates(sessions, "lincoln", targets)
    assert [candidate.stream_id for candidate in candidates] == ["Reading"]
    assert find_level_up_candidates(sessions, "london", targets) == []


def test_count_results_is_inclusive_of_range() -> None:
    sessions = [
        _session("hit", "2026-02-10T09:00:00Z"),
        _session("near", "2026-02-11T09:00:00Z"),
        _session("miss", "2026-02-12T09:00:00Z"),
        _session("hit", "2026-02-13T09:00:00Z"),
    ]
    tally = count_results(sessions, "lincoln", "lincoln-reading", 2, "2026-02-10", "2026-02-12")
    assert (tally.hits, tally.nears, tally.misses) == (1, 1, 1)


def test_milestone_promotion_window_example() -> None:
    wins = [{"date": "2026-02-10"}]
    assert evaluate_milestone_promotion(wins, "2026-02-16") is False

    wins += [{"date": "2026-02-14"}, {"date": "2026-02-15"}]
    assert evaluate_milestone_promotion(wins, "2026-02-16") is True


def test_milestone_promotion_total_wins_and_cutoff() -> None:
    old = [Win(date=f"2026-01-0{day}") for day in range(1, 6)]
    assert evaluate_milestone_promotion(old, "2026-02-16") is True
    assert evaluate_milestone_promotion(old[:4], "2026-02-16") is False

    on_cutoff = [Win(date="2026-02-09"), Win(date="2026-02-12"), Win(date="2026-02-16")]
    assert evaluate_milestone_promotion(on_cutoff, "2026-02-16") is True
    assert evaluate_milestone_promotion([], "2026-02-16") is False


def test_milestone_promotion_honours_custom_rules() -> None:
    rules = PromotionRules(total_wins=2, wins_in_window=2, window_days=1)
    wins = [Win(date="2026-01-01"), Win(date="2026-01-02")]
    assert evaluate_milestone_promotion(wins, "2026-02-16", rules) is True
    assert evaluate_milestone_promotion(wins[:1], "2026-01-02", rules) is False


def test_derive_rung_statuses_single_active() -> None:
    progress = {
        "r1": MilestoneProgress(child_id="c", ladder_id="l", rung_id="r1", status="achieved"),
        "r3": {"status": "achieved"},
    }
    summary = derive_rung_statuses(list(reversed(_rungs(4))), progress)
    assert summary.active_rung_id == "r2"
    assert summary.status_by_rung_id == {
        "r1": "achieved",
        "r2": "active",
        "r3": "locked",
        "r4": "locked",
    }
    assert list(summary.status_by_rung_id.values()).count("active") == 1
    assert summary.complete is False


def test_derive_rung_statuses_reads_legacy_achieved_flag() -> None:
    progress = {"r1": {"achieved": True}, "r2": {"status": "achieved"}}
    summary = derive_rung_statuses(_rungs(2), progress)
    assert summary.active_rung_id is None
    assert summary.complete is True


def test_transition_rejects_skipping_active() -> None:
    locked = MilestoneProgress(child_id="c", ladder_id="l", rung_id="r1")
    with pytest.raises(InvalidMilestoneTransition):
        transition_milestone(locked, "achieved")

    active = transition_milestone(locked, "active")
    achieved = transition_milestone(active, "achieved", achieved_at="2026-02-16T10:00:00Z")
    assert achieved.status == "achieved"
    assert achieved.achieved_at == "2026-02-16T10:00:00Z"
    assert achieved.attempts_to_achieve == 0
    assert locked.status == "locked"


def test_record_win_promotes_only_active_rungs() -> None:
    active = MilestoneProgress(
        child_id="c",
        ladder_id="l",
        rung_id="r1",
        status="active",
        wins=[Win(date="2026-02-14"), Win(date="2026-02-15")],
    )
    promoted, changed = record_win(active, "2026-02-16", "2026-02-16")
    assert changed is True
    assert promoted.status == "achieved"
    assert promoted.attempts_to_achieve == 3

    locked = active.model_copy(update={"status": "locked"})
    still_locked, changed = record_win(locked, "2026-02-16", "2026-02-16")
    assert changed is False
    assert still_locked.status == "locked"
    assert len(still_locked.wins) == 3
