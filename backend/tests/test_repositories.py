"""Persistence behaviour of the SQLAlchemy-backed repositories."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

import pytest

from ladderwork.config import get_settings
from ladderwork.db.base import Base
from ladderwork.db.models import DayLogModel
from ladderwork.db.session import dispose_engine, get_engine, init_schema, session_scope
from ladderwork.promotion import InvalidMilestoneTransition, PromotionRules
from ladderwork.records import Child, DayLog, MathRoutine, Session, WeekPlan, to_document
from ladderwork.daily_plan import build_daily_plan
from ladderwork.card_ladders import LINCOLN_CARDS
from ladderwork.repositories import ProfileAlreadyBound, RecordNotFound
from ladderwork.repositories.cards import card_progress
from ladderwork.repositories.children import children
from ladderwork.repositories.day_logs import day_logs
from ladderwork.repositories.ladders import ladders
from ladderwork.repositories.plans import daily_plans, week_plans
from ladderwork.repositories.progress import milestone_progress
from ladderwork.repositories.sessions import session_log
from ladderwork.telemetry import TelemetryEvent, clear_listeners, register_listener


def _setup_db(tmp_path: Path) -> None:
    db_path = tmp_path / "ladderwork.db"
    os.environ["LADDERWORK_DATABASE_URL"] = f"sqlite:///{db_path}"
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.drop_all(engine)
    init_schema(engine)


def teardown_module() -> None:  # pragma: no cover - test cleanup
    dispose_engine()


def _session(created_at: str, result: str = "hit") -> Session:
    return Session(
        child_id="lincoln",
        date=created_at[:10],
        stream_id="Reading",
        ladder_id="lincoln-reading",
        target_rung_order=1,
        result=result,
        created_at=created_at,
    )


def test_children_and_profile_bindings(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        children.upsert(session, Child(id="lincoln", name="Lincoln"), profile_id="Lincoln-iPad")
        children.upsert(session, Child(id="london", name="London"))

    with session_scope() as session:
        assert [child.id for child in children.list(session)] == ["lincoln", "london"]
        directory = children.profile_directory(session)
        assert directory.resolve("lincoln-ipad") == "lincoln"
        with pytest.raises(RecordNotFound):
            children.require(session, "nobody")


def test_seeding_ladders_is_idempotent(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        assert len(ladders.seed_child(session, "lincoln")) == 2
        assert ladders.seed_child(session, "lincoln") == []
        catalog = ladders.catalog_for_child(session, "lincoln")
    assert "lincoln-reading" in catalog
    assert len(catalog) == 2


def test_sessions_are_appended_and_stamped(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    try:
        with session_scope() as session:
            first = session_log.append(session, _session("2026-02-10T09:00:00Z"))
            unstamped = _session("2026-02-11T09:00:00Z").model_copy(update={"created_at": None})
            second = session_log.append(session, unstamped)
    finally:
        clear_listeners()

    assert first.id and second.id and first.id != second.id
    assert second.created_at is not None
    assert [event.name for event in events] == ["session_logged", "session_logged"]

    with session_scope() as session:
        assert len(session_log.for_rung(session, "lincoln-reading", 1)) == 2
        assert len(session_log.for_child(session, "lincoln", start_date="2026-02-11")) == 1
        assert session_log.for_child(session, "london") == []


def test_day_log_found_under_legacy_key_is_migrated(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    legacy = DayLog(child_id="lincoln", date="2026-02-16", math=MathRoutine(done=True))
    with session_scope() as session:
        session.add(
            DayLogModel(
                doc_id="lincoln_2026-02-16",
                child_id="lincoln",
                date="2026-02-16",
                document=to_document(legacy),
            )
        )

    events: List[TelemetryEvent] = []
    register_listener(events.append)
    try:
        with session_scope() as session:
            found = day_logs.get(session, "lincoln", "2026-02-16")
    finally:
        clear_listeners()

    assert found is not None and found.math is not None and found.math.done
    assert events[0].name == "day_log_migrated"
    assert events[0].payload["locator"] == "legacy"
    with session_scope() as session:
        assert session.get(DayLogModel, "2026-02-16_lincoln") is not None
        assert session.get(DayLogModel, "lincoln_2026-02-16") is not None
        assert day_logs.locate(session, "lincoln", "2026-02-16").locator == "canonical"


def test_bare_date_key_requires_matching_child(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        session.add(
            DayLogModel(
                doc_id="2026-02-15",
                child_id=None,
                date="2026-02-15",
                document={"date": "2026-02-15", "childId": "london", "retro": "Good day"},
            )
        )
        session.add(
            DayLogModel(
                doc_id="2026-02-14",
                child_id=None,
                date="2026-02-14",
                document={"date": "2026-02-14", "retro": "Rainy"},
            )
        )

    with session_scope() as session:
        assert day_logs.get(session, "lincoln", "2026-02-15") is None
        assert day_logs.get(session, "london", "2026-02-15").retro == "Good day"
        unowned = day_logs.get(session, "lincoln", "2026-02-14")
        assert unowned is not None and unowned.child_id == "lincoln"


def test_load_or_create_uses_template_blocks(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    london = Child(id="london", name="London")
    with session_scope() as session:
        created = day_logs.load_or_create(session, london, "2026-02-16")
    assert [block.type for block in created.blocks] == [
        "Formation",
        "Reading",
        "Math",
        "Together",
        "Movement",
    ]
    assert created.created_at is not None and created.updated_at is not None

    with session_scope() as session:
        again = day_logs.load_or_create(session, london, "2026-02-16")
        assert again.created_at == created.created_at
        assert [log.date for log in day_logs.for_child(session, "london")] == ["2026-02-16"]


def test_progress_rows_are_lazy_and_transitions_checked(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        default = milestone_progress.get_or_default(session, "lincoln", "lincoln-reading", "order-1")
        assert default.status == "locked"
        assert milestone_progress.get(session, "lincoln", "lincoln-reading", "order-1") is None

        with pytest.raises(InvalidMilestoneTransition):
            milestone_progress.set_status(session, "lincoln", "lincoln-reading", "order-1", "achieved")

        milestone_progress.set_status(session, "lincoln", "lincoln-reading", "order-1", "active")

    with session_scope() as session:
        stored = milestone_progress.get(session, "lincoln", "lincoln-reading", "order-1")
        assert stored is not None and stored.status == "active"


def test_record_win_promotes_and_activates_next_rung(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    rules = PromotionRules(total_wins=5, wins_in_window=3, window_days=7)
    with session_scope() as session:
        ladders.seed_child(session, "lincoln")
        ladder = ladders.get(session, "lincoln-reading")
        assert ladder is not None

        for win_date in ("2026-02-14", "2026-02-15"):
            _, promoted = milestone_progress.record_win(
                session, "lincoln", ladder, "order-1", win_date, "2026-02-16", rules
            )
            assert promoted is False

        progress, promoted = milestone_progress.record_win(
            session, "lincoln", ladder, "order-1", "2026-02-16", "2026-02-16", rules
        )
        assert promoted is True
        assert progress.status == "achieved"
        assert progress.attempts_to_achieve == 3

        summary = milestone_progress.rung_statuses(session, "lincoln", ladder)
        assert summary.active_rung_id == "order-2"
        following = milestone_progress.get(session, "lincoln", "lincoln-reading", "order-2")
        assert following is not None and following.status == "active"

        with pytest.raises(RecordNotFound):
            milestone_progress.record_win(
                session, "lincoln", ladder, "order-99", "2026-02-16", "2026-02-16", rules
            )


def test_win_on_locked_rung_does_not_promote(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        ladders.seed_child(session, "lincoln")
        ladder = ladders.get(session, "lincoln-math")
        assert ladder is not None
        progress = None
        for day in range(10, 16):
            progress, promoted = milestone_progress.record_win(
                session, "lincoln", ladder, "order-3", f"2026-02-{day}", "2026-02-16"
            )
            assert promoted is False
        assert progress is not None and progress.status == "locked"
        assert len(progress.wins) == 6


def test_daily_plan_regeneration_overwrites(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        low = daily_plans.put(session, build_daily_plan("lincoln", "2026-02-16", "low", {}))
    with session_scope() as session:
        normal = daily_plans.put(session, build_daily_plan("lincoln", "2026-02-16", "normal", {}))

    assert low.id == normal.id == "2026-02-16_lincoln"
    assert low.plan_type != normal.plan_type
    with session_scope() as session:
        current = daily_plans.get(session, "lincoln", "2026-02-16")
    assert current is not None
    assert current.energy == "normal"
    assert len(current.sessions) == 4


def test_week_plan_lookup_by_any_day(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        week_plans.upsert(
            session,
            WeekPlan(start_date="2026-02-16", end_date="2026-02-22", virtue="Patience"),
        )
        week_plans.upsert(session, WeekPlan(start_date="2026-02-23", virtue="Courage"))

    with session_scope() as session:
        assert week_plans.for_date(session, "2026-02-19").virtue == "Patience"
        assert week_plans.for_date(session, "2026-02-25").virtue == "Courage"
        assert week_plans.for_date(session, "2026-03-04") is None
        assert week_plans.for_date(session, "garbage") is None


def test_profile_cannot_be_bound_to_two_children(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    with session_scope() as session:
        children.upsert(session, Child(id="lincoln", name="Lincoln"), profile_id="tablet")

    with session_scope() as session:
        with pytest.raises(ProfileAlreadyBound) as excinfo:
            children.upsert(session, Child(id="london", name="London"), profile_id=" Tablet ")
        assert excinfo.value.child_id == "lincoln"

    with session_scope() as session:
        children.upsert(session, Child(id="lincoln", name="Lincoln"), profile_id="")
        children.upsert(session, Child(id="london", name="London"), profile_id="tablet")

    with session_scope() as session:
        assert children.profile_directory(session).resolve("tablet") == "london"


def test_card_progress_is_persisted_per_child(tmp_path: Path) -> None:
    _setup_db(tmp_path)
    card = LINCOLN_CARDS[0]
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    try:
        with session_scope() as session:
            for date in ("2026-02-15", "2026-02-16", "2026-02-17"):
                outcome = card_progress.apply_session(session, "lincoln", card, date, "hit", "none")
    finally:
        clear_listeners()

    assert outcome.promoted is True
    assert [event.name for event in events] == ["card_promoted"]
    assert events[0].payload["to_rung"] == "R1"

    with session_scope() as session:
        stored = card_progress.get(session, "lincoln", card.ladder_key)
        assert stored is not None
        assert stored.current_rung_id == "R1"
        assert [entry.rung_id for entry in stored.history] == ["R0", "R0", "R0"]
        assert card_progress.get(session, "london", card.ladder_key) is None
        assert card_progress.get_or_initial(session, "london", card).current_rung_id == "R0"
        assert set(card_progress.for_child(session, "lincoln")) == {card.ladder_key}
