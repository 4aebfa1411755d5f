"""REST endpoints for ladders, ladder cards, practice sessions, day blocks and daily plans."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from .calendar_keys import today_key
from .card_ladders import create_initial_progress, find_card, get_ladders_for_child
from .config import Settings, get_settings
from .daily_plan import build_daily_plan
from .day_status import derive_day_blocks
from .db import get_session_dependency
from .ladder_catalog import find_rung, next_rung_order, rung_id_for, stream_for_ladder_id
from .promotion import (
    InvalidMilestoneTransition,
    LevelUpTarget,
    PromotionRules,
    evaluate_level_up,
    find_level_up_candidates,
)
from .records import (
    DATE_KEY_PATTERN,
    BlockType,
    CardProgress,
    Child,
    DailyPlan,
    DateKey,
    EnergyLevel,
    Ladder,
    LadderCard,
    MilestoneProgress,
    MilestoneStatus,
    Session as PracticeSession,
    SessionResult,
    StreamId,
    SupportLevel,
    SupportTag,
    TodayBlock,
)
from .repositories import ProfileAlreadyBound, RecordNotFound
from .repositories.cards import card_progress
from .repositories.children import children
from .repositories.day_logs import day_logs
from .repositories.ladders import ladders
from .repositories.plans import daily_plans, week_plans
from .repositories.progress import milestone_progress
from .repositories.sessions import session_log
from .streaks import calculate_xp, compute_streak
from .telemetry import emit_event

router = APIRouter(prefix="/api/children", tags=["progress"])
logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChildUpsertRequest(_Payload):
    name: str = Field(..., min_length=1, max_length=128)
    birthdate: Optional[str] = None
    grade: Optional[str] = None
    profile_id: Optional[str] = Field(default=None, max_length=64)
    day_blocks: Optional[List[BlockType]] = None
    seed_ladders: bool = True


class SessionLogRequest(_Payload):
    date: DateKey
    stream_id: StreamId
    ladder_id: str = Field(..., min_length=1)
    target_rung_order: int = Field(..., ge=1)
    result: SessionResult
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    supports: Optional[List[SupportTag]] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class SessionLoggedPayload(_Payload):
    session: PracticeSession
    level_up: bool = False


class LadderStatusPayload(_Payload):
    ladder_id: str
    active_rung_id: Optional[str] = None
    statuses: Dict[str, MilestoneStatus] = Field(default_factory=dict)
    complete: bool = False


class LevelUpPayload(_Payload):
    stream_id: StreamId
    ladder_id: str
    current_rung: int
    next_rung: Optional[int] = None


class StreakPayload(_Payload):
    child_id: str
    today: str
    streak: int


class TodayPayload(_Payload):
    child_id: str
    date: str
    blocks: List[TodayBlock] = Field(default_factory=list)
    xp: int = 0
    daily_plan: Optional[DailyPlan] = None


class DailyPlanRequest(_Payload):
    energy: EnergyLevel


class WinRequest(_Payload):
    date: DateKey
    today: Optional[DateKey] = None


class WinPayload(_Payload):
    progress: MilestoneProgress
    promoted: bool = False


class StatusChangeRequest(_Payload):
    status: MilestoneStatus


class CardSummaryPayload(_Payload):
    card: LadderCard
    progress: CardProgress


class CardSessionRequest(_Payload):
    date: DateKey
    result: SessionResult
    support_level: SupportLevel = "none"
    note: Optional[str] = Field(default=None, max_length=500)


class CardSessionPayload(_Payload):
    progress: CardProgress
    promoted: bool = False
    new_rung_id: Optional[str] = None


def _child_or_404(session: Session, child_id: str, profile_id: Optional[str]) -> Child:
    bound = children.profile_directory(session).resolve(profile_id)
    if bound is not None and bound != child_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Profile '{profile_id}' cannot act for child '{child_id}'.",
        )
    child = children.get(session, child_id)
    if child is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Child '{child_id}' was not found.",
        )
    return child


def _ladder_or_404(session: Session, child_id: str, ladder_id: str) -> Ladder:
    ladder = ladders.get(session, ladder_id)
    if ladder is None or (ladder.child_id is not None and ladder.child_id != child_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Ladder '{ladder_id}' was not found for child '{child_id}'.",
        )
    return ladder


def _current_rungs(session: Session, child_id: str) -> Dict[StreamId, Tuple[Ladder, int]]:
    """Active rung order per stream for the child's ladders."""
    current: Dict[StreamId, Tuple[Ladder, int]] = {}
    for ladder in ladders.for_child(session, child_id):
        stream_id = stream_for_ladder_id(ladder.id)
        if stream_id is None:
            continue
        summary = milestone_progress.rung_statuses(session, child_id, ladder)
        for rung in ladder.rungs:
            if rung_id_for(rung) == summary.active_rung_id:
                current[stream_id] = (ladder, rung.order)
                break
    return current


@router.put("/{child_id}", response_model=Child, status_code=status.HTTP_200_OK)
def upsert_child(
    request: ChildUpsertRequest,
    child_id: str = Path(..., min_length=1, max_length=64),
    session: Session = Depends(get_session_dependency),
) -> Child:
    updates = request.model_dump(include={"name", "birthdate", "grade", "day_blocks"}, exclude_unset=True)
    existing = children.get(session, child_id)
    if existing is None:
        child = Child(id=child_id, **updates)
    else:
        # Fields left out of the request keep their stored values.
        child = existing.model_copy(update=updates)
    try:
        children.upsert(session, child, profile_id=request.profile_id)
    except ProfileAlreadyBound as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if request.seed_ladders:
        ladders.seed_child(session, child_id)
    return child


@router.get(
    "/{child_id}/ladders/{ladder_id}/status",
    response_model=LadderStatusPayload,
    status_code=status.HTTP_200_OK,
)
def get_ladder_status(
    child_id: str,
    ladder_id: str,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> LadderStatusPayload:
    _child_or_404(session, child_id, profile_id)
    ladder = _ladder_or_404(session, child_id, ladder_id)
    summary = milestone_progress.rung_statuses(session, child_id, ladder)
    return LadderStatusPayload(
        ladder_id=ladder.id,
        active_rung_id=summary.active_rung_id,
        statuses=dict(summary.status_by_rung_id),
        complete=summary.complete,
    )


@router.post(
    "/{child_id}/sessions",
    response_model=SessionLoggedPayload,
    status_code=status.HTTP_201_CREATED,
)
def log_session(
    child_id: str,
    request: SessionLogRequest,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session_dependency),
) -> SessionLoggedPayload:
    _child_or_404(session, child_id, profile_id)
    ladder = _ladder_or_404(session, child_id, request.ladder_id)
    if find_rung(ladder, request.target_rung_order) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Ladder '{ladder.id}' has no rung {request.target_rung_order}.",
        )

    record = session_log.append(
        session,
        PracticeSession(child_id=child_id, **request.model_dump(exclude_none=True)),
    )
    history = [
        entry
        for entry in session_log.for_rung(session, ladder.id, request.target_rung_order)
        if entry.child_id == child_id
    ]
    level_up = evaluate_level_up(
        history,
        ladder.id,
        request.target_rung_order,
        window=settings.level_up_streak,
        catalog=ladders.catalog_for_child(session, child_id),
    )
    if level_up:
        emit_event(
            "level_up_detected",
            child_id=child_id,
            ladder_id=ladder.id,
            rung=request.target_rung_order,
        )
    return SessionLoggedPayload(session=record, level_up=level_up)


@router.get("/{child_id}/level-ups", response_model=List[LevelUpPayload], status_code=status.HTTP_200_OK)
def get_level_ups(
    child_id: str,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session_dependency),
) -> List[LevelUpPayload]:
    _child_or_404(session, child_id, profile_id)
    current = _current_rungs(session, child_id)
    targets = [
        LevelUpTarget(stream_id=stream_id, ladder_id=ladder.id, current_rung=order)
        for stream_id, (ladder, order) in current.items()
    ]
    candidates = find_level_up_candidates(
        session_log.for_child(session, child_id),
        child_id,
        targets,
        window=settings.level_up_streak,
        catalog=ladders.catalog_for_child(session, child_id),
    )
    payloads: List[LevelUpPayload] = []
    for candidate in candidates:
        ladder, _ = current[candidate.stream_id]
        payloads.append(
            LevelUpPayload(
                stream_id=candidate.stream_id,
                ladder_id=candidate.ladder_id,
                current_rung=candidate.current_rung,
                next_rung=next_rung_order(ladder, candidate.current_rung),
            )
        )
    logger.debug("Level-up candidates for child=%s: %d", child_id, len(payloads))
    return payloads


@router.get("/{child_id}/streak", response_model=StreakPayload, status_code=status.HTTP_200_OK)
def get_streak(
    child_id: str,
    today: Optional[str] = Query(default=None, pattern=DATE_KEY_PATTERN),
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> StreakPayload:
    _child_or_404(session, child_id, profile_id)
    today = today or today_key()
    events = [*session_log.for_child(session, child_id), *day_logs.for_child(session, child_id)]
    return StreakPayload(child_id=child_id, today=today, streak=compute_streak(events, child_id, today))


@router.get("/{child_id}/today", response_model=TodayPayload, status_code=status.HTTP_200_OK)
def get_today(
    child_id: str,
    date: Optional[str] = Query(default=None, pattern=DATE_KEY_PATTERN),
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> TodayPayload:
    child = _child_or_404(session, child_id, profile_id)
    date = date or today_key()
    day_log = day_logs.load_or_create(session, child, date)
    return TodayPayload(
        child_id=child_id,
        date=date,
        blocks=derive_day_blocks(week_plans.for_date(session, date), child, day_log),
        xp=calculate_xp(day_log),
        daily_plan=daily_plans.get(session, child_id, date),
    )


@router.put("/{child_id}/daily-plan/{date}", response_model=DailyPlan, status_code=status.HTTP_200_OK)
def put_daily_plan(
    child_id: str,
    request: DailyPlanRequest,
    date: str = Path(..., pattern=DATE_KEY_PATTERN),
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> DailyPlan:
    _child_or_404(session, child_id, profile_id)
    rungs_by_stream = {stream_id: order for stream_id, (_, order) in _current_rungs(session, child_id).items()}
    plan = build_daily_plan(child_id, date, request.energy, rungs_by_stream)
    return daily_plans.put(session, plan)


@router.post(
    "/{child_id}/ladders/{ladder_id}/rungs/{rung_id}/wins",
    response_model=WinPayload,
    status_code=status.HTTP_201_CREATED,
)
def record_rung_win(
    child_id: str,
    ladder_id: str,
    rung_id: str,
    request: WinRequest,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session_dependency),
) -> WinPayload:
    _child_or_404(session, child_id, profile_id)
    ladder = _ladder_or_404(session, child_id, ladder_id)
    try:
        progress, promoted = milestone_progress.record_win(
            session,
            child_id,
            ladder,
            rung_id,
            request.date,
            request.today or today_key(),
            PromotionRules.from_settings(settings),
        )
    except RecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidMilestoneTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return WinPayload(progress=progress, promoted=promoted)


@router.put(
    "/{child_id}/ladders/{ladder_id}/rungs/{rung_id}/status",
    response_model=MilestoneProgress,
    status_code=status.HTTP_200_OK,
)
def set_rung_status(
    child_id: str,
    ladder_id: str,
    rung_id: str,
    request: StatusChangeRequest,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> MilestoneProgress:
    _child_or_404(session, child_id, profile_id)
    ladder = _ladder_or_404(session, child_id, ladder_id)
    if rung_id not in {rung_id_for(rung) for rung in ladder.rungs}:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Ladder '{ladder_id}' has no rung '{rung_id}'.",
        )
    try:
        return milestone_progress.set_status(session, child_id, ladder.id, rung_id, request.status)
    except InvalidMilestoneTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


def _cards_or_404(child: Child) -> List[LadderCard]:
    cards = get_ladders_for_child(child.name)
    if cards is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No ladder cards are defined for child '{child.id}'.",
        )
    return cards


@router.get("/{child_id}/cards", response_model=List[CardSummaryPayload], status_code=status.HTTP_200_OK)
def get_cards(
    child_id: str,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> List[CardSummaryPayload]:
    child = _child_or_404(session, child_id, profile_id)
    stored = card_progress.for_child(session, child_id)
    return [
        CardSummaryPayload(
            card=card,
            progress=stored.get(card.ladder_key) or create_initial_progress(child_id, card),
        )
        for card in _cards_or_404(child)
    ]


@router.post(
    "/{child_id}/cards/{ladder_key}/sessions",
    response_model=CardSessionPayload,
    status_code=status.HTTP_201_CREATED,
)
def log_card_session(
    child_id: str,
    ladder_key: str,
    request: CardSessionRequest,
    profile_id: Optional[str] = Header(default=None, alias="X-Profile-Id"),
    session: Session = Depends(get_session_dependency),
) -> CardSessionPayload:
    child = _child_or_404(session, child_id, profile_id)
    card = find_card(_cards_or_404(child), ladder_key)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Ladder card '{ladder_key}' was not found for child '{child_id}'.",
        )
    outcome = card_progress.apply_session(
        session,
        child_id,
        card,
        request.date,
        request.result,
        request.support_level,
        request.note,
    )
    return CardSessionPayload(
        progress=outcome.progress,
        promoted=outcome.promoted,
        new_rung_id=outcome.new_rung_id,
    )


__all__ = ["router"]
