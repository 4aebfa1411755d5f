"""Energy-based daily session plans.

A normal day gets Plan A (four sessions), a low-energy day gets the shorter
Plan B. An overwhelmed day produces no practice sessions at all; the day is
Formation only and that block is not a ladder session.
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Tuple

from .ladder_catalog import ladder_id_for_child
from .records import DailyPlan, EnergyLevel, PlannedSession, PlanType, StreamId
from .telemetry import emit_event

logger = logging.getLogger(__name__)

DEFAULT_RUNG_ORDER = 1

# (stream, planned minutes, label)
PLAN_A: Tuple[Tuple[StreamId, int, str], ...] = (
    ("Reading", 15, "Reading"),
    ("Writing", 10, "Writing / Spelling"),
    ("Math", 15, "Math"),
    ("DadLab", 20, "Dad Lab / Project"),
)

PLAN_B: Tuple[Tuple[StreamId, int, str], ...] = (
    ("Reading", 10, "Short Reading"),
    ("Math", 10, "Short Math"),
)

_PLANS_BY_ENERGY = {
    "normal": PLAN_A,
    "low": PLAN_B,
    "overwhelmed": (),
}


def plan_type_for(energy: EnergyLevel) -> PlanType:
    return "A" if energy == "normal" else "B"


def generate_daily_plan(
    child_id: str,
    rungs_by_stream: Mapping[str, int],
    energy: EnergyLevel,
) -> List[PlannedSession]:
    """Ordered sessions for the day, each aimed at the stream's current rung."""
    layout = _PLANS_BY_ENERGY.get(energy)
    if layout is None:
        logger.warning("Unknown energy level %r; no sessions planned", energy)
        return []
    return [
        PlannedSession(
            stream_id=stream_id,
            ladder_id=ladder_id_for_child(child_id, stream_id),
            target_rung_order=rungs_by_stream.get(stream_id) or DEFAULT_RUNG_ORDER,
            planned_minutes=minutes,
            label=label,
        )
        for stream_id, minutes, label in layout
    ]


def build_daily_plan(
    child_id: str,
    date: str,
    energy: EnergyLevel,
    rungs_by_stream: Mapping[str, int],
    *,
    plan_id: Optional[str] = None,
) -> DailyPlan:
    sessions = generate_daily_plan(child_id, rungs_by_stream, energy)
    plan = DailyPlan(
        id=plan_id,
        child_id=child_id,
        date=date,
        energy=energy,
        plan_type=plan_type_for(energy),
        sessions=sessions,
    )
    emit_event(
        "daily_plan_generated",
        child_id=child_id,
        date=date,
        energy=energy,
        plan_type=plan.plan_type,
        session_count=len(sessions),
    )
    return plan


__all__ = [
    "DEFAULT_RUNG_ORDER",
    "PLAN_A",
    "PLAN_B",
    "build_daily_plan",
    "generate_daily_plan",
    "plan_type_for",
]
