"""Per-block instruction lookup: week plan content, then child template, then defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .records import BlockType, Child, WeekPlan

MAX_INSTRUCTIONS = 2

BLOCK_TITLES: Dict[BlockType, str] = {
    "Formation": "Formation",
    "Reading": "Reading",
    "Speech": "Speech",
    "Math": "Math",
    "Together": "Together",
    "Movement": "Movement",
    "Project": "Project",
    "FieldTrip": "Field Trip",
    "Other": "Other",
}

DEFAULT_MINUTES: Dict[BlockType, int] = {
    "Formation": 15,
    "Reading": 30,
    "Speech": 15,
    "Math": 25,
    "Together": 20,
    "Movement": 15,
    "Project": 30,
    "FieldTrip": 60,
    "Other": 15,
}

DEFAULT_INSTRUCTIONS: Dict[BlockType, Tuple[str, ...]] = {
    "Formation": ("Gratitude journaling", "Scripture memory"),
    "Reading": ("Independent reading or read-aloud",),
    "Speech": ("Speech practice or narration",),
    "Math": ("Math lesson or practice problems",),
    "Together": ("Family read-aloud or discussion",),
    "Movement": ("Outdoor play or exercise",),
    "Project": ("Hands-on project time",),
    "FieldTrip": ("Field trip or community outing",),
    "Other": ("Flex time",),
}

FALLBACK_INSTRUCTION = "Complete scheduled activities"


@dataclass(frozen=True)
class DailyPlanTemplate:
    """A child's usual day: block order, routine items and block instructions."""

    label: str
    day_blocks: Tuple[BlockType, ...]
    routine_items: Tuple[str, ...] = ()
    block_instructions: Dict[BlockType, Tuple[str, ...]] = field(default_factory=dict)
    minimum_viable_day: Tuple[str, ...] = ()


LINCOLN_TEMPLATE = DailyPlanTemplate(
    label="Lincoln",
    day_blocks=("Formation", "Reading", "Math", "Speech", "Together", "Movement", "Project"),
    routine_items=(
        "handwriting",
        "spelling",
        "sightWords",
        "minecraft",
        "readingEggs",
        "math",
        "speech",
    ),
    block_instructions={
        "Formation": ("Gratitude (1 thing)", "Scripture memory or virtue talk"),
        "Reading": (
            "Handwriting (+1 XP)",
            "Spelling word (+1 XP)",
            "Sight words (+1 XP)",
            "Minecraft book reading (+2 XP)",
            "Reading Eggs (+1 XP)",
        ),
        "Math": ("Hand math (+2 XP)",),
        "Speech": ("Sentence routine 2–5 min (+1 XP)",),
        "Together": ("Family read-aloud or discussion",),
        "Movement": ("Outdoor play or exercise",),
        "Project": ("Hands-on project time",),
    },
    minimum_viable_day=(
        "Minecraft reading: 1 page (or 2–3 min)",
        "Math: 1 problem",
        "Writing OR spelling: 1 line or 1 word",
        "Gratitude (Formation)",
    ),
)

LONDON_TEMPLATE = DailyPlanTemplate(
    label="London",
    day_blocks=("Formation", "Reading", "Math", "Together", "Movement"),
    block_instructions={
        "Formation": ("Gratitude (1 thing)",),
        "Reading": ("Read-aloud with parent", "Letter or sound practice"),
        "Math": ("Counting or number games",),
        "Together": ("Family activity",),
        "Movement": ("Outdoor play",),
    },
    minimum_viable_day=(
        "Read-aloud: 1 book or 5 min",
        "Counting or number game: 5 min",
        "Gratitude (Formation)",
    ),
)


class TemplateRegistry:
    """Templates keyed by child name, matched case-insensitively."""

    def __init__(self, templates: Sequence[DailyPlanTemplate] = ()) -> None:
        self._templates: Dict[str, DailyPlanTemplate] = {}
        for template in templates:
            self.register(template)

    def register(self, template: DailyPlanTemplate, name: Optional[str] = None) -> None:
        self._templates[(name or template.label).strip().lower()] = template

    def for_child_name(self, name: str) -> Optional[DailyPlanTemplate]:
        return self._templates.get(name.strip().lower())


default_templates = TemplateRegistry([LINCOLN_TEMPLATE, LONDON_TEMPLATE])


def _formation_items(plan: WeekPlan) -> List[str]:
    items: List[str] = []
    if plan.virtue:
        items.append(f"Virtue: {plan.virtue}")
    if plan.heart_question:
        items.append(plan.heart_question)
    if plan.scripture_ref:
        items.append(plan.scripture_ref)
    return items


def _together_items(plan: WeekPlan) -> List[str]:
    items: List[str] = []
    if plan.theme:
        items.append(f"Theme: {plan.theme}")
    if plan.flywheel_plan:
        items.append(plan.flywheel_plan)
    return items


def _project_items(plan: WeekPlan) -> List[str]:
    items: List[str] = []
    if plan.build_lab.title:
        items.append(plan.build_lab.title)
    if plan.build_lab.steps:
        items.append(plan.build_lab.steps[0])
    return items


_PLAN_CONTENT: Dict[BlockType, Callable[[WeekPlan], List[str]]] = {
    "Formation": _formation_items,
    "Together": _together_items,
    "Project": _project_items,
}


def resolve_instructions(
    block_type: BlockType,
    week_plan: Optional[WeekPlan],
    child: Child,
    templates: Optional[TemplateRegistry] = None,
) -> List[str]:
    """Up to two instruction lines for one block.

    Formation, Together and Project draw on the shared week plan; every other
    block uses the child's goals for the week. Either way the child's
    template and then the generic defaults fill in when the plan is silent.
    """
    templates = templates or default_templates

    if week_plan is not None:
        content = _PLAN_CONTENT.get(block_type)
        items = content(week_plan) if content else week_plan.goals_for(child.id)
        if items:
            return items[:MAX_INSTRUCTIONS]

    template = templates.for_child_name(child.name)
    if template is not None:
        from_template = template.block_instructions.get(block_type)
        if from_template:
            return list(from_template[:MAX_INSTRUCTIONS])

    return list(DEFAULT_INSTRUCTIONS.get(block_type, (FALLBACK_INSTRUCTION,)))[:MAX_INSTRUCTIONS]


__all__ = [
    "BLOCK_TITLES",
    "DEFAULT_INSTRUCTIONS",
    "DEFAULT_MINUTES",
    "DailyPlanTemplate",
    "LINCOLN_TEMPLATE",
    "LONDON_TEMPLATE",
    "MAX_INSTRUCTIONS",
    "TemplateRegistry",
    "default_templates",
    "resolve_instructions",
]
