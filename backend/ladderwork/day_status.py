"""Completion status of a day's blocks, projected from the day log.

Each block type reads its own sub-record (``reading``, ``math``...) through an
entry in ``SUB_RECORD_EVIDENCE``. An entry reports whether the sub-record
holds a completed item (the block is Logged) and whether it holds anything at
all short of that (the block is InProgress). Block-level fields are checked
for every type: ``actualMinutes > 0`` logs the block, notes or a ticked
checklist item put it in progress.

Nothing here is stored; statuses are recomputed on every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from .instructions import (
    BLOCK_TITLES,
    DEFAULT_MINUTES,
    TemplateRegistry,
    default_templates,
    resolve_instructions,
)
from .records import (
    ALL_BLOCK_TYPES,
    Block,
    BlockStatus,
    BlockType,
    ChecklistItem,
    Child,
    DayLog,
    MathRoutine,
    ReadingRoutine,
    SpeechRoutine,
    TodayBlock,
    WeekPlan,
)


@dataclass(frozen=True)
class Evidence:
    logged: bool = False
    partial: bool = False


NO_EVIDENCE = Evidence()


def _has_detail(item: Optional[BaseModel]) -> bool:
    """Any field besides ``done`` carries a value (text, non-zero count, flag)."""
    if item is None:
        return False
    values = item.model_dump(exclude={"done"}, exclude_none=True).values()
    return any(bool(value) for value in values if not isinstance(value, (dict, list)))


def _items_evidence(items: Iterable[Optional[BaseModel]]) -> Evidence:
    present = [item for item in items if item is not None]
    return Evidence(
        logged=any(getattr(item, "done", False) for item in present),
        partial=any(_has_detail(item) for item in present),
    )


def _reading_items(reading: ReadingRoutine) -> List[Optional[BaseModel]]:
    return [
        reading.handwriting,
        reading.spelling,
        reading.sight_words,
        reading.minecraft,
        reading.reading_eggs,
        reading.read_aloud,
        reading.phonemic_awareness,
        reading.phonics_lesson,
        reading.decodable_reading,
        reading.spelling_dictation,
    ]


def _reading(day_log: DayLog) -> Evidence:
    if day_log.reading is None:
        return NO_EVIDENCE
    return _items_evidence(_reading_items(day_log.reading))


def _math(day_log: DayLog) -> Evidence:
    math: Optional[MathRoutine] = day_log.math
    if math is None:
        return NO_EVIDENCE
    items = _items_evidence([math.number_sense, math.word_problems])
    return Evidence(
        logged=math.done or items.logged,
        partial=_has_detail(math) or items.partial,
    )


def _speech(day_log: DayLog) -> Evidence:
    speech: Optional[SpeechRoutine] = day_log.speech
    if speech is None:
        return NO_EVIDENCE
    items = _items_evidence([speech.narration_reps])
    return Evidence(
        logged=speech.done or items.logged,
        partial=_has_detail(speech) or items.partial,
    )


def _single(attribute: str) -> Callable[[DayLog], Evidence]:
    def evidence(day_log: DayLog) -> Evidence:
        return _items_evidence([getattr(day_log, attribute)])

    return evidence


def _completed(checklist: Optional[Sequence[ChecklistItem]]) -> bool:
    return any(item.completed for item in checklist or ())


def _other(day_log: DayLog) -> Evidence:
    return Evidence(partial=_completed(day_log.checklist))


SUB_RECORD_EVIDENCE: Dict[BlockType, Callable[[DayLog], Evidence]] = {
    "Formation": _single("formation"),
    "Reading": _reading,
    "Speech": _speech,
    "Math": _math,
    "Together": _single("together"),
    "Movement": _single("movement"),
    "Project": _single("project"),
    "Other": _other,
}


def _block_evidence(block: Optional[Block]) -> Evidence:
    if block is None:
        return NO_EVIDENCE
    return Evidence(
        logged=(block.actual_minutes or 0) > 0,
        partial=bool(block.notes and block.notes.strip()) or _completed(block.checklist),
    )


def derive_block_status(block_type: BlockType, day_log: Optional[DayLog]) -> BlockStatus:
    if day_log is None:
        return "NotStarted"
    sub_record = SUB_RECORD_EVIDENCE.get(block_type, lambda _log: NO_EVIDENCE)(day_log)
    block = _block_evidence(day_log.block(block_type))
    if sub_record.logged or block.logged:
        return "Logged"
    if sub_record.partial or block.partial:
        return "InProgress"
    return "NotStarted"


def day_block_types(child: Child) -> List[BlockType]:
    """The child's own block list, else all nine block types."""
    if child.day_blocks:
        return list(child.day_blocks)
    return list(ALL_BLOCK_TYPES)


def new_log_block_types(
    child: Child,
    templates: Optional[TemplateRegistry] = None,
) -> List[BlockType]:
    """Blocks seeded into a new day log: the child's list, their template's, or all nine."""
    if child.day_blocks:
        return list(child.day_blocks)
    template = (templates or default_templates).for_child_name(child.name)
    if template is not None:
        return list(template.day_blocks)
    return list(ALL_BLOCK_TYPES)


def derive_day_blocks(
    week_plan: Optional[WeekPlan],
    child: Child,
    day_log: Optional[DayLog],
    templates: Optional[TemplateRegistry] = None,
) -> List[TodayBlock]:
    return [
        TodayBlock(
            type=block_type,
            title=BLOCK_TITLES[block_type],
            suggested_minutes=DEFAULT_MINUTES[block_type],
            instructions=resolve_instructions(block_type, week_plan, child, templates),
            status=derive_block_status(block_type, day_log),
        )
        for block_type in day_block_types(child)
    ]


def create_default_day_log(
    child_id: str,
    date: str,
    block_types: Optional[Sequence[BlockType]] = None,
) -> DayLog:
    """Fresh log for a date: one empty block per type and empty routines."""
    return DayLog(
        child_id=child_id,
        date=date,
        blocks=[
            Block(type=block_type, title=BLOCK_TITLES[block_type])
            for block_type in (block_types or ALL_BLOCK_TYPES)
        ],
        reading=ReadingRoutine(),
        math=MathRoutine(),
        speech=SpeechRoutine(),
    )


__all__ = [
    "Evidence",
    "SUB_RECORD_EVIDENCE",
    "create_default_day_log",
    "day_block_types",
    "derive_block_status",
    "derive_day_blocks",
    "new_log_block_types",
]
