"""Record shapes shared by the progression engine and the persistence layer.

Python attributes are snake_case; documents are read and written with the
camelCase keys of the historical document store (``childId``,
``targetRungOrder``...), so ``to_document`` output stays byte-compatible with
records written before the migration.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

DateKey = Annotated[str, Field(pattern=DATE_KEY_PATTERN)]

BlockType = Literal[
    "Formation",
    "Reading",
    "Speech",
    "Math",
    "Together",
    "Movement",
    "Project",
    "FieldTrip",
    "Other",
]
BlockStatus = Literal["NotStarted", "InProgress", "Logged"]
StreamId = Literal["Reading", "Writing", "Communication", "Math", "Independence", "DadLab"]
SessionResult = Literal["hit", "near", "miss"]
SupportTag = Literal[
    "prompts",
    "finger_tracking",
    "manipulatives",
    "sentence_frames",
    "visual_aid",
    "timer",
]
EnergyLevel = Literal["normal", "low", "overwhelmed"]
PlanType = Literal["A", "B"]
MilestoneStatus = Literal["locked", "active", "achieved"]
SupportLevel = Literal["none", "environment", "prompts", "tools", "hand_over_hand"]
SubjectBucket = Literal["Reading", "LanguageArts", "Math", "Science", "SocialStudies", "Other"]

ALL_BLOCK_TYPES: tuple[BlockType, ...] = (
    "Formation",
    "Reading",
    "Speech",
    "Math",
    "Together",
    "Movement",
    "Project",
    "FieldTrip",
    "Other",
)


class Record(BaseModel):
    """Base for stored documents; unknown keys survive a load/save cycle."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


def to_document(record: BaseModel) -> Dict[str, Any]:
    """Serialise a record the way it is persisted: camelCase keys, no nulls."""
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)


# ----- ladders ---------------------------------------------------------------


class Rung(Record):
    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    order: int = Field(ge=1)
    proof_examples: Optional[List[str]] = None


class Ladder(Record):
    id: str
    child_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    domain: Optional[str] = None
    rungs: List[Rung] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_rung_orders(self) -> "Ladder":
        orders = [rung.order for rung in self.rungs]
        if len(orders) != len(set(orders)):
            raise ValueError(f"Ladder {self.id} has duplicate rung orders: {sorted(orders)}")
        return self


class Win(Record):
    date: DateKey


class MilestoneProgress(Record):
    id: Optional[str] = None
    child_id: str
    ladder_id: str
    rung_id: str
    label: Optional[str] = None
    status: MilestoneStatus = "locked"
    achieved_at: Optional[str] = None
    # Older documents carried a bare boolean instead of ``status``.
    achieved: Optional[bool] = None
    wins: List[Win] = Field(default_factory=list)
    notes: Optional[str] = None
    attempts_to_achieve: Optional[int] = Field(default=None, ge=0)

    @property
    def is_achieved(self) -> bool:
        return self.status == "achieved" or bool(self.achieved)


class LadderCardRung(Record):
    rung_id: str
    name: str
    evidence_text: str
    supports_text: str


class LadderCard(Record):
    """Printable ladder card: rungs ``R0..Rn`` climbed by streaks of passes."""

    ladder_key: str
    title: str
    stream_id: Optional[StreamId] = None
    intent: str
    work_items: List[str] = Field(default_factory=list)
    metric_label: str
    global_rule_text: str
    rungs: List[LadderCardRung] = Field(min_length=1)
    group: Optional[str] = None


class CardSessionEntry(Record):
    date: DateKey
    rung_id: str
    support_level: SupportLevel
    result: SessionResult
    note: Optional[str] = None


class CardProgress(Record):
    child_id: str
    ladder_key: str
    current_rung_id: str
    streak_count: int = Field(default=0, ge=0)
    last_support_level: SupportLevel = "none"
    history: List[CardSessionEntry] = Field(default_factory=list)


# ----- sessions and plans ----------------------------------------------------


class Session(Record):
    """One practice attempt; append-only, never edited after creation."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    child_id: str
    date: DateKey
    stream_id: StreamId
    ladder_id: str
    target_rung_order: int
    result: SessionResult
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    supports: Optional[List[SupportTag]] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class PlannedSession(Record):
    stream_id: StreamId
    ladder_id: str
    target_rung_order: int
    planned_minutes: Optional[int] = None
    label: Optional[str] = None


class DailyPlan(Record):
    id: Optional[str] = None
    child_id: str
    date: DateKey
    energy: EnergyLevel
    plan_type: PlanType
    sessions: List[PlannedSession] = Field(default_factory=list)
    completed_session_ids: Optional[List[str]] = None


# ----- day logs --------------------------------------------------------------


class RoutineItem(Record):
    done: bool = False
    note: Optional[str] = None


class HandwritingLog(RoutineItem):
    minutes: Optional[int] = None
    lines: Optional[int] = None


class SpellingLog(RoutineItem):
    words: Optional[str] = None


class SightWordsLog(RoutineItem):
    count: Optional[int] = None


class MinecraftReadingLog(RoutineItem):
    pages: Optional[int] = None
    points: Optional[int] = None


class ReadingEggsLog(RoutineItem):
    minutes: Optional[int] = None
    lessons: Optional[int] = None


class MinutesLog(RoutineItem):
    """Shared shape of read-aloud, phonics, number-sense and narration items."""

    minutes: Optional[int] = None


class DecodableReadingLog(MinutesLog):
    reread_done: Optional[bool] = None


class SpellingDictationLog(RoutineItem):
    lines: Optional[int] = None


class WordProblemsLog(MinutesLog):
    count: Optional[int] = None


class ReadingRoutine(Record):
    handwriting: HandwritingLog = Field(default_factory=HandwritingLog)
    spelling: SpellingLog = Field(default_factory=SpellingLog)
    sight_words: SightWordsLog = Field(default_factory=SightWordsLog)
    minecraft: MinecraftReadingLog = Field(default_factory=MinecraftReadingLog)
    reading_eggs: ReadingEggsLog = Field(default_factory=ReadingEggsLog)
    read_aloud: Optional[MinutesLog] = None
    phonemic_awareness: Optional[MinutesLog] = None
    phonics_lesson: Optional[MinutesLog] = None
    decodable_reading: Optional[DecodableReadingLog] = None
    spelling_dictation: Optional[SpellingDictationLog] = None


class MathRoutine(Record):
    done: bool = False
    problems: Optional[int] = None
    pages: Optional[int] = None
    note: Optional[str] = None
    number_sense: Optional[MinutesLog] = None
    word_problems: Optional[WordProblemsLog] = None


class SpeechRoutine(Record):
    done: bool = False
    routine: Optional[str] = None
    note: Optional[str] = None
    narration_reps: Optional[MinutesLog] = None


class FormationLog(Record):
    done: bool = False
    gratitude: Optional[str] = None
    verse: Optional[str] = None
    note: Optional[str] = None


class SharedActivityLog(Record):
    """Together and Project sub-records."""

    done: bool = False
    note: Optional[str] = None
    media_url: Optional[str] = None


class MovementLog(Record):
    done: bool = False
    note: Optional[str] = None


class ChecklistItem(Record):
    id: Optional[str] = None
    label: str
    completed: bool = False


class Block(Record):
    id: Optional[str] = None
    type: BlockType
    title: Optional[str] = None
    subject_bucket: Optional[SubjectBucket] = None
    location: Optional[str] = None
    planned_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    notes: Optional[str] = None
    checklist: Optional[List[ChecklistItem]] = None


class DayLog(Record):
    child_id: str
    date: DateKey
    blocks: List[Block] = Field(default_factory=list)
    reading: Optional[ReadingRoutine] = None
    math: Optional[MathRoutine] = None
    speech: Optional[SpeechRoutine] = None
    formation: Optional[FormationLog] = None
    together: Optional[SharedActivityLog] = None
    movement: Optional[MovementLog] = None
    project: Optional[SharedActivityLog] = None
    xp_total: Optional[int] = None
    retro: Optional[str] = None
    checklist: Optional[List[ChecklistItem]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def block(self, block_type: BlockType) -> Optional[Block]:
        for entry in self.blocks:
            if entry.type == block_type:
                return entry
        return None


# ----- week plans and children -----------------------------------------------


class BuildLab(Record):
    title: str = ""
    materials: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)


class ChildGoals(Record):
    child_id: str
    goals: List[str] = Field(default_factory=list)


class WeekPlan(Record):
    id: Optional[str] = None
    start_date: DateKey
    end_date: Optional[DateKey] = None
    theme: str = ""
    virtue: str = ""
    scripture_ref: str = ""
    heart_question: str = ""
    tracks: List[str] = Field(default_factory=list)
    flywheel_plan: str = ""
    build_lab: BuildLab = Field(default_factory=BuildLab)
    child_goals: List[ChildGoals] = Field(default_factory=list)

    def goals_for(self, child_id: str) -> List[str]:
        for entry in self.child_goals:
            if entry.child_id == child_id:
                return list(entry.goals)
        return []


class Child(Record):
    id: str
    name: str
    birthdate: Optional[str] = None
    grade: Optional[str] = None
    day_blocks: Optional[List[BlockType]] = None


class TodayBlock(Record):
    """Derived, UI-ready summary of one scheduled block."""

    type: BlockType
    title: str
    suggested_minutes: int
    instructions: List[str] = Field(default_factory=list)
    status: BlockStatus = "NotStarted"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def done(self) -> bool:
        return self.status == "Logged"


__all__ = [
    "ALL_BLOCK_TYPES",
    "Block",
    "BlockStatus",
    "BlockType",
    "BuildLab",
    "CardProgress",
    "CardSessionEntry",
    "ChecklistItem",
    "Child",
    "ChildGoals",
    "DailyPlan",
    "DateKey",
    "DayLog",
    "EnergyLevel",
    "FormationLog",
    "Ladder",
    "LadderCard",
    "LadderCardRung",
    "MathRoutine",
    "MilestoneProgress",
    "MilestoneStatus",
    "MovementLog",
    "PlannedSession",
    "ReadingRoutine",
    "Record",
    "Rung",
    "Session",
    "SessionResult",
    "SharedActivityLog",
    "SpeechRoutine",
    "StreamId",
    "SupportLevel",
    "TodayBlock",
    "WeekPlan",
    "Win",
    "to_document",
]
