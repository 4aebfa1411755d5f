"""Block status projection and default day logs."""

from __future__ import annotations

from ladderwork.day_status import (
    create_default_day_log,
    day_block_types,
    derive_block_status,
    derive_day_blocks,
    new_log_block_types,
)
from ladderwork.records import (
    ALL_BLOCK_TYPES,
    Block,
    ChecklistItem,
    Child,
    DayLog,
    FormationLog,
    MathRoutine,
    MinutesLog,
    ReadingRoutine,
    SpeechRoutine,
)


def _day_log(**fields) -> DayLog:
    return DayLog(child_id="lincoln", date="2026-02-16", **fields)


def test_missing_day_log_is_not_started() -> None:
    child = Child(id="lincoln", name="Lincoln")
    blocks = derive_day_blocks(None, child, None)
    assert [block.type for block in blocks] == list(ALL_BLOCK_TYPES)
    assert {block.status for block in blocks} == {"NotStarted"}
    assert not any(block.done for block in blocks)


def test_reading_sub_item_done_logs_reading() -> None:
    reading = ReadingRoutine()
    reading.handwriting.done = True
    day_log = _day_log(reading=reading)
    assert derive_block_status("Reading", day_log) == "Logged"
    assert derive_block_status("Math", day_log) == "NotStarted"


def test_optional_reading_items_count() -> None:
    reading = ReadingRoutine(decodable_reading={"done": False, "minutes": 4})
    assert derive_block_status("Reading", _day_log(reading=reading)) == "InProgress"

    reading = ReadingRoutine(read_aloud={"done": True})
    assert derive_block_status("Reading", _day_log(reading=reading)) == "Logged"


def test_block_minutes_log_any_block() -> None:
    day_log = _day_log(blocks=[Block(type="FieldTrip", actual_minutes=45)])
    assert derive_block_status("FieldTrip", day_log) == "Logged"

    zero = _day_log(blocks=[Block(type="FieldTrip", actual_minutes=0)])
    assert derive_block_status("FieldTrip", zero) == "NotStarted"


def test_notes_and_checklist_are_partial_evidence() -> None:
    noted = _day_log(blocks=[Block(type="Movement", notes="Bike ride planned")])
    assert derive_block_status("Movement", noted) == "InProgress"

    ticked = _day_log(
        blocks=[
            Block(
                type="Project",
                checklist=[
                    ChecklistItem(label="Gather cardboard", completed=True),
                    ChecklistItem(label="Cut pieces"),
                ],
            )
        ]
    )
    assert derive_block_status("Project", ticked) == "InProgress"

    blank_notes = _day_log(blocks=[Block(type="Movement", notes="   ")])
    assert derive_block_status("Movement", blank_notes) == "NotStarted"


def test_sub_record_text_is_partial_evidence() -> None:
    day_log = _day_log(formation=FormationLog(gratitude="Grandma's visit"))
    assert derive_block_status("Formation", day_log) == "InProgress"

    day_log = _day_log(speech=SpeechRoutine(narration_reps=MinutesLog(done=True)))
    assert derive_block_status("Speech", day_log) == "Logged"

    day_log = _day_log(math=MathRoutine(problems=3))
    assert derive_block_status("Math", day_log) == "InProgress"


def test_day_level_checklist_marks_other_in_progress() -> None:
    day_log = _day_log(checklist=[ChecklistItem(label="Library books", completed=True)])
    assert derive_block_status("Other", day_log) == "InProgress"


def test_child_override_controls_block_list() -> None:
    child = Child(id="lincoln", name="Lincoln", day_blocks=["Math", "Formation"])
    assert day_block_types(child) == ["Math", "Formation"]
    blocks = derive_day_blocks(None, child, _day_log(math=MathRoutine(done=True)))
    assert [(block.type, block.status) for block in blocks] == [
        ("Math", "Logged"),
        ("Formation", "NotStarted"),
    ]
    assert blocks[0].done is True


def test_new_logs_use_template_blocks() -> None:
    london = Child(id="london", name="London")
    assert new_log_block_types(london) == ["Formation", "Reading", "Math", "Together", "Movement"]
    assert day_block_types(london) == list(ALL_BLOCK_TYPES)
    assert new_log_block_types(Child(id="x", name="Someone")) == list(ALL_BLOCK_TYPES)


def test_default_day_log_shape() -> None:
    day_log = create_default_day_log("london", "2026-02-16", ["Formation", "Reading"])
    assert [block.type for block in day_log.blocks] == ["Formation", "Reading"]
    assert day_log.reading is not None and day_log.math is not None and day_log.speech is not None
    assert derive_block_status("Reading", day_log) == "NotStarted"
