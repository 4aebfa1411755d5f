"""Skill ladder definitions: stream registry, seed ladders and an in-memory catalog."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .records import Ladder, Rung, StreamId

logger = logging.getLogger(__name__)

STREAM_LADDER_SUFFIX: Dict[StreamId, str] = {
    "Reading": "reading",
    "Writing": "writing",
    "Communication": "communication",
    "Math": "math",
    "Independence": "independence",
    "DadLab": "dadlab",
}

STREAM_LABEL: Dict[StreamId, str] = {
    "Reading": "Decode → Read",
    "Writing": "Spell → Write",
    "Communication": "Speak → Explain",
    "Math": "Number Sense → Word Problems",
    "Independence": "Start/Finish → Independence",
    "DadLab": "Build / Test / Improve",
}


def ladder_id_for_child(child_id: str, stream_id: StreamId) -> str:
    return f"{child_id}-{STREAM_LADDER_SUFFIX[stream_id]}"


def stream_for_ladder_id(ladder_id: str) -> Optional[StreamId]:
    """Stream whose suffix ends the ladder id, if any."""
    for stream_id, suffix in STREAM_LADDER_SUFFIX.items():
        if ladder_id.endswith(f"-{suffix}"):
            return stream_id
    return None


def rung_id_for(rung: Rung) -> str:
    """Stable key of a rung; rungs seeded without an id are keyed by order."""
    return rung.id or f"order-{rung.order}"


def sorted_rungs(rungs: Iterable[Rung]) -> List[Rung]:
    return sorted(rungs, key=lambda rung: rung.order)


def find_rung(ladder: Ladder, order: int) -> Optional[Rung]:
    for rung in ladder.rungs:
        if rung.order == order:
            return rung
    return None


def next_rung_order(ladder: Ladder, current_order: int) -> Optional[int]:
    """Order of the rung after ``current_order``, or None at the top of the ladder."""
    for rung in sorted_rungs(ladder.rungs):
        if rung.order > current_order:
            return rung.order
    return None


_LITERACY_RUNGS = [
    ("Letter Sounds", "Knows all 26 letter sounds",
     ["Says the sound for each letter", "Points to the right letter when given a sound"]),
    ("CVC Words", "Reads consonant-vowel-consonant words (cat, dog, sun)",
     ["Reads 5 CVC words without help", "Sounds out a new CVC word"]),
    ("Sight Words (10)", "Reads 10 high-frequency sight words",
     ["Reads 10 sight words in a row", "Spots sight words in a book"]),
    ("Short Sentences", "Reads simple sentences with CVC + sight words",
     ["Reads a 5-word sentence", "Reads a page from a decodable reader"]),
    ("Blends & Digraphs", "Reads words with blends (bl, cr, st) and digraphs (sh, ch, th)",
     ["Reads blend words: stop, clap, bring", "Reads digraph words: ship, chat, thin"]),
    ("Handwriting (letters)", "Writes all 26 lowercase letters legibly",
     ["Writes full alphabet from memory", "Copies a sentence with correct letter formation"]),
    ("Spelling (CVC)", "Spells CVC words correctly",
     ["Spells 5 CVC words from dictation", "Writes a CVC word in a sentence"]),
    ("Paragraph Reading", "Reads a short paragraph with expression",
     ["Reads a paragraph from Minecraft book", "Retells what happened in the paragraph"]),
]

_MATH_RUNGS = [
    ("Counting to 20", "Counts objects to 20 with one-to-one correspondence",
     ["Counts 20 objects accurately", "Writes numbers 1-20"]),
    ("Number Recognition (1-20)", "Identifies written numbers 1-20",
     ["Points to the right number", "Reads numbers out of order"]),
    ("Addition to 5", "Solves addition problems with sums up to 5",
     ["Solves 3+2 with manipulatives", "Answers 5 addition problems correctly"]),
    ("Subtraction from 5", "Solves subtraction problems within 5",
     ["Solves 5-3 with objects", "Answers 5 subtraction problems"]),
    ("Addition to 10", "Solves addition problems with sums up to 10",
     ["Solves 7+3 mentally or with fingers", "Completes a page of addition problems"]),
    ("Subtraction from 10", "Solves subtraction within 10",
     ["Solves 10-4 correctly", "Explains subtraction with a story"]),
    ("Place Value (tens & ones)", "Understands tens and ones in two-digit numbers",
     ["Shows 34 as 3 tens and 4 ones", "Reads and writes two-digit numbers"]),
    ("Word Problems", "Solves simple addition/subtraction word problems",
     ['Solves "3 apples + 2 apples = ?" type problems', "Creates own word problem"]),
]


def _build_rungs(rows: List[tuple[str, str, List[str]]]) -> List[Rung]:
    return [
        Rung(title=title, description=description, order=index, proof_examples=list(proofs))
        for index, (title, description, proofs) in enumerate(rows, start=1)
    ]


def create_literacy_ladder(child_id: str) -> Ladder:
    return Ladder(
        id=ladder_id_for_child(child_id, "Reading"),
        child_id=child_id,
        title="Literacy Ladder",
        description="Handwriting, Spelling, Sight Words, Reading, Reading Eggs",
        domain="literacy",
        rungs=_build_rungs(_LITERACY_RUNGS),
    )


def create_math_ladder(child_id: str) -> Ladder:
    return Ladder(
        id=ladder_id_for_child(child_id, "Math"),
        child_id=child_id,
        title="Math Ladder",
        description="Number sense through word problems",
        domain="math",
        rungs=_build_rungs(_MATH_RUNGS),
    )


class LadderCatalog:
    """Process-local registry of ladders keyed by ladder id."""

    def __init__(self, ladders: Iterable[Ladder] = ()) -> None:
        self._ladders: Dict[str, Ladder] = {}
        for ladder in ladders:
            self.register(ladder)

    def register(self, ladder: Ladder) -> Ladder:
        if ladder.id in self._ladders:
            logger.debug("Replacing ladder definition %s", ladder.id)
        self._ladders[ladder.id] = ladder
        return ladder

    def get(self, ladder_id: str) -> Optional[Ladder]:
        return self._ladders.get(ladder_id)

    def for_child(self, child_id: str) -> List[Ladder]:
        return [ladder for ladder in self._ladders.values() if ladder.child_id == child_id]

    def seed_child(self, child_id: str) -> List[Ladder]:
        """Register the default literacy and math ladders unless already present."""
        seeded: List[Ladder] = []
        for factory in (create_literacy_ladder, create_math_ladder):
            ladder = factory(child_id)
            if ladder.id not in self._ladders:
                seeded.append(self.register(ladder))
        return seeded

    def __contains__(self, ladder_id: object) -> bool:
        return ladder_id in self._ladders

    def __len__(self) -> int:
        return len(self._ladders)


__all__ = [
    "LadderCatalog",
    "STREAM_LABEL",
    "STREAM_LADDER_SUFFIX",
    "create_literacy_ladder",
    "create_math_ladder",
    "find_rung",
    "ladder_id_for_child",
    "next_rung_order",
    "rung_id_for",
    "sorted_rungs",
    "stream_for_ladder_id",
]
