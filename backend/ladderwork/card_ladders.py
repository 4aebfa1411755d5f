"""Ladder cards: support-aware progression over rungs ``R0..Rn``.

A card is climbed one practice at a time. Passes build a streak as long as
the child needs the same or less support than last time; a pass with more
support restarts the streak at one, and a near or a miss clears it. Three in a
row moves the child to the next rung. At the top rung the streak is kept
(capped at the promotion threshold) instead of promoting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .records import CardProgress, CardSessionEntry, LadderCard, LadderCardRung, SessionResult, StreamId, SupportLevel

logger = logging.getLogger(__name__)

SUPPORT_LEVEL_ORDER: Tuple[SupportLevel, ...] = (
    "none",
    "environment",
    "prompts",
    "tools",
    "hand_over_hand",
)
CARD_PROMOTION_STREAK = 3
GLOBAL_RULE = "Level up on 3 ✔ in a row with same or less support."


def compare_support_level(a: SupportLevel, b: SupportLevel) -> int:
    """Negative when ``a`` is less support than ``b``, zero when equal, positive when more."""
    return SUPPORT_LEVEL_ORDER.index(a) - SUPPORT_LEVEL_ORDER.index(b)


def next_card_rung_id(current_rung_id: str, card: LadderCard) -> Optional[str]:
    rung_ids = [rung.rung_id for rung in card.rungs]
    if current_rung_id not in rung_ids:
        return None
    index = rung_ids.index(current_rung_id)
    if index >= len(rung_ids) - 1:
        return None
    return rung_ids[index + 1]


def create_initial_progress(child_id: str, card: LadderCard) -> CardProgress:
    return CardProgress(
        child_id=child_id,
        ladder_key=card.ladder_key,
        current_rung_id=card.rungs[0].rung_id,
        streak_count=0,
        last_support_level="none",
        history=[],
    )


@dataclass(frozen=True)
class CardSessionOutcome:
    progress: CardProgress
    promoted: bool = False
    new_rung_id: Optional[str] = None


def apply_card_session(
    previous: CardProgress,
    card: LadderCard,
    date: str,
    result: SessionResult,
    support_level: SupportLevel,
    note: Optional[str] = None,
) -> CardSessionOutcome:
    """Fold one practice result into ``previous`` and return the new progress."""
    if result == "hit":
        if previous.streak_count == 0:
            streak = 1
        elif compare_support_level(support_level, previous.last_support_level) <= 0:
            streak = previous.streak_count + 1
        else:
            streak = 1
        last_support = support_level
    else:
        streak = 0
        # The next pass is still compared against the last passing support level.
        last_support = previous.last_support_level

    current_rung_id = previous.current_rung_id
    promoted = False
    if streak >= CARD_PROMOTION_STREAK:
        next_rung_id = next_card_rung_id(previous.current_rung_id, card)
        if next_rung_id is not None:
            promoted = True
            current_rung_id = next_rung_id
            streak = 0
            marker = f"[PROMOTED to {next_rung_id}]"
            note = f"{note} {marker}" if note else marker
        else:
            streak = CARD_PROMOTION_STREAK

    entry = CardSessionEntry(
        date=date,
        rung_id=previous.current_rung_id,
        support_level=support_level,
        result=result,
        note=note,
    )
    progress = previous.model_copy(
        update={
            "current_rung_id": current_rung_id,
            "streak_count": streak,
            "last_support_level": last_support,
            "history": [*previous.history, entry],
        }
    )
    if promoted:
        logger.info(
            "Card %s promoted child=%s from %s to %s",
            card.ladder_key,
            previous.child_id,
            previous.current_rung_id,
            current_rung_id,
        )
    return CardSessionOutcome(progress=progress, promoted=promoted, new_rung_id=current_rung_id if promoted else None)


# ----- card catalog ----------------------------------------------------------

_RungSpec = Tuple[str, str, str]


def _card(
    ladder_key: str,
    title: str,
    intent: str,
    work_items: Sequence[str],
    rungs: Sequence[_RungSpec],
    *,
    stream_id: Optional[StreamId] = None,
    metric_label: str = "One output produced",
    rule_suffix: str = "",
) -> LadderCard:
    return LadderCard(
        ladder_key=ladder_key,
        title=title,
        stream_id=stream_id,
        intent=intent,
        work_items=list(work_items),
        metric_label=metric_label,
        global_rule_text=f"{GLOBAL_RULE} {rule_suffix}".strip(),
        rungs=[
            LadderCardRung(rung_id=f"R{index}", name=name, evidence_text=evidence, supports_text=supports)
            for index, (name, evidence, supports) in enumerate(rungs)
        ],
    )


LINCOLN_CARDS: List[LadderCard] = [
    _card(
        "handwriting",
        "Handwriting + Drawing",
        "Build pencil control, letter formation, and visual expression so writing becomes automatic.",
        [
            "Pencil grip + posture check",
            "Letter formation (uppercase → lowercase)",
            "Copy words with spacing",
            "Sentence dictation",
            "Free draw + label",
        ],
        [
            ("Grip + posture", "Holds pencil with tripod grip; sits upright for the task.",
             "Hand-over-hand, pencil grip sleeve, slant board."),
            ("Letter formation", "Traces or copies 10+ letters staying on the line.",
             'Dotted-line guides, verbal stroke cues ("down, bump, up").'),
            ("Word copying", "Copies 3+ words with consistent spacing and sizing.",
             "Model word card, highlighted spacing marks."),
            ("Sentence writing", "Writes a sentence from dictation with ≤2 formation errors.",
             "Verbal repetition, word bank on desk."),
            ("Free draw + label", "Draws a scene and writes a caption/label independently.",
             "Prompt card only; no letter-level help."),
        ],
    ),
    _card(
        "reading_input",
        "Reading Input (Listen + Discuss)",
        "Build comprehension and engagement through read-aloud and discussion.",
        [
            "Attentive listening (5–15 min read-aloud)",
            "Recall one detail",
            "Sequence 3 events",
            "Make a connection",
            "Ask a question or share an opinion",
        ],
        [
            ("Attentive listening", "Sits and attends for a 5-min read-aloud without redirection.",
             "Fidget tool, picture walk preview, shorter passage."),
            ("Recall one detail", "Retells one thing that happened in the story.", "Who/What/Where prompt card."),
            ("Sequence events", "Retells 3 events in the correct order.", "First/Next/Last graphic organizer."),
            ("Make a connection", "Connects something in the story to own experience or another book.",
             '"This reminds me of…" sentence starter.'),
            ("Discussion", "Asks a question OR offers an opinion about the text without prompting.",
             "None (independent)."),
        ],
        stream_id="Communication",
    ),
    _card(
        "la_phonics",
        "LA · Phonics + Blending",
        "Decode words from letters → sounds → blends → multisyllable.",
        [
            "Letter-sound ID (a→/a/)",
            "CVC blending (c-a-t → cat)",
            "Digraphs + blends (sh, ch, bl, cr)",
            "Silent-e + vowel teams (cake, rain)",
            "Multisyllable decoding (rabbit → rab·bit)",
        ],
        [
            ("Letter-sound ID", "Says the correct sound for 20+ letters on flashcards.",
             "Picture cue card (a = apple), verbal model."),
            ("CVC blending", "Blends and reads 10 CVC words aloud (e.g., cat, sit, hop).",
             "Elkonin boxes, finger tapping."),
            ("Digraphs + blends", "Reads words with sh, ch, th, bl, cr without sounding each letter separately.",
             "Digraph flashcards, color-coded chunks."),
            ("Silent-e + vowel teams", "Reads words like cake, rain, boat applying the pattern rule.",
             'Rule reminder card ("magic e makes the vowel say its name").'),
            ("Multisyllable decoding", "Reads 2-syllable words by chunking (e.g., rab·bit, kit·ten).",
             "Syllable clap, dot between syllables."),
        ],
        stream_id="Reading",
    ),
    _card(
        "la_sightwords",
        "LA · Sight Words (anti-forget)",
        "Build automatic recognition of high-frequency words. Only add new words when stable.",
        ["First 10 words", "First 25 words", "First 50 words", "First 75 words", "100+ words, review cycle active"],
        [
            ("First 10", "Reads 10 high-frequency words on sight (≤2 sec each).",
             "Flashcards with picture hints, repeated exposure."),
            ("First 25", "Reads 25 sight words on sight with ≤1 error.", "Rainbow writing, word wall reference."),
            ("First 50", "Reads 50 sight words on sight with ≤2 errors.", "Bingo game review, spaced repetition."),
            ("First 75", "Reads 75 sight words on sight with ≤2 errors.", "Self-check flashcard ring, peer quiz."),
            ("100+ stable", "Reads 100+ sight words; weekly review cycle catches drift.",
             "None (self-managed review ring)."),
        ],
        rule_suffix="Only add new words when current set is stable.",
    ),
    _card(
        "la_spellingprompts",
        "LA · Spelling + Writing Prompts (output)",
        "Move from sound-spelling to pattern-spelling to prompted writing.",
        [
            "Sound-spell CVC words",
            "Write a phonetic sentence",
            "Use spelling patterns (-ight, -tion)",
            "Write 3–4 sentences from a prompt",
            "Write, re-read, and self-edit",
        ],
        [
            ("Sound spelling", "Spells 5 CVC words by stretching sounds (e.g., c-a-t → cat).",
             "Elkonin boxes, verbal stretching model."),
            ("Phonetic sentences", "Writes a simple sentence using phonetic spelling (readable even if imperfect).",
             "Word bank, verbal repetition of sentence."),
            ("Pattern spelling", "Uses known patterns (e.g., -ight, -tion, silent-e) in dictation.",
             "Pattern chart on desk."),
            ("Prompted paragraph", "Writes 3–4 sentences from a prompt with mostly correct spelling.",
             "Sentence starters, prompt card."),
            ("Edited draft", "Writes a paragraph, re-reads, and fixes ≥1 error independently.",
             "Editing checklist only."),
        ],
        stream_id="Writing",
    ),
    _card(
        "math_doubles",
        "Math · Addition + Doubles",
        "Build addition fluency from counting-on → doubles → mental math to 100.",
        ["Count-on strategy", "Doubles facts to 10+10", "Doubles-plus-one", "Fluency within 20",
         "Mental addition to 100"],
        [
            ("Count-on", "Uses counting-on from the larger number for single-digit addition.",
             "Number line, counters, verbal model."),
            ("Doubles facts", "Knows doubles to 10+10 within 3 sec per fact.", "Doubles anchor chart, mirror visual."),
            ("Doubles +1", "Uses doubles-plus-one strategy (6+7 = 6+6+1 = 13).", "Strategy prompt card."),
            ("Fluency within 20", "Solves addition within 20 in ≤5 sec per fact.", "Timed drills with self-check."),
            ("Mental addition to 100", "Adds 2-digit numbers mentally using place-value strategy.",
             "None (mental math)."),
        ],
    ),
    _card(
        "math_longsub",
        "Math · Long-Form Subtraction",
        "Move from concrete subtraction to multi-digit regrouping.",
        ["Subtract within 10", "Subtract within 20 (number line)", "2-digit without regrouping",
         "2-digit with regrouping", "3-digit with multiple regroups"],
        [
            ("Subtract within 10", "Subtracts within 10 using objects or fingers correctly.",
             "Counters, ten-frame, verbal model."),
            ("Subtract within 20", "Subtracts within 20 using a number line.", "Number line mat, hop-back model."),
            ("2-digit no regroup", "Solves 2-digit subtraction without regrouping (e.g., 45−23).",
             "Place-value chart, base-ten blocks."),
            ("2-digit with regroup", "Solves 2-digit subtraction with borrowing (e.g., 53−27).",
             "Step-by-step regrouping guide."),
            ("3-digit subtraction", "Solves 3-digit subtraction with multiple regroups (e.g., 321−187).",
             "Graph paper for alignment only."),
        ],
    ),
    _card(
        "math_wordproblems",
        "Math · Word Problems",
        "Read, model, solve, and eventually create word problems.",
        ["Identify the question", "Choose the operation", "Model + solve (bar model)", "Two-step problems",
         "Write own problem"],
        [
            ("Identify the question", "Circles or states what the word problem is asking.",
             'Highlighter, "What is the question?" prompt card.'),
            ("Choose operation", "Picks + or − for a one-step word problem and explains why.",
             "Key-word chart (altogether = add, left = subtract)."),
            ("Model + solve", "Draws a bar model and writes the equation for a one-step problem.",
             "Bar-model template, guided example."),
            ("Two-step problem", "Solves a two-step word problem showing both steps.", '"Step 1 / Step 2" organizer.'),
            ("Write own problem", "Creates a word problem for a given equation and solves it.",
             "None (independent)."),
        ],
    ),
    _card(
        "math_timecalendar",
        "Math · Time + Calendar + Seasons",
        "Build time-telling, calendar navigation, and season awareness.",
        ["Days of the week in order", "Tell time to the hour", "Tell time to the half-hour",
         "Calendar math (days from now)", "Months + seasons"],
        [
            ("Days of week", "Names all 7 days in order without help.", "Days-of-week song, visual calendar."),
            ("Time to the hour", "Reads an analog clock to the hour (e.g., 3:00).",
             'Geared teaching clock, verbal cue ("short hand = hour").'),
            ("Time to the half-hour", "Reads an analog clock to the half-hour (e.g., 3:30).",
             "Teaching clock with labeled 30-min mark."),
            ("Calendar math", 'Answers "What day is 3 days from Tuesday?" type questions.',
             "Calendar with moveable marker."),
            ("Months + seasons", "Names all 12 months in order and identifies the season for each.",
             "Months song reference only."),
        ],
    ),
    _card(
        "math_fractions",
        "Math · Fractions (intro)",
        "Introduce fractions through concrete models → comparisons → number line.",
        ["Equal parts (halves)", "Name fractions (½, ⅓, ¼)", "Fraction of a set", "Compare fractions",
         "Fraction number line"],
        [
            ("Equal parts", "Splits a shape into 2 equal halves and identifies each half.",
             "Paper folding, pre-drawn shape to cut."),
            ("Name fractions", "Identifies ½, ⅓, ¼ of a shaded shape.", "Fraction circles manipulative."),
            ("Fraction of a set", "Finds ½ of 8 objects or ¼ of 12 objects.", "Counters to share into groups."),
            ("Compare fractions", "Tells which is bigger (½ or ¼) and explains why.",
             "Fraction strips for visual comparison."),
            ("Fraction number line", "Places ½, ¼, ¾ on a number line from 0 to 1.",
             "Pre-labeled 0 and 1 endpoints only."),
        ],
    ),
    _card(
        "science",
        "Science (Explore + Discuss)",
        "Build observation, questioning, and simple experimentation skills.",
        ["Observe with senses", 'Ask "I wonder…" questions', "Predict before testing", "Test + record results",
         "Explain findings"],
        [
            ("Observe", "Describes what they see, hear, or feel about a natural object/event.",
             "5-senses chart, magnifying glass, guided walk."),
            ("Question", 'Asks an "I wonder why…" or "What would happen if…" question.',
             "Wonder wall poster, sentence frame."),
            ("Predict", "Makes a guess before a simple test and states it aloud.", '"I think ___ because ___" prompt.'),
            ("Test + record", "Runs a simple test and draws/writes the result.", "Recording sheet template."),
            ("Explain", "Tells someone what happened and why they think so.", "None (independent narration)."),
        ],
    ),
    _card(
        "art",
        "Art (Color + Seasons + Sensory)",
        "Explore art materials, color theory, seasonal themes, and observation drawing.",
        ["Free exploration with materials", "Color mixing (primary → secondary)", "Seasonal art project",
         "Sensory/observation drawing", "Finished piece with title + statement"],
        [
            ("Free exploration", "Uses art materials (paint, clay, crayon, etc.) freely for 10+ min.",
             "Materials laid out, open-ended prompt."),
            ("Color mixing", "Mixes 2 primary colors to make a secondary and names the result.",
             "Color wheel poster, guided demo."),
            ("Seasonal art", "Creates an art piece connected to the current season or nature theme.",
             "Photo reference, season word bank."),
            ("Observation drawing", "Draws from a real object (still life, nature find) with recognizable details.",
             "Object placed in front; verbal prompt to look again."),
            ("Finished piece", "Completes a piece, gives it a title, and says one sentence about it.",
             "None (independent)."),
        ],
    ),
    _card(
        "booster",
        "Booster Cards (Spaced Review Deck)",
        "Maintain mastery across subjects with a personal spaced-review card deck.",
        ["Build a deck of 10+ review cards", "Daily 5-card flip with self-check", "Self-sort know vs. review piles",
         "Teach-back a card to a partner", "Retire mastered cards, rotate new ones"],
        [
            ("Deck setup", "10+ review cards created from prior lessons with Q on front, A on back.",
             "Card template, adult writes while child dictates."),
            ("Daily flip", "Reviews 5 cards/day and self-checks with ≤1 error for 3 sessions.",
             "Timer, adult reads question if needed."),
            ("Self-sort", 'Independently sorts cards into "know" and "review" piles after flipping.',
             "Two labeled trays/piles."),
            ("Teach-back", "Picks a card and explains the answer to a partner in own words.",
             "\"Teach it like you're the teacher\" prompt."),
            ("Retire + rotate", "Retires mastered cards and adds new ones from the week's lessons independently.",
             "None (self-managed)."),
        ],
    ),
]

LONDON_CARDS: List[LadderCard] = [
    _card(
        "london_sensory",
        "Sensory + Movement",
        "Build body awareness, fine-motor play, and sensory exploration.",
        ["Explore a sensory bin (5 min)", "Scoop + pour practice", "Pincer grasp activities",
         "Obstacle course / balance", "Follow a 2-step movement game"],
        [
            ("Free exploration", "Engages with a sensory bin or tactile material for 3+ min.",
             "Materials placed in front, adult models play."),
            ("Scoop + pour", "Scoops and pours with a cup or spoon with minimal spilling.",
             "Hand-over-hand guidance, large containers."),
            ("Pincer grasp", "Picks up small objects (pom-poms, beads) using thumb and finger.",
             "Tweezers, larger objects to start."),
            ("Balance + obstacle",
             "Completes a simple 3-station obstacle course (step over, crawl under, balance).",
             "Adult spotting, visual markers on floor."),
            ("Movement game", 'Follows a 2-step movement instruction ("jump then spin").',
             "Verbal model + demonstration."),
        ],
        metric_label="One activity completed",
    ),
    _card(
        "london_language",
        "Language + Listening",
        "Build vocabulary, listening skills, and early communication.",
        ["Point to named objects", "Follow a 1-step direction", "Name familiar items", "Use 2-word phrases",
         "Answer simple questions"],
        [
            ("Point to named", 'Points to 5+ named objects or pictures ("Where is the dog?").',
             "Choices of 2, verbal + gesture cue."),
            ("1-step direction", 'Follows a simple 1-step direction ("Give me the ball").',
             "Gesture + verbal cue, object nearby."),
            ("Name items", "Names 10+ familiar objects or pictures on sight.", "First-sound cue, model the word."),
            ("2-word phrases", 'Combines 2 words together ("more milk", "big truck").',
             'Expansion modeling ("You want MORE MILK").'),
            ("Answer questions", "Answers simple what/where questions about familiar things.",
             "Choice of 2 answers if stuck."),
        ],
    ),
    _card(
        "london_art",
        "Art + Creative Play",
        "Explore art materials and imaginative play at a toddler level.",
        ["Free scribble with crayon", "Finger painting", "Stamp + press activities", "Simple collage (sticker art)",
         "Pretend-play scene"],
        [
            ("Free scribble", "Holds a crayon and makes marks on paper for 2+ min.",
             "Large crayons, tape paper to table."),
            ("Finger painting", "Uses fingers to spread paint on paper, exploring texture.",
             "Smock, large paper, adult models."),
            ("Stamp + press", "Uses stamps or sponges to make repeated prints on paper.",
             "Pre-inked stamps, hand-over-hand."),
            ("Sticker collage", "Peels and places 5+ stickers on a page to make a picture.",
             "Easy-peel stickers, adult starts the peel."),
            ("Pretend play", "Engages in a pretend-play scene (tea party, cooking) for 5+ min.",
             "Props set up, adult joins to model."),
        ],
        metric_label="One creation made",
    ),
]

_CARDS_BY_CHILD: Dict[str, List[LadderCard]] = {
    "lincoln": LINCOLN_CARDS,
    "london": LONDON_CARDS,
}


def get_ladders_for_child(child_name: str) -> Optional[List[LadderCard]]:
    """Card set for a child, matched case-insensitively on name; None when none is defined."""
    return _CARDS_BY_CHILD.get(child_name.strip().lower())


def find_card(cards: Sequence[LadderCard], ladder_key: str) -> Optional[LadderCard]:
    for card in cards:
        if card.ladder_key == ladder_key:
            return card
    return None


__all__ = [
    "CARD_PROMOTION_STREAK",
    "CardSessionOutcome",
    "LINCOLN_CARDS",
    "LONDON_CARDS",
    "SUPPORT_LEVEL_ORDER",
    "apply_card_session",
    "compare_support_level",
    "create_initial_progress",
    "find_card",
    "get_ladders_for_child",
    "next_card_rung_id",
]
