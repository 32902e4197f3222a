from dataclasses import dataclass
from typing import Optional

from emotutor.affect.base import AffectSample
from emotutor.content.store import ContentStore

STRUGGLING = {"sad", "disgusted", "fear", "fearful"}
UPBEAT = {"happy", "surprised"}
YOUNG = {"child", "teen"}

STEP_BY_STEP = "Don't worry, we'll go step by step."
REVIEW_BASICS = "Let's review the basics together."
CALM_DOWN = "Take a deep breath."
PRACTICE_TIP = "Great! Here's a quick tip: try an example to practice."

@dataclass
class Strategy:
    """How to deliver the current lesson statement for one affect sample."""
    name: str
    simplified: bool
    prefix: str = ""
    suffix: str = ""
    advance: bool = True

@dataclass
class Adaptation:
    text: str
    advance: bool
    strategy: Strategy

def map_affect_to_strategy(emotion: str, age_group: Optional[str] = None) -> Strategy:
    """Map an emotion (+ optional age group) to a delivery strategy."""
    emotion = (emotion or "").strip().lower()

    if emotion in STRUGGLING:
        return Strategy(
            name="SimplifyAndEncourage",
            simplified=True,
            suffix=STEP_BY_STEP if age_group in YOUNG else REVIEW_BASICS,
            advance=False,
        )

    if emotion == "angry":
        return Strategy(name="CalmAndSimplify", simplified=True, prefix=CALM_DOWN, advance=False)

    if emotion in UPBEAT:
        return Strategy(name="EncourageAndPractice", simplified=False, suffix=PRACTICE_TIP, advance=True)

    # default → neutral, unknown, or nothing detected
    return Strategy(name="Continue", simplified=False, advance=True)

def adapt_lesson(store: ContentStore, subject: str, lesson_index: int, sample: AffectSample) -> Adaptation:
    """Compose the narration text for this tick and decide whether to advance."""
    strat = map_affect_to_strategy(sample.emotion, sample.age_group)
    if strat.simplified:
        statement = store.get_simplified(subject, lesson_index)
    else:
        statement = store.get_base(subject, lesson_index)
    text = " ".join(part for part in (strat.prefix, statement, strat.suffix) if part)
    return Adaptation(text=text, advance=strat.advance, strategy=strat)
