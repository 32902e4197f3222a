"""
Affect source interface.

Every affect backend (camera + expression detector, simulator, scripted test
sources) implements this interface so the teaching loop and the lesson
adapter never know which one produced a sample.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional

AGE_GROUPS = ("child", "teen", "young_adult", "adult")

# Fixed order used to break ties between equal expression scores.
EXPRESSION_PRIORITY = (
    "neutral",
    "happy",
    "sad",
    "angry",
    "fearful",
    "disgusted",
    "surprised",
)


@dataclass(frozen=True)
class AffectSample:
    """
    One observation of the learner's state.

    Only ``emotion`` and ``age_group`` drive adaptation; the remaining
    fields are informational.
    """
    emotion: str
    age_group: Optional[str] = None
    age: Optional[float] = None
    gender: Optional[str] = None
    confidence: Optional[float] = None
    source: str = ""
    detected: bool = True

    @classmethod
    def neutral(cls, source: str = "", detected: bool = False) -> "AffectSample":
        return cls(emotion="neutral", source=source, detected=detected)


def age_group_for(age: float) -> str:
    if age < 13:
        return "child"
    if age < 18:
        return "teen"
    if age < 30:
        return "young_adult"
    return "adult"


def dominant_emotion(scores: Mapping[str, float]) -> str:
    """
    Label with the highest score.

    Ties go to the label earliest in EXPRESSION_PRIORITY; labels outside it
    rank after every known label, alphabetically.
    """
    if not scores:
        return "neutral"

    def rank(label: str):
        if label in EXPRESSION_PRIORITY:
            return (0, EXPRESSION_PRIORITY.index(label), label)
        return (1, 0, label)

    best = max(scores.values())
    return min((label for label, s in scores.items() if s == best), key=rank)


class AffectSource(ABC):
    """Abstract interface for affect sampling backends."""

    # status lines shown around setup()
    setup_message = "Preparing lesson..."
    ready_message = "Lesson ready."

    @abstractmethod
    def sample(self) -> AffectSample:
        """
        Sample the learner's current affect.

        Raises:
            SampleFailure: if this tick's sample could not be produced
        """

    @abstractmethod
    def get_name(self) -> str:
        """Short name of the backend (e.g. "detector", "simulated")."""

    def setup(self) -> None:
        """
        Acquire resources before the first sample. Override if needed.

        Raises:
            SetupFailure: with a human-readable status message
        """

    def close(self) -> None:
        """Release resources. Must be safe to call repeatedly."""
