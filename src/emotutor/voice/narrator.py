"""
Single-flight narration.

The driver accepts at most one utterance at a time. A request made while an
utterance is in flight is dropped, not queued. The busy flag is set by
speak() and cleared by the voice engine's completion callback, which may run
on the engine's own thread, so both sides go through one lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# emotion -> (pitch, rate)
EMOTION_VOICE: Dict[str, Tuple[float, float]] = {
    "happy": (1.3, 1.05),
    "sad": (0.8, 0.9),
    "angry": (0.95, 0.95),
    "surprised": (1.4, 1.15),
}
DEFAULT_VOICE = (1.0, 1.0)

CHILD_PITCH = 1.1
CHILD_RATE = 0.9


@dataclass(frozen=True)
class VoiceParameters:
    pitch: float
    rate: float


@dataclass(frozen=True)
class Utterance:
    text: str
    pitch: float = 1.0
    rate: float = 1.0
    lang: str = "en-US"


def voice_parameters(emotion: str, age_group: Optional[str] = None) -> VoiceParameters:
    pitch, rate = EMOTION_VOICE.get((emotion or "").strip().lower(), DEFAULT_VOICE)
    if age_group == "child":
        pitch *= CHILD_PITCH
        rate *= CHILD_RATE
    return VoiceParameters(pitch=pitch, rate=rate)


class VoiceEngine(ABC):
    """Abstract speech backend."""

    @abstractmethod
    def speak(self, utterance: Utterance, on_done: Callable[[], None]) -> None:
        """
        Start speaking ``utterance``. ``on_done`` must be called exactly once
        when it finishes, from any thread. It need not be called for an
        utterance removed by cancel_all().
        """

    @abstractmethod
    def cancel_all(self) -> None:
        """Drop anything queued or playing."""

    def close(self) -> None:
        """Release the backend. Override if needed."""


class NarrationDriver:
    def __init__(self, engine: VoiceEngine, lang: str = "en-US"):
        self.engine = engine
        self.lang = lang
        self._lock = threading.Lock()
        self._busy = False
        self._generation = 0

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def speak(self, text: str, emotion: str, age_group: Optional[str] = None) -> bool:
        """
        Narrate ``text`` with a voice tuned to ``emotion``.

        Returns False (and does nothing) if a narration is already in flight.
        """
        with self._lock:
            if self._busy:
                return False
            self._busy = True
            generation = self._generation

        params = voice_parameters(emotion, age_group)
        utterance = Utterance(text=text, pitch=params.pitch, rate=params.rate, lang=self.lang)
        try:
            self.engine.cancel_all()
            self.engine.speak(utterance, lambda: self._finished(generation))
        except Exception:
            with self._lock:
                if self._generation == generation:
                    self._busy = False
            raise
        logger.debug("Narrating (%s, pitch=%.2f rate=%.2f): %s", emotion, params.pitch, params.rate, text)
        return True

    def _finished(self, generation: int) -> None:
        with self._lock:
            # completions from cancelled utterances must not clear a newer one
            if generation == self._generation:
                self._busy = False

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            self._busy = False
        self.engine.cancel_all()
