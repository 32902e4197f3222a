"""Shared fixtures: scripted affect, recording voice engine and presenter."""

from typing import Callable, List, Optional

import pytest

from emotutor.affect.base import AffectSample, AffectSource
from emotutor.content.store import ContentStore
from emotutor.loop.controller import TeachingLoopController
from emotutor.loop.presenter import Presenter
from emotutor.voice.narrator import NarrationDriver, Utterance, VoiceEngine


class ScriptedAffectSource(AffectSource):
    """Replays a list of samples; the last entry repeats. Exceptions are raised."""

    def __init__(self, samples=None, setup_error: Optional[BaseException] = None):
        self.samples = list(samples or [AffectSample("neutral")])
        self.setup_error = setup_error
        self.calls = 0
        self.setup_calls = 0
        self.closed = 0

    def get_name(self) -> str:
        return "scripted"

    def setup(self) -> None:
        self.setup_calls += 1
        if self.setup_error is not None:
            raise self.setup_error

    def close(self) -> None:
        self.closed += 1

    def sample(self) -> AffectSample:
        item = self.samples[min(self.calls, len(self.samples) - 1)]
        self.calls += 1
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item()
        return item


class RecordingVoiceEngine(VoiceEngine):
    """Keeps every utterance; completions fire on finish() unless auto_finish."""

    def __init__(self, auto_finish: bool = False):
        self.auto_finish = auto_finish
        self.utterances: List[Utterance] = []
        self.pending: List[Callable[[], None]] = []
        self.cancels = 0
        self.closed = False

    def speak(self, utterance: Utterance, on_done: Callable[[], None]) -> None:
        self.utterances.append(utterance)
        if self.auto_finish:
            on_done()
        else:
            self.pending.append(on_done)

    def finish(self) -> None:
        while self.pending:
            self.pending.pop(0)()

    def cancel_all(self) -> None:
        self.cancels += 1
        self.pending.clear()

    def close(self) -> None:
        self.closed = True


class RecordingPresenter(Presenter):
    def __init__(self):
        self.statuses: List[str] = []
        self.lessons: List[str] = []
        self.overlays: list = []

    @property
    def status(self) -> Optional[str]:
        return self.statuses[-1] if self.statuses else None

    def render_status(self, text: str) -> None:
        self.statuses.append(text)

    def render_lesson(self, text: str) -> None:
        self.lessons.append(text)

    def render_overlay(self, box) -> None:
        self.overlays.append(box)


@pytest.fixture
def store() -> ContentStore:
    return ContentStore.default()


@pytest.fixture
def engine() -> RecordingVoiceEngine:
    return RecordingVoiceEngine()


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def make_controller(store, engine, presenter):
    """Factory for a controller around a scripted source."""

    def _make(samples=None, source: Optional[AffectSource] = None, period_sec: float = 3.0,
              setup_error: Optional[BaseException] = None) -> TeachingLoopController:
        src = source or ScriptedAffectSource(samples, setup_error=setup_error)
        return TeachingLoopController(
            store=store,
            source=src,
            narrator=NarrationDriver(engine),
            presenter=presenter,
            period_sec=period_sec,
        )

    return _make
