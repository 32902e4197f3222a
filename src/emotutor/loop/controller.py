"""
Teaching loop controller.

State machine::

    IDLE --select_subject--> SELECTED --start--> RUNNING --stop/back--> IDLE

While RUNNING a timer task wakes every ``period_sec`` and spawns one tick
task: sample affect → adapt lesson → render → narrate → maybe advance.
Ticks are independent tasks, so a slow sample never delays the timer and
overlapping ticks race (last write wins on the status line).
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from emotutor.affect.base import AffectSample, AffectSource
from emotutor.content.store import ContentStore
from emotutor.errors import SampleFailure, SetupFailure, UnknownSubject, UserPrecondition
from emotutor.loop.presenter import LogPresenter, Presenter
from emotutor.strategy.mapping import Adaptation, adapt_lesson
from emotutor.voice.narrator import NarrationDriver

logger = logging.getLogger(__name__)

CHOOSE_SUBJECT = "Choose a subject first."
WAITING = "Waiting..."
SETUP_ERROR = "Error loading models."


class LoopState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    RUNNING = "running"


@dataclass
class LessonSession:
    subject: str
    lesson_index: int = 0
    running: bool = False


@dataclass
class TickResult:
    sample: AffectSample
    adaptation: Adaptation
    narrated: bool
    lesson_index: int


class TeachingLoopController:
    def __init__(
        self,
        store: ContentStore,
        source: AffectSource,
        narrator: NarrationDriver,
        presenter: Optional[Presenter] = None,
        period_sec: float = 3.0,
    ):
        if period_sec <= 0:
            raise ValueError("period_sec must be positive")
        self.store = store
        self.source = source
        self.narrator = narrator
        self.presenter = presenter or LogPresenter()
        self.period_sec = period_sec

        self.last_emotion: Optional[str] = None
        self._subject: Optional[str] = None
        self._session: Optional[LessonSession] = None
        self._timer: Optional[asyncio.Task] = None
        self._ticks: Set[asyncio.Task] = set()
        self._starting = False
        self._epoch = 0  # bumped by stop(); a setup from an older epoch is abandoned

    # ------------------------------------------------------------------ state
    @property
    def state(self) -> LoopState:
        if self._session is not None and self._session.running:
            return LoopState.RUNNING
        if self._subject is not None:
            return LoopState.SELECTED
        return LoopState.IDLE

    @property
    def subject(self) -> Optional[str]:
        return self._subject

    @property
    def session(self) -> Optional[LessonSession]:
        return self._session

    @property
    def lesson_index(self) -> int:
        return self._session.lesson_index if self._session is not None else 0

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # ------------------------------------------------------------ transitions
    def select_subject(self, subject: str) -> None:
        if self._starting or self.state is LoopState.RUNNING:
            raise UserPrecondition("Stop the lesson before choosing another subject.")
        if subject not in self.store:
            raise UnknownSubject(subject)
        self._subject = subject
        self.presenter.render_status(f"Selected: {subject.upper()}. Click Start Lesson.")
        logger.info("Subject selected: %s", subject)

    async def start(self) -> bool:
        """
        Prepare the affect source and begin ticking.

        Returns False if setup failed (the status line says why) or if
        stop() was called while setup was still running.

        Raises:
            UserPrecondition: no subject chosen, or a lesson is already
                starting or running
        """
        if self._subject is None:
            self.presenter.render_status(CHOOSE_SUBJECT)
            raise UserPrecondition(CHOOSE_SUBJECT)
        if self._starting or self.state is LoopState.RUNNING:
            raise UserPrecondition("The lesson has already started.")

        epoch = self._epoch
        session = LessonSession(subject=self._subject, lesson_index=0)
        self._starting = True
        self.presenter.render_status(self.source.setup_message)
        try:
            await asyncio.to_thread(self.source.setup)
        except SetupFailure as exc:
            logger.warning("Lesson setup failed: %s", exc)
            self.source.close()
            self.presenter.render_status(str(exc))
            return False
        except Exception:
            logger.exception("Lesson setup failed")
            self.source.close()
            self.presenter.render_status(SETUP_ERROR)
            return False
        finally:
            self._starting = False

        if epoch != self._epoch:
            logger.info("Lesson stopped during setup")
            self.source.close()
            return False

        session.running = True
        self._session = session
        self.presenter.render_status(self.source.ready_message)
        self._timer = asyncio.create_task(self._run_timer(session))
        logger.info("Lesson started: %s (%s source, every %.1fs)",
                    session.subject, self.source.get_name(), self.period_sec)
        return True

    def stop(self) -> None:
        """Cancel ticking and narration and release the source. Idempotent."""
        self._epoch += 1
        was_running = self.state is LoopState.RUNNING
        if self._session is not None:
            self._session.running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._ticks):
            task.cancel()
        self._ticks.clear()
        self.narrator.cancel()
        self.source.close()
        self._session = None
        self._subject = None
        self.last_emotion = None
        if was_running:
            logger.info("Lesson stopped")

    def back(self) -> None:
        self.stop()
        self.presenter.render_overlay(None)
        self.presenter.render_lesson("")
        self.presenter.render_status(WAITING)

    # ------------------------------------------------------------------ ticks
    async def _run_timer(self, session: LessonSession) -> None:
        while session.running:
            await asyncio.sleep(self.period_sec)
            if not session.running:
                break
            task = asyncio.create_task(self._tick(session))
            self._ticks.add(task)
            task.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task) -> None:
        self._ticks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Tick failed", exc_info=exc)

    async def tick(self) -> Optional[TickResult]:
        """Run one tick now. Returns None when no lesson is running."""
        if self._session is None or not self._session.running:
            return None
        return await self._tick(self._session)

    async def _tick(self, session: LessonSession) -> Optional[TickResult]:
        try:
            sample = await asyncio.to_thread(self.source.sample)
        except SampleFailure as exc:
            logger.warning("Affect sample failed, treating as neutral: %s", exc)
            sample = AffectSample.neutral(source=self.source.get_name())
        except Exception:
            logger.exception("Affect sample raised, treating as neutral")
            sample = AffectSample.neutral(source=self.source.get_name())

        if not session.running:
            return None

        emotion = sample.emotion or "neutral"
        self.last_emotion = emotion
        self.presenter.render_status(f"Emotion: {emotion}")

        adaptation = adapt_lesson(self.store, session.subject, session.lesson_index, sample)
        self.presenter.render_lesson(adaptation.text)

        # the lesson only moves on once its statement has actually been narrated
        narrated = self.narrator.speak(adaptation.text, emotion, sample.age_group)
        if narrated and adaptation.advance:
            session.lesson_index += 1

        logger.debug("tick: %s/%s index=%d narrated=%s", emotion, adaptation.strategy.name,
                     session.lesson_index, narrated)
        return TickResult(
            sample=sample,
            adaptation=adaptation,
            narrated=narrated,
            lesson_index=session.lesson_index,
        )
