import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]


class Presenter(ABC):
    """
    Where the loop writes what the learner sees.

    The controller only writes; it never reads anything back.
    """

    @abstractmethod
    def render_status(self, text: str) -> None: ...

    @abstractmethod
    def render_lesson(self, text: str) -> None: ...

    def render_overlay(self, box: Optional[Box]) -> None:
        """Draw (or clear, when None) the detection box."""


class LogPresenter(Presenter):
    """Console presenter for headless sessions."""

    def render_status(self, text: str) -> None:
        logger.info("status: %s", text)

    def render_lesson(self, text: str) -> None:
        logger.info("lesson: %s", text)


class SessionView(Presenter):
    """
    Latest status, lesson text and overlay box, kept for HTTP polling.

    Writes may come from the event loop and from the camera thread.
    """

    def __init__(self, status: str = "Waiting..."):
        self._lock = threading.Lock()
        self.status = status
        self.lesson_text = ""
        self.face_box: Optional[Box] = None

    def render_status(self, text: str) -> None:
        with self._lock:
            self.status = text

    def render_lesson(self, text: str) -> None:
        with self._lock:
            self.lesson_text = text

    def render_overlay(self, box: Optional[Box]) -> None:
        with self._lock:
            self.face_box = tuple(box) if box is not None else None

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "status": self.status,
                "lesson_text": self.lesson_text,
                "face_box": list(self.face_box) if self.face_box is not None else None,
            }
