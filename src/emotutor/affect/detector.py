import logging
from typing import Callable, Optional, Tuple

from emotutor.affect.base import AffectSample, AffectSource, age_group_for, dominant_emotion
from emotutor.affect.camera import OpenCVCamera
from emotutor.errors import SampleFailure
from emotutor.models.expression_net import ExpressionDetector

logger = logging.getLogger(__name__)

OverlayCallback = Callable[[Optional[Tuple[int, int, int, int]]], None]


class DetectorAffectSource(AffectSource):
    """
    Real-time affect from the webcam.

    Each sample is one frame and one inference pass. When no face is
    visible the sample is neutral with ``detected=False``. ``on_overlay``
    receives the face box, or None to clear the overlay.
    """

    setup_message = "Loading AI models..."
    ready_message = "Camera started. Preparing lesson..."

    def __init__(
        self,
        camera: OpenCVCamera,
        detector: ExpressionDetector,
        on_overlay: Optional[OverlayCallback] = None,
    ):
        self.camera = camera
        self.detector = detector
        self.on_overlay = on_overlay

    def get_name(self) -> str:
        return "detector"

    def setup(self) -> None:
        self.detector.load_models()
        self.camera.acquire()

    def close(self) -> None:
        self.camera.release()

    def _draw(self, box) -> None:
        if self.on_overlay is not None:
            self.on_overlay(box)

    def sample(self) -> AffectSample:
        try:
            frame = self.camera.read()
        except Exception as exc:
            raise SampleFailure(f"Camera read failed: {exc}") from exc
        if frame is None:
            raise SampleFailure("No frame available from camera")

        try:
            detection = self.detector.detect(frame)
        except Exception as exc:
            raise SampleFailure(f"Expression inference failed: {exc}") from exc

        if detection is None:
            self._draw(None)
            return AffectSample.neutral(source=self.get_name(), detected=False)

        self._draw(detection.box)
        emotion = dominant_emotion(detection.scores)
        age_group = age_group_for(detection.age) if detection.age is not None else None
        return AffectSample(
            emotion=emotion,
            age_group=age_group,
            age=detection.age,
            confidence=detection.scores.get(emotion),
            source=self.get_name(),
        )
