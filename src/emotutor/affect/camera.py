import logging
import threading
from typing import Optional

import cv2
import numpy as np

from emotutor.errors import SetupFailure

logger = logging.getLogger(__name__)


class OpenCVCamera:
    """
    Webcam collaborator backed by cv2.VideoCapture.

    Methods
    -------
    acquire() -> None
        Opens the device; raises SetupFailure if it is missing or denied.
    read() -> Optional[np.ndarray]
        Latest BGR frame, or None if the device returned nothing.
    release() -> None
        Closes the device; safe to call when nothing is open.
    """
    def __init__(self, index: int = 0):
        self.index = index
        self._cap: Optional[cv2.VideoCapture] = None
        # read() runs on a worker thread while release() may come from stop()
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def acquire(self) -> None:
        with self._lock:
            if self._cap is not None:
                return
            cap = cv2.VideoCapture(self.index)
            if not cap.isOpened():
                cap.release()
                raise SetupFailure("Camera access denied or unavailable.")
            self._cap = cap
        logger.info("Camera %d opened", self.index)

    def read(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._cap is None:
                return None
            ret, frame_bgr = self._cap.read()
        if not ret:
            return None
        return frame_bgr

    def release(self) -> None:
        with self._lock:
            if self._cap is None:
                return
            self._cap.release()
            self._cap = None
        logger.info("Camera %d released", self.index)
