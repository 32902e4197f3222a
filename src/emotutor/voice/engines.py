import logging
import queue
import threading
from typing import Callable, Optional

import pyttsx3

from emotutor.voice.narrator import Utterance, VoiceEngine

logger = logging.getLogger(__name__)


class SilentVoiceEngine(VoiceEngine):
    """Logs utterances and reports completion immediately (headless runs)."""

    def __init__(self):
        self.spoken = 0

    def speak(self, utterance: Utterance, on_done: Callable[[], None]) -> None:
        self.spoken += 1
        logger.info("[say pitch=%.2f rate=%.2f] %s", utterance.pitch, utterance.rate, utterance.text)
        on_done()

    def cancel_all(self) -> None:
        pass


class Pyttsx3VoiceEngine(VoiceEngine):
    """
    Offline TTS through pyttsx3.

    A worker thread owns the pyttsx3 engine and plays one utterance at a
    time. Rate is ``base_rate`` words per minute scaled by the utterance
    rate; pitch is applied only where the driver exposes it. pyttsx3
    reports driver failures through its ``error`` notification, not by
    raising from ``setProperty``/``say``.

    Every utterance carries the cancel generation it was queued under.
    The worker checks it and queues the text with the driver while holding
    the lock that ``cancel_all`` takes, so an utterance cancelled after it
    left the queue is either skipped or stopped.
    """

    def __init__(self, base_rate: int = 175, volume: float = 0.9, voice_id: Optional[str] = None):
        self.base_rate = base_rate
        self.volume = volume
        self.voice_id = voice_id
        self._queue: "queue.Queue" = queue.Queue()
        self._engine = None
        self._lock = threading.Lock()
        self._generation = 0
        self._speaking = threading.Event()
        self._ready = threading.Event()
        self._init_error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._worker, name="pyttsx3-worker", daemon=True)
        self._thread.start()
        self._ready.wait()
        if self._init_error is not None:
            raise RuntimeError(f"pyttsx3 could not start: {self._init_error}") from self._init_error

    def _worker(self) -> None:
        try:
            self._engine = pyttsx3.init()
            self._engine.connect("error", self._on_error)
            self._engine.setProperty("volume", self.volume)
            if self.voice_id:
                self._engine.setProperty("voice", self.voice_id)
        except Exception as exc:  # driver missing (no espeak / sapi5 / nsss)
            self._init_error = exc
            self._ready.set()
            return
        self._ready.set()

        while True:
            item = self._queue.get()
            if item is None:
                break
            utterance, on_done, generation = item
            with self._lock:
                if generation != self._generation:
                    logger.debug("Skipping cancelled utterance: %s", utterance.text)
                    continue
                self._speaking.set()
                self._apply(utterance)
                self._engine.say(utterance.text)
            try:
                self._engine.runAndWait()
            except RuntimeError as exc:
                logger.warning("pyttsx3 failed to speak: %s", exc)
            finally:
                self._speaking.clear()
                on_done()

    def _apply(self, utterance: Utterance) -> None:
        self._engine.setProperty("rate", int(round(self.base_rate * utterance.rate)))
        self._engine.setProperty("pitch", utterance.pitch)

    def _on_error(self, name=None, exception=None) -> None:
        # drivers without pitch control reject the property with a KeyError
        if isinstance(exception, KeyError):
            logger.debug("pyttsx3 driver rejected a property: %s", exception)
        else:
            logger.warning("pyttsx3 driver error (%s): %s", name, exception)

    def speak(self, utterance: Utterance, on_done: Callable[[], None]) -> None:
        self._queue.put((utterance, on_done, self._generation))

    def cancel_all(self) -> None:
        with self._lock:
            self._generation += 1
            while True:
                try:
                    item = self._queue.get_nowait()
                except queue.Empty:
                    break
                if item is None:  # keep a pending shutdown request
                    self._queue.put(None)
                    break
            if self._speaking.is_set():
                self._engine.stop()

    def close(self) -> None:
        self.cancel_all()
        self._queue.put(None)
        self._thread.join(timeout=2.0)
