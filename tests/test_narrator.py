"""Tests for voice parameters and single-flight narration."""

import logging
import threading
from unittest.mock import MagicMock, call, patch

import pytest

from emotutor.voice.engines import Pyttsx3VoiceEngine, SilentVoiceEngine
from emotutor.voice.narrator import NarrationDriver, Utterance, voice_parameters

from conftest import RecordingVoiceEngine


@pytest.mark.parametrize("emotion,pitch,rate", [
    ("happy", 1.3, 1.05),
    ("sad", 0.8, 0.9),
    ("angry", 0.95, 0.95),
    ("surprised", 1.4, 1.15),
    ("neutral", 1.0, 1.0),
    ("disgusted", 1.0, 1.0),
    ("", 1.0, 1.0),
])
def test_voice_table(emotion, pitch, rate):
    p = voice_parameters(emotion)
    assert p.pitch == pytest.approx(pitch)
    assert p.rate == pytest.approx(rate)


def test_child_adjustment_composes_with_emotion():
    p = voice_parameters("sad", "child")
    assert p.pitch == pytest.approx(0.8 * 1.1)
    assert p.rate == pytest.approx(0.9 * 0.9)


@pytest.mark.parametrize("age_group", ["teen", "young_adult", "adult", None])
def test_only_children_get_adjusted(age_group):
    assert voice_parameters("happy", age_group) == voice_parameters("happy")


def test_speak_issues_utterance_and_goes_busy(engine):
    driver = NarrationDriver(engine, lang="en-GB")
    assert driver.speak("Hello", "happy") is True
    assert driver.busy is True
    (u,) = engine.utterances
    assert (u.text, u.lang) == ("Hello", "en-GB")
    assert u.pitch == pytest.approx(1.3)
    assert u.rate == pytest.approx(1.05)
    # previous engine speech is cleared before each new request
    assert engine.cancels == 1


def test_speak_while_busy_is_dropped(engine):
    driver = NarrationDriver(engine)
    driver.speak("first", "neutral")
    assert driver.speak("second", "neutral") is False
    assert [u.text for u in engine.utterances] == ["first"]

    engine.finish()
    assert driver.busy is False
    assert driver.speak("third", "neutral") is True
    assert [u.text for u in engine.utterances] == ["first", "third"]


def test_cancel_resets_busy(engine):
    driver = NarrationDriver(engine)
    driver.speak("first", "neutral")
    driver.cancel()
    assert driver.busy is False
    assert engine.cancels == 2


def test_stale_completion_does_not_clear_newer_utterance(engine):
    driver = NarrationDriver(engine)
    driver.speak("old", "neutral")
    stale = engine.pending[-1]
    driver.cancel()
    driver.speak("new", "neutral")
    stale()
    assert driver.busy is True


def test_engine_failure_clears_busy():
    class Broken(RecordingVoiceEngine):
        def speak(self, utterance, on_done):
            raise RuntimeError("no audio device")

    driver = NarrationDriver(Broken())
    with pytest.raises(RuntimeError):
        driver.speak("x", "neutral")
    assert driver.busy is False


def test_silent_engine_completes_immediately():
    engine = SilentVoiceEngine()
    driver = NarrationDriver(engine)
    assert driver.speak("a", "happy") is True
    assert driver.busy is False
    assert driver.speak("b", "sad") is True
    assert engine.spoken == 2


def test_completion_from_engine_thread():
    done = threading.Event()

    class Threaded(RecordingVoiceEngine):
        def speak(self, utterance, on_done):
            def run():
                on_done()
                done.set()
            threading.Thread(target=run).start()

    driver = NarrationDriver(Threaded())
    driver.speak("x", "neutral")
    assert done.wait(2.0)
    assert driver.busy is False


def test_concurrent_speak_accepts_exactly_one(engine):
    driver = NarrationDriver(engine)
    barrier = threading.Barrier(8)
    results = []
    lock = threading.Lock()

    def worker(i):
        barrier.wait()
        ok = driver.speak(f"t{i}", "neutral")
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert len(engine.utterances) == 1


# ---------------------------------------------------------------- pyttsx3

@pytest.fixture
def tts_driver():
    driver = MagicMock()
    with patch("emotutor.voice.engines.pyttsx3") as fake:
        fake.init.return_value = driver
        yield driver


def test_pyttsx3_engine_applies_voice(tts_driver):
    done = threading.Event()
    tts = Pyttsx3VoiceEngine(base_rate=200, volume=0.5)
    tts.speak(Utterance("Hello there.", pitch=1.3, rate=1.05), done.set)
    assert done.wait(2.0)
    tts.close()
    tts_driver.setProperty.assert_has_calls([
        call("volume", 0.5),
        call("rate", 210),
        call("pitch", 1.3),
    ])
    tts_driver.say.assert_called_once_with("Hello there.")


def test_pyttsx3_driver_errors_are_logged(tts_driver, caplog):
    tts = Pyttsx3VoiceEngine()
    topic, on_error = tts_driver.connect.call_args[0]
    assert topic == "error"

    with caplog.at_level(logging.DEBUG, logger="emotutor.voice.engines"):
        on_error(name=None, exception=KeyError("pitch"))
        on_error(name="utt-1", exception=RuntimeError("espeak died"))
    tts.close()

    levels = {r.getMessage(): r.levelno for r in caplog.records}
    assert levels["pyttsx3 driver rejected a property: 'pitch'"] == logging.DEBUG
    assert levels["pyttsx3 driver error (utt-1): espeak died"] == logging.WARNING


def test_pyttsx3_cancel_while_preparing_stops_the_utterance(tts_driver):
    preparing = threading.Event()
    release = threading.Event()
    stopped = threading.Event()
    done = threading.Event()

    def set_property(name, value):
        if name == "rate":
            preparing.set()
            release.wait(2.0)

    tts_driver.setProperty.side_effect = set_property
    tts_driver.runAndWait.side_effect = lambda: stopped.wait(2.0)
    tts_driver.stop.side_effect = stopped.set

    tts = Pyttsx3VoiceEngine()
    tts.speak(Utterance("Long statement."), done.set)
    assert preparing.wait(2.0)

    canceller = threading.Thread(target=tts.cancel_all)
    canceller.start()
    release.set()
    canceller.join(2.0)

    assert stopped.is_set()
    assert done.wait(2.0)
    tts.close()


def test_pyttsx3_cancel_drops_queued_utterances(tts_driver):
    playing = threading.Event()
    stopped = threading.Event()
    first_done = threading.Event()

    def run_and_wait():
        playing.set()
        stopped.wait(2.0)

    tts_driver.runAndWait.side_effect = run_and_wait
    tts_driver.stop.side_effect = stopped.set

    tts = Pyttsx3VoiceEngine()
    tts.speak(Utterance("first"), first_done.set)
    assert playing.wait(2.0)
    tts.speak(Utterance("second"), lambda: None)
    tts.cancel_all()
    assert first_done.wait(2.0)
    tts.close()
    tts_driver.say.assert_called_once_with("first")
