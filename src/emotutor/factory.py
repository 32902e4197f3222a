from typing import Optional

from emotutor.affect.base import AffectSource
from emotutor.config import Config
from emotutor.content.store import ContentStore
from emotutor.loop.controller import TeachingLoopController
from emotutor.loop.presenter import Presenter
from emotutor.voice.narrator import NarrationDriver, VoiceEngine


def build_content_store(cfg: Config) -> ContentStore:
    if cfg.content.path:
        return ContentStore.from_yaml(cfg.content.path)
    return ContentStore.default()


def build_affect_source(cfg: Config, presenter: Optional[Presenter] = None) -> AffectSource:
    kind = cfg.affect.source.strip().lower()
    if kind == "simulated":
        from emotutor.affect.simulated import SimulatedAffectSource
        return SimulatedAffectSource(emotions=cfg.affect.emotions, seed=cfg.affect.seed)
    if kind == "detector":
        # torch / cv2 are only imported when the camera pipeline is used
        from emotutor.affect.camera import OpenCVCamera
        from emotutor.affect.detector import DetectorAffectSource
        from emotutor.models.expression_net import ExpressionDetector
        detector = ExpressionDetector(
            weights_url=cfg.detector.weights_url,
            weights_path=cfg.detector.weights_path,
            face_size=cfg.detector.face_size,
            device=cfg.detector.device,
        )
        return DetectorAffectSource(
            camera=OpenCVCamera(cfg.detector.camera_index),
            detector=detector,
            on_overlay=presenter.render_overlay if presenter is not None else None,
        )
    raise ValueError(f"Unsupported affect source: {cfg.affect.source}")


def build_voice_engine(cfg: Config) -> VoiceEngine:
    kind = cfg.voice.engine.strip().lower()
    if kind == "silent":
        from emotutor.voice.engines import SilentVoiceEngine
        return SilentVoiceEngine()
    if kind == "pyttsx3":
        from emotutor.voice.engines import Pyttsx3VoiceEngine
        return Pyttsx3VoiceEngine(base_rate=cfg.voice.base_rate, volume=cfg.voice.volume)
    raise ValueError(f"Unsupported voice engine: {cfg.voice.engine}")


def build_controller(
    cfg: Config,
    presenter: Optional[Presenter] = None,
    source: Optional[AffectSource] = None,
    engine: Optional[VoiceEngine] = None,
) -> TeachingLoopController:
    """Wire store, affect source, narration and presenter from ``cfg``.

    ``source`` and ``engine`` override the configured backends.
    """
    return TeachingLoopController(
        store=build_content_store(cfg),
        source=source or build_affect_source(cfg, presenter),
        narrator=NarrationDriver(engine or build_voice_engine(cfg), lang=cfg.voice.lang),
        presenter=presenter,
        period_sec=cfg.loop.period_sec,
    )
