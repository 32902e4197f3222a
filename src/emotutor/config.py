import logging
from dataclasses import dataclass, field
from typing import List, Optional
import yaml

@dataclass
class LoopConfig:
    period_sec: float = 3.0

@dataclass
class ContentConfig:
    path: Optional[str] = None  # YAML catalogue; built-in subjects when unset

@dataclass
class AffectConfig:
    source: str = "detector"  # detector | simulated
    emotions: List[str] = field(
        default_factory=lambda: ["happy", "sad", "angry", "surprised", "neutral"]
    )
    seed: Optional[int] = None

@dataclass
class DetectorConfig:
    weights_url: Optional[str] = None
    weights_path: Optional[str] = "checkpoints/expression_net.pt"
    face_size: int = 112
    camera_index: int = 0
    device: str = "cpu"

@dataclass
class VoiceConfig:
    engine: str = "pyttsx3"  # pyttsx3 | silent
    lang: str = "en-US"
    base_rate: int = 175  # words per minute at rate 1.0
    volume: float = 0.9

@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000

@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

@dataclass
class Config:
    loop: LoopConfig = field(default_factory=LoopConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    affect: AffectConfig = field(default_factory=AffectConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

def load_config(path: str) -> Config:
    with open(path, "r") as f:
        y = yaml.safe_load(f) or {}
    return Config(
        loop=LoopConfig(**(y.get("loop") or {})),
        content=ContentConfig(**(y.get("content") or {})),
        affect=AffectConfig(**(y.get("affect") or {})),
        detector=DetectorConfig(**(y.get("detector") or {})),
        voice=VoiceConfig(**(y.get("voice") or {})),
        server=ServerConfig(**(y.get("server") or {})),
        logging=LoggingConfig(**(y.get("logging") or {})),
    )

def configure_logging(cfg: LoggingConfig) -> None:
    logging.basicConfig(level=cfg.level.upper(), format=cfg.format)
