import logging
import pickle
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import cv2
import numpy as np
import torch
import torch.nn as nn
import torchvision.models as models

from emotutor.errors import SetupFailure

logger = logging.getLogger(__name__)

# Output order of the expression head.
EXPRESSION_LABELS = ["neutral", "happy", "sad", "angry", "fearful", "disgusted", "surprised"]

_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)


class ExpressionNet(nn.Module):
    """
    Face crop → expression logits + age estimate.

    ResNet18 backbone with the final FC removed (B, 512), followed by a
    linear expression head (B, 7) and a scalar age head (B,).
    """
    def __init__(self, backbone: str = "resnet18", num_expressions: int = len(EXPRESSION_LABELS)):
        super().__init__()
        if backbone == "resnet18":
            base = models.resnet18(weights=None)
            self.feat_dim = base.fc.in_features
            base.fc = nn.Identity()
            self.backbone = base
        else:
            raise ValueError(f"Unsupported vision backbone: {backbone}")
        self.expression_head = nn.Linear(self.feat_dim, num_expressions)
        self.age_head = nn.Linear(self.feat_dim, 1)

    def forward(self, x: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        feats = self.backbone(x)                       # (B, feat_dim)
        return self.expression_head(feats), self.age_head(feats).squeeze(-1)


@dataclass
class Detection:
    """Result of one inference pass on the largest face in a frame."""
    scores: Dict[str, float]
    box: Tuple[int, int, int, int]  # (left, top, width, height)
    age: Optional[float] = None


class ExpressionDetector:
    """
    Haar-cascade face detection + ExpressionNet inference.

    Weights come from ``weights_url`` (downloaded and cached by torch.hub)
    or from a local ``weights_path`` checkpoint.
    """

    def __init__(
        self,
        weights_url: Optional[str] = None,
        weights_path: Optional[str] = None,
        face_size: int = 112,
        device: str = "cpu",
    ):
        self.weights_url = weights_url
        self.weights_path = weights_path
        self.face_size = face_size
        self.device = torch.device(device if device == "cpu" or torch.cuda.is_available() else "cpu")
        self.model: Optional[ExpressionNet] = None
        self.cascade: Optional[cv2.CascadeClassifier] = None

    @property
    def loaded(self) -> bool:
        return self.model is not None and self.cascade is not None

    def load_models(self) -> None:
        if self.loaded:
            return
        if not (self.weights_url or self.weights_path):
            raise SetupFailure("Error loading models: no expression weights configured.")

        cascade = cv2.CascadeClassifier(cv2.data.haarcascades + "haarcascade_frontalface_default.xml")
        if cascade.empty():
            raise SetupFailure("Error loading models: face detector unavailable.")

        try:
            if self.weights_url:
                state = torch.hub.load_state_dict_from_url(self.weights_url, map_location="cpu", progress=False)
            else:
                state = torch.load(self.weights_path, map_location="cpu")
            model = ExpressionNet()
            model.load_state_dict(state)
        except (OSError, RuntimeError, ValueError, TypeError, KeyError, AttributeError,
                pickle.UnpicklingError) as exc:
            logger.warning("Expression weights failed to load: %s", exc)
            raise SetupFailure("Error loading models.") from exc

        self.model = model.to(self.device).eval()
        self.cascade = cascade
        logger.info("Expression models loaded from %s", self.weights_url or self.weights_path)

    def _preprocess(self, face_bgr: np.ndarray) -> torch.Tensor:
        crop = cv2.resize(face_bgr, (self.face_size, self.face_size), interpolation=cv2.INTER_AREA)
        rgb = crop[:, :, ::-1].astype(np.float32) / 255.0  # BGR -> RGB
        rgb = (rgb - _MEAN) / _STD
        return torch.from_numpy(rgb.transpose(2, 0, 1).copy()).unsqueeze(0)  # (1, 3, H, W)

    @torch.no_grad()
    def detect(self, frame_bgr: np.ndarray) -> Optional[Detection]:
        """
        Run one pass over a BGR frame. Returns None when no face is found.
        """
        if not self.loaded:
            raise RuntimeError("load_models() must be called before detect()")

        gray = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2GRAY)
        faces = self.cascade.detectMultiScale(gray, scaleFactor=1.1, minNeighbors=5)
        if len(faces) == 0:
            return None

        x, y, w, h = max(faces, key=lambda f: f[2] * f[3])
        x, y, w, h = int(x), int(y), int(w), int(h)
        inp = self._preprocess(frame_bgr[y:y + h, x:x + w]).to(self.device)

        logits, age = self.model(inp)
        probs = torch.softmax(logits, dim=-1).squeeze(0).cpu().tolist()
        return Detection(
            scores=dict(zip(EXPRESSION_LABELS, probs)),
            box=(x, y, w, h),
            age=float(age.item()),
        )
