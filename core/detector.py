"""
Face detection with DeepFace (boxes + expressions) and dlib (68 landmarks).

DeepFace and dlib are imported lazily so tests can swap them through sys.modules.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging
import os
import threading

import cv2
import numpy as np

from core.config import Settings
from core.expressions import normalize_label
from core.models import Box, Detection, Point

logger = logging.getLogger(__name__)


class ModelLoadError(RuntimeError):
    """Raised when one of the pretrained models cannot be loaded."""


class ModelLoader:
    """
    Loads the face detector backend, the expression net and the 68-point
    landmark predictor. `start()` runs the load on a background thread and
    flips `ready` when it finishes; a failure is kept in `error`.
    """
    def __init__(self, settings: Settings):
        self.s = settings
        self.error: Optional[BaseException] = None
        self.predictor = None
        self._ready = threading.Event()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    @property
    def failed(self) -> bool:
        return self.error is not None

    # ---- lifecycle ----
    def start(self) -> "ModelLoader":
        if self._thread is not None or self.ready:
            return self
        self._thread = threading.Thread(target=self._load_quietly, daemon=True)
        self._thread.start()
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        self._done.wait(timeout)
        return self.ready

    def load(self) -> None:
        """Load every model synchronously. Raises ModelLoadError on failure."""
        try:
            self._load()
            self._ready.set()
        except ModelLoadError as e:
            self.error = e
            raise
        except Exception as e:
            self.error = ModelLoadError(f"Model loading failed: {e}")
            raise self.error from e
        finally:
            self._done.set()

    def _load_quietly(self) -> None:
        try:
            self.load()
        except ModelLoadError:
            logger.exception("[models] loading failed")

    def _load(self) -> None:
        path = self.s.LANDMARK_MODEL_PATH
        if not os.path.exists(path):
            raise ModelLoadError(f"Landmark model not found: {path}")

        try:
            import dlib
            from deepface import DeepFace
        except Exception as e:
            raise ModelLoadError("DeepFace/dlib import failed. Install deepface and dlib.") from e

        logger.debug(f"[models] loading landmark predictor from {path}")
        self.predictor = dlib.shape_predictor(path)

        # Warm-up calls build and cache the detector backend and the emotion net
        blank = np.zeros((48, 48, 3), dtype=np.uint8)
        logger.debug(f"[models] warming up detector backend={self.s.DETECTOR_BACKEND}")
        DeepFace.extract_faces(
            img_path=blank,
            detector_backend=self.s.DETECTOR_BACKEND,
            enforce_detection=False,
            align=False,
        )
        logger.debug("[models] warming up expression net")
        DeepFace.analyze(
            blank,
            actions=["emotion"],
            enforce_detection=False,
            detector_backend="skip",
        )
        logger.debug("[models] all models ready")


class FaceDetector:
    """Runs one detection pass on a BGR frame."""
    def __init__(self, loader: ModelLoader, settings: Optional[Settings] = None):
        self.loader = loader
        self.s = settings or loader.s

    def detect(self, frame: np.ndarray) -> List[Detection]:
        if not self.loader.ready:
            raise ModelLoadError("Models are not loaded")

        import dlib
        from deepface import DeepFace

        H, W = frame.shape[:2]
        dets = DeepFace.extract_faces(
            img_path=frame,
            detector_backend=self.s.DETECTOR_BACKEND,
            enforce_detection=False,
            align=False,
        ) or []

        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        out: List[Detection] = []
        for d in dets:
            d = d or {}
            fa = d.get("facial_area") or {}
            score = float(d.get("confidence") or 0.0)
            if score < self.s.SCORE_THRESHOLD:
                continue
            x, y = int(fa.get("x", 0)), int(fa.get("y", 0))
            w, h = int(fa.get("w", 0)), int(fa.get("h", 0))
            if w <= 0 or h <= 0:
                continue
            # enforce_detection=False hands back the whole frame when nothing is found
            if w >= W and h >= H:
                continue

            shape = self.loader.predictor(gray, dlib.rectangle(x, y, x + w, y + h))
            landmarks = [Point(x=shape.part(i).x, y=shape.part(i).y) for i in range(shape.num_parts)]

            chip = frame[max(0, y):y + h, max(0, x):x + w]
            expressions = self._expressions(DeepFace, chip if chip.size else frame)

            out.append(Detection(
                box=Box(x=x, y=y, width=w, height=h),
                landmarks=landmarks,
                expressions=expressions,
                score=score,
            ))
        logger.debug(f"[detector] faces={len(out)} raw={len(dets)}")
        return out

    @staticmethod
    def _expressions(DeepFace, chip: np.ndarray) -> Dict[str, float]:
        res = DeepFace.analyze(
            chip,
            actions=["emotion"],
            enforce_detection=False,
            detector_backend="skip",
        )
        res = res if isinstance(res, list) else [res]
        r0 = res[0] if res else {}
        probs = r0.get("emotion") if isinstance(r0.get("emotion"), dict) else {}
        # DeepFace reports percentages
        return {normalize_label(k): float(v) / 100.0 for k, v in probs.items()}


def resize_detections(detections: List[Detection],
                      src_size: Tuple[int, int],
                      dst_size: Tuple[int, int]) -> List[Detection]:
    """Map detections from frame coordinates (w, h) to display coordinates (w, h)."""
    sw, sh = src_size
    dw, dh = dst_size
    if sw <= 0 or sh <= 0:
        raise ValueError(f"invalid source size: {src_size}")
    fx, fy = dw / float(sw), dh / float(sh)
    if fx == 1.0 and fy == 1.0:
        return list(detections)

    resized = []
    for d in detections:
        b = d.box
        resized.append(Detection(
            box=Box(x=b.x * fx, y=b.y * fy, width=b.width * fx, height=b.height * fy),
            landmarks=[Point(x=p.x * fx, y=p.y * fy) for p in d.landmarks],
            expressions=dict(d.expressions),
            score=d.score,
        ))
    return resized
