"""
REST endpoints for one-shot emoji detection.
"""
from typing import List
import logging

import cv2
import numpy as np
from fastapi import APIRouter, UploadFile, File, HTTPException

from core.config import Settings
from core.detector import FaceDetector, ModelLoader, ModelLoadError
from core.expressions import EXPRESSION_EMOJI, best_expression
from core.models import Detection, DetectResponse, EmojiPlacement
from core.presenter import EmojiPresenter


router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

_loader = ModelLoader(settings)
_detector = FaceDetector(_loader, settings)


def detect_faces(image: np.ndarray) -> List[Detection]:
    """Load the models on first use, then detect."""
    if not _loader.ready:
        if _loader.failed:
            raise _loader.error
        _loader.load()
    return _detector.detect(image)


def to_placements(detections: List[Detection]) -> List[EmojiPlacement]:
    presenter = EmojiPresenter()
    presenter.update(detections)
    out = []
    for det, glyph in zip(detections, presenter.glyphs):
        out.append(EmojiPlacement(
            expression=best_expression(det.expressions) if det.expressions else None,
            character=glyph.character if glyph.visible else None,
            x=glyph.x,
            y=glyph.y,
            font_size=glyph.font_size,
            rotation=glyph.rotation,
            box=det.box,
        ))
    return out


@router.get("/expressions")
def expressions() -> dict:
    """
    The expression -> emoji map used by the overlay.
    """
    return EXPRESSION_EMOJI


@router.post("/detect", response_model=DetectResponse)
async def detect(file: UploadFile = File(...)):
    """
    Detect faces on an uploaded image and return where each emoji goes.

    Args:
        file: Uploaded image (any format OpenCV can decode).

    Returns:
        DetectResponse: image size plus one placement per face, in image coordinates.
    """
    logger.debug(f"[api] /detect filename={file.filename}")
    data = await file.read()
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR) if data else None
    if image is None:
        raise HTTPException(status_code=400, detail="Upload is not a decodable image")

    try:
        detections = detect_faces(image)
    except ModelLoadError as e:
        logger.exception("[api] models unavailable")
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.exception("[api] detection failed")
        raise HTTPException(status_code=500, detail=str(e))

    h, w = image.shape[:2]
    return DetectResponse(width=w, height=h, faces=to_placements(detections))
