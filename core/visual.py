
"""Offline emoji annotation for still images and video files.

- emojify_image: detect faces on one BGR image and paint the emojis on it
- emojify_video: read a video, run detection every N frames, write the annotated video

Both reuse the live presenter so slot handling matches the webcam overlay.
"""
from __future__ import annotations
import logging
import os

import cv2
import numpy as np

from core.config import Settings
from core.detector import FaceDetector
from core.presenter import EmojiPresenter
from core.scene import Scene

logger = logging.getLogger(__name__)


def emojify_image(image: np.ndarray,
                  detector: FaceDetector,
                  settings: Settings) -> np.ndarray:
    """Return a copy of `image` with an emoji drawn over every face.

    Coordinates stay in the image's own size; no display resize happens here.
    """
    h, w = image.shape[:2]
    scene = Scene((w, h), font_path=settings.EMOJI_FONT_PATH)
    presenter = EmojiPresenter(scene)
    presenter.update(detector.detect(image))
    return scene.render(image)


def emojify_video(input_path: str,
                  output_path: str,
                  detector: FaceDetector,
                  settings: Settings,
                  analyze_every_n_frames: int = 1) -> str:
    """Annotate a video file with emojis.

    Detection runs on every Nth frame; frames in between reuse the last glyphs.
    Returns the path to the annotated video.
    """
    if not os.path.exists(input_path):
        raise FileNotFoundError(f"Video not found: {input_path}")

    cap = cv2.VideoCapture(input_path)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open video: {input_path}")

    fourcc = cv2.VideoWriter_fourcc(*"MJPG")  # robust across platforms for tests
    fps = cap.get(cv2.CAP_PROP_FPS) or 25.0
    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
    writer = cv2.VideoWriter(output_path, fourcc, fps, (width, height))

    scene = Scene((width, height), font_path=settings.EMOJI_FONT_PATH)
    presenter = EmojiPresenter(scene)

    idx = 0
    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break
            if idx % max(1, analyze_every_n_frames) == 0:
                try:
                    presenter.update(detector.detect(frame))
                except Exception:
                    logger.exception(f"[visual] detection failed at frame={idx}; no emojis")
                    presenter.update([])
            writer.write(scene.render(frame))
            idx += 1
    finally:
        cap.release()
        writer.release()
    logger.debug(f"[visual] wrote {idx} frames -> {output_path}")
    return output_path
