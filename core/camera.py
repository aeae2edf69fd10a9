"""
Webcam frame source (OpenCV).
"""
from __future__ import annotations
from typing import Optional
import logging

import cv2
import numpy as np

from core.config import Settings

logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Camera missing, busy or access denied."""


class Camera:
    """Thin wrapper around cv2.VideoCapture that mirrors frames if asked."""
    def __init__(self, cap, mirror: bool = False):
        self._cap = cap
        self.mirror = mirror

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        if self.mirror:
            frame = cv2.flip(frame, 1)
        return frame

    def release(self) -> None:
        self._cap.release()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()


def open_camera(settings: Settings, camera_index: Optional[int] = None) -> Camera:
    """
    Open the webcam.

    Raises:
        CameraError: the device could not be opened.
    """
    cam_idx = settings.CAMERA_INDEX if camera_index is None else camera_index
    logger.debug(f"[camera] opening index={cam_idx}")
    cap = cv2.VideoCapture(cam_idx)
    if not cap.isOpened():
        cap.release()
        raise CameraError(f"Could not open camera index {cam_idx}")
    return Camera(cap, mirror=settings.MIRROR)
