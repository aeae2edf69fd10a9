# core/live.py
"""
Live (real-time) emoji overlay.

Reads webcam frames in the window loop and, per tick:
- shows a loading spinner until the models are ready (or an error banner if they fail)
- hands the frame to a background detection worker when it is idle
- applies the latest finished detection to the emoji presenter

At most one detection runs at a time; ticks that arrive while it is busy skip
submitting a frame.
"""

from __future__ import annotations

import threading
import logging
from typing import Optional, List

import cv2
import numpy as np

from core.config import Settings
from core.camera import CameraError, open_camera
from core.detector import FaceDetector, ModelLoader, resize_detections
from core.models import Detection
from core.presenter import EmojiPresenter
from core.scene import Banner, LoadingIndicator, Scene

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# DetectionWorker: one in-flight detection at a time on a background thread
# -----------------------------------------------------------------------------
class DetectionWorker:
    """Runs FaceDetector.detect off the render thread and keeps the last result."""
    def __init__(self, detector: FaceDetector, display_size: tuple[int, int]):
        self.detector = detector
        self.display_size = display_size
        self._lock = threading.Lock()
        self._busy = False
        self._pending: Optional[List[Detection]] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def submit(self, frame: np.ndarray) -> bool:
        """Start a detection on `frame`. Returns False if one is already running."""
        with self._lock:
            if self._busy:
                return False
            self._busy = True
        self._thread = threading.Thread(target=self._run, args=(frame.copy(),), daemon=True)
        self._thread.start()
        return True

    def poll(self) -> Optional[List[Detection]]:
        """Take the finished result, if any. None means nothing new."""
        with self._lock:
            out, self._pending = self._pending, None
            return out

    def wait(self, timeout: Optional[float] = None) -> None:
        t = self._thread
        if t is not None:
            t.join(timeout)

    def _run(self, frame: np.ndarray) -> None:
        H, W = frame.shape[:2]
        try:
            dets = self.detector.detect(frame)
            dets = resize_detections(dets, (W, H), self.display_size)
        except Exception:
            # Broken frame/detector output -> nothing to draw this round
            logger.exception("[live] detection failed; treating as zero faces")
            dets = []
        with self._lock:
            self._pending = dets
            self._busy = False


# -----------------------------------------------------------------------------
# FrameCallback: per-tick procedure registered on the scene's draw event
# -----------------------------------------------------------------------------
class FrameCallback:
    """
    Per-tick state: model readiness, the loading spinner, the detection
    worker and the presenter. Everything here runs on the render thread.
    """
    def __init__(self,
                 loader: ModelLoader,
                 worker: DetectionWorker,
                 presenter: EmojiPresenter,
                 spinner: Optional[LoadingIndicator] = None,
                 banner: Optional[Banner] = None):
        self.loader = loader
        self.worker = worker
        self.presenter = presenter
        self.spinner = spinner
        self.banner = banner
        self.ticks = 0
        self.skipped = 0

    def __call__(self, frame: np.ndarray) -> None:
        self.ticks += 1

        if not self.loader.ready:
            if self.loader.failed:
                if self.spinner is not None:
                    self.spinner.hide()
                if self.banner is not None and not self.banner.visible:
                    self.banner.text = f"Model loading failed: {self.loader.error}"
                    self.banner.visible = True
            elif self.spinner is not None:
                self.spinner.step()
            return

        if self.spinner is not None and self.spinner.visible:
            logger.debug(f"[live] models ready after {self.ticks} ticks")
            self.spinner.hide()

        results = self.worker.poll()
        if results is not None:
            self.presenter.update(results)

        if not self.worker.submit(frame):
            self.skipped += 1


def build_live_scene(settings: Settings, loader: ModelLoader) -> tuple[Scene, FrameCallback]:
    """Wire scene, spinner, banner, presenter and worker together."""
    scene = Scene(settings.display_size, title=settings.WINDOW_TITLE, font_path=settings.EMOJI_FONT_PATH)
    spinner = LoadingIndicator()
    banner = Banner()
    scene.add(spinner).add(banner)

    presenter = EmojiPresenter(scene)
    worker = DetectionWorker(FaceDetector(loader, settings), settings.display_size)
    callback = FrameCallback(loader, worker, presenter, spinner=spinner, banner=banner)
    scene.on_draw(callback)
    return scene, callback


# -----------------------------------------------------------------------------
# Fallback screen when the camera cannot be opened
# -----------------------------------------------------------------------------
def _show_fallback(settings: Settings, message: str) -> None:
    w, h = settings.display_size
    frame = np.zeros((h, w, 3), dtype=np.uint8)
    Banner(message).draw(frame)
    cv2.putText(frame, "Press q to quit", (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                (200, 200, 200), 1, cv2.LINE_AA)
    while True:
        cv2.imshow(settings.WINDOW_TITLE, frame)
        if (cv2.waitKey(50) & 0xFF) == ord("q"):
            break
    cv2.destroyAllWindows()


def run_live_overlay(settings: Settings, camera_index: Optional[int] = None,
                     loader: Optional[ModelLoader] = None) -> bool:
    """
    Open the webcam and overlay emojis on every detected face until 'q'.

    Returns False if the camera could not be opened (a fallback window with
    the error is shown instead), True once the live loop ends.
    """
    loader = loader or ModelLoader(settings)
    loader.start()

    try:
        camera = open_camera(settings, camera_index)
    except CameraError as e:
        logger.error(f"[live] camera unavailable: {e}")
        _show_fallback(settings, str(e))
        return False

    scene, callback = build_live_scene(settings, loader)
    with camera:
        scene.start_loop(camera)
    logger.debug(f"[live] done ticks={callback.ticks} skipped={callback.skipped}")
    return True
