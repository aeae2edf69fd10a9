"""
Configuration for the live emoji overlay.
"""
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    DISPLAY_WIDTH: int = int(os.getenv("DISPLAY_WIDTH", "960"))
    DISPLAY_HEIGHT: int = int(os.getenv("DISPLAY_HEIGHT", "720"))
    MIRROR: bool = os.getenv("MIRROR", "1").strip().lower() in ("1", "true", "yes")

    # Lower score reduces emoji disappearance
    SCORE_THRESHOLD: float = float(os.getenv("SCORE_THRESHOLD", "0.1"))
    DETECTOR_BACKEND: str = os.getenv("DETECTOR_BACKEND", "opencv")
    LANDMARK_MODEL_PATH: str = os.getenv(
        "LANDMARK_MODEL_PATH", "models/shape_predictor_68_face_landmarks.dat"
    )

    EMOJI_FONT_PATH: str | None = os.getenv("EMOJI_FONT_PATH") or None
    WINDOW_TITLE: str = os.getenv("WINDOW_TITLE", "FaceMoji")

    def __init__(self, **data):
        super().__init__(**data)
        # Clamp threshold into [0, 1]
        thr = min(1.0, max(0.0, float(self.SCORE_THRESHOLD)))
        object.__setattr__(self, "SCORE_THRESHOLD", thr)

    @property
    def display_size(self) -> tuple[int, int]:
        return self.DISPLAY_WIDTH, self.DISPLAY_HEIGHT
