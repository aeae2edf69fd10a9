"""
Pydantic data models for detections, glyphs and API IO.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional

LANDMARK_COUNT = 68

class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

class Box(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

class Detection(BaseModel):
    """One face in one frame: box, 68 landmarks and expression confidences."""
    model_config = ConfigDict(frozen=True)

    box: Box
    landmarks: List[Point]
    expressions: Dict[str, float] = Field(default_factory=dict)
    score: float = 1.0

    @field_validator("landmarks")
    @classmethod
    def _check_landmarks(cls, v: List[Point]) -> List[Point]:
        if len(v) != LANDMARK_COUNT:
            raise ValueError(f"expected {LANDMARK_COUNT} landmarks, got {len(v)}")
        return v

    @field_validator("expressions")
    @classmethod
    def _check_expressions(cls, v: Dict[str, float]) -> Dict[str, float]:
        return {k: min(1.0, max(0.0, float(p))) for k, p in v.items()}

class EmojiGlyph(BaseModel):
    """Drawable emoji bound to one tracking slot; mutated every frame."""
    character: str = ""
    x: float = 0.0
    y: float = 0.0
    font_size: float = 0.0
    origin_y: float = 0.0
    rotation: float = 0.0  # radians, clockwise from straight up
    visible: bool = True

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False


# api models


class EmojiPlacement(BaseModel):
    expression: Optional[str] = None
    character: Optional[str] = None
    x: float
    y: float
    font_size: float
    rotation: float
    box: Box

class DetectResponse(BaseModel):
    width: int
    height: int
    faces: List[EmojiPlacement] = Field(default_factory=list)
