"""
Emoji presenter: one glyph per tracking slot, updated from each frame's detections.

Slot identity is the detection's index in the result list. There is no
re-identification, so two faces that swap order between frames swap glyphs too.
"""
from __future__ import annotations
from typing import List, Optional, Sequence
import logging
import math

from core.expressions import emoji_for
from core.models import Detection, EmojiGlyph, Point

logger = logging.getLogger(__name__)

# 68-point scheme: second nose-bridge point and the upper lip centre
NOSE_ANCHOR_INDEX = 28
LIP_ANCHOR_INDEX = 51


def tilt_angle(nose: Point, lip: Point) -> float:
    """
    Angle (radians) of the lip -> nose vector, measured clockwise from
    straight up in screen coordinates. An upright face gives 0.
    """
    dx = nose.x - lip.x
    dy = nose.y - lip.y
    return math.atan2(dx, -dy)


class TrackingSlot:
    """Positional stand-in for a face identity; owns one glyph."""
    def __init__(self, index: int, glyph: EmojiGlyph):
        self.index = index
        self.glyph = glyph

    def apply(self, detection: Detection) -> None:
        g = self.glyph
        character = emoji_for(detection.expressions)
        if character is None:
            logger.warning(
                f"[presenter] slot={self.index} no emoji for expressions={detection.expressions}; hiding"
            )
            g.hide()
            return

        g.show()
        g.character = character

        g.font_size = float(max(detection.box.width, detection.box.height))
        g.origin_y = -g.font_size / 2.0

        nose = detection.landmarks[NOSE_ANCHOR_INDEX]
        lip = detection.landmarks[LIP_ANCHOR_INDEX]
        g.x, g.y = nose.x, nose.y
        g.rotation = tilt_angle(nose, lip)


class EmojiPresenter:
    """
    Keeps the glyph pool in sync with the latest detections.

    Glyphs are created lazily the first time a slot is occupied, added to
    the scene once, and afterwards only shown or hidden.
    """
    def __init__(self, scene=None):
        self.scene = scene
        self.slots: List[TrackingSlot] = []

    @property
    def glyphs(self) -> List[EmojiGlyph]:
        return [s.glyph for s in self.slots]

    def visible_glyphs(self) -> List[EmojiGlyph]:
        return [g for g in self.glyphs if g.visible]

    def _slot(self, index: int) -> TrackingSlot:
        while len(self.slots) <= index:
            glyph = EmojiGlyph()
            self.slots.append(TrackingSlot(len(self.slots), glyph))
            if self.scene is not None:
                self.scene.add(glyph)
            logger.debug(f"[presenter] new slot={len(self.slots) - 1}")
        return self.slots[index]

    def update(self, detections: Optional[Sequence[Detection]]) -> None:
        detections = list(detections or [])
        for slot in self.slots[len(detections):]:
            slot.glyph.hide()
        for i, det in enumerate(detections):
            self._slot(i).apply(det)
