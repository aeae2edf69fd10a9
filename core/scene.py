"""Render surface for the live window.

- Scene: holds drawables, fires draw callbacks each tick, composites onto the frame
- LoadingIndicator: spinning arc shown while models load
- Banner: static text line (errors, status)
- draw_glyph: rasterise an emoji with Pillow, rotate it and alpha-blend it
"""
from __future__ import annotations
from functools import lru_cache
from typing import Callable, List, Optional, Tuple
import logging
import math

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from core.models import EmojiGlyph

logger = logging.getLogger(__name__)

EMOJI_FONT_PATHS = [
    r"C:\Windows\Fonts\seguiemj.ttf",
    "/System/Library/Fonts/Apple Color Emoji.ttc",
    "/usr/share/fonts/truetype/noto/NotoColorEmoji.ttf",
    "/usr/share/fonts/noto/NotoColorEmoji.ttf",
    "/usr/share/fonts/truetype/joypixels/JoyPixels.ttf",
]

# Noto Color Emoji is a bitmap font that only loads at this size
EMOJI_RENDER_SIZE = 109


@lru_cache(maxsize=4)
def load_emoji_font(path: Optional[str] = None) -> ImageFont.ImageFont:
    candidates = ([path] if path else []) + EMOJI_FONT_PATHS
    for p in candidates:
        try:
            return ImageFont.truetype(p, EMOJI_RENDER_SIZE)
        except OSError:
            continue
    logger.warning("[scene] no emoji font found; falling back to Pillow default font")
    return ImageFont.load_default(size=EMOJI_RENDER_SIZE)


@lru_cache(maxsize=32)
def _rasterise(character: str, font_path: Optional[str]) -> Image.Image:
    """Render one character at EMOJI_RENDER_SIZE into a tight RGBA image."""
    font = load_emoji_font(font_path)
    probe = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    l, t, r, b = probe.textbbox((0, 0), character, font=font, embedded_color=True)
    w, h = max(1, r - l), max(1, b - t)
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    ImageDraw.Draw(img).text((-l, -t), character, font=font, fill=(255, 255, 255, 255), embedded_color=True)
    return img


def overlay_rgba(bg_bgr: np.ndarray, fg_rgba: np.ndarray, x: int, y: int) -> np.ndarray:
    """Alpha-blend an RGBA patch onto a BGR frame at (x, y), clipped to the frame."""
    H, W = bg_bgr.shape[:2]
    h, w = fg_rgba.shape[:2]
    x1, y1 = max(x, 0), max(y, 0)
    x2, y2 = min(x + w, W), min(y + h, H)
    if x1 >= x2 or y1 >= y2:
        return bg_bgr

    fg_crop = fg_rgba[y1 - y:y2 - y, x1 - x:x2 - x]
    alpha = fg_crop[:, :, 3:4].astype(np.float32) / 255.0
    fg_bgr = fg_crop[:, :, 2::-1].astype(np.float32)
    roi = bg_bgr[y1:y2, x1:x2].astype(np.float32)
    bg_bgr[y1:y2, x1:x2] = (fg_bgr * alpha + roi * (1.0 - alpha)).astype(np.uint8)
    return bg_bgr


def draw_glyph(frame: np.ndarray, glyph: EmojiGlyph, font_path: Optional[str] = None) -> np.ndarray:
    """
    Draw a glyph centred horizontally on (x, y) with its top at y + origin_y,
    rotated about the anchor point by glyph.rotation (clockwise).
    """
    size = int(round(glyph.font_size))
    if not glyph.visible or not glyph.character or size <= 0:
        return frame

    base = _rasterise(glyph.character, font_path)
    scale = size / float(EMOJI_RENDER_SIZE)
    gw, gh = max(1, int(base.width * scale)), max(1, int(base.height * scale))
    img = base.resize((gw, gh), Image.LANCZOS)

    # Pad so the anchor sits at the canvas centre, then rotate about it
    top = glyph.origin_y
    half = int(math.ceil(max(gw / 2.0, abs(top), abs(top + gh))))
    canvas = Image.new("RGBA", (2 * half, 2 * half), (0, 0, 0, 0))
    canvas.alpha_composite(img, dest=(half - gw // 2, int(half + top)))
    if glyph.rotation:
        canvas = canvas.rotate(-math.degrees(glyph.rotation), resample=Image.BICUBIC)

    return overlay_rgba(frame, np.asarray(canvas), int(glyph.x) - half, int(glyph.y) - half)


class LoadingIndicator:
    """Rotating arc whose sweep grows each tick."""
    def __init__(self, radius: int = 40, speed: float = 8.0, growth: float = 3.0):
        self.radius = radius
        self.speed = speed
        self.growth = growth
        self.rotation = 0.0
        self.sweep = 10.0
        self.visible = True

    def step(self) -> None:
        self.rotation = (self.rotation + self.speed) % 360.0
        self.sweep = self.sweep + self.growth if self.sweep < 350.0 else 10.0

    def hide(self) -> None:
        self.visible = False

    def draw(self, frame: np.ndarray) -> np.ndarray:
        if not self.visible:
            return frame
        h, w = frame.shape[:2]
        cv2.ellipse(frame, (w // 2, h // 2), (self.radius, self.radius), self.rotation,
                    0, self.sweep, (255, 255, 255), 4, cv2.LINE_AA)
        return frame


class Banner:
    """One line of text drawn at the top-left corner."""
    def __init__(self, text: str = "", color: Tuple[int, int, int] = (0, 0, 255)):
        self.text = text
        self.color = color
        self.visible = bool(text)

    def draw(self, frame: np.ndarray) -> np.ndarray:
        if self.visible and self.text:
            cv2.putText(frame, self.text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, self.color, 2, cv2.LINE_AA)
        return frame


class Scene:
    """
    Drawable container plus the window loop.

    Each tick: read a frame, fire draw callbacks with the camera frame,
    resize it to the display size, composite every drawable, show the window.
    """
    def __init__(self, size: Tuple[int, int], title: str = "FaceMoji",
                 font_path: Optional[str] = None):
        self.size = size
        self.title = title
        self.font_path = font_path
        self.drawables: List[object] = []
        self._draw_callbacks: List[Callable[[np.ndarray], None]] = []

    def add(self, drawable) -> "Scene":
        # identity, not equality: fresh glyphs compare equal by value
        if not any(d is drawable for d in self.drawables):
            self.drawables.append(drawable)
        return self

    def remove(self, drawable) -> "Scene":
        self.drawables = [d for d in self.drawables if d is not drawable]
        return self

    def on_draw(self, callback: Callable[[np.ndarray], None]) -> "Scene":
        self._draw_callbacks.append(callback)
        return self

    def render(self, frame: np.ndarray) -> np.ndarray:
        out = frame.copy()
        for d in self.drawables:
            if isinstance(d, EmojiGlyph):
                draw_glyph(out, d, self.font_path)
            else:
                d.draw(out)
        return out

    def tick(self, frame: np.ndarray) -> np.ndarray:
        for cb in self._draw_callbacks:
            cb(frame)
        if frame.shape[1] != self.size[0] or frame.shape[0] != self.size[1]:
            frame = cv2.resize(frame, self.size, interpolation=cv2.INTER_AREA)
        return self.render(frame)

    def start_loop(self, source) -> None:
        """Run until `source.read()` returns None or 'q' is pressed."""
        logger.debug(f"[scene] loop start size={self.size}")
        try:
            while True:
                frame = source.read()
                if frame is None:
                    break
                cv2.imshow(self.title, self.tick(frame))
                if (cv2.waitKey(1) & 0xFF) == ord("q"):
                    break
        finally:
            cv2.destroyAllWindows()
        logger.debug("[scene] loop stopped")
