import sys, types
import numpy as np
import pytest
from PIL import Image

from core.config import Settings
from core.models import Box, Detection, Point


# ---- fake model stacks (DeepFace + dlib) ----

class FakeRect:
    def __init__(self, l, t, r, b):
        self.l, self.t, self.r, self.b = l, t, r, b

class FakeShape:
    """Every landmark at the box centre except the upper lip, a quarter box lower."""
    num_parts = 68
    def __init__(self, rect):
        self.rect = rect
    def part(self, i):
        r = self.rect
        cx, cy = (r.l + r.r) // 2, (r.t + r.b) // 2
        if i == 51:
            cy += (r.b - r.t) // 4
        return types.SimpleNamespace(x=cx, y=cy)

def fake_dlib():
    def shape_predictor(path):
        return lambda img, rect: FakeShape(rect)
    return types.SimpleNamespace(shape_predictor=shape_predictor, rectangle=FakeRect)

class FakeDeepFace:
    faces = [{"facial_area": {"x": 10, "y": 10, "w": 30, "h": 30}, "confidence": 0.9}]
    emotion = {"angry": 1.0, "disgust": 1.0, "fear": 1.0, "happy": 90.0,
               "sad": 3.0, "surprise": 2.0, "neutral": 2.0}
    analyze_calls = 0

    @classmethod
    def extract_faces(cls, img_path=None, detector_backend=None, enforce_detection=None, align=None):
        return list(cls.faces)

    @classmethod
    def analyze(cls, img, actions=None, enforce_detection=None, detector_backend=None, align=None):
        cls.analyze_calls += 1
        return [{"emotion": dict(cls.emotion), "dominant_emotion": "happy"}]


@pytest.fixture
def settings(tmp_path):
    model = tmp_path / "shape_predictor_68_face_landmarks.dat"
    model.write_bytes(b"fake")
    return Settings(LANDMARK_MODEL_PATH=str(model), DISPLAY_WIDTH=128, DISPLAY_HEIGHT=96)

@pytest.fixture
def fake_models(monkeypatch):
    class DF(FakeDeepFace):
        faces = list(FakeDeepFace.faces)
        emotion = dict(FakeDeepFace.emotion)
        analyze_calls = 0
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=DF))
    monkeypatch.setitem(sys.modules, "dlib", fake_dlib())
    return DF

@pytest.fixture
def solid_glyph(monkeypatch):
    """Replace emoji rasterisation with a solid red square (fonts vary per machine)."""
    import core.scene as scene
    img = Image.new("RGBA", (scene.EMOJI_RENDER_SIZE, scene.EMOJI_RENDER_SIZE), (255, 0, 0, 255))
    monkeypatch.setattr(scene, "_rasterise", lambda character, font_path=None: img)
    return img


# ---- detection builders ----

def make_detection(x=0.0, y=0.0, w=40.0, h=60.0, nose=(20.0, 30.0), lip=(20.0, 45.0),
                   expressions=None):
    pts = [Point(x=x + w / 2, y=y + h / 2) for _ in range(68)]
    pts[28] = Point(x=nose[0], y=nose[1])
    pts[51] = Point(x=lip[0], y=lip[1])
    return Detection(
        box=Box(x=x, y=y, width=w, height=h),
        landmarks=pts,
        expressions=expressions if expressions is not None else {"happy": 0.9, "sad": 0.05, "neutral": 0.05},
    )

@pytest.fixture
def detection_factory():
    return make_detection

@pytest.fixture
def blank_frame():
    return np.zeros((96, 128, 3), dtype=np.uint8)
