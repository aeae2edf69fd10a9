import sys, types
import numpy as np
import pytest

from core.detector import FaceDetector, ModelLoader, ModelLoadError, resize_detections
from core.config import Settings
from conftest import make_detection


def test_load_and_detect(settings, fake_models, blank_frame):
    loader = ModelLoader(settings)
    loader.load()
    assert loader.ready and not loader.failed

    dets = FaceDetector(loader).detect(blank_frame)
    assert len(dets) == 1
    d = dets[0]
    assert (d.box.x, d.box.y, d.box.width, d.box.height) == (10, 10, 30, 30)
    assert len(d.landmarks) == 68
    # DeepFace labels normalised and scaled to [0, 1]
    assert d.expressions["happy"] == pytest.approx(0.9)
    assert {"disgusted", "fearful", "surprised"} <= set(d.expressions)


def test_score_threshold_and_whole_frame_filtered(settings, fake_models, blank_frame):
    fake_models.faces = [
        {"facial_area": {"x": 10, "y": 10, "w": 30, "h": 30}, "confidence": 0.05},
        {"facial_area": {"x": 0, "y": 0, "w": 128, "h": 96}, "confidence": 0.5},
        {"facial_area": {"x": 50, "y": 20, "w": 20, "h": 25}, "confidence": 0.4},
    ]
    loader = ModelLoader(settings)
    loader.load()
    dets = FaceDetector(loader).detect(blank_frame)
    assert [(d.box.x, d.score) for d in dets] == [(50, 0.4)]


def test_no_faces(settings, fake_models, blank_frame):
    fake_models.faces = []
    loader = ModelLoader(settings)
    loader.load()
    assert FaceDetector(loader).detect(blank_frame) == []


def test_detect_before_ready_raises(settings, blank_frame):
    with pytest.raises(ModelLoadError):
        FaceDetector(ModelLoader(settings)).detect(blank_frame)


def test_missing_landmark_model(tmp_path, fake_models):
    loader = ModelLoader(Settings(LANDMARK_MODEL_PATH=str(tmp_path / "nope.dat")))
    with pytest.raises(ModelLoadError):
        loader.load()
    assert loader.failed and not loader.ready


def test_background_load_records_failure(settings, monkeypatch):
    class Broken:
        @staticmethod
        def extract_faces(**kw):
            raise OSError("weights download failed")
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=Broken))
    from conftest import fake_dlib
    monkeypatch.setitem(sys.modules, "dlib", fake_dlib())

    loader = ModelLoader(settings).start()
    assert loader.wait(timeout=5) is False
    assert isinstance(loader.error, ModelLoadError)
    assert "weights download failed" in str(loader.error)


def test_background_load_flips_ready(settings, fake_models):
    loader = ModelLoader(settings).start()
    assert loader.wait(timeout=5) is True
    assert loader.ready


def test_resize_detections_scales_coordinates():
    d = make_detection(x=10, y=20, w=40, h=60, nose=(30, 50), lip=(30, 70))
    (r,) = resize_detections([d], (480, 360), (960, 720))
    assert (r.box.x, r.box.y, r.box.width, r.box.height) == (20, 40, 80, 120)
    assert (r.landmarks[28].x, r.landmarks[28].y) == (60, 100)
    assert r.expressions == d.expressions


def test_resize_identity_and_bad_size():
    d = make_detection()
    assert resize_detections([d], (960, 720), (960, 720)) == [d]
    with pytest.raises(ValueError):
        resize_detections([d], (0, 720), (960, 720))
