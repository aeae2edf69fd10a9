
import pytest
from pydantic import ValidationError
from core.models import Box, Point, Detection, EmojiGlyph, EmojiPlacement, DetectResponse

def test_models():
    d = Detection(box=Box(x=0, y=0, width=10, height=12),
                  landmarks=[Point(x=1, y=2)] * 68,
                  expressions={"happy": 0.7, "sad": 0.3})
    assert d.box.height == 12
    resp = DetectResponse(width=100, height=80, faces=[
        EmojiPlacement(expression="happy", character="😀", x=1, y=2, font_size=12, rotation=0.0, box=d.box)
    ])
    assert resp.faces[0].character == "😀"

def test_detection_requires_68_landmarks():
    with pytest.raises(ValidationError):
        Detection(box=Box(x=0, y=0, width=1, height=1), landmarks=[Point(x=0, y=0)] * 5)

def test_expression_scores_are_clamped():
    d = Detection(box=Box(x=0, y=0, width=1, height=1),
                  landmarks=[Point(x=0, y=0)] * 68,
                  expressions={"happy": 1.2, "sad": -0.1})
    assert d.expressions == {"happy": 1.0, "sad": 0.0}

def test_glyph_show_hide():
    g = EmojiGlyph(character="😀")
    g.hide()
    assert not g.visible
    g.show()
    assert g.visible
