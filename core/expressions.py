"""
Expression selection and the expression -> emoji map.
"""
from __future__ import annotations
from typing import Mapping, Optional

# All possible faces
EXPRESSION_EMOJI: dict[str, str] = {
    "angry": "😠",
    "disgusted": "🤢",
    "fearful": "😨",
    "happy": "😀",
    "neutral": "😑",
    "sad": "😭",
    "surprised": "😲",
}

# DeepFace labels -> names used above
_LABEL_ALIASES = {
    "disgust": "disgusted",
    "fear": "fearful",
    "surprise": "surprised",
}


def normalize_label(label: str) -> str:
    key = (label or "").strip().lower()
    return _LABEL_ALIASES.get(key, key)


def best_expression(scores: Mapping[str, float]) -> str:
    """
    Return the expression with the highest score.

    Ties keep the first key seen in iteration order.
    """
    best = None
    for name, score in scores.items():
        if best is None or score > scores[best]:
            best = name
    if best is None:
        raise ValueError("best_expression() needs at least one score")
    return best


def emoji_for(scores: Mapping[str, float]) -> Optional[str]:
    """Emoji for the best-scoring expression, or None if it has no entry."""
    if not scores:
        return None
    return EXPRESSION_EMOJI.get(best_expression(scores))
