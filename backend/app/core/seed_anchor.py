"""Seed anchors: salient seed/notes keywords that generated text must keep."""
from __future__ import annotations

from backend.app.constants import ANCHOR_STOPWORDS, SEED_ANCHOR_LIMIT, SEED_ANCHOR_MIN_LEN
from backend.app.core.text_utils import normalize_token


def extract_seed_anchors(seed: str, notes: str | None = None, limit: int = SEED_ANCHOR_LIMIT) -> list[str]:
    """
    Up to ``limit`` normalized keywords from seed + notes.

    Words shorter than four characters and stopwords are skipped; order is
    first occurrence.

    Examples:
        >>> extract_seed_anchors("A subway tunnel folds into itself")
        ['subway', 'tunnel', 'folds']
    """
    anchors: list[str] = []
    seen: set[str] = set()
    for word in normalize_token(f"{seed or ''} {notes or ''}").split(" "):
        if len(word) < SEED_ANCHOR_MIN_LEN or word in ANCHOR_STOPWORDS or word in seen:
            continue
        seen.add(word)
        anchors.append(word)
        if len(anchors) >= limit:
            break
    return anchors


def required_anchor_matches(anchor_count: int) -> int:
    """1 below four anchors, 2 for four to seven, 3 for eight or more."""
    if anchor_count >= 8:
        return 3
    if anchor_count >= 4:
        return 2
    return 1


def count_anchor_hits(text: str, anchors: list[str]) -> int:
    normalized = normalize_token(text)
    return sum(1 for anchor in anchors if anchor and anchor in normalized)


def is_anchored(text: str, anchors: list[str]) -> bool:
    """True when text covers enough anchors; no anchors means nothing to check."""
    if not anchors:
        return True
    return count_anchor_hits(text, anchors) >= required_anchor_matches(len(anchors))
