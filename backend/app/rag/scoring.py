"""Keyword scoring for transcript retrieval (pure functions, no I/O)."""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from backend.app.core.text_utils import normalize_token

if TYPE_CHECKING:
    from backend.app.models.generation import GenerationFilters

# Re-exported: the scorer's token normalization is the shared one.
normalize = normalize_token


def score_by_keywords(text: str | None, keywords: Iterable[str]) -> int:
    """Count keywords that appear as substrings of the normalized text."""
    if not text:
        return 0
    keywords = [k for k in keywords if k]
    if not keywords:
        return 0
    normalized = normalize_token(text)
    return sum(1 for keyword in keywords if keyword in normalized)


def build_keyword_set(seed: str, filters: "GenerationFilters") -> set[str]:
    """Keywords for one request.

    Seed words longer than three characters, every selected fear, motif,
    location and warning tag, and selected cast names unless cast is
    explicitly excluded.
    """
    tokens: set[str] = set()
    for token in normalize_token(seed).split(" "):
        if len(token) > 3:
            tokens.add(token)
    for item in (*filters.fears, *filters.cast_filter(), *filters.motifs, *filters.locations, *filters.warnings):
        token = normalize_token(item)
        if token:
            tokens.add(token)
    return tokens
