"""Text normalization utilities."""
from __future__ import annotations

import re

from backend.app.constants import TRUNCATE_ELISION, TRUNCATE_HEAD_RATIO

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_token(value: str) -> str:
    """
    Normalize text for keyword and term matching.

    Lowercases, collapses every run of non-alphanumeric characters to a
    single space, and trims.

    Examples:
        >>> normalize_token("  The Lighthouse-Keeper's LOG!  ")
        'the lighthouse keeper s log'
    """
    if not value:
        return ""
    return _NON_ALNUM_RE.sub(" ", str(value).lower()).strip()


def truncate_middle(text: str, max_chars: int) -> str:
    """Keep ~70% from the head and ~30% from the tail, with an elision marker."""
    if not text or len(text) <= max_chars:
        return text or ""
    head = text[: int(max_chars * TRUNCATE_HEAD_RATIO)]
    tail_len = int(max_chars * (1 - TRUNCATE_HEAD_RATIO))
    tail = text[-tail_len:] if tail_len > 0 else ""
    return f"{head}{TRUNCATE_ELISION}{tail}"
