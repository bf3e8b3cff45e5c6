"""Forbidden-term sets and leak detection for generated text (no LLM, no DB)."""
from __future__ import annotations

from typing import Iterable

from backend.app.constants import (
    CANON_CAST_NAMES,
    CANON_NON_CAST_TERMS,
    FORBIDDEN_MATCH_LIMIT,
    FORBIDDEN_TERM_MIN_NORMALIZED_LEN,
)
from backend.app.core.canon_policy import CanonDecision
from backend.app.core.text_utils import normalize_token


def _dedupe(terms: Iterable[str]) -> list[str]:
    """Dedupe by normalized form, keeping the first spelling seen."""
    seen: set[str] = set()
    out: list[str] = []
    for term in terms:
        text = str(term or "").strip()
        key = normalize_token(text)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(text)
    return out


def resolve_forbidden_terms(
    context_terms: Iterable[str],
    decision: CanonDecision,
    *,
    seed: str = "",
    notes: str | None = None,
) -> list[str]:
    """Effective forbidden set for one request.

    - canon carryover: nothing is forbidden (continuations may reuse canon).
    - cast carryover: context terms + canon tables, minus permitted cast names.
    - neither: context terms + all canon cast names + all non-cast canon terms.
    Context-derived terms the caller wrote into the seed or notes are not
    forbidden; the canon tables always apply.
    """
    if decision.canon_carryover:
        return []
    canon_keys = {normalize_token(t) for t in (*CANON_CAST_NAMES, *CANON_NON_CAST_TERMS)}
    combined = _dedupe([*context_terms, *CANON_CAST_NAMES, *CANON_NON_CAST_TERMS])
    permitted = {normalize_token(t) for t in decision.allowed_terms}
    requested = " " + normalize_token(f"{seed} {notes or ''}") + " "
    out: list[str] = []
    for term in combined:
        key = normalize_token(term)
        if key in permitted:
            continue
        if (
            key not in canon_keys
            and len(key) >= FORBIDDEN_TERM_MIN_NORMALIZED_LEN
            and f" {key} " in requested
        ):
            continue
        out.append(term)
    return out


def find_forbidden_matches(
    text: str,
    terms: Iterable[str],
    limit: int = FORBIDDEN_MATCH_LIMIT,
) -> list[str]:
    """Return forbidden terms present in text (case/punctuation-insensitive substring match).

    Terms shorter than three normalized characters are ignored; scanning
    stops once ``limit`` matches are collected.
    """
    normalized = normalize_token(text)
    if not normalized:
        return []
    matches: list[str] = []
    seen: set[str] = set()
    for term in terms:
        key = normalize_token(term)
        if len(key) < FORBIDDEN_TERM_MIN_NORMALIZED_LEN or key in seen:
            continue
        seen.add(key)
        if key in normalized:
            matches.append(str(term).strip())
            if len(matches) >= limit:
                break
    return matches
