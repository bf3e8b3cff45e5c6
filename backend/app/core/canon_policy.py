"""Canon policy: whether canon entities and/or cast names may appear in generated text.

Two independent grants:
- canon carryover (institutions, entities, artifacts, archival phrases):
  only the explicit allow-canon flag or a continuation request grants it.
- cast carryover (established cast names): the include-cast flag or any
  selected cast member grants it.
Selecting cast never grants canon carryover.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

from backend.app.constants import CANON_CAST_NAMES

if TYPE_CHECKING:
    from backend.app.models.generation import GenerationFilters

_TRUTHY = ("true", "yes", "1", "on")
_FALSEY = ("false", "no", "0", "off")

CONTINUATION_PATTERN = re.compile(
    r"(continue|continuation|sequel|follow[- ]?up|same story|same episode|pick up where)",
    re.I,
)


def parse_optional_boolean(value: Any) -> bool | None:
    """Parse a boolean or booleanish string; anything unrecognized is None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUTHY:
            return True
        if normalized in _FALSEY:
            return False
    return None


def is_continuation_request(seed: str, notes: str | None = None) -> bool:
    return bool(CONTINUATION_PATTERN.search(f"{seed or ''}\n{notes or ''}"))


def allows_canon_carryover(seed: str, notes: str | None = None, allow_canon: Any = False) -> bool:
    if parse_optional_boolean(allow_canon):
        return True
    return is_continuation_request(seed, notes)


def allows_cast_carryover(
    seed: str = "",
    notes: str | None = None,
    include_cast: Any = None,
    selected_cast: Iterable[str] | None = None,
) -> bool:
    if parse_optional_boolean(include_cast) is True:
        return True
    return any(str(name).strip() for name in (selected_cast or []))


def resolve_allowed_cast_terms(selected_cast: Iterable[str] | None = None) -> set[str]:
    """Cast names the output may use.

    No selection means general cast availability (the whole canonical cast).
    Otherwise canonical names that fuzzy-match a selected name, plus the
    selected names verbatim.
    """
    selected = [str(name).strip() for name in (selected_cast or []) if str(name).strip()]
    if not selected:
        return set(CANON_CAST_NAMES)
    allowed: set[str] = set(selected)
    lowered = [name.lower() for name in selected]
    for canonical in CANON_CAST_NAMES:
        canon_lower = canonical.lower()
        if any(sel in canon_lower or canon_lower in sel for sel in lowered):
            allowed.add(canonical)
    return allowed


@dataclass(frozen=True)
class CanonDecision:
    """Per-request canon policy outcome."""

    canon_carryover: bool
    cast_carryover: bool
    cast_excluded: bool
    allowed_terms: frozenset[str] = field(default_factory=frozenset)

    @property
    def tier(self) -> str:
        if self.canon_carryover:
            return "canon"
        if self.cast_carryover:
            return "cast"
        return "none"


def decide_canon_policy(seed: str, notes: str | None, filters: "GenerationFilters") -> CanonDecision:
    canon = allows_canon_carryover(seed, notes, filters.allow_canon)
    cast_excluded = filters.include_cast is False
    cast = (not cast_excluded) and allows_cast_carryover(seed, notes, filters.include_cast, filters.cast)
    allowed: set[str] = set()
    if cast:
        allowed = resolve_allowed_cast_terms(filters.cast)
    return CanonDecision(
        canon_carryover=canon,
        cast_carryover=cast,
        cast_excluded=cast_excluded,
        allowed_terms=frozenset(allowed),
    )
