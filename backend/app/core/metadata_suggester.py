"""Model-suggested transcript metadata (summary, fears, cast, motifs, locations)."""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from backend.app.constants import FEAR_CANONICAL, METADATA_MAX_FEARS, METADATA_TRANSCRIPT_MAX_CHARS
from backend.app.core.errors import UnparseableResponse
from backend.app.core.json_repair import parse_json_object
from backend.app.core.model_adapter import ModelAdapter, default_adapter
from backend.app.core.text_utils import truncate_middle
from backend.app.models.generation import MetadataSuggestion

logger = logging.getLogger(__name__)

_THE_PREFIX_RE = re.compile(r"^the\s+")
_NON_ALPHA_RE = re.compile(r"[^a-z]+")
_SUMMARY_OPENERS = (
    re.compile(r"^(A|An)\s+(researcher|archivist).*?investigates\s+", re.I),
    re.compile(r"^The Magnus Institute investigates\s+", re.I),
)


def _fear_key(value: str) -> str:
    return _NON_ALPHA_RE.sub(" ", _THE_PREFIX_RE.sub("", value.lower())).strip()


# "the buried" and "buried" both resolve to "The Buried"
FEAR_LOOKUP: dict[str, str] = {}
for _fear in FEAR_CANONICAL:
    FEAR_LOOKUP[_fear.lower()] = _fear
    FEAR_LOOKUP[_fear_key(_fear)] = _fear


def normalize_fears(values: Iterable[Any] | None, limit: int = METADATA_MAX_FEARS) -> list[str]:
    """Map free-form fear names to canonical ones; unknowns dropped, max ``limit``."""
    result: list[str] = []
    for value in values or []:
        canonical = FEAR_LOOKUP.get(_fear_key(str(value)))
        if canonical and canonical not in result:
            result.append(canonical)
            if len(result) >= limit:
                break
    return result


def clean_summary(summary: Any) -> str:
    """Strip boilerplate openers ("A researcher ... investigates ...")."""
    if not summary:
        return ""
    text = str(summary)
    for pattern in _SUMMARY_OPENERS:
        text = pattern.sub("", text)
    return text.strip()


def _as_list(value: Any) -> list[Any] | str:
    """Lists and comma strings pass through; any other JSON value is empty."""
    return value if isinstance(value, (list, str)) else []


def build_metadata_messages(title: str, content: str) -> list[dict[str, str]]:
    system = (
        "You are tagging The Magnus Archives transcripts.\n"
        "Return JSON with keys: summary, fears, cast, motifs, locations.\n"
        '- summary: 1-2 sentences, do NOT start with "A researcher at the Magnus Institute investigates..."\n'
        f"- fears: choose 0-3 from the canonical fears: {', '.join(FEAR_CANONICAL)}.\n"
        "  Usually 1-2 fears is correct. Order fears by strongest evidence. Never list more than 3.\n"
        "- cast/locations: proper names only if explicitly referenced.\n"
        "- motifs: optional; return [] if not confident.\n"
        "Return JSON only."
    )
    body = truncate_middle(content or "", METADATA_TRANSCRIPT_MAX_CHARS)
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": f"Title: {title}\n\nTranscript:\n{body}"},
    ]


def suggest_metadata(title: str, content: str, adapter: ModelAdapter | None = None) -> MetadataSuggestion:
    """Ask the tagger model for metadata. Raises UnparseableResponse when no JSON object comes back."""
    adapter = adapter or default_adapter("metadata_tagger")
    text = adapter.generate(build_metadata_messages(title, content), json_mode=True)
    parsed = parse_json_object(text)
    if parsed is None:
        logger.warning("Metadata suggestion for %r was not JSON: %s", title, text[:200])
        raise UnparseableResponse()

    fears = parsed.get("fears")
    motifs = parsed.get("motifs")
    if motifs is None:
        motifs = parsed.get("themes")
    return MetadataSuggestion(
        summary=clean_summary(parsed.get("summary")),
        fears=normalize_fears(fears if isinstance(fears, list) else []),
        cast=_as_list(parsed.get("cast")),
        motifs=_as_list(motifs),
        locations=_as_list(parsed.get("locations")),
    )
