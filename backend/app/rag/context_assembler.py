"""Context assembly: pick reference transcripts/passages for a seed and derive forbidden terms."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from backend.app.constants import (
    CONTEXT_MAX_CHUNKS,
    CONTEXT_MAX_DOCUMENTS,
    FORBIDDEN_TERM_MAX_LEN,
    FORBIDDEN_TERM_MIN_LEN,
    FORBIDDEN_TERMS_MAX,
)
from backend.app.models.generation import ContextBundle, GenerationFilters, ReferenceDocument
from backend.app.rag.scoring import build_keyword_set, score_by_keywords
from backend.app.rag.transcript_store import TranscriptStore

logger = logging.getLogger(__name__)

STYLE_ONLY_HEADER = "Style references from corpus metadata (for tone and pacing only)."
STYLE_ONLY_NOTICE = "Do not copy names, entities, locations, or plot beats from source episodes."
EXCERPTS_HEADER = (
    "Reference excerpts (style only; do not copy names, entities, locations, or plot beats):"
)

_TERM_SPLIT_RE = re.compile(r"[,\n]")


@dataclass
class _Candidate:
    doc: ReferenceDocument
    score: int = 0


def _has_any_match(values: list[str], selected: list[str]) -> bool:
    if not selected:
        return True
    return any(item in values for item in selected)


def _matches_filters(doc: ReferenceDocument, filters: GenerationFilters) -> bool:
    return (
        _has_any_match(doc.fears, filters.fears)
        and _has_any_match(doc.cast, filters.cast_filter())
        and _has_any_match(doc.motifs, filters.motifs)
        and _has_any_match(doc.locations, filters.locations)
        and _has_any_match(doc.warnings, filters.warnings)
    )


def _score_document(doc: ReferenceDocument, keywords: set[str]) -> int:
    score = score_by_keywords(doc.title, keywords) + score_by_keywords(doc.summary or "", keywords)
    for values in doc.tag_lists().values():
        score += score_by_keywords(" ".join(values), keywords)
    return score


def _joined_or_unspecified(values: list[str]) -> str:
    return ", ".join(values) if values else "unspecified"


def collect_forbidden_terms(docs: list[ReferenceDocument]) -> list[str]:
    """Cast names, titles and summary fragments of the selected documents.

    Split on commas/newlines, keep fragments with 2 < len < 80, dedupe in
    first-seen order, cap at 80.
    """
    raw: list[str] = []
    for doc in docs:
        raw.extend(doc.cast)
        raw.append(doc.title)
        if doc.summary:
            raw.append(doc.summary)
    seen: set[str] = set()
    out: list[str] = []
    for value in raw:
        for item in _TERM_SPLIT_RE.split(value):
            item = item.strip()
            if not (FORBIDDEN_TERM_MIN_LEN < len(item) < FORBIDDEN_TERM_MAX_LEN):
                continue
            if item in seen:
                continue
            seen.add(item)
            out.append(item)
    return out[:FORBIDDEN_TERMS_MAX]


def _style_only_bundle(selected: list[_Candidate], forbidden_terms: list[str]) -> ContextBundle:
    references = []
    for index, cand in enumerate(selected, start=1):
        references.append(
            "\n".join(
                [
                    f"[{index}]",
                    f"Fears: {_joined_or_unspecified(cand.doc.fears)}",
                    f"Motifs: {_joined_or_unspecified(cand.doc.motifs)}",
                    f"Content warnings: {_joined_or_unspecified(cand.doc.warnings)}",
                ]
            )
        )
    context = "\n\n".join([STYLE_ONLY_HEADER, STYLE_ONLY_NOTICE, "\n\n".join(references)])
    return ContextBundle(context=context, sources=references, forbidden_terms=forbidden_terms, style_only=True)


def build_context(
    seed: str,
    filters: GenerationFilters | dict[str, Any] | None,
    store: TranscriptStore,
) -> ContextBundle:
    """
    Build the reference bundle for a generation request.

    Filters narrow the corpus ("any match within a category, AND across
    categories"), falling back to the whole corpus when nothing matches.
    The top documents are chosen by keyword score; their chunks are scored
    the same way. When no chunk shares any vocabulary with the request, only
    tag metadata is returned so that unrelated plot content never leaks.
    """
    filters = GenerationFilters.coerce(filters)
    documents = store.list_documents()
    if not documents:
        return ContextBundle()

    keywords = build_keyword_set(seed, filters)
    filtered = [doc for doc in documents if _matches_filters(doc, filters)]
    if not filtered:
        logger.info("No transcripts match filters; falling back to full corpus (%d docs)", len(documents))
        filtered = documents

    candidates = [_Candidate(doc=doc, score=_score_document(doc, keywords)) for doc in filtered]
    # sorted() is stable: ties keep corpus order
    selected = sorted(candidates, key=lambda c: c.score, reverse=True)[:CONTEXT_MAX_DOCUMENTS]
    forbidden_terms = collect_forbidden_terms([c.doc for c in selected])

    by_id = {c.doc.id: c.doc for c in selected}
    rank = {doc_id: pos for pos, doc_id in enumerate(by_id)}
    # Ties keep ranked-document order, then chunk order.
    chunks = sorted(
        store.list_chunks(list(by_id)),
        key=lambda c: (rank.get(c.transcript_id, len(rank)), c.chunk_index),
    )
    scored_chunks = sorted(
        ((chunk, score_by_keywords(chunk.content, keywords)) for chunk in chunks),
        key=lambda item: item[1],
        reverse=True,
    )[:CONTEXT_MAX_CHUNKS]
    best = max((score for _, score in scored_chunks), default=0)

    if best == 0:
        logger.info("No keyword overlap in %d chunks; returning style-only context", len(chunks))
        return _style_only_bundle(selected, forbidden_terms)

    sources: list[str] = []
    for index, (chunk, _score) in enumerate(scored_chunks, start=1):
        doc = by_id.get(chunk.transcript_id)
        label = doc.source_label() if doc else "Unknown source"
        fears = _joined_or_unspecified(doc.fears) if doc else "unspecified"
        sources.append("\n".join([f"[{index}] {label}", f"Fears: {fears}", chunk.content]))

    return ContextBundle(
        context="\n\n".join([EXCERPTS_HEADER, "\n\n".join(sources)]),
        sources=sources,
        forbidden_terms=forbidden_terms,
    )
