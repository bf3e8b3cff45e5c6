"""V2 generation endpoints: filter catalog, context, guarded outline/draft, metadata suggestion."""
from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import BaseModel, Field

from backend.app.config import DEFAULT_DB_PATH
from backend.app.core.generation_guard import generate_draft, generate_outline
from backend.app.core.metadata_suggester import suggest_metadata
from backend.app.core.model_adapter import default_adapter
from backend.app.models.generation import (
    ContextBundle,
    FilterCatalog,
    GenerationFilters,
    MetadataSuggestion,
)
from backend.app.rag.context_assembler import build_context
from backend.app.rag.transcript_store import SQLiteTranscriptStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2", tags=["v2-generation"])


class ContextRequest(BaseModel):
    seed: str = Field(min_length=1)
    filters: GenerationFilters = Field(default_factory=GenerationFilters)


class OutlineRequest(ContextRequest):
    notes: str | None = None


class OutlineResponse(BaseModel):
    outline: str
    sources: list[str] = Field(default_factory=list)
    style_only: bool = False


class DraftRequest(OutlineRequest):
    outline: str = Field(min_length=1)


class DraftResponse(BaseModel):
    draft: str
    sources: list[str] = Field(default_factory=list)
    style_only: bool = False


class SuggestMetadataRequest(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


def _get_store() -> SQLiteTranscriptStore:
    return SQLiteTranscriptStore(DEFAULT_DB_PATH)


@router.get("/filters", response_model=FilterCatalog)
def get_filter_catalog():
    """Distinct tag values across the corpus, for the filter selection step."""
    return _get_store().collect_filter_options()


@router.post("/context", response_model=ContextBundle)
def post_context(body: ContextRequest):
    return build_context(body.seed, body.filters, _get_store())


@router.post("/outline", response_model=OutlineResponse)
def post_outline(body: OutlineRequest):
    """Build context for the seed, then run the guarded outline generation."""
    bundle = build_context(body.seed, body.filters, _get_store())
    outline = generate_outline(
        body.seed,
        body.filters,
        bundle.context,
        bundle.forbidden_terms,
        body.notes,
        adapter=default_adapter(),
    )
    logger.info("Outline accepted (%d chars, %d sources)", len(outline), len(bundle.sources))
    return OutlineResponse(outline=outline, sources=bundle.sources, style_only=bundle.style_only)


@router.post("/draft", response_model=DraftResponse)
def post_draft(body: DraftRequest):
    """Run the guarded draft generation from an accepted outline."""
    bundle = build_context(body.seed, body.filters, _get_store())
    draft = generate_draft(
        body.seed,
        body.outline,
        body.filters,
        bundle.context,
        bundle.forbidden_terms,
        body.notes,
        adapter=default_adapter(),
    )
    logger.info("Draft accepted (%d chars, %d sources)", len(draft), len(bundle.sources))
    return DraftResponse(draft=draft, sources=bundle.sources, style_only=bundle.style_only)


@router.post("/transcripts/suggest-metadata", response_model=MetadataSuggestion)
def post_suggest_metadata(body: SuggestMetadataRequest):
    return suggest_metadata(body.title, body.content, adapter=default_adapter("metadata_tagger"))
