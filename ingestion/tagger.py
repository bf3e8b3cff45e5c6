"""Optional ingestion tagger: model-suggested transcript metadata."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from backend.app.config import MODEL_CONFIG
from backend.app.core.errors import GenerationError
from backend.app.core.llm_provider import LLMProviderError
from backend.app.core.metadata_suggester import suggest_metadata
from backend.app.core.model_adapter import ModelAdapter
from backend.app.models.generation import MetadataSuggestion
from shared.config import INGESTION_TAGGER_ENABLED

logger = logging.getLogger(__name__)


def tagger_enabled() -> bool:
    return INGESTION_TAGGER_ENABLED


def tagger_model_name() -> str:
    cfg = MODEL_CONFIG.get("metadata_tagger") or {}
    return cfg.get("model", "") or ""


@dataclass
class TaggerResult:
    output: MetadataSuggestion | None
    error: str | None = None


def tag_transcript(title: str, content: str, *, adapter: ModelAdapter | None = None) -> TaggerResult:
    """Best-effort tagging: failures are reported in the result, never raised."""
    if not content:
        return TaggerResult(output=None, error="empty text")
    try:
        return TaggerResult(output=suggest_metadata(title, content, adapter=adapter))
    except (GenerationError, LLMProviderError, ValidationError) as e:
        logger.warning("Tagger failed for %r: %s", title, e)
        return TaggerResult(output=None, error=str(e))


def merge_tags(record: dict[str, Any], output: MetadataSuggestion) -> dict[str, Any]:
    """Fill empty metadata fields of an ingest record from a suggestion; existing values win."""
    merged = dict(record)
    if not merged.get("summary") and output.summary:
        merged["summary"] = output.summary
    for key in ("fears", "cast", "motifs", "locations"):
        if not merged.get(key):
            merged[key] = list(getattr(output, key))
    return merged
