"""Schemas for the retrieval + generation pipeline (transcripts, filters, context bundles)."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app.constants import EPISODE_LABEL_PREFIX
from backend.app.core.canon_policy import parse_optional_boolean

# Legacy request keys -> canonical keys. ``include_cast`` predates the
# camelCase ``includeCast`` in stored run filters; ``themes`` is the old
# metadata column name for motifs.
_LEGACY_FILTER_KEYS: dict[str, str] = {
    "include_cast": "includeCast",
    "allow_canon": "allowCanon",
    "themes": "motifs",
}


def _clean_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        raise ValueError(f"expected a list of strings, got {type(value).__name__}")
    out: list[str] = []
    for item in value:
        text = str(item).strip()
        if text:
            out.append(text)
    return out


class ReferenceDocument(BaseModel):
    """An ingested transcript with its derived tag lists."""

    id: str
    title: str
    episode: int | None = None
    season: int | None = None
    summary: str | None = None
    content: str = ""
    fears: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    motifs: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def source_label(self) -> str:
        """Citation label, e.g. ``MAG 12 — The Lighthouse``."""
        episode = f"{EPISODE_LABEL_PREFIX} {self.episode}" if self.episode else f"{EPISODE_LABEL_PREFIX} ?"
        return f"{episode} — {self.title}"

    def tag_lists(self) -> dict[str, list[str]]:
        return {
            "fears": self.fears,
            "cast": self.cast,
            "motifs": self.motifs,
            "locations": self.locations,
            "warnings": self.warnings,
        }


class ReferenceChunk(BaseModel):
    """Paragraph-bounded slice of a transcript."""

    transcript_id: str
    chunk_index: int = 0
    content: str


class GenerationFilters(BaseModel):
    """Caller-selected filters for one generation request.

    Recognized fields only; unknown keys are rejected so that field-name
    drift surfaces as a validation error instead of a silently ignored filter.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    fears: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    motifs: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    brief: str | None = None
    tone: str | None = None
    length: str | None = None
    include_cast: bool | None = Field(default=None, alias="includeCast")
    allow_canon: bool = Field(default=False, alias="allowCanon")

    @model_validator(mode="before")
    @classmethod
    def _consolidate_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for legacy, canonical in _LEGACY_FILTER_KEYS.items():
            if legacy not in data:
                continue
            value = data.pop(legacy)
            if data.get(canonical) is None:
                data[canonical] = value
        return data

    @field_validator("fears", "cast", "motifs", "locations", "warnings", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> list[str]:
        return _clean_str_list(value)

    @field_validator("include_cast", mode="before")
    @classmethod
    def _include_cast(cls, value: Any) -> bool | None:
        return parse_optional_boolean(value)

    @field_validator("allow_canon", mode="before")
    @classmethod
    def _allow_canon(cls, value: Any) -> bool:
        return bool(parse_optional_boolean(value))

    @field_validator("brief", "tone", "length", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @classmethod
    def coerce(cls, value: "GenerationFilters | dict[str, Any] | None") -> "GenerationFilters":
        """Accept a model, a raw request mapping, or None."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        return cls.model_validate(value)

    def cast_filter(self) -> list[str]:
        """Cast names that take part in filtering/scoring (none when cast is excluded)."""
        if self.include_cast is False:
            return []
        return list(self.cast)

    def list_filters(self) -> dict[str, list[str]]:
        return {
            "fears": self.fears,
            "cast": self.cast,
            "motifs": self.motifs,
            "locations": self.locations,
            "warnings": self.warnings,
        }


class ContextBundle(BaseModel):
    """Reference text, citations and forbidden terms for one request."""

    context: str = ""
    sources: list[str] = Field(default_factory=list)
    forbidden_terms: list[str] = Field(default_factory=list)
    style_only: bool = False


class FilterCatalog(BaseModel):
    """Distinct tag values available for the filter selection step."""

    fears: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    motifs: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class MetadataSuggestion(BaseModel):
    """Model-suggested transcript metadata (ingestion/admin review)."""

    summary: str = ""
    fears: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    motifs: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)

    @field_validator("cast", "motifs", "locations", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> list[str]:
        return _clean_str_list(value)
