"""Draft shape classifier: narrative prose vs. outline/script formatting."""
from __future__ import annotations

import re
from dataclasses import dataclass

from backend.app.constants import (
    DRAFT_MAX_LIST_LINES,
    DRAFT_MAX_SCRIPT_LINES,
    DRAFT_MAX_SECTION_MARKERS,
    DRAFT_MAX_STAGE_DIRECTIONS,
    DRAFT_MIN_CHARS,
    DRAFT_MIN_PARAGRAPH_CHARS,
    DRAFT_MIN_PARAGRAPHS,
)

_OUTLINE_INTRO_PATTERNS = (
    re.compile(r"(^|\n)\s*here is (a )?(numbered )?outline", re.I),
    re.compile(r"(^|\n)\s*outline:", re.I),
)
_SECTION_MARKER_RE = re.compile(r"(^|\n)\s*(\*{1,2}\s*)?(section|act|part)\s+\d+", re.I | re.M)
_LIST_LINE_RE = re.compile(r"(^|\n)\s*(?:[-*]\s+|\d+\.\s+)")
# Case-sensitive: "SPEAKER:" cues, not sentence-case prose.
_SCRIPT_LINE_RE = re.compile(r"(^|\n)\s*[A-Z][A-Z\s'\".-]{2,}:\s")
_STAGE_DIRECTION_RE = re.compile(r"(^|\n)\s*\[[^\]\n]{4,}\]")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class DraftShape:
    """Counts behind a shape decision; ``reason`` is empty for prose."""

    length: int
    outline_intro: bool
    section_markers: int
    list_lines: int
    script_lines: int
    stage_directions: int
    paragraphs: int

    @property
    def reason(self) -> str:
        if self.length < DRAFT_MIN_CHARS:
            return f"too short ({self.length} chars)"
        if self.outline_intro:
            return "opens like an outline"
        if self.section_markers >= DRAFT_MAX_SECTION_MARKERS:
            return f"{self.section_markers} section/act/part markers"
        if self.list_lines >= DRAFT_MAX_LIST_LINES:
            return f"{self.list_lines} list lines"
        if self.script_lines >= DRAFT_MAX_SCRIPT_LINES:
            return f"{self.script_lines} script dialogue lines"
        if self.stage_directions >= DRAFT_MAX_STAGE_DIRECTIONS:
            return f"{self.stage_directions} stage directions"
        if self.paragraphs < DRAFT_MIN_PARAGRAPHS:
            return f"only {self.paragraphs} prose paragraphs"
        return ""

    @property
    def is_prose(self) -> bool:
        return not self.reason


def describe_draft_shape(text: str) -> DraftShape:
    trimmed = (text or "").strip()
    paragraphs = [part.strip() for part in _PARAGRAPH_SPLIT_RE.split(trimmed)]
    return DraftShape(
        length=len(trimmed),
        outline_intro=any(p.search(trimmed) for p in _OUTLINE_INTRO_PATTERNS),
        section_markers=len(_SECTION_MARKER_RE.findall(trimmed)),
        list_lines=len(_LIST_LINE_RE.findall(trimmed)),
        script_lines=len(_SCRIPT_LINE_RE.findall(trimmed)),
        stage_directions=len(_STAGE_DIRECTION_RE.findall(trimmed)),
        paragraphs=sum(1 for part in paragraphs if len(part) >= DRAFT_MIN_PARAGRAPH_CHARS),
    )


def is_narrative_draft_output(text: str) -> bool:
    """True when text reads as a full prose draft rather than an outline or script."""
    return describe_draft_shape(text).is_prose
