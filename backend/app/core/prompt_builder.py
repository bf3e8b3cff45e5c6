"""
Prompt assembly for outline/draft generation and their corrective rewrites.

Pure string assembly: every builder returns role-tagged chat messages
(``[{"role": "system", ...}, {"role": "user", ...}]``) for the model adapter.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal

from backend.app.constants import (
    DEFAULT_LENGTH,
    DEFAULT_TONE,
    LENGTH_PRESETS,
    PROMPT_CONTEXT_MAX_CHARS,
    PROMPT_FORBIDDEN_TERMS_MAX,
    PROMPT_OUTLINE_MAX_CHARS,
    TONE_PRESETS,
)
from backend.app.core.canon_policy import CanonDecision, decide_canon_policy
from backend.app.core.text_utils import truncate_middle
from backend.app.models.generation import GenerationFilters

Stage = Literal["outline", "draft"]
Message = dict[str, str]

CAST_EXCLUDED_NOTE = "Avoid established Magnus Institute cast. Use new names only."
CAST_SELECTED_NOTE = "You may include 1-2 named cast members from the selected list."
CAST_MINIMAL_NOTE = "Keep cast minimal unless needed."

ORIGINALITY_RULE = (
    "Originality rule: this must be a new, original episode. Do not copy plot beats, "
    "scenes, or phrasing from the reference excerpts; use them for tone and pacing only."
)

OUTLINE_FORMAT = "Return a clear numbered outline with 5-7 sections, each with 2-4 bullet points."
DRAFT_FORMAT = "Write in the voice of a formal statement and archival notes."
PROSE_ONLY = (
    "Return continuous narrative prose only: no headings, no section or act labels, "
    "no bullet points or numbered lists, no script formatting or SPEAKER: labels, "
    "no bracketed stage directions. Use at least five full paragraphs."
)


@dataclass(frozen=True)
class PromptRequest:
    """Everything a stage prompt is built from."""

    seed: str
    filters: GenerationFilters = field(default_factory=GenerationFilters)
    context: str = ""
    forbidden_terms: tuple[str, ...] = ()
    notes: str | None = None
    outline: str = ""
    decision: CanonDecision | None = None

    def canon_decision(self) -> CanonDecision:
        if self.decision is not None:
            return self.decision
        return decide_canon_policy(self.seed, self.notes, self.filters)


def tone_note(tone: str | None) -> str:
    return TONE_PRESETS.get(tone or "", TONE_PRESETS[DEFAULT_TONE])


def length_note(length: str | None, stage: Stage) -> str:
    outline_note, draft_note = LENGTH_PRESETS.get(length or "", LENGTH_PRESETS[DEFAULT_LENGTH])
    return outline_note if stage == "outline" else draft_note


def cast_note(filters: GenerationFilters) -> str:
    if filters.include_cast is False:
        return CAST_EXCLUDED_NOTE
    if filters.cast:
        return CAST_SELECTED_NOTE
    return CAST_MINIMAL_NOTE


def canon_rule(decision: CanonDecision) -> str:
    """One of three tiers: full canon carryover, cast-only carryover, or none."""
    if decision.tier == "canon":
        return (
            "Canon rule: this run continues established canon. You may reference established "
            "characters, institutions, entities and artifacts where the seed calls for them."
        )
    if decision.tier == "cast":
        names = ", ".join(sorted(decision.allowed_terms))
        return (
            f"Canon rule: you may use these established cast names: {names}. "
            "Every other canon term stays forbidden: no canon institutions, entities, "
            "artifacts, or fixed archival phrases."
        )
    return (
        "Canon rule: do not use any established canon names, institutions, entities, "
        "artifacts, or fixed archival phrases. Invent fully original names and places."
    )


def forbidden_terms_line(terms: Iterable[str]) -> str:
    terms = [t for t in terms if t][:PROMPT_FORBIDDEN_TERMS_MAX]
    if not terms:
        return ""
    return "Forbidden terms (never use these, in any spelling or case): " + "; ".join(terms)


def retry_rule(prior_matches: Iterable[str]) -> str:
    matches = [m for m in prior_matches if m]
    if not matches:
        return ""
    return (
        "Retry rule: the previous attempt was rejected for using "
        f"{', '.join(matches)}. Regenerate with fully original substitutes for every one of them."
    )


def filter_notes(filters: GenerationFilters) -> str:
    lists = filters.list_filters()
    lists["cast"] = filters.cast_filter()
    lines = [f"{key}: {', '.join(values)}" for key, values in lists.items() if values]
    return "\n".join(lines) or "none"


def notes_block(filters: GenerationFilters, notes: str | None) -> str:
    parts = []
    if filters.brief:
        parts.append(f"Run brief:\n{filters.brief}")
    if notes and notes.strip():
        parts.append(f"Notes:\n{notes.strip()}")
    return "\n\n".join(parts)


def _rules(request: PromptRequest, prior_matches: Iterable[str] = ()) -> list[str]:
    lines = [canon_rule(request.canon_decision()), ORIGINALITY_RULE]
    forbidden = forbidden_terms_line(request.forbidden_terms)
    if forbidden:
        lines.append(forbidden)
    retry = retry_rule(prior_matches)
    if retry:
        lines.append(retry)
    return lines


def _user_content(request: PromptRequest, *, include_outline: bool, extra: list[str] | None = None) -> str:
    sections = [f"Seed:\n{request.seed}", f"Filters:\n{filter_notes(request.filters)}"]
    block = notes_block(request.filters, request.notes)
    if block:
        sections.append(block)
    if include_outline:
        sections.append(f"Outline:\n{truncate_middle(request.outline, PROMPT_OUTLINE_MAX_CHARS)}")
    sections.extend(extra or [])
    sections.append(f"Transcript excerpts:\n{truncate_middle(request.context, PROMPT_CONTEXT_MAX_CHARS)}")
    return "\n\n".join(sections)


def _messages(system: list[str], user: str) -> list[Message]:
    return [
        {"role": "system", "content": "\n".join(line for line in system if line)},
        {"role": "user", "content": user},
    ]


def build_outline_messages(request: PromptRequest, prior_matches: Iterable[str] = ()) -> list[Message]:
    system = [
        "You are writing a Magnus Archives style episode outline.",
        "Use the provided transcript excerpts for tone and structure.",
        f"Tone: {tone_note(request.filters.tone)}",
        f"Length guidance: {length_note(request.filters.length, 'outline')}",
        f"Cast guidance: {cast_note(request.filters)}",
        *_rules(request, prior_matches),
        OUTLINE_FORMAT,
        "Avoid meta commentary.",
    ]
    return _messages(system, _user_content(request, include_outline=False))


def build_draft_messages(request: PromptRequest, prior_matches: Iterable[str] = ()) -> list[Message]:
    system = [
        "You are writing a Magnus Archives style episode draft.",
        "Use the outline and transcript excerpts for tone, pacing, and voice.",
        f"Tone: {tone_note(request.filters.tone)}",
        f"Length guidance: {length_note(request.filters.length, 'draft')}",
        f"Cast guidance: {cast_note(request.filters)}",
        *_rules(request, prior_matches),
        DRAFT_FORMAT,
    ]
    return _messages(system, _user_content(request, include_outline=True))


def build_stage_messages(stage: Stage, request: PromptRequest, prior_matches: Iterable[str] = ()) -> list[Message]:
    if stage == "outline":
        return build_outline_messages(request, prior_matches)
    return build_draft_messages(request, prior_matches)


def _format_rule(stage: Stage) -> str:
    if stage == "outline":
        return OUTLINE_FORMAT
    return "Keep full narrative prose and keep following the outline."


def build_fallback_rewrite_messages(
    stage: Stage,
    request: PromptRequest,
    text: str,
    matches: Iterable[str],
) -> list[Message]:
    """Last-chance rewrite after the forbidden-term attempts are exhausted."""
    matches = list(matches)
    system = [
        f"You are rewriting an episode {stage} so that it is fully original.",
        "Replace every rejected term with fully original names, entities, places and events.",
        "Keep the seed premise, the structure and the tone.",
        f"Cast guidance: {cast_note(request.filters)}",
        *_rules(request, matches),
        _format_rule(stage),
    ]
    extra = [f"Rejected terms:\n{', '.join(matches)}", f"Text to rewrite:\n{text}"]
    return _messages(system, _user_content(request, include_outline=stage == "draft", extra=extra))


def build_anchor_rewrite_messages(
    stage: Stage,
    request: PromptRequest,
    text: str,
    anchors: Iterable[str],
) -> list[Message]:
    """Rewrite that re-anchors the text to the seed premise, keeping its format."""
    system = [
        f"You are revising an episode {stage} that drifted away from its seed premise.",
        "Rewrite it so the seed premise drives every section.",
        f"Use these seed keywords explicitly: {', '.join(anchors)}.",
        f"Cast guidance: {cast_note(request.filters)}",
        *_rules(request),
        _format_rule(stage),
    ]
    extra = [f"Text to rewrite:\n{text}"]
    return _messages(system, _user_content(request, include_outline=stage == "draft", extra=extra))


def build_shape_rewrite_messages(request: PromptRequest, text: str, reason: str = "") -> list[Message]:
    """Rewrite a draft that came back as an outline or script into prose."""
    system = [
        "You are rewriting an episode draft that came back as an outline or script.",
        f"Problem: {reason}." if reason else "",
        PROSE_ONLY,
        f"Tone: {tone_note(request.filters.tone)}",
        f"Cast guidance: {cast_note(request.filters)}",
        *_rules(request),
        DRAFT_FORMAT,
    ]
    extra = [f"Text to rewrite:\n{text}"]
    return _messages(system, _user_content(request, include_outline=True, extra=extra))
