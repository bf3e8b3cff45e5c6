"""
Generation guard: obtain outline/draft text that passes three gates.

1. Forbidden terms: generate up to N attempts, feeding matched terms back
   into the next prompt; then one fallback rewrite; then ForbiddenTermLeak.
2. Seed anchors: accepted text must mention enough seed keywords; one
   re-anchoring rewrite, then SeedDrift.
3. Draft shape (drafts only): narrative prose, not outline/script; up to two
   prose rewrites, then NonProseShape.

Every rewrite is re-scanned for forbidden terms. All loops are bounded by
GuardConfig; state for one run lives in a GuardState accumulator.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from backend.app.constants import FORBIDDEN_MATCH_LIMIT
from backend.app.core.canon_policy import decide_canon_policy
from backend.app.core.draft_shape import describe_draft_shape
from backend.app.core.errors import ForbiddenTermLeak, GenerationError, NonProseShape, SeedDrift
from backend.app.core.forbidden_terms import find_forbidden_matches, resolve_forbidden_terms
from backend.app.core.model_adapter import ModelAdapter, default_adapter
from backend.app.core.prompt_builder import (
    PromptRequest,
    Stage,
    build_anchor_rewrite_messages,
    build_fallback_rewrite_messages,
    build_shape_rewrite_messages,
    build_stage_messages,
)
from backend.app.core.seed_anchor import count_anchor_hits, extract_seed_anchors, required_anchor_matches
from backend.app.models.generation import GenerationFilters

logger = logging.getLogger(__name__)


class GuardConfig(BaseModel):
    """Bounds and sampling options for one guard run."""

    outline_attempts: int = Field(default=2, ge=1)
    draft_attempts: int = Field(default=2, ge=1)
    anchor_rewrites: int = Field(default=1, ge=0)
    shape_rewrites: int = Field(default=2, ge=0)
    max_matches: int = Field(default=FORBIDDEN_MATCH_LIMIT, ge=1)
    outline_max_tokens: int = 900
    draft_max_tokens: int = 2000
    temperature: float = 0.7

    @classmethod
    def from_env(cls) -> "GuardConfig":
        from backend.app import config

        return cls(
            outline_attempts=max(1, config.OUTLINE_ATTEMPTS),
            draft_attempts=max(1, config.DRAFT_ATTEMPTS),
            outline_max_tokens=config.OUTLINE_MAX_TOKENS,
            draft_max_tokens=config.DRAFT_MAX_TOKENS,
            temperature=config.DEFAULT_TEMPERATURE,
        )

    def attempts_for(self, stage: Stage) -> int:
        return self.outline_attempts if stage == "outline" else self.draft_attempts

    def max_tokens_for(self, stage: Stage) -> int:
        return self.outline_max_tokens if stage == "outline" else self.draft_max_tokens


@dataclass
class GenerationAttempt:
    """One model call and what the forbidden-term scan found in it."""

    kind: str  # attempt | fallback | anchor | shape
    text: str
    matches: list[str] = field(default_factory=list)


@dataclass
class GuardState:
    """Accumulator for one guard run: {attempt, matches, last_text} plus history."""

    attempt: int = 0
    matches: list[str] = field(default_factory=list)
    last_text: str = ""
    history: list[GenerationAttempt] = field(default_factory=list)

    def record(self, kind: str, text: str, matches: list[str]) -> None:
        self.last_text = text
        for term in matches:
            if term not in self.matches:
                self.matches.append(term)
        self.history.append(GenerationAttempt(kind=kind, text=text, matches=list(matches)))


class GenerationGuard:
    """Runs the forbidden-term, anchor and (draft) shape gates for one stage."""

    def __init__(
        self,
        stage: Stage,
        request: PromptRequest,
        adapter: ModelAdapter,
        config: GuardConfig | None = None,
    ):
        self.stage = stage
        self.request = request
        self.adapter = adapter
        self.config = config or GuardConfig()
        self.state = GuardState()

    def run(self) -> str:
        try:
            text = self._forbidden_term_loop()
            text = self._anchor_check(text)
            if self.stage == "draft":
                text = self._shape_check(text)
        except GenerationError as exc:
            exc.attempts = tuple(self.state.history)
            raise
        return text

    def _generate(self, messages: list[dict[str, str]]) -> str:
        return self.adapter.generate(
            messages,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens_for(self.stage),
        ).strip()

    def _scan(self, text: str) -> list[str]:
        return find_forbidden_matches(text, self.request.forbidden_terms, limit=self.config.max_matches)

    def _generate_clean(self, kind: str, messages: list[dict[str, str]]) -> str:
        """Rewrite call whose output must be free of forbidden terms (else fatal)."""
        text = self._generate(messages)
        matches = self._scan(text)
        self.state.record(kind, text, matches)
        if matches:
            logger.warning("%s %s rewrite still uses forbidden terms: %s", self.stage, kind, matches)
            raise ForbiddenTermLeak(matches, stage=self.stage)
        return text

    def _forbidden_term_loop(self) -> str:
        state = self.state
        for attempt in range(1, self.config.attempts_for(self.stage) + 1):
            state.attempt = attempt
            text = self._generate(build_stage_messages(self.stage, self.request, state.matches))
            matches = self._scan(text)
            state.record("attempt", text, matches)
            if not matches:
                return text
            logger.warning(
                "%s attempt %d rejected for forbidden terms: %s", self.stage, attempt, matches
            )
        logger.warning("%s attempts exhausted; running fallback rewrite", self.stage)
        return self._generate_clean(
            "fallback",
            build_fallback_rewrite_messages(self.stage, self.request, state.last_text, state.matches),
        )

    def _anchor_check(self, text: str) -> str:
        anchors = extract_seed_anchors(self.request.seed, self.request.notes)
        if not anchors:
            return text
        required = required_anchor_matches(len(anchors))
        hits = count_anchor_hits(text, anchors)
        if hits >= required:
            return text
        for rewrite in range(1, self.config.anchor_rewrites + 1):
            logger.warning(
                "%s under-anchored (%d/%d of %s); rewrite %d", self.stage, hits, required, anchors, rewrite
            )
            text = self._generate_clean(
                "anchor", build_anchor_rewrite_messages(self.stage, self.request, text, anchors)
            )
            hits = count_anchor_hits(text, anchors)
            if hits >= required:
                return text
        raise SeedDrift(stage=self.stage, hits=hits, required=required)

    def _shape_check(self, text: str) -> str:
        shape = describe_draft_shape(text)
        if shape.is_prose:
            return text
        for rewrite in range(1, self.config.shape_rewrites + 1):
            logger.warning("draft is not narrative prose (%s); rewrite %d", shape.reason, rewrite)
            text = self._generate_clean(
                "shape", build_shape_rewrite_messages(self.request, text, shape.reason)
            )
            shape = describe_draft_shape(text)
            if shape.is_prose:
                return text
        raise NonProseShape(shape.reason)


def _prepare(
    seed: str,
    filters: GenerationFilters | dict[str, Any] | None,
    context: str,
    forbidden_terms: list[str] | None,
    notes: str | None,
    outline: str = "",
) -> PromptRequest:
    filters = GenerationFilters.coerce(filters)
    decision = decide_canon_policy(seed, notes, filters)
    effective = resolve_forbidden_terms(forbidden_terms or [], decision, seed=seed, notes=notes)
    logger.info(
        "Canon tier=%s, %d forbidden terms (%d from context)",
        decision.tier,
        len(effective),
        len(forbidden_terms or []),
    )
    return PromptRequest(
        seed=seed,
        filters=filters,
        context=context or "",
        forbidden_terms=tuple(effective),
        notes=notes,
        outline=outline or "",
        decision=decision,
    )


def generate_outline(
    seed: str,
    filters: GenerationFilters | dict[str, Any] | None,
    context: str,
    forbidden_terms: list[str] | None,
    notes: str | None = None,
    *,
    adapter: ModelAdapter | None = None,
    config: GuardConfig | None = None,
) -> str:
    """Guarded outline generation. Raises a GenerationError subclass on failure."""
    request = _prepare(seed, filters, context, forbidden_terms, notes)
    guard = GenerationGuard("outline", request, adapter or default_adapter(), config or GuardConfig.from_env())
    return guard.run()


def generate_draft(
    seed: str,
    outline: str,
    filters: GenerationFilters | dict[str, Any] | None,
    context: str,
    forbidden_terms: list[str] | None,
    notes: str | None = None,
    *,
    adapter: ModelAdapter | None = None,
    config: GuardConfig | None = None,
) -> str:
    """Guarded draft generation from an accepted outline. Raises a GenerationError subclass on failure."""
    request = _prepare(seed, filters, context, forbidden_terms, notes, outline=outline)
    guard = GenerationGuard("draft", request, adapter or default_adapter(), config or GuardConfig.from_env())
    return guard.run()
