"""Prompt builder: presets, cast/canon rules, forbidden list, truncation."""
from __future__ import annotations

from backend.app.constants import TRUNCATE_ELISION
from backend.app.core.canon_policy import decide_canon_policy
from backend.app.core.prompt_builder import (
    CAST_EXCLUDED_NOTE,
    CAST_MINIMAL_NOTE,
    CAST_SELECTED_NOTE,
    ORIGINALITY_RULE,
    PromptRequest,
    build_anchor_rewrite_messages,
    build_draft_messages,
    build_fallback_rewrite_messages,
    build_outline_messages,
    build_shape_rewrite_messages,
    canon_rule,
    cast_note,
    filter_notes,
    forbidden_terms_line,
    length_note,
    retry_rule,
    tone_note,
)
from backend.app.core.text_utils import truncate_middle
from backend.app.models.generation import GenerationFilters


def _request(**kwargs) -> PromptRequest:
    kwargs.setdefault("seed", "A subway tunnel folds into itself")
    return PromptRequest(**kwargs)


def test_tone_defaults_to_classic():
    assert tone_note("modern").startswith("Modern horror")
    assert tone_note("unknown") == tone_note("classic") == tone_note(None)


def test_length_guidance_per_stage():
    assert "2,000-3,000" in length_note("short", "outline")
    assert length_note("long", "draft") == "Target 10,000+ words."
    assert length_note(None, "draft") == "Target 6,000-9,000 words."


def test_cast_note_variants():
    assert cast_note(GenerationFilters(includeCast=False, cast=["Tim Stoker"])) == CAST_EXCLUDED_NOTE
    assert cast_note(GenerationFilters(cast=["Tim Stoker"])) == CAST_SELECTED_NOTE
    assert cast_note(GenerationFilters()) == CAST_MINIMAL_NOTE


def test_canon_rule_three_tiers():
    seed = "a new technician notices something wrong"
    none_rule = canon_rule(decide_canon_policy(seed, None, GenerationFilters()))
    cast_rule = canon_rule(decide_canon_policy(seed, None, GenerationFilters(cast=["Tim Stoker"])))
    canon = canon_rule(decide_canon_policy("continue the story", None, GenerationFilters()))
    assert "do not use any established canon names" in none_rule
    assert "Tim Stoker" in cast_rule and "no canon institutions" in cast_rule
    assert "may reference established" in canon


def test_forbidden_line_capped_at_80_terms():
    terms = [f"Term {i}" for i in range(100)]
    line = forbidden_terms_line(terms)
    assert "Term 79" in line
    assert "Term 80" not in line
    assert forbidden_terms_line([]) == ""


def test_retry_rule_names_prior_terms():
    assert retry_rule([]) == ""
    assert "Jonathan Sims" in retry_rule(["Jonathan Sims"])


def test_filter_notes_list_only_nonempty_lists():
    notes = filter_notes(GenerationFilters(fears=["The Buried"], motifs=["Tunnels", "Maps"], tone="modern"))
    assert notes == "fears: The Buried\nmotifs: Tunnels, Maps"
    assert filter_notes(GenerationFilters()) == "none"
    assert "cast" not in filter_notes(GenerationFilters(cast=["Tim Stoker"], includeCast=False))


def test_truncate_middle_keeps_head_and_tail():
    text = "H" * 700 + "M" * 1000 + "T" * 300
    out = truncate_middle(text, 1000)
    assert out.startswith("H" * 700)
    assert out.endswith("T" * 300)
    assert TRUNCATE_ELISION in out
    assert "M" not in out
    assert truncate_middle("short", 1000) == "short"


def test_outline_messages_shape_and_content():
    request = _request(
        filters=GenerationFilters(fears=["The Buried"], brief="Keep it claustrophobic"),
        context="Reference excerpts...",
        forbidden_terms=("Magnus Institute",),
        notes="No trains",
    )
    messages = build_outline_messages(request, ["Magnus Institute"])
    assert [m["role"] for m in messages] == ["system", "user"]
    system, user = messages[0]["content"], messages[1]["content"]
    assert ORIGINALITY_RULE in system
    assert "Forbidden terms" in system and "Magnus Institute" in system
    assert "Retry rule" in system
    assert "numbered outline with 5-7 sections" in system
    assert user.startswith("Seed:\nA subway tunnel folds into itself\n\nFilters:\nfears: The Buried")
    assert "Run brief:\nKeep it claustrophobic\n\nNotes:\nNo trains" in user
    assert user.endswith("Transcript excerpts:\nReference excerpts...")


def test_draft_messages_include_truncated_outline_and_context():
    request = _request(outline="O" * 7000, context="C" * 10000)
    user = build_draft_messages(request)[1]["content"]
    assert "Outline:\n" + "O" * 4200 in user
    assert TRUNCATE_ELISION in user
    assert "C" * 10000 not in user
    assert "Retry rule" not in build_draft_messages(request)[0]["content"]


def test_rewrite_messages():
    request = _request(forbidden_terms=("Jonathan Sims",), outline="1. The descent")
    fallback = build_fallback_rewrite_messages("outline", request, "old text", ["Jonathan Sims"])
    assert "fully original" in fallback[0]["content"]
    assert "Rejected terms:\nJonathan Sims" in fallback[1]["content"]
    assert "Text to rewrite:\nold text" in fallback[1]["content"]

    anchor = build_anchor_rewrite_messages("draft", request, "drifted text", ["subway", "tunnel"])
    assert "subway, tunnel" in anchor[0]["content"]
    assert "Outline:\n1. The descent" in anchor[1]["content"]

    shape = build_shape_rewrite_messages(request, "Section 1", "2 section/act/part markers")
    assert "no bullet points" in shape[0]["content"]
    assert "2 section/act/part markers" in shape[0]["content"]
