"""Canon policy: continuation intent, cast/canon carryover, allowed cast names."""
from __future__ import annotations

import pytest

from backend.app.constants import CANON_CAST_NAMES
from backend.app.core.canon_policy import (
    allows_canon_carryover,
    allows_cast_carryover,
    decide_canon_policy,
    is_continuation_request,
    parse_optional_boolean,
    resolve_allowed_cast_terms,
)
from backend.app.models.generation import GenerationFilters


@pytest.mark.parametrize(
    "value,expected",
    [(True, True), (False, False), ("Yes", True), (" off ", False), ("", None), (None, None), (1, None)],
)
def test_parse_optional_boolean(value, expected):
    assert parse_optional_boolean(value) is expected


@pytest.mark.parametrize(
    "seed,notes",
    [
        ("continue from the observation deck", None),
        ("A sequel to the lighthouse statement", None),
        ("new idea", "this is a follow-up"),
        ("new idea", "pick up where the last one ended"),
        ("The SAME EPISODE, different narrator", None),
    ],
)
def test_continuation_phrases(seed, notes):
    assert is_continuation_request(seed, notes)


def test_canon_carryover_only_from_flag_or_continuation():
    assert allows_canon_carryover("continue from the observation deck") is True
    assert allows_canon_carryover("a new technician notices something wrong") is False
    assert allows_canon_carryover("a new technician notices something wrong", None, True) is True
    assert allows_canon_carryover("a new technician notices something wrong", None, "true") is True


def test_cast_carryover():
    assert allows_cast_carryover(selected_cast=["Jon"]) is True
    assert allows_cast_carryover() is False
    assert allows_cast_carryover(include_cast="yes") is True
    assert allows_cast_carryover(include_cast="no", selected_cast=[]) is False
    assert allows_cast_carryover(selected_cast=["  "]) is False


def test_allowed_cast_terms_without_selection_is_full_cast():
    assert resolve_allowed_cast_terms([]) == set(CANON_CAST_NAMES)


def test_allowed_cast_terms_fuzzy_match_both_directions():
    allowed = resolve_allowed_cast_terms(["jon", "Martin Blackwood the archivist's assistant"])
    assert "jon" in allowed
    assert "Jonathan Sims" in allowed
    assert "Jon Sims" in allowed
    assert "Jonah Magnus" in allowed
    # canonical name contained in the selected text
    assert "Martin Blackwood" in allowed
    assert "Tim Stoker" not in allowed


def test_decide_policy_tiers():
    none_tier = decide_canon_policy("a new technician notices something wrong", None, GenerationFilters())
    assert none_tier.tier == "none"
    assert none_tier.allowed_terms == frozenset()

    cast_tier = decide_canon_policy("seed", None, GenerationFilters(cast=["Tim Stoker"]))
    assert cast_tier.tier == "cast"
    assert cast_tier.canon_carryover is False
    assert "Tim Stoker" in cast_tier.allowed_terms

    canon_tier = decide_canon_policy("seed", None, GenerationFilters(allowCanon=True))
    assert canon_tier.tier == "canon"


def test_explicit_cast_exclusion_overrides_selection():
    decision = decide_canon_policy("seed", None, GenerationFilters(cast=["Tim Stoker"], includeCast=False))
    assert decision.cast_excluded is True
    assert decision.cast_carryover is False
    assert decision.allowed_terms == frozenset()
