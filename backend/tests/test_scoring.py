"""Corpus scorer: normalization, keyword scoring, per-request keyword sets."""
from __future__ import annotations

from backend.app.models.generation import GenerationFilters
from backend.app.rag.scoring import build_keyword_set, normalize, score_by_keywords


def test_normalize_collapses_punctuation_and_case():
    assert normalize("  The Lighthouse-Keeper's LOG!  ") == "the lighthouse keeper s log"
    assert normalize("") == ""
    assert normalize("---") == ""


def test_score_counts_keywords_present_as_substrings():
    text = "The keeper climbed the LIGHTHOUSE stairs; the lamp was dark."
    assert score_by_keywords(text, {"lighthouse", "lamp", "subway"}) == 2


def test_score_is_zero_for_empty_text_or_keywords():
    assert score_by_keywords("", {"lamp"}) == 0
    assert score_by_keywords(None, {"lamp"}) == 0
    assert score_by_keywords("a lamp", set()) == 0


def test_score_skips_empty_keywords():
    assert score_by_keywords("a lamp", ["", "lamp"]) == 1


def test_score_is_idempotent():
    text = "A subway tunnel folds into itself beneath the station."
    keywords = {"subway", "tunnel", "station", "folds"}
    assert score_by_keywords(text, keywords) == score_by_keywords(text, keywords) == 4


def test_keyword_set_uses_long_seed_words_and_filter_tags():
    filters = GenerationFilters(fears=["The Buried"], motifs=["Tunnels"], locations=["Old Station"])
    keywords = build_keyword_set("A subway tunnel folds into itself", filters)
    assert {"subway", "tunnel", "folds", "into", "itself"} <= keywords
    assert "the buried" in keywords
    assert "tunnels" in keywords
    assert "old station" in keywords
    # words of three characters or fewer are dropped
    assert "a" not in keywords


def test_keyword_set_includes_cast_unless_excluded():
    with_cast = build_keyword_set("seed", GenerationFilters(cast=["Martin Blackwood"]))
    assert "martin blackwood" in with_cast

    excluded = build_keyword_set("seed", GenerationFilters(cast=["Martin Blackwood"], includeCast=False))
    assert "martin blackwood" not in excluded
