"""Unit tests for the optional ingestion tagger."""
import unittest
from unittest import mock

from backend.app.core.model_adapter import ModelAdapter
from backend.app.models.generation import MetadataSuggestion
from ingestion.tagger import merge_tags, tag_transcript


class _DummyBinding:
    def __init__(self, reply):
        self.reply = reply

    def __call__(self, messages, options):
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class TestIngestionTagger(unittest.TestCase):
    def test_tagger_parses_suggestion(self) -> None:
        adapter = ModelAdapter(_DummyBinding('{"summary": "A voice in the fog.", "fears": ["lonely"], "cast": ["Ada"]}'))
        result = tag_transcript("The Lighthouse", "text", adapter=adapter)
        self.assertIsNone(result.error)
        self.assertEqual(result.output.fears, ["The Lonely"])
        self.assertEqual(result.output.summary, "A voice in the fog.")

    def test_tagger_failures_are_reported_not_raised(self) -> None:
        result = tag_transcript("T", "text", adapter=ModelAdapter(_DummyBinding("not json")))
        self.assertIsNone(result.output)
        self.assertIn("could not be parsed", result.error)

        result = tag_transcript("T", "text", adapter=ModelAdapter(None))
        self.assertIsNone(result.output)
        self.assertIn("binding", result.error)

        result = tag_transcript("T", "", adapter=ModelAdapter(_DummyBinding("{}")))
        self.assertEqual(result.error, "empty text")

    def test_tagger_tolerates_scalar_list_fields(self) -> None:
        adapter = ModelAdapter(_DummyBinding('{"summary": "Fog.", "fears": "lonely", "cast": 5, "locations": {"a": 1}}'))
        result = tag_transcript("T", "content", adapter=adapter)
        self.assertIsNone(result.error)
        self.assertEqual(result.output.cast, [])
        self.assertEqual(result.output.fears, [])
        self.assertEqual(result.output.locations, [])

    def test_tagger_reports_invalid_suggestion(self) -> None:
        with mock.patch("ingestion.tagger.suggest_metadata", side_effect=lambda *a, **k: MetadataSuggestion(cast=5)):
            result = tag_transcript("T", "content", adapter=ModelAdapter(_DummyBinding("{}")))
        self.assertIsNone(result.output)
        self.assertIn("cast", result.error)

    def test_merge_tags_keeps_existing_values(self) -> None:
        record = {"title": "T", "summary": "Mine", "fears": [], "cast": ["Kept"]}
        merged = merge_tags(
            record,
            MetadataSuggestion(summary="Theirs", fears=["The Dark"], cast=["Other"], motifs=["Candles"]),
        )
        self.assertEqual(merged["summary"], "Mine")
        self.assertEqual(merged["fears"], ["The Dark"])
        self.assertEqual(merged["cast"], ["Kept"])
        self.assertEqual(merged["motifs"], ["Candles"])
        self.assertEqual(record["fears"], [])


if __name__ == "__main__":
    unittest.main()
