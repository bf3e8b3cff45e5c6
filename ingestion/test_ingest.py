"""Unit tests for TXT/PDF transcript ingestion into the SQLite store."""
from pathlib import Path

import pytest

from backend.app.core.model_adapter import ModelAdapter
from backend.app.rag.transcript_store import SQLiteTranscriptStore
from ingestion.ingest import collect_transcript_files, ingest_paths, main, parse_filename, season_for_episode


def _write(directory: Path, name: str, text: str) -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_filename():
    assert parse_filename("MAG 012 - The Lighthouse") == (12, "The Lighthouse")
    assert parse_filename("EP7_Down Below") == (7, "Down Below")
    assert parse_filename("042") == (42, "042")
    assert parse_filename("Untitled statement") == (None, "Untitled statement")
    assert parse_filename("MAG 160 - The Eye Opens - Transcript") == (160, "The Eye Opens")
    assert parse_filename("MAG 001 - Angler Fish - converted") == (1, "Angler Fish")


def test_season_for_episode():
    assert season_for_episode(1) == 1
    assert season_for_episode(40) == 1
    assert season_for_episode(41) == 2
    assert season_for_episode(160) == 4
    assert season_for_episode(None) is None


def test_ingest_paths_saves_documents_and_chunks(tmp_path):
    db = str(tmp_path / "db" / "archivist.db")
    lighthouse = _write(tmp_path, "MAG 012 - The Lighthouse.txt", "The keeper climbed.\n\nThe fog rolled in.")
    empty = _write(tmp_path, "MAG 013 - Blank.txt", "   \n")

    stats = ingest_paths([lighthouse, empty], db, target_chars=25)
    assert stats == {"ingested": 1, "skipped": 1, "tagged": 0, "tag_failed": 0}

    store = SQLiteTranscriptStore(db)
    docs = store.list_documents()
    assert [(d.episode, d.season, d.title) for d in docs] == [(12, 1, "The Lighthouse")]
    chunks = store.list_chunks([docs[0].id])
    assert [c.content for c in chunks] == ["The keeper climbed.", "The fog rolled in."]


def test_ingest_paths_with_tagger(tmp_path):
    db = str(tmp_path / "archivist.db")
    path = _write(tmp_path, "MAG 001 - Tunnels.txt", "Down in the tunnel.")
    reply = '{"summary": "A tunnel that loops.", "fears": ["buried"], "locations": ["Underground"]}'
    adapter = ModelAdapter(lambda messages, options: reply)

    stats = ingest_paths([path], db, tag=True, adapter=adapter)
    assert stats["tagged"] == 1
    doc = SQLiteTranscriptStore(db).list_documents()[0]
    assert doc.summary == "A tunnel that loops."
    assert doc.fears == ["The Buried"]
    assert doc.locations == ["Underground"]


def test_tagger_failure_still_ingests(tmp_path):
    db = str(tmp_path / "archivist.db")
    path = _write(tmp_path, "MAG 002 - Dark.txt", "Lights out.")
    stats = ingest_paths([path], db, tag=True, adapter=ModelAdapter(None))
    assert stats == {"ingested": 1, "skipped": 0, "tagged": 0, "tag_failed": 1}


def test_collect_transcript_files_recursive(tmp_path):
    _write(tmp_path, "a.txt", "a")
    _write(tmp_path, "nested/b.txt", "b")
    _write(tmp_path, "notes.md", "c")
    _write(tmp_path, "MAG 041 - Scan.PDF", "%PDF")
    assert [p.name for p in collect_transcript_files(tmp_path)] == ["MAG 041 - Scan.PDF", "a.txt"]
    assert [p.name for p in collect_transcript_files(tmp_path, recursive=True)] == ["MAG 041 - Scan.PDF", "a.txt", "b.txt"]


def test_main_return_codes(tmp_path):
    db = str(tmp_path / "archivist.db")
    assert main(["--input_dir", str(tmp_path / "missing"), "--db", db]) == 1
    assert main(["--input_dir", str(tmp_path), "--db", db]) == 1

    _write(tmp_path, "MAG 003 - Door.txt", "A door where no door should be.")
    assert main(["--input_dir", str(tmp_path), "--db", db, "--no-tag"]) == 0
    assert len(SQLiteTranscriptStore(db).list_documents()) == 1


def test_pdf_transcripts_are_read_as_markdown(tmp_path, monkeypatch):
    pymupdf4llm = pytest.importorskip("pymupdf4llm")
    seen = []

    def _to_markdown(path):
        seen.append(path)
        return "# Statement\n\nThe water kept rising.\n\nNobody else saw it."

    monkeypatch.setattr(pymupdf4llm, "to_markdown", _to_markdown)
    db = str(tmp_path / "archivist.db")
    path = _write(tmp_path, "MAG 045 - Drowned - Transcript.pdf", "%PDF-1.4")

    stats = ingest_paths([path], db)
    assert stats["ingested"] == 1
    assert seen == [str(path)]
    doc = SQLiteTranscriptStore(db).list_documents()[0]
    assert (doc.episode, doc.season, doc.title) == (45, 2, "Drowned")
    assert "The water kept rising." in doc.content


def test_unreadable_pdf_is_skipped(tmp_path, monkeypatch):
    pymupdf4llm = pytest.importorskip("pymupdf4llm")

    def _broken(path):
        raise RuntimeError("cannot open broken document")

    monkeypatch.setattr(pymupdf4llm, "to_markdown", _broken)
    path = _write(tmp_path, "MAG 046 - Broken.pdf", "not a pdf")
    stats = ingest_paths([path], str(tmp_path / "archivist.db"))
    assert stats == {"ingested": 0, "skipped": 1, "tagged": 0, "tag_failed": 0}
