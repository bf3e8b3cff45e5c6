"""CLI for ingesting transcript files into the SQLite transcript store.

Usage:
  python -m ingestion.ingest --input_dir <dir> [--db ./data/archivist.db] [--tag]

Supported: TXT, PDF. Title and episode number come from the filename, e.g.
``MAG 012 - The Lighthouse.pdf`` -> episode 12 (season 1), title "The Lighthouse".
- PDF: pymupdf4llm.to_markdown() for layout-preserving extraction.
"""
import argparse
import logging
import math
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from backend.app.config import DEFAULT_DB_PATH
from backend.app.core.model_adapter import ModelAdapter
from backend.app.db.migrate import apply_schema
from backend.app.rag.transcript_store import SQLiteTranscriptStore
from ingestion.chunking import chunk_transcript
from ingestion.tagger import merge_tags, tag_transcript, tagger_enabled
from shared.config import CHUNK_TARGET_CHARS

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".txt", ".pdf")
EPISODES_PER_SEASON = 40

_FILENAME_RE = re.compile(r"^\s*(?:MAG|EP(?:ISODE)?)?\s*#?(\d+)\s*[-_:.]*\s*(.*?)\s*$", re.I)
# Export leftovers after the real title: "... - Transcript", "... - converted"
_TITLE_SUFFIX_RE = re.compile(r"\s+-\s*(?:Transcript.*|converted|Re-formatted Template)$", re.I)


def read_txt(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def read_pdf(path: Path) -> str:
    """Extract PDF to Markdown via pymupdf4llm; unreadable files come back empty."""
    try:
        import pymupdf4llm

        return pymupdf4llm.to_markdown(str(path)) or ""
    except Exception as e:
        logger.warning("PDF read failed %s: %s", path, e)
        return ""


def read_transcript(path: Path) -> str:
    if path.suffix.lower() == ".pdf":
        return read_pdf(path)
    return read_txt(path)


def parse_filename(stem: str) -> Tuple[Optional[int], str]:
    """Episode number and title from a file stem.

    >>> parse_filename("MAG 012 - The Lighthouse")
    (12, 'The Lighthouse')
    >>> parse_filename("MAG 160 - The Eye Opens - Transcript")
    (160, 'The Eye Opens')
    >>> parse_filename("Untitled statement")
    (None, 'Untitled statement')
    """
    match = _FILENAME_RE.match(stem)
    if match:
        title = _TITLE_SUFFIX_RE.sub("", match.group(2)).strip() or stem.strip()
        return int(match.group(1)), title
    return None, _TITLE_SUFFIX_RE.sub("", stem).strip() or stem.strip()


def season_for_episode(episode: Optional[int]) -> Optional[int]:
    """Seasons run forty episodes each: 1-40 -> 1, 41-80 -> 2."""
    if not episode:
        return None
    return math.ceil(episode / EPISODES_PER_SEASON)


def build_record(file_path: Path, target_chars: int = CHUNK_TARGET_CHARS) -> Dict[str, Any]:
    """Read one transcript file into an ingest record (title, episode, season, content, chunks)."""
    episode, title = parse_filename(file_path.stem)
    content = read_transcript(file_path).strip()
    chunks = chunk_transcript(content, target_chars=target_chars)
    logger.info("Read %s: episode=%s title=%r chunks=%d", file_path.name, episode, title, len(chunks))
    return {
        "title": title,
        "episode": episode,
        "season": season_for_episode(episode),
        "content": content,
        "chunks": chunks,
    }


def ingest_paths(
    paths: List[Path],
    db_path: str,
    *,
    tag: bool = False,
    adapter: Optional[ModelAdapter] = None,
    target_chars: int = CHUNK_TARGET_CHARS,
) -> Dict[str, int]:
    """Ingest transcript files into the store. Returns counts (ingested, skipped, tagged, tag_failed)."""
    apply_schema(db_path)
    store = SQLiteTranscriptStore(db_path)
    stats = {"ingested": 0, "skipped": 0, "tagged": 0, "tag_failed": 0}
    for path in paths:
        record = build_record(path, target_chars=target_chars)
        if not record["content"]:
            logger.warning("Skipping empty file %s", path)
            stats["skipped"] += 1
            continue
        if tag:
            result = tag_transcript(record["title"], record["content"], adapter=adapter)
            if result.output is not None:
                record = merge_tags(record, result.output)
                stats["tagged"] += 1
            else:
                stats["tag_failed"] += 1
        store.save_document(
            title=record["title"],
            content=record["content"],
            chunks=record["chunks"],
            summary=record.get("summary"),
            episode=record.get("episode"),
            season=record.get("season"),
            fears=record.get("fears"),
            cast=record.get("cast"),
            motifs=record.get("motifs"),
            locations=record.get("locations"),
        )
        stats["ingested"] += 1
    return stats


def collect_transcript_files(input_dir: Path, recursive: bool = False) -> List[Path]:
    pattern = "**/*" if recursive else "*"
    return sorted(
        p for p in input_dir.glob(pattern) if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
    )


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    ap = argparse.ArgumentParser(description="Ingest transcript .txt/.pdf files into the transcript store")
    ap.add_argument("--input_dir", type=str, required=True, help="Directory with .txt/.pdf files")
    ap.add_argument("--db", type=str, default=DEFAULT_DB_PATH, help="SQLite database path")
    ap.add_argument("--recursive", action="store_true", help="Recurse into subfolders")
    ap.add_argument("--chunk-chars", type=int, default=CHUNK_TARGET_CHARS, help="Target chunk size in characters")
    ap.add_argument("--tag", dest="tag", action="store_true", default=None, help="Suggest metadata with the tagger model")
    ap.add_argument("--no-tag", dest="tag", action="store_false", help="Disable metadata suggestion")
    args = ap.parse_args(argv)

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        logger.error("Input directory not found: %s", input_dir)
        return 1
    files = collect_transcript_files(input_dir, recursive=args.recursive)
    if not files:
        logger.error("No .txt or .pdf files in %s", input_dir)
        return 1

    tag = tagger_enabled() if args.tag is None else args.tag
    stats = ingest_paths(files, args.db, tag=tag, target_chars=args.chunk_chars)
    logger.info(
        "Ingestion complete: %d ingested, %d skipped, %d tagged, %d tag failures (db=%s)",
        stats["ingested"],
        stats["skipped"],
        stats["tagged"],
        stats["tag_failed"],
        args.db,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
