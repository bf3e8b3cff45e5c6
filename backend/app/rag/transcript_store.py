"""Transcript store: read-only corpus snapshot for retrieval, plus ingestion writes.

The Context Assembler only needs ``list_documents`` and ``list_chunks``; any
object with those two methods satisfies :class:`TranscriptStore`.
"""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from backend.app.db.connection import connect
from backend.app.models.generation import FilterCatalog, ReferenceChunk, ReferenceDocument

logger = logging.getLogger(__name__)

# metadata column -> ReferenceDocument field
_TAG_COLUMNS: dict[str, str] = {
    "fears_json": "fears",
    "cast_json": "cast",
    "themes_json": "motifs",
    "locations_json": "locations",
    "warnings_json": "warnings",
}


@runtime_checkable
class TranscriptStore(Protocol):
    """Read interface consumed by the Context Assembler."""

    def list_documents(self) -> list[ReferenceDocument]:
        ...

    def list_chunks(self, transcript_ids: Sequence[str]) -> list[ReferenceChunk]:
        ...


def parse_json_list(value: Any) -> list[str]:
    """Parse a JSON array column; missing or malformed values are an empty list."""
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError) as e:
        logger.debug("Malformed tag JSON %r: %s", value, e)
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed]


def _to_json_list(values: Iterable[str] | None) -> str:
    return json.dumps([str(v) for v in (values or []) if str(v).strip()])


class SQLiteTranscriptStore:
    """Transcript store over the SQLite schema in backend/app/db/migrations."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    def list_documents(self) -> list[ReferenceDocument]:
        with connect(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT t.id, t.title, t.summary, t.episode, t.season, t.content,
                       m.fears_json, m.cast_json, m.themes_json, m.locations_json, m.warnings_json
                FROM transcripts t
                LEFT JOIN transcript_metadata m ON t.id = m.transcript_id
                ORDER BY t.created_at, t.rowid
                """
            ).fetchall()
        docs: list[ReferenceDocument] = []
        for row in rows:
            tags = {field: parse_json_list(row[col]) for col, field in _TAG_COLUMNS.items()}
            docs.append(
                ReferenceDocument(
                    id=row["id"],
                    title=row["title"],
                    summary=row["summary"],
                    episode=row["episode"],
                    season=row["season"],
                    content=row["content"] or "",
                    **tags,
                )
            )
        return docs

    def list_chunks(self, transcript_ids: Sequence[str]) -> list[ReferenceChunk]:
        """Chunks for the given transcripts, in the order the ids were passed, then by chunk index."""
        ids = [str(i) for i in transcript_ids if i]
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        with connect(self.db_path) as conn:
            rows = conn.execute(
                f"SELECT transcript_id, chunk_index, content FROM transcript_chunks "
                f"WHERE transcript_id IN ({placeholders}) ORDER BY chunk_index",
                ids,
            ).fetchall()
        rank = {tid: pos for pos, tid in enumerate(dict.fromkeys(ids))}
        chunks = [
            ReferenceChunk(transcript_id=row["transcript_id"], chunk_index=row["chunk_index"], content=row["content"])
            for row in rows
        ]
        chunks.sort(key=lambda c: rank[c.transcript_id])
        return chunks

    def collect_filter_options(self) -> FilterCatalog:
        """Sorted distinct tag values per category, for the filter selection step."""
        buckets: dict[str, set[str]] = {field: set() for field in _TAG_COLUMNS.values()}
        with connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT fears_json, cast_json, themes_json, locations_json, warnings_json FROM transcript_metadata"
            ).fetchall()
        for row in rows:
            for col, field in _TAG_COLUMNS.items():
                buckets[field].update(parse_json_list(row[col]))
        return FilterCatalog(**{field: sorted(values) for field, values in buckets.items()})

    def save_document(
        self,
        *,
        title: str,
        content: str,
        chunks: Sequence[str],
        summary: str | None = None,
        episode: int | None = None,
        season: int | None = None,
        fears: Iterable[str] | None = None,
        cast: Iterable[str] | None = None,
        motifs: Iterable[str] | None = None,
        locations: Iterable[str] | None = None,
        warnings: Iterable[str] | None = None,
        transcript_id: str | None = None,
    ) -> str:
        """Insert a transcript with metadata and chunks. Returns the transcript id."""
        transcript_id = transcript_id or str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        with connect(self.db_path) as conn:
            conn.execute(
                "INSERT INTO transcripts (id, title, summary, episode, season, content, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (transcript_id, title, summary, episode, season, content, now),
            )
            conn.execute(
                "INSERT INTO transcript_metadata "
                "(transcript_id, fears_json, cast_json, themes_json, locations_json, warnings_json, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    transcript_id,
                    _to_json_list(fears),
                    _to_json_list(cast),
                    _to_json_list(motifs),
                    _to_json_list(locations),
                    _to_json_list(warnings),
                    now,
                ),
            )
            conn.executemany(
                "INSERT INTO transcript_chunks (transcript_id, chunk_index, content) VALUES (?, ?, ?)",
                [(transcript_id, idx, text) for idx, text in enumerate(chunks)],
            )
        logger.info("Saved transcript %s (%s) with %d chunks", transcript_id, title, len(chunks))
        return transcript_id
