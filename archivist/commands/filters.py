"""``archivist filters`` — list tag values available for filtering."""
from __future__ import annotations

import json
from pathlib import Path

from backend.app.config import DEFAULT_DB_PATH


def register(subparsers) -> None:
    p = subparsers.add_parser("filters", help="List fears, cast, motifs, locations and warnings in the corpus")
    p.add_argument("--db", type=str, default=DEFAULT_DB_PATH, help="SQLite database path")
    p.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p.set_defaults(func=run)


def run(args) -> int:
    if not Path(args.db).exists():
        print(f"  ERROR: transcript database not found at {args.db}")
        print("         Run ingestion first: archivist ingest --input <dir>")
        return 1

    from backend.app.rag.transcript_store import SQLiteTranscriptStore

    catalog = SQLiteTranscriptStore(args.db).collect_filter_options()
    if args.json:
        print(json.dumps(catalog.model_dump(), indent=2))
        return 0
    for key, values in catalog.model_dump().items():
        print(f"{key}: {', '.join(values) if values else '-'}")
    return 0
