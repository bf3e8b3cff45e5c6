"""``archivist context`` — show the reference context assembled for a seed."""
from __future__ import annotations

import json
from pathlib import Path

from backend.app.config import DEFAULT_DB_PATH
from backend.app.models.generation import GenerationFilters


def add_generation_arguments(p) -> None:
    """Seed, store and filter flags shared by context/outline/draft."""
    p.add_argument("seed", help="Seed idea for the episode")
    p.add_argument("--db", type=str, default=DEFAULT_DB_PATH, help="SQLite database path")
    p.add_argument("--fear", dest="fears", action="append", default=[], help="Fear filter (repeatable)")
    p.add_argument("--cast", dest="cast", action="append", default=[], help="Cast filter (repeatable)")
    p.add_argument("--motif", dest="motifs", action="append", default=[], help="Motif filter (repeatable)")
    p.add_argument("--location", dest="locations", action="append", default=[], help="Location filter (repeatable)")
    p.add_argument("--warning", dest="warnings", action="append", default=[], help="Content warning filter (repeatable)")
    p.add_argument("--tone", choices=["classic", "modern", "experimental"], default=None, help="Tone preset")
    p.add_argument("--length", choices=["short", "episode", "long"], default=None, help="Length preset")
    p.add_argument("--brief", type=str, default=None, help="Run brief")
    p.add_argument("--include-cast", dest="include_cast", action="store_true", default=None, help="Allow established cast")
    p.add_argument("--no-cast", dest="include_cast", action="store_false", help="Forbid established cast")
    p.add_argument("--allow-canon", action="store_true", help="Allow full canon carryover")


def filters_from_args(args) -> GenerationFilters:
    return GenerationFilters(
        fears=args.fears,
        cast=args.cast,
        motifs=args.motifs,
        locations=args.locations,
        warnings=args.warnings,
        tone=args.tone,
        length=args.length,
        brief=args.brief,
        include_cast=args.include_cast,
        allow_canon=args.allow_canon,
    )


def check_db(db_path: str) -> bool:
    if Path(db_path).exists():
        return True
    print(f"  ERROR: transcript database not found at {db_path}")
    print("         Run ingestion first: archivist ingest --input <dir>")
    return False


def register(subparsers) -> None:
    p = subparsers.add_parser("context", help="Show the reference context assembled for a seed")
    add_generation_arguments(p)
    p.add_argument("--json", action="store_true", help="Print the full bundle as JSON")
    p.set_defaults(func=run)


def run(args) -> int:
    if not check_db(args.db):
        return 1

    from backend.app.rag.context_assembler import build_context
    from backend.app.rag.transcript_store import SQLiteTranscriptStore

    bundle = build_context(args.seed, filters_from_args(args), SQLiteTranscriptStore(args.db))
    if args.json:
        print(json.dumps(bundle.model_dump(), indent=2))
        return 0
    print(bundle.context or "(empty corpus)")
    print()
    print(f"style_only={bundle.style_only} sources={len(bundle.sources)} forbidden_terms={len(bundle.forbidden_terms)}")
    return 0
