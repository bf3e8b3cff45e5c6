"""``archivist draft`` — generate a guarded prose draft from an outline file."""
from __future__ import annotations

from pathlib import Path

from archivist.commands.context import add_generation_arguments, check_db, filters_from_args


def register(subparsers) -> None:
    p = subparsers.add_parser("draft", help="Generate a guarded prose draft from an accepted outline")
    add_generation_arguments(p)
    p.add_argument("--outline-file", type=str, required=True, help="File with the accepted outline")
    p.add_argument("--notes", type=str, default=None, help="Extra notes for the model")
    p.add_argument("--out", type=str, default=None, help="Write the draft to this file")
    p.set_defaults(func=run)


def run(args) -> int:
    outline_path = Path(args.outline_file)
    if not outline_path.is_file():
        print(f"  ERROR: outline file not found: {outline_path}")
        return 1
    if not check_db(args.db):
        return 1

    from backend.app.core.errors import GenerationError, classify_failure
    from backend.app.core.llm_provider import LLMProviderError
    from backend.app.core.generation_guard import generate_draft
    from backend.app.rag.context_assembler import build_context
    from backend.app.rag.transcript_store import SQLiteTranscriptStore

    filters = filters_from_args(args)
    outline = outline_path.read_text(encoding="utf-8")
    bundle = build_context(args.seed, filters, SQLiteTranscriptStore(args.db))
    try:
        draft = generate_draft(args.seed, outline, filters, bundle.context, bundle.forbidden_terms, args.notes)
    except (GenerationError, LLMProviderError) as e:
        print(f"  ERROR [{classify_failure(e)}]: {e}")
        return 2

    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(draft + "\n")
        print(f"Draft written to {args.out}")
    else:
        print(draft)
    return 0
