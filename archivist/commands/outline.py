"""``archivist outline`` — generate a guarded outline for a seed."""
from __future__ import annotations

from archivist.commands.context import add_generation_arguments, check_db, filters_from_args


def register(subparsers) -> None:
    p = subparsers.add_parser("outline", help="Generate a guarded episode outline for a seed")
    add_generation_arguments(p)
    p.add_argument("--notes", type=str, default=None, help="Extra notes for the model")
    p.add_argument("--out", type=str, default=None, help="Write the outline to this file")
    p.set_defaults(func=run)


def run(args) -> int:
    if not check_db(args.db):
        return 1

    from backend.app.core.errors import GenerationError, classify_failure
    from backend.app.core.llm_provider import LLMProviderError
    from backend.app.core.generation_guard import generate_outline
    from backend.app.rag.context_assembler import build_context
    from backend.app.rag.transcript_store import SQLiteTranscriptStore

    filters = filters_from_args(args)
    bundle = build_context(args.seed, filters, SQLiteTranscriptStore(args.db))
    try:
        outline = generate_outline(args.seed, filters, bundle.context, bundle.forbidden_terms, args.notes)
    except (GenerationError, LLMProviderError) as e:
        print(f"  ERROR [{classify_failure(e)}]: {e}")
        return 2

    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(outline + "\n")
        print(f"Outline written to {args.out}")
    else:
        print(outline)
    return 0
