"""``archivist ingest`` — ingest transcript .txt/.pdf files into the transcript store."""
from __future__ import annotations

from pathlib import Path

from backend.app.config import DEFAULT_DB_PATH, TRANSCRIPT_DATA_DIR
from shared.config import CHUNK_TARGET_CHARS


def register(subparsers) -> None:
    p = subparsers.add_parser("ingest", help="Ingest transcript .txt/.pdf files into the SQLite store")
    p.add_argument("--input", type=str, default=None, help=f"Input directory (default: {TRANSCRIPT_DATA_DIR})")
    p.add_argument("--db", type=str, default=DEFAULT_DB_PATH, help="SQLite database path")
    p.add_argument("--recursive", action="store_true", help="Recurse into subfolders")
    p.add_argument("--chunk-chars", type=int, default=CHUNK_TARGET_CHARS, help="Target chunk size in characters")
    p.add_argument("--tag", dest="tag", action="store_true", help="Suggest metadata with the tagger model")
    p.add_argument("--no-tag", dest="tag", action="store_false", help="Disable metadata suggestion")
    p.set_defaults(tag=None, func=run)


def run(args) -> int:
    input_dir = Path(args.input or TRANSCRIPT_DATA_DIR)
    if not input_dir.is_dir():
        print(f"  ERROR: input directory not found: {input_dir}")
        print("         Put MAG-style .txt or .pdf transcripts there or pass --input <dir>")
        return 1

    argv = ["--input_dir", str(input_dir), "--db", args.db, "--chunk-chars", str(args.chunk_chars)]
    if args.recursive:
        argv.append("--recursive")
    if args.tag is True:
        argv.append("--tag")
    elif args.tag is False:
        argv.append("--no-tag")

    from ingestion.ingest import main as ingest_main
    return ingest_main(argv)
