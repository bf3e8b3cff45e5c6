"""Shared configuration constants used by backend and ingestion."""
from __future__ import annotations

import os
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean env flag."""
    val = os.environ.get(name, "").strip().lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    """Read int env value; invalid or empty values fall back to default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Project root: resolve relative to this file's location
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Data directories (shared) - use absolute paths to avoid CWD dependency
TRANSCRIPT_DATA_DIR = os.environ.get("TRANSCRIPT_DATA_DIR", str(_PROJECT_ROOT / "data" / "transcripts"))

# Ingestion chunk size (characters, paragraph-bounded)
CHUNK_TARGET_CHARS = _env_int("ARCHIVIST_CHUNK_TARGET_CHARS", 1200)

# Metadata tagging during ingestion: off by default (needs a configured model)
INGESTION_TAGGER_ENABLED = _env_flag("ARCHIVIST_INGESTION_TAGGER_ENABLED", default=False)
