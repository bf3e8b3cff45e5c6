"""Pytest setup for ingestion tests: force temp files into workspace, no network tagger.

This mirrors `backend/tests/conftest.py` so ingestion tests don't depend on
system temp directories (which can be permission-restricted in some setups).
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Before backend.app.config is imported: the tagger role must not reach a real model.
os.environ.setdefault("ARCHIVIST_METADATA_TAGGER_PROVIDER", "none")


def pytest_sessionstart(session) -> None:
    """Redirect temp files to a writable workspace path for ingestion tests."""
    tmp_root = Path(__file__).resolve().parent / ".tmp"
    tmp_root.mkdir(parents=True, exist_ok=True)
    for key in ("TMPDIR", "TEMP", "TMP"):
        os.environ[key] = str(tmp_root)
    tempfile.tempdir = str(tmp_root)
