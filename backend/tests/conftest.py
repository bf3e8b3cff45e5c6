"""Pytest setup: force temp files into workspace, disable network model providers, shared fakes."""
from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

# Before backend.app.config is imported: no role may resolve to a network provider.
os.environ["ARCHIVIST_GENERATION_PROVIDER"] = "none"
os.environ["ARCHIVIST_METADATA_TAGGER_PROVIDER"] = "none"


def pytest_sessionstart(session) -> None:
    """Redirect temp files to a writable workspace path for tests."""
    tmp_root = Path(__file__).resolve().parent / ".tmp"
    tmp_root.mkdir(parents=True, exist_ok=True)
    for key in ("TMPDIR", "TEMP", "TMP"):
        os.environ[key] = str(tmp_root)
    tempfile.tempdir = str(tmp_root)

    class _WorkspaceTemporaryDirectory:
        """TemporaryDirectory variant that uses a workspace path with safe permissions."""

        def __init__(self, suffix: str | None = None, prefix: str | None = None, dir: str | None = None, **_kwargs):
            base = Path(dir) if dir else tmp_root
            name = f"{(prefix or 'tmp')}{uuid4().hex}{suffix or ''}"
            self._path = base / name
            self._path.mkdir(parents=True, exist_ok=False)

        def __enter__(self) -> str:
            return str(self._path)

        def __exit__(self, exc_type, exc, tb) -> None:
            shutil.rmtree(self._path, ignore_errors=True)

    tempfile.TemporaryDirectory = _WorkspaceTemporaryDirectory


class ScriptedBinding:
    """Generator binding that replays canned responses (or raises canned errors) in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls: list[tuple[list[dict[str, str]], dict]] = []

    def __call__(self, messages, options):
        self.calls.append(([dict(m) for m in messages], dict(options)))
        if not self.responses:
            raise AssertionError(f"unexpected model call #{len(self.calls)}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def system_prompt(self, index: int) -> str:
        return self.calls[index][0][0]["content"]

    def user_prompt(self, index: int) -> str:
        return self.calls[index][0][-1]["content"]


@pytest.fixture
def scripted():
    """Factory: ``scripted([...])`` -> ScriptedBinding."""
    return ScriptedBinding


@pytest.fixture
def db_path(tmp_path):
    from backend.app.db.migrate import apply_schema

    path = str(tmp_path / "archivist.db")
    apply_schema(path)
    return path
