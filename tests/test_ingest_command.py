"""Unit tests for archivist ingest command argument forwarding and return codes."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import patch

from archivist.commands import ingest as ingest_cmd


def _args(tmp_path, **overrides) -> SimpleNamespace:
    values = dict(input=str(tmp_path), db=str(tmp_path / "a.db"), recursive=False, chunk_chars=800, tag=None)
    values.update(overrides)
    return SimpleNamespace(**values)


def test_run_forwards_flags_and_exit_code(tmp_path):
    with patch("ingestion.ingest.main", return_value=7) as ingest_main:
        assert ingest_cmd.run(_args(tmp_path, recursive=True, tag=False)) == 7
    argv = ingest_main.call_args.args[0]
    assert argv[:2] == ["--input_dir", str(tmp_path)]
    assert "--chunk-chars" in argv and "800" in argv
    assert "--recursive" in argv
    assert "--no-tag" in argv
    assert "--tag" not in argv


def test_run_leaves_tagging_to_env_default(tmp_path):
    with patch("ingestion.ingest.main", return_value=0) as ingest_main:
        assert ingest_cmd.run(_args(tmp_path)) == 0
    argv = ingest_main.call_args.args[0]
    assert "--tag" not in argv and "--no-tag" not in argv


def test_run_missing_input_dir(tmp_path):
    assert ingest_cmd.run(_args(tmp_path, input=str(tmp_path / "nope"))) == 1
