"""SQLite connection factory for the transcript store.

Provides configured connections with:
- sqlite3.Row row factory (dict-like access)
- Foreign keys enabled (PRAGMA foreign_keys = ON)
"""
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a configured SQLite connection.

    Parent directories are created if they do not exist. The connection does
    not auto-close; callers must close it or use :func:`connect`.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """Context-managed connection: commits on success, always closes."""
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()
