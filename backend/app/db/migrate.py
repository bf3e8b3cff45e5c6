"""Schema migration: applies numbered SQL files from migrations/ in order.

Idempotent: each migration name recorded in schema_migrations; applied once.

Usage:
    python -m backend.app.db.migrate --db ./data/archivist.db
"""
import argparse
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  name TEXT PRIMARY KEY,
  applied_at TEXT NOT NULL
);
"""

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def _migration_files() -> list[Path]:
    """Return sorted list of .sql files in migrations/ (0001_*.sql, 0002_*.sql, ...)."""
    if not MIGRATIONS_DIR.exists():
        return []
    return sorted(MIGRATIONS_DIR.glob("*.sql"))


def apply_schema(db_path: str) -> list[str]:
    """Apply all pending migrations in order. Returns the names applied by this call."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    applied: list[str] = []

    try:
        conn.executescript(SCHEMA_MIGRATIONS_TABLE)
        conn.commit()

        cursor = conn.cursor()
        for fp in _migration_files():
            name = fp.stem  # e.g. 0001_transcripts
            cursor.execute(
                "SELECT name FROM schema_migrations WHERE name = ?",
                (name,),
            )
            if cursor.fetchone():
                continue
            conn.executescript(fp.read_text(encoding="utf-8"))
            cursor.execute(
                "INSERT INTO schema_migrations (name, applied_at) VALUES (?, ?)",
                (name, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
            applied.append(name)
            logger.info("Applied migration %s to %s", name, db_path)
    finally:
        conn.close()
    return applied


def main() -> None:
    from backend.app.config import DEFAULT_DB_PATH

    parser = argparse.ArgumentParser(
        description="Apply migrations to the transcript SQLite database."
    )
    parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DB_PATH,
        help="Path to SQLite database file",
    )
    args = parser.parse_args()
    applied = apply_schema(args.db)
    print(f"Migrations applied to {args.db}: {', '.join(applied) or 'none pending'}")


if __name__ == "__main__":
    main()
