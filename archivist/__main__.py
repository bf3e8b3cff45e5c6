"""Entry point for ``python -m archivist <command>``.

Commands:
    ingest   – ingest transcript .txt/.pdf files into the SQLite store
    filters  – list the tag values available for filtering
    context  – show the reference context assembled for a seed
    outline  – generate a guarded outline for a seed
    draft    – generate a guarded draft from an outline file
    models   – show resolved per-role model/provider configuration
"""
from archivist.cli import main

if __name__ == "__main__":
    main()
