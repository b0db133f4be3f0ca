"""Schema initialization entry point."""

from __future__ import annotations

import sqlite3

from docvault.db.migrations import MIGRATIONS, run_migrations

CURRENT_VERSION = max(version for version, _ in MIGRATIONS)


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the database schema via the migration runner (idempotent)."""
    run_migrations(conn)
