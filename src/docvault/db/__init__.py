"""docvault database layer."""

from docvault.db.connection import Database
from docvault.db.migrations import MIGRATIONS, run_migrations
from docvault.db.models import Document, Folder, UsageEvent, UsageRecord
from docvault.db.repository import Repository
from docvault.db.schema import initialize
from docvault.db.vectors import ensure_vec_table, model_to_slug, vec_table_name

__all__ = [
    "Database",
    "Document",
    "Folder",
    "Repository",
    "UsageEvent",
    "UsageRecord",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
]
