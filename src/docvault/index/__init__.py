"""Persistent document index."""

from docvault.index.store import DEFAULT_CONTENT_CAP, DocumentIndexStore

__all__ = ["DEFAULT_CONTENT_CAP", "DocumentIndexStore"]
