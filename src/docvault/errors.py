"""Exception taxonomy for the docvault pipeline.

Every error raised by a pipeline stage derives from ``DocvaultError`` so the
orchestrator can classify it against ``docvault.outcome.POLICY``.
"""

from __future__ import annotations


class DocvaultError(Exception):
    """Base class for all docvault pipeline errors."""


class UnsupportedFormat(DocvaultError):
    """The file's MIME type / extension has no extractor."""

    def __init__(self, file_name: str, mime_type: str = "") -> None:
        self.file_name = file_name
        self.mime_type = mime_type
        kind = mime_type or "unknown type"
        super().__init__(f"Unsupported file type for '{file_name}': {kind}")


class ExtractionError(DocvaultError):
    """A supported file could not be parsed."""

    def __init__(self, file_name: str, reason: str) -> None:
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Could not extract text from '{file_name}': {reason}")


class ExtractionEmpty(DocvaultError):
    """Extraction succeeded but produced no usable text."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"No text could be extracted from '{file_name}'")


class EmbeddingError(DocvaultError):
    """The embedding backend failed and mock fallback is disabled."""


class PersistenceError(DocvaultError):
    """A store write or read failed."""


class LedgerError(DocvaultError):
    """Token usage could not be recorded."""


class CloudStorageError(DocvaultError):
    """An external storage call (upload / delete / list) failed."""
