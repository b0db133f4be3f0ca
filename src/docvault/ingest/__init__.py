"""docvault ingest pipeline: chunking and per-file orchestration."""

from docvault.ingest.chunker import DEFAULT_CHUNK_SIZE, split
from docvault.ingest.orchestrator import (
    BatchSummary,
    FileResult,
    IngestionOrchestrator,
    IngestState,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "BatchSummary",
    "FileResult",
    "IngestState",
    "IngestionOrchestrator",
    "split",
]
