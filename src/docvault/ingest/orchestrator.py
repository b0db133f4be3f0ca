"""Ingestion orchestrator: upload → extract → embed → persist (→ chunk).

Per-file state machine::

    RECEIVED → EXTRACTING → EXTRACTED → EMBEDDING → PERSISTING
        → PERSISTED                                   (text fits the content cap)
        → PERSISTING_CHUNKS → FINALIZED               (text above the cap)
    → DONE

Any file-fatal error moves the file to FAILED with a reason naming the file.
Error handling follows ``docvault.outcome.POLICY``: extraction errors abort
the file, a record-fatal error aborts the file only when it hits the primary
record (a failing chunk is logged and counted), ledger and storage errors are
logged and ignored.

Files in a batch are processed strictly one after another; a failed file
never stops the batch.
"""

from __future__ import annotations

import json
import secrets
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Iterator, Union

import structlog

from docvault.db.models import Document
from docvault.embedding.generator import Embedding, EmbeddingGenerator
from docvault.errors import ExtractionEmpty
from docvault.extract.base import UploadedFile
from docvault.extract.registry import ContentExtractor
from docvault.index.store import DocumentIndexStore
from docvault.ingest.chunker import DEFAULT_CHUNK_SIZE, split
from docvault.outcome import Outcome, attempt
from docvault.storage import LOCAL_REF_PREFIX, CloudStorage
from docvault.usage.ledger import TokenUsageLedger

log = structlog.get_logger(__name__)

FAILED = "failed"

# (file name, percent 0–100 or the "failed" sentinel)
ProgressCallback = Callable[[str, Union[int, str]], None]


class IngestState(str, Enum):
    RECEIVED = "received"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    PERSISTED = "persisted"
    PERSISTING_CHUNKS = "persisting_chunks"
    FINALIZED = "finalized"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FileResult:
    """Outcome of ingesting one file."""

    file_name: str
    state: IngestState = IngestState.RECEIVED
    document_id: str | None = None
    storage_ref: str | None = None
    is_chunked: bool = False
    chunks_created: int = 0
    chunks_failed: int = 0
    embedding_source: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.state is IngestState.DONE


@dataclass
class BatchSummary:
    succeeded: int = 0
    failed: int = 0
    results: list[FileResult] = field(default_factory=list)


def surrogate_ref() -> str:
    """Locally unique storage reference for files not mirrored to cloud storage."""
    return f"{LOCAL_REF_PREFIX}{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def preview_content(text: str, chunk_count: int, content_cap: int) -> str:
    """Truncated parent content: a prefix of *text* plus a marker, at most *content_cap* chars."""
    marker = (
        f"\n\n[Document split into {chunk_count} chunks; "
        f"original length {len(text)} characters]"
    )
    return text[: max(0, content_cap - len(marker))] + marker


class IngestionOrchestrator:
    """Drive uploaded files through extraction, embedding, and persistence.

    Args:
        extractor: Format dispatcher producing plain text.
        embedder: Embedding generator (degrades to mock vectors).
        store: Document index store.
        ledger: Token usage ledger; every embedded unit is billed to the owner.
        storage: Cloud storage for the original upload, if connected.
        chunk_size: Bound for chunk windows.
        workers: Concurrent chunk-embedding calls (1 = sequential). Store and
            ledger writes always stay sequential in chunk order.
    """

    def __init__(
        self,
        extractor: ContentExtractor,
        embedder: EmbeddingGenerator,
        store: DocumentIndexStore,
        ledger: TokenUsageLedger,
        storage: CloudStorage | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        workers: int = 1,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._extractor = extractor
        self._embedder = embedder
        self._store = store
        self._ledger = ledger
        self._storage = storage
        self._chunk_size = chunk_size
        self._workers = workers

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest_batch(
        self,
        files: Iterable[UploadedFile],
        owner: str,
        folder_id: str | None = None,
        category: str | None = None,
        progress_cb: ProgressCallback | None = None,
    ) -> BatchSummary:
        """Ingest *files* one at a time; failures are collected, never raised."""
        summary = BatchSummary()
        for file in files:
            result = self.ingest_file(file, owner, folder_id, category, progress_cb)
            summary.results.append(result)
            if result.ok:
                summary.succeeded += 1
            else:
                summary.failed += 1
        log.info("batch_ingested", owner=owner, succeeded=summary.succeeded, failed=summary.failed)
        return summary

    def ingest_file(
        self,
        file: UploadedFile,
        owner: str,
        folder_id: str | None = None,
        category: str | None = None,
        progress_cb: ProgressCallback | None = None,
    ) -> FileResult:
        """Ingest a single file. Returns a DONE or FAILED ``FileResult``."""
        result = FileResult(file_name=file.name)

        def emit(progress: int | str) -> None:
            if progress_cb is not None:
                progress_cb(file.name, progress)

        try:
            return self._run_steps(file, result, owner, folder_id, category, emit)
        except Exception as exc:
            # Anything a collaborator raises outside the docvault hierarchy
            # still fails only this file.
            log.exception("file_ingest_crashed", file=file.name, stage=result.state.value)
            return self._fail(result, exc, emit)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _run_steps(
        self,
        file: UploadedFile,
        result: FileResult,
        owner: str,
        folder_id: str | None,
        category: str | None,
        emit: Callable[[int | str], None],
    ) -> FileResult:
        emit(0)
        result.storage_ref = self._resolve_storage_ref(file, folder_id)

        result.state = IngestState.EXTRACTING
        extracted = attempt(lambda: self._extract(file))
        if not extracted.ok:
            return self._fail(result, extracted.error, emit)
        text = extracted.value
        result.state = IngestState.EXTRACTED
        emit(20)

        content_cap = self._store.content_cap
        result.is_chunked = len(text) > content_cap
        pieces = split(text, self._chunk_size) if result.is_chunked else []
        primary_content = (
            preview_content(text, len(pieces), content_cap) if result.is_chunked else text
        )

        result.state = IngestState.EMBEDDING
        embedded = attempt(lambda: self._embedder.embed(primary_content))
        if not embedded.ok:
            return self._fail(result, embedded.error, emit)
        embedding: Embedding = embedded.value
        result.embedding_source = embedding.source
        self._ledger.record_usage(owner, len(text), "upload")

        result.state = IngestState.PERSISTING
        metadata = {
            "source": "upload",
            "upload_date": datetime.now(timezone.utc).isoformat(),
            "is_chunked": result.is_chunked,
            "original_length": len(text),
            "chunks_count": len(pieces) if result.is_chunked else 1,
        }
        if result.is_chunked:
            metadata["chunk_type"] = "main"
        primary = Document(
            owner=owner,
            name=file.name,
            content=primary_content,
            mime_type=file.mime_type,
            byte_size=file.size,
            storage_ref=result.storage_ref,
            folder_id=folder_id,
            category=category,
            embedding_source=embedding.source,
            metadata=json.dumps(metadata),
        )
        created = attempt(lambda: self._store.create(primary, embedding.vector))
        if not created.ok:
            return self._fail(result, created.error, emit)
        result.document_id = created.value

        if not result.is_chunked:
            result.state = IngestState.PERSISTED
        else:
            emit(30)
            result.state = IngestState.PERSISTING_CHUNKS
            self._persist_chunks(primary, metadata, pieces, result, emit)
            patched = attempt(
                lambda: self._store.update(
                    primary.id,
                    {"chunks_created": result.chunks_created, "chunks_failed": result.chunks_failed},
                )
            )
            if not patched.ok:
                log.warning("chunk_counts_patch_failed", document_id=primary.id, error=str(patched.error))
            result.state = IngestState.FINALIZED

        result.state = IngestState.DONE
        emit(100)
        log.info(
            "file_ingested",
            file=file.name,
            document_id=result.document_id,
            is_chunked=result.is_chunked,
            chunks_created=result.chunks_created,
            chunks_failed=result.chunks_failed,
            embedding_source=result.embedding_source,
        )
        return result

    def _resolve_storage_ref(self, file: UploadedFile, folder_id: str | None) -> str:
        """Upload to the folder's cloud mirror when possible, else a surrogate id."""
        if self._storage is None or folder_id is None:
            return surrogate_ref()
        folder = attempt(lambda: self._store.folder(folder_id))
        if not folder.ok or folder.value is None or not folder.value.storage_folder_id:
            return surrogate_ref()
        try:
            return self._storage.upload(file, folder.value.storage_folder_id)
        except Exception as exc:
            log.warning("storage_upload_failed", file=file.name, error=str(exc))
            return surrogate_ref()

    def _extract(self, file: UploadedFile) -> str:
        text = self._extractor.extract(file)
        if not text:
            raise ExtractionEmpty(file.name)
        return text

    def _persist_chunks(
        self,
        parent: Document,
        parent_metadata: dict,
        pieces: list[str],
        result: FileResult,
        emit: Callable[[int | str], None],
    ) -> None:
        total = len(pieces)
        for index, (outcome, piece) in enumerate(zip(self._embed_all(pieces), pieces), start=1):
            if outcome.ok:
                self._ledger.record_usage(parent.owner, len(piece), "upload")
                chunk = Document(
                    owner=parent.owner,
                    name=f"{parent.name} - Part {index}",
                    content=piece,
                    mime_type=parent.mime_type,
                    byte_size=len(piece.encode("utf-8")),
                    folder_id=parent.folder_id,
                    category=parent.category,
                    parent_id=parent.id,
                    embedding_source=outcome.value.source,
                    metadata=json.dumps(
                        {
                            **parent_metadata,
                            "source": "chunk_from_upload",
                            "chunk_type": "chunk",
                            "chunk_index": index,
                            "chunk_of_total": f"{index}/{total}",
                            "parent_file_id": parent.id,
                        }
                    ),
                )
                vector = outcome.value.vector
                outcome = attempt(lambda: self._store.create(chunk, vector))
            if outcome.ok:
                result.chunks_created += 1
            else:
                result.chunks_failed += 1
                log.warning(
                    "chunk_persist_failed",
                    document_id=parent.id,
                    chunk_index=index,
                    error=str(outcome.error),
                )
            emit(30 + (69 * index) // total)

    def _embed_all(self, pieces: list[str]) -> Iterator[Outcome[Embedding]]:
        """Yield one embedding Outcome per piece, in order."""
        if self._workers == 1:
            for piece in pieces:
                yield attempt(lambda: self._embedder.embed(piece))
            return
        with ThreadPoolExecutor(max_workers=self._workers) as pool:
            yield from pool.map(lambda p: attempt(lambda: self._embedder.embed(p)), pieces)

    def _fail(
        self, result: FileResult, error: Exception | None, emit: Callable[[int | str], None]
    ) -> FileResult:
        failed_in = result.state
        result.state = IngestState.FAILED
        result.reason = str(error)
        emit(FAILED)
        log.warning("file_failed", file=result.file_name, stage=failed_in.value, reason=result.reason)
        return result
