"""Document index store: validated, scheduled access to persisted documents.

Sits between the pipeline and ``docvault.db.Repository``:

- assigns document ids and rejects content above the cap;
- writes a document and its embedding atomically;
- maps sqlite errors to ``PersistenceError``;
- on delete, removes chunks and vectors locally and the mirrored file from
  cloud storage (best-effort);
- routes every database call through the ``RequestScheduler``.
"""

from __future__ import annotations

import sqlite3
import uuid
from typing import Any, Callable, TypeVar

import structlog

from docvault.db.models import Document, Folder
from docvault.db.repository import Repository
from docvault.errors import PersistenceError
from docvault.scheduler import RequestScheduler
from docvault.storage import CloudStorage, is_local_ref

log = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_CONTENT_CAP = 10_240


class DocumentIndexStore:
    """Create, patch, delete, and list indexed documents.

    Args:
        repo: Repository over the index database.
        scheduler: Admission control for every database call.
        vec_table: vec0 table holding embeddings (see ``ensure_vec_table``).
        storage: Cloud storage to clean up on delete, if any.
        content_cap: Maximum ``content`` length accepted on create.
    """

    def __init__(
        self,
        repo: Repository,
        scheduler: RequestScheduler,
        vec_table: str,
        storage: CloudStorage | None = None,
        content_cap: int = DEFAULT_CONTENT_CAP,
    ) -> None:
        self._repo = repo
        self._scheduler = scheduler
        self._vec_table = vec_table
        self._storage = storage
        self.content_cap = content_cap

    @property
    def vec_table(self) -> str:
        return self._vec_table

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_folder(self, folder: Folder) -> None:
        """Register *folder*; raises ``PersistenceError`` on a duplicate id."""
        self._call(self._repo.add_folder, folder)

    def create(self, document: Document, embedding: list[float]) -> str:
        """Persist *document* with its *embedding*. Returns the new id.

        Sets ``document.id`` (when unset) and ``document.rowid``.

        Raises:
            PersistenceError: Content above the cap, a ``parent_id`` that names
                no document, or any database failure.
        """
        if len(document.content) > self.content_cap:
            raise PersistenceError(
                f"Content of '{document.name}' is {len(document.content)} chars, "
                f"above the {self.content_cap} char cap"
            )
        if document.parent_id is not None and self.get(document.parent_id) is None:
            raise PersistenceError(
                f"Parent document '{document.parent_id}' of '{document.name}' does not exist"
            )
        if document.id is None:
            document.id = str(uuid.uuid4())
        document.rowid = self._call(
            self._repo.add_indexed_document, document, self._vec_table, embedding
        )
        return document.id

    def update(self, doc_id: str, patch: dict[str, Any]) -> None:
        """Merge *patch* into the document's metadata map.

        Raises:
            PersistenceError: The document does not exist or the write failed.
        """
        if not self._call(self._repo.update_metadata, doc_id, patch):
            raise PersistenceError(f"Document '{doc_id}' not found")

    def delete(self, doc_id: str) -> int:
        """Delete a document together with its chunks and embeddings.

        A cloud storage copy is removed first when one exists. Any failure
        there is logged and the local delete goes ahead.

        Returns:
            Number of document rows removed (0 if *doc_id* is unknown).
        """
        document = self.get(doc_id)
        if document is None:
            return 0
        if self._storage is not None and not is_local_ref(document.storage_ref):
            try:
                self._storage.delete(document.storage_ref)
            except Exception as exc:
                log.warning(
                    "storage_delete_failed",
                    document_id=doc_id,
                    storage_ref=document.storage_ref,
                    error=str(exc),
                )
        removed = self._call(self._repo.delete_document, doc_id)
        log.info("document_deleted", document_id=doc_id, rows=removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, doc_id: str) -> Document | None:
        return self._call(self._repo.get_document, doc_id)

    def folder(self, folder_id: str) -> Folder | None:
        return self._call(self._repo.get_folder, folder_id)

    def children(self, doc_id: str) -> list[Document]:
        """Chunks of *doc_id* in chunk order."""
        return self._call(self._repo.list_children, doc_id)

    def list_by_owner_and_folder(self, owner: str, folder_id: str | None = None) -> list[Document]:
        """Every document of *owner* (parents and chunks), optionally in one folder."""
        return self._call(self._repo.list_documents, owner, folder_id)

    def candidates(
        self, owner: str, category: str | None = None
    ) -> list[tuple[Document, list[float]]]:
        """Embedded documents of *owner* with their vectors, in store order."""
        return self._call(self._repo.list_candidates, self._vec_table, owner, category)

    def _call(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return self._scheduler.submit(fn, *args)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Store call {fn.__name__} failed: {exc}") from exc
