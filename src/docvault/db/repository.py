"""Repository pattern for all docvault database operations.

Single interface for: folders, documents (parents and chunks), vec
embeddings, and token usage. Vec tables are model-managed
(ensure_vec_table); the repository handles read + write.
"""

from __future__ import annotations

import json
import sqlite3

from docvault.db.models import Document, Folder, UsageEvent, UsageRecord
from docvault.db.vectors import decode_vector, encode_vector, list_vec_tables

_DOCUMENT_COLUMNS = (
    "rowid, id, owner, name, mime_type, byte_size, storage_ref, folder_id, category, "
    "content, parent_id, embedding_source, metadata, created_at"
)
_INSERT_DOCUMENT_SQL = (
    "INSERT INTO documents (id, owner, name, mime_type, byte_size, storage_ref, folder_id, "
    "category, content, parent_id, embedding_source, metadata) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)


class Repository:
    """Data access layer for all docvault database entities.

    Wraps an open sqlite3.Connection and provides typed methods. The
    connection is owned by the caller and must be closed after use. Errors
    from sqlite3 propagate unchanged; ``docvault.index.store`` maps them to
    ``PersistenceError``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see docvault.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def add_folder(self, folder: Folder) -> None:
        self._conn.execute(
            "INSERT INTO folders (id, owner, name, storage_folder_id) VALUES (?, ?, ?, ?)",
            (folder.id, folder.owner, folder.name, folder.storage_folder_id),
        )
        self._conn.commit()

    def get_folder(self, folder_id: str) -> Folder | None:
        row = self._conn.execute(
            "SELECT id, owner, name, storage_folder_id, created_at FROM folders WHERE id = ?",
            (folder_id,),
        ).fetchone()
        return _row_to_folder(row) if row else None

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_indexed_document(self, doc: Document, table: str, embedding: list[float]) -> int:
        """Insert *doc* and its embedding in one transaction. Returns the new rowid.

        Either both rows are written or neither is.
        """
        with self._conn:
            cur = self._conn.execute(_INSERT_DOCUMENT_SQL, _document_params(doc))
            rowid = cur.lastrowid
            self._conn.execute(
                f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
                (rowid, encode_vector(embedding)),
            )
        return rowid

    def get_document(self, doc_id: str) -> Document | None:
        row = self._conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", (doc_id,)
        ).fetchone()
        return _row_to_document(row) if row else None

    def list_documents(
        self,
        owner: str,
        folder_id: str | None = None,
        category: str | None = None,
    ) -> list[Document]:
        """Return every document (parents and chunks) of *owner*, insertion order.

        Args:
            owner: Owner key.
            folder_id: Restrict to one folder when given.
            category: Restrict to one category when given.
        """
        sql = f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE owner = ?"
        params: list[object] = [owner]
        if folder_id is not None:
            sql += " AND folder_id = ?"
            params.append(folder_id)
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        sql += " ORDER BY rowid"
        return [_row_to_document(r) for r in self._conn.execute(sql, params).fetchall()]

    def list_children(self, parent_id: str) -> list[Document]:
        """Return the chunks of *parent_id* in the order they were persisted."""
        rows = self._conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE parent_id = ? ORDER BY rowid",
            (parent_id,),
        ).fetchall()
        return [_row_to_document(r) for r in rows]

    def update_metadata(self, doc_id: str, patch: dict) -> bool:
        """Merge *patch* into the document's metadata map.

        Returns:
            False if the document does not exist.
        """
        row = self._conn.execute(
            "SELECT metadata FROM documents WHERE id = ?", (doc_id,)
        ).fetchone()
        if row is None:
            return False
        merged = {**json.loads(row["metadata"]), **patch}
        self._conn.execute(
            "UPDATE documents SET metadata = ? WHERE id = ?", (json.dumps(merged), doc_id)
        )
        self._conn.commit()
        return True

    def delete_document(self, doc_id: str) -> int:
        """Delete a document, its chunks, and their embeddings in every vec table.

        Chunk rows go through ``ON DELETE CASCADE``; vec rows are deleted
        explicitly (virtual tables do not take part in foreign keys).

        Returns:
            Number of document rows removed (0 if *doc_id* does not exist).
        """
        rowids = [
            r[0]
            for r in self._conn.execute(
                "SELECT rowid FROM documents WHERE id = ? OR parent_id = ?", (doc_id, doc_id)
            ).fetchall()
        ]
        if not rowids:
            return 0

        placeholders = ",".join("?" * len(rowids))
        with self._conn:
            for table in list_vec_tables(self._conn):
                self._conn.execute(
                    f"DELETE FROM [{table}] WHERE rowid IN ({placeholders})",  # noqa: S608
                    rowids,
                )
            self._conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
        return len(rowids)

    # ------------------------------------------------------------------
    # Vec embeddings
    # ------------------------------------------------------------------

    def get_embedding(self, table: str, rowid: int) -> list[float] | None:
        row = self._conn.execute(
            f"SELECT embedding FROM {table} WHERE rowid = ?", (rowid,)
        ).fetchone()
        return decode_vector(row[0]) if row else None

    def list_candidates(
        self, table: str, owner: str, category: str | None = None
    ) -> list[tuple[Document, list[float]]]:
        """Return (document, embedding) pairs for every embedded document of *owner*."""
        results: list[tuple[Document, list[float]]] = []
        for doc in self.list_documents(owner, category=category):
            embedding = self.get_embedding(table, doc.rowid)
            if embedding is not None:
                results.append((doc, embedding))
        return results

    # ------------------------------------------------------------------
    # Token usage
    # ------------------------------------------------------------------

    def increment_usage(self, user_id: str, tokens: int, reason: str) -> int:
        """Atomically add *tokens* to the user's total and log the event.

        The increment is a single UPSERT, so concurrent writers cannot lose
        updates the way a read-modify-write would.

        Returns:
            The user's new total.
        """
        if tokens < 0:
            raise ValueError("tokens must be >= 0")
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO token_usage (user_id, total_tokens, last_updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(user_id) DO UPDATE SET
                    total_tokens = total_tokens + excluded.total_tokens,
                    last_updated_at = excluded.last_updated_at
                """,
                (user_id, tokens),
            )
            self._conn.execute(
                "INSERT INTO usage_events (user_id, tokens, reason) VALUES (?, ?, ?)",
                (user_id, tokens, reason),
            )
        row = self._conn.execute(
            "SELECT total_tokens FROM token_usage WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row["total_tokens"]

    def get_usage(self, user_id: str) -> UsageRecord | None:
        row = self._conn.execute(
            "SELECT user_id, total_tokens, last_updated_at FROM token_usage WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return UsageRecord(
            user_id=row["user_id"],
            total_tokens=row["total_tokens"],
            last_updated_at=row["last_updated_at"],
        )

    def usage_by_reason(self, user_id: str) -> dict[str, int]:
        rows = self._conn.execute(
            "SELECT reason, SUM(tokens) AS total FROM usage_events WHERE user_id = ? "
            "GROUP BY reason ORDER BY reason",
            (user_id,),
        ).fetchall()
        return {r["reason"]: r["total"] for r in rows}

    def recent_usage_events(self, user_id: str, limit: int = 10) -> list[UsageEvent]:
        rows = self._conn.execute(
            "SELECT user_id, tokens, reason, created_at FROM usage_events "
            "WHERE user_id = ? ORDER BY id DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
        return [
            UsageEvent(
                user_id=r["user_id"],
                tokens=r["tokens"],
                reason=r["reason"],
                created_at=r["created_at"],
            )
            for r in rows
        ]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_folder(row: sqlite3.Row) -> Folder:
    return Folder(
        id=row["id"],
        owner=row["owner"],
        name=row["name"],
        storage_folder_id=row["storage_folder_id"],
        created_at=row["created_at"],
    )


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        rowid=row["rowid"],
        id=row["id"],
        owner=row["owner"],
        name=row["name"],
        mime_type=row["mime_type"],
        byte_size=row["byte_size"],
        storage_ref=row["storage_ref"],
        folder_id=row["folder_id"],
        category=row["category"],
        content=row["content"],
        parent_id=row["parent_id"],
        embedding_source=row["embedding_source"],
        metadata=row["metadata"],
        created_at=row["created_at"],
    )


def _document_params(doc: Document) -> tuple:
    return (
        doc.id,
        doc.owner,
        doc.name,
        doc.mime_type,
        doc.byte_size,
        doc.storage_ref,
        doc.folder_id,
        doc.category,
        doc.content,
        doc.parent_id,
        doc.embedding_source,
        doc.metadata,
    )
