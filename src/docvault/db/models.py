"""Domain models for the docvault index database."""

from __future__ import annotations

import json
from dataclasses import dataclass, field


@dataclass
class Folder:
    """Local folder grouping mirrored to a cloud storage folder."""

    id: str
    owner: str
    name: str
    storage_folder_id: str | None = None
    created_at: str | None = None


@dataclass
class Document:
    """One indexed record: an uploaded document, a chunked parent, or a chunk.

    ``parent_id`` is set only on chunks and always names an existing document.
    ``embedding_source`` records whether the stored vector came from the real
    embedding backend (``"real"``) or the offline fallback (``"mock"``).
    """

    owner: str
    name: str
    content: str
    mime_type: str = ""
    byte_size: int = 0
    storage_ref: str | None = None
    folder_id: str | None = None
    category: str | None = None
    parent_id: str | None = None
    embedding_source: str = "real"
    metadata: str = field(default_factory=lambda: "{}")
    id: str | None = None  # assigned by the store on create
    created_at: str | None = None
    rowid: int | None = None  # set after insert; key into the vec table

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)

    @property
    def is_chunk(self) -> bool:
        return self.parent_id is not None


@dataclass
class UsageRecord:
    user_id: str
    total_tokens: int
    last_updated_at: str | None = None


@dataclass
class UsageEvent:
    user_id: str
    tokens: int
    reason: str
    created_at: str | None = None
