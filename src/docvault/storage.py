"""Cloud storage boundary and a local-directory implementation.

The pipeline only needs three calls from external storage: upload a file
into a folder, delete a stored file, and list a folder. Failures surface as
``CloudStorageError`` and are never fatal to indexing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from docvault.errors import CloudStorageError
from docvault.extract.base import UploadedFile

LOCAL_REF_PREFIX = "local-"

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class StorageEntry:
    ref: str
    name: str
    size: int = 0
    is_folder: bool = False


class CloudStorage(Protocol):
    """What the pipeline calls on external file storage."""

    def upload(
        self, file: UploadedFile, folder_id: str, progress_cb: ProgressCallback | None = None
    ) -> str:
        """Store *file* under *folder_id* and return its storage reference."""
        ...

    def delete(self, ref: str) -> None: ...

    def list_folder_children(self, folder_id: str) -> list[StorageEntry]: ...


def is_local_ref(ref: str | None) -> bool:
    """True for surrogate ids that were never uploaded anywhere."""
    return ref is None or ref.startswith(LOCAL_REF_PREFIX)


class DirectoryStorage:
    """``CloudStorage`` backed by a local directory.

    Folder ids are sub-directory names below *root*; references are
    ``<folder_id>/<uuid>-<file name>`` paths relative to *root*.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def upload(
        self, file: UploadedFile, folder_id: str, progress_cb: ProgressCallback | None = None
    ) -> str:
        folder = self._resolve(folder_id)
        ref = f"{folder_id}/{uuid.uuid4().hex}-{Path(file.name).name}"
        if progress_cb:
            progress_cb(0)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            (self.root / ref).write_bytes(file.data)
        except OSError as exc:
            raise CloudStorageError(f"Upload of '{file.name}' failed: {exc}") from exc
        if progress_cb:
            progress_cb(100)
        return ref

    def delete(self, ref: str) -> None:
        path = self._resolve(ref)
        try:
            path.unlink()
        except OSError as exc:
            raise CloudStorageError(f"Delete of '{ref}' failed: {exc}") from exc

    def list_folder_children(self, folder_id: str) -> list[StorageEntry]:
        folder = self._resolve(folder_id)
        if not folder.is_dir():
            raise CloudStorageError(f"Folder '{folder_id}' does not exist")
        return [
            StorageEntry(
                ref=f"{folder_id}/{child.name}",
                name=child.name,
                size=0 if child.is_dir() else child.stat().st_size,
                is_folder=child.is_dir(),
            )
            for child in sorted(folder.iterdir())
        ]

    def _resolve(self, relative: str) -> Path:
        root = self.root.resolve()
        path = (root / relative).resolve()
        if path != root and root not in path.parents:
            raise CloudStorageError(f"Storage path '{relative}' escapes the storage root")
        return path
