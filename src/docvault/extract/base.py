"""Base extractor interface and the uploaded-file value type."""

from __future__ import annotations

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class UploadedFile:
    """A binary upload together with its declared MIME type and file name."""

    name: str
    mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path | str, mime_type: str | None = None) -> "UploadedFile":
        """Read *path* from disk, guessing the MIME type from its name if not given."""
        p = Path(path)
        guessed = mime_type or mimetypes.guess_type(p.name)[0] or ""
        return cls(name=p.name, mime_type=guessed, data=p.read_bytes())

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @property
    def normalized_mime(self) -> str:
        """MIME type lower-cased with parameters (``; charset=...``) removed."""
        return self.mime_type.split(";", 1)[0].strip().lower()


class BaseExtractor(ABC):
    """Abstract base for all format extractors.

    Subclasses declare which MIME types and extensions they handle and
    implement ``extract()``. Parser exceptions may propagate;
    ``ContentExtractor`` wraps them in ``ExtractionError``.
    """

    capability: str = ""
    mime_types: frozenset[str] = frozenset()
    extensions: frozenset[str] = frozenset()

    def accepts_mime(self, mime_type: str) -> bool:
        return mime_type in self.mime_types

    def accepts_extension(self, extension: str) -> bool:
        return extension in self.extensions

    @abstractmethod
    def extract(self, file: UploadedFile) -> str:
        """Return the plain text of *file*."""
