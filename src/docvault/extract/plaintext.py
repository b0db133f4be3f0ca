"""Plain text extractor."""

from __future__ import annotations

from docvault.extract.base import BaseExtractor, UploadedFile


class PlainTextExtractor(BaseExtractor):
    """Decode UTF-8 text files; undecodable bytes become U+FFFD."""

    capability = "text"
    mime_types = frozenset({"text/plain", "text/markdown", "text/csv"})
    extensions = frozenset({".txt", ".md", ".markdown", ".csv", ".log"})

    def extract(self, file: UploadedFile) -> str:
        return file.data.decode("utf-8-sig", errors="replace")
