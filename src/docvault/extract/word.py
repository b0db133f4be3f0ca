"""Word extractor: raw paragraph text via python-docx."""

from __future__ import annotations

import io

import docx

from docvault.extract.base import BaseExtractor, UploadedFile


class WordExtractor(BaseExtractor):
    """Extract paragraph text from a .docx document, discarding formatting.

    Non-empty paragraphs are separated by a blank line. Table rows follow the
    body text, one line per row with cells joined by `` | ``.
    """

    capability = "word"
    mime_types = frozenset(
        {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
    )
    extensions = frozenset({".docx"})

    def accepts_mime(self, mime_type: str) -> bool:
        return mime_type in self.mime_types or "wordprocessingml" in mime_type

    def extract(self, file: UploadedFile) -> str:
        document = docx.Document(io.BytesIO(file.data))
        parts = [p.text.strip() for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            rows = []
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    rows.append(" | ".join(cells))
            if rows:
                parts.append("\n".join(rows))
        return "\n\n".join(parts)
