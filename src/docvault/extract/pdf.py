"""PDF extractor: page-ordered text via pypdf."""

from __future__ import annotations

import io

import pypdf

from docvault.extract.base import BaseExtractor, UploadedFile


class PdfExtractor(BaseExtractor):
    """Extract text page-by-page via ``pypdf.PdfReader``.

    Pages that yield no text (scanned images, etc.) are skipped; the rest are
    joined with a newline in page order.
    """

    capability = "pdf"
    mime_types = frozenset({"application/pdf"})
    extensions = frozenset({".pdf"})

    def extract(self, file: UploadedFile) -> str:
        reader = pypdf.PdfReader(io.BytesIO(file.data))
        parts: list[str] = []
        for page in reader.pages:
            page_text = (page.extract_text() or "").strip()
            if page_text:
                parts.append(page_text)
        return "\n".join(parts)
