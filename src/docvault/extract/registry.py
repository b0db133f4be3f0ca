"""Format dispatch: pick an extractor by MIME type, falling back to extension.

  application/pdf / .pdf                         → PdfExtractor
  ...spreadsheetml.sheet / .xlsx .xlsm           → SpreadsheetExtractor
  application/vnd.ms-excel / .xls                → LegacySpreadsheetExtractor
  ...wordprocessingml.document / .docx           → WordExtractor
  text/plain text/markdown text/csv / .txt .md … → PlainTextExtractor

A declared MIME type that no extractor claims (e.g. application/octet-stream)
does not reject the file on its own; the extension is consulted next.
"""

from __future__ import annotations

from docvault.errors import DocvaultError, ExtractionError, UnsupportedFormat
from docvault.extract.base import BaseExtractor, UploadedFile
from docvault.extract.pdf import PdfExtractor
from docvault.extract.plaintext import PlainTextExtractor
from docvault.extract.spreadsheet import LegacySpreadsheetExtractor, SpreadsheetExtractor
from docvault.extract.word import WordExtractor


def default_extractors() -> list[BaseExtractor]:
    return [
        PdfExtractor(),
        SpreadsheetExtractor(),
        LegacySpreadsheetExtractor(),
        WordExtractor(),
        PlainTextExtractor(),
    ]


class ContentExtractor:
    """Format-polymorphic text extraction."""

    def __init__(self, extractors: list[BaseExtractor] | None = None) -> None:
        self._extractors = extractors if extractors is not None else default_extractors()

    def resolve(self, file: UploadedFile) -> BaseExtractor | None:
        """Return the extractor for *file*, or None if the format is unsupported."""
        mime = file.normalized_mime
        if mime:
            for extractor in self._extractors:
                if extractor.accepts_mime(mime):
                    return extractor
        extension = file.extension
        for extractor in self._extractors:
            if extractor.accepts_extension(extension):
                return extractor
        return None

    def is_supported(self, file: UploadedFile) -> bool:
        return self.resolve(file) is not None

    def extract(self, file: UploadedFile) -> str:
        """Return the stripped text of *file*.

        Raises:
            UnsupportedFormat: No extractor handles the file.
            ExtractionError: The extractor failed to parse the file.
        """
        extractor = self.resolve(file)
        if extractor is None:
            raise UnsupportedFormat(file.name, file.mime_type)
        try:
            text = extractor.extract(file)
        except DocvaultError:
            raise
        except Exception as exc:
            raise ExtractionError(file.name, str(exc) or type(exc).__name__) from exc
        return text.strip()
