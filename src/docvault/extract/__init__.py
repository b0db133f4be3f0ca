"""Text extraction from uploaded binary documents."""

from docvault.extract.base import BaseExtractor, UploadedFile
from docvault.extract.pdf import PdfExtractor
from docvault.extract.plaintext import PlainTextExtractor
from docvault.extract.registry import ContentExtractor, default_extractors
from docvault.extract.spreadsheet import LegacySpreadsheetExtractor, SpreadsheetExtractor
from docvault.extract.word import WordExtractor

__all__ = [
    "BaseExtractor",
    "ContentExtractor",
    "LegacySpreadsheetExtractor",
    "PdfExtractor",
    "PlainTextExtractor",
    "SpreadsheetExtractor",
    "UploadedFile",
    "WordExtractor",
    "default_extractors",
]
