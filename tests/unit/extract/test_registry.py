"""Tests for ContentExtractor format dispatch."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from docvault.errors import ExtractionError, UnsupportedFormat
from docvault.extract.base import UploadedFile
from docvault.extract.registry import ContentExtractor


@pytest.fixture
def extractor():
    return ContentExtractor()


@pytest.mark.parametrize(
    "name,mime,capability",
    [
        ("a.pdf", "application/pdf", "pdf"),
        ("a.bin", "application/pdf", "pdf"),
        ("a.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "spreadsheet"),
        ("a.xls", "application/vnd.ms-excel", "spreadsheet"),
        ("a.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", "word"),
        ("a.txt", "text/plain; charset=utf-8", "text"),
        # Extension fallback when the MIME type is missing or generic
        ("a.pdf", "", "pdf"),
        ("A.XLSX", "application/octet-stream", "spreadsheet"),
        ("notes.md", "", "text"),
        ("OLD.XLS", "", "spreadsheet"),
    ],
)
def test_resolve_dispatch(extractor, name, mime, capability):
    resolved = extractor.resolve(UploadedFile(name, mime, b""))
    assert resolved is not None
    assert resolved.capability == capability


def test_mime_takes_precedence_over_extension(extractor):
    resolved = extractor.resolve(UploadedFile("data.txt", "application/pdf", b""))
    assert resolved.capability == "pdf"


@pytest.mark.parametrize(
    "name,mime",
    [("photo.png", "image/png"), ("archive.zip", ""), ("legacy.doc", "application/msword")],
)
def test_unsupported_formats(extractor, name, mime):
    file = UploadedFile(name, mime, b"data")
    assert extractor.is_supported(file) is False
    with pytest.raises(UnsupportedFormat, match=name):
        extractor.extract(file)


def test_xls_dispatches_to_the_legacy_reader(extractor):
    file = UploadedFile("legacy.xls", "application/vnd.ms-excel", b"\xd0\xcf\x11\xe0")
    assert extractor.is_supported(file)
    assert type(extractor.resolve(file)).__name__ == "LegacySpreadsheetExtractor"


def test_corrupt_xls_becomes_extraction_error(extractor):
    file = UploadedFile("legacy.xls", "application/vnd.ms-excel", b"not an xls")
    with pytest.raises(ExtractionError, match="legacy.xls"):
        extractor.extract(file)


def test_extract_strips_text(extractor):
    file = UploadedFile("a.txt", "text/plain", b"  \n hello \n\n")
    assert extractor.extract(file) == "hello"


def test_parser_failure_becomes_extraction_error(extractor):
    file = UploadedFile("broken.pdf", "application/pdf", b"not a pdf")
    with patch("docvault.extract.pdf.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.side_effect = ValueError("EOF marker not found")
        with pytest.raises(ExtractionError, match="broken.pdf") as exc_info:
            extractor.extract(file)
    assert "EOF marker" in exc_info.value.reason


def test_custom_extractor_list():
    fake = MagicMock()
    fake.accepts_mime.return_value = True
    fake.extract.return_value = "fake text"
    extractor = ContentExtractor([fake])
    assert extractor.extract(UploadedFile("x.any", "x/any", b"")) == "fake text"
