"""Spreadsheet extractors: one text section per worksheet.

.xlsx/.xlsm workbooks are read with openpyxl, legacy .xls (BIFF) workbooks
with xlrd. Both render the same layout.
"""

from __future__ import annotations

import io
from collections.abc import Iterable

import openpyxl
import xlrd

from docvault.extract.base import BaseExtractor, UploadedFile


class SpreadsheetExtractor(BaseExtractor):
    """Flatten every worksheet of an .xlsx workbook to text.

    Each sheet (workbook order) becomes a ``Sheet: <name>`` header line
    followed by its rows, cells separated by tabs. Fully empty rows are
    dropped. Sheets are separated by a blank line.
    """

    capability = "spreadsheet"
    mime_types = frozenset(
        {
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-excel.sheet.macroenabled.12",
        }
    )
    extensions = frozenset({".xlsx", ".xlsm"})

    def accepts_mime(self, mime_type: str) -> bool:
        return mime_type in self.mime_types or "spreadsheetml" in mime_type

    def extract(self, file: UploadedFile) -> str:
        workbook = openpyxl.load_workbook(io.BytesIO(file.data), read_only=True, data_only=True)
        try:
            sections = [
                sheet_text(sheet.title, sheet.iter_rows(values_only=True))
                for sheet in workbook.worksheets
            ]
        finally:
            workbook.close()
        return "\n\n".join(sections)


class LegacySpreadsheetExtractor(BaseExtractor):
    """Flatten a legacy Excel 97-2003 (.xls) workbook, same layout as .xlsx."""

    capability = "spreadsheet"
    mime_types = frozenset({"application/vnd.ms-excel"})
    extensions = frozenset({".xls"})

    def extract(self, file: UploadedFile) -> str:
        book = xlrd.open_workbook(file_contents=file.data)
        try:
            sections = [
                sheet_text(sheet.name, ([cell.value for cell in row] for row in sheet.get_rows()))
                for sheet in book.sheets()
            ]
        finally:
            book.release_resources()
        return "\n\n".join(sections)


def sheet_text(title: str, rows: Iterable[Iterable[object]]) -> str:
    lines = [f"Sheet: {title}"]
    for row in rows:
        cells = [_cell_text(value) for value in row]
        if any(cell.strip() for cell in cells):
            lines.append("\t".join(cells).rstrip("\t"))
    return "\n".join(lines)


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    # xlrd reports every number as a float.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
