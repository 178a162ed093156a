"""
Spreadsheet extractor.

Supported formats:
- XLSX / XLSM (openpyxl, first worksheet, cached values)
- SpreadsheetML 2003 XML and bare sheet XML (ElementTree), including
  files saved with an .xls extension

Legacy binary .xls (BIFF, OLE2 container) is not supported.
"""

import io
import logging
import zipfile
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from xml.etree import ElementTree as ET

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .base import (
    BaseExtractor,
    ExtractionError,
    ExtractionFailure,
    FileKind,
    RawFile,
    StrategyResult,
)
from .text_matrix import decode_text

logger = logging.getLogger(__name__)

# OLE2 compound document signature (legacy .xls)
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_SIGNATURE = b"PK\x03\x04"

XML_MARKERS = ("<Workbook", "<worksheet", "<?xml")


def _local_name(tag: str) -> str:
    """Strip an ElementTree namespace: '{urn:...}Row' -> 'Row'."""
    return tag.rsplit("}", 1)[-1]


def _attribute(element: ET.Element, name: str) -> str | None:
    for key, value in element.attrib.items():
        if _local_name(key) == name:
            return value
    return None


def cell_to_text(value: Any) -> str:
    """Render a workbook cell value as text (dates as ISO, no spurious .0)."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)).normalize(), "f")
    return str(value).strip()


def matrix_from_xlsx(content: bytes) -> list[list[str]]:
    """Read the first worksheet of an XLSX workbook."""
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        matrix = []
        for row in sheet.iter_rows(values_only=True):
            cells = [cell_to_text(value) for value in row]
            if any(cells):
                matrix.append(cells)
        return matrix
    finally:
        workbook.close()


def matrix_from_spreadsheet_xml(text: str) -> list[list[str]]:
    """
    Read SpreadsheetML (Workbook/Worksheet/Table/Row/Cell/Data) or bare
    sheet XML (worksheet/sheetData/row/c/v). Only the first worksheet is
    read.

    Raises:
        ValueError: If the XML cannot be parsed
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ValueError(f"Invalid spreadsheet XML: {e}") from e

    scope = root
    for element in root.iter():
        if _local_name(element.tag) == "Worksheet":
            scope = element
            break

    matrix = []
    for row in scope.iter():
        tag = _local_name(row.tag)
        if tag == "Row":
            cells = _spreadsheetml_cells(row)
        elif tag == "row":
            cells = _sheet_xml_cells(row)
        else:
            continue
        cells = [cell.strip() for cell in cells]
        if any(cells):
            matrix.append(cells)
    return matrix


def _spreadsheetml_cells(row: ET.Element) -> list[str]:
    cells: list[str] = []
    for cell in row:
        if _local_name(cell.tag) != "Cell":
            continue
        index = _attribute(cell, "Index")
        if index and index.isdigit():
            # ss:Index is 1-based and skips empty cells
            while len(cells) < int(index) - 1:
                cells.append("")
        value = ""
        for child in cell:
            if _local_name(child.tag) == "Data":
                value = "".join(child.itertext())
                break
        cells.append(value)
    return cells


def _sheet_xml_cells(row: ET.Element) -> list[str]:
    cells = []
    for cell in row:
        if _local_name(cell.tag) != "c":
            continue
        value = ""
        for child in cell:
            name = _local_name(child.tag)
            if name == "v":
                value = child.text or ""
                break
            if name == "is":
                value = "".join(child.itertext())
                break
        cells.append(value)
    return cells


class SpreadsheetExtractor(BaseExtractor):
    """Reads XLSX workbooks and SpreadsheetML XML."""

    @property
    def name(self) -> str:
        return "spreadsheet"

    @property
    def priority(self) -> int:
        return 80

    def can_extract(self, raw_file: RawFile) -> bool:
        return raw_file.kind in (FileKind.XLSX, FileKind.XLS)

    def extract(self, raw_file: RawFile) -> StrategyResult | None:
        content = raw_file.content

        if content.startswith(OLE2_SIGNATURE):
            raise ExtractionError(
                ExtractionFailure.UNSUPPORTED_FORMAT,
                f"{raw_file.filename} is a legacy binary Excel file. "
                "Save it as .xlsx or .csv and upload again.",
            )

        if content.startswith(ZIP_SIGNATURE):
            try:
                return StrategyResult(matrix=matrix_from_xlsx(content))
            except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
                logger.warning(f"{raw_file.filename}: cannot open workbook: {e}")
                return None

        text = decode_text(content)
        if any(marker in text for marker in XML_MARKERS):
            try:
                return StrategyResult(matrix=matrix_from_spreadsheet_xml(text))
            except ValueError as e:
                logger.warning(f"{raw_file.filename}: {e}")
                return None

        raise ExtractionError(
            ExtractionFailure.UNSUPPORTED_FORMAT,
            f"{raw_file.filename} is not a readable spreadsheet.",
        )
