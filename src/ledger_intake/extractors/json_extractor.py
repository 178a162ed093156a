"""
JSON export extractor.

Accepts a top-level array of objects, or an object wrapping the array
under "rows" or "transactions".
"""

import json
import logging
from typing import Any

from .base import BaseExtractor, FileKind, RawFile, StrategyResult
from .text_matrix import decode_text

logger = logging.getLogger(__name__)

ENVELOPE_KEYS = ("rows", "transactions")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def matrix_from_json_text(text: str) -> list[list[str]]:
    """
    Convert JSON records into a matrix.

    The header is the ordered union of object keys; missing values are "".

    Raises:
        ValueError: If the text is not JSON or holds no records
    """
    data = json.loads(text)
    if isinstance(data, dict):
        for key in ENVELOPE_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            data = [data]

    if not isinstance(data, list):
        raise ValueError("JSON does not contain a list of records")

    records = [item for item in data if isinstance(item, dict)]
    if not records:
        raise ValueError("JSON contains no object records")

    headers: list[str] = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)

    matrix = [headers]
    for record in records:
        matrix.append([_cell(record.get(header)) for header in headers])
    return matrix


class JsonExtractor(BaseExtractor):
    """Reads JSON exports (by extension, or text that starts with { or [)."""

    @property
    def name(self) -> str:
        return "json"

    @property
    def priority(self) -> int:
        return 100

    def can_extract(self, raw_file: RawFile) -> bool:
        if raw_file.kind == FileKind.JSON:
            return True
        if raw_file.kind in (FileKind.CSV, FileKind.TEXT):
            head = raw_file.content.lstrip()[:1]
            return head in (b"{", b"[")
        return False

    def extract(self, raw_file: RawFile) -> StrategyResult | None:
        text = decode_text(raw_file.content)
        try:
            matrix = matrix_from_json_text(text)
        except ValueError as e:
            logger.debug(f"{raw_file.filename}: not usable as JSON ({e})")
            return StrategyResult(matrix=[], text=text)
        return StrategyResult(matrix=matrix, text=text)
