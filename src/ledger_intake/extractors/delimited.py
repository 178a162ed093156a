"""
Delimited text extractor (CSV / TSV / TXT).
"""

from .base import BaseExtractor, FileKind, RawFile, StrategyResult
from .text_matrix import (
    decode_text,
    detect_delimiter,
    matrix_from_extracted_text,
    parse_delimited,
)


class DelimitedTextExtractor(BaseExtractor):
    """
    Parses comma- or tab-separated text.

    When strict parsing yields fewer than two rows, the text is re-read
    with the looser extracted-text splitter (pipes, runs of spaces).
    """

    @property
    def name(self) -> str:
        return "delimited_text"

    @property
    def priority(self) -> int:
        return 90

    def can_extract(self, raw_file: RawFile) -> bool:
        return raw_file.kind in (FileKind.CSV, FileKind.TEXT)

    def extract(self, raw_file: RawFile) -> StrategyResult | None:
        text = decode_text(raw_file.content)
        delimiter = detect_delimiter(text, raw_file.filename)
        matrix = parse_delimited(text, delimiter)
        if len(matrix) < 2:
            matrix = matrix_from_extracted_text(text)
        return StrategyResult(matrix=matrix, text=text)
