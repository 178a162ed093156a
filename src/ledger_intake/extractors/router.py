"""
Extractor router - chooses and applies extraction strategies.
"""

import logging

from ..config import OcrConfig
from ..ocr import OcrService
from .base import (
    BaseExtractor,
    ExtractedMatrix,
    ExtractionError,
    ExtractionFailure,
    FileKind,
    RawFile,
    StrategyResult,
)
from .delimited import DelimitedTextExtractor
from .json_extractor import JsonExtractor
from .pdf import OcrExtractor, PdfTextLayerExtractor
from .spreadsheet import SpreadsheetExtractor
from .text_matrix import is_low_structure, matrix_from_loose_text

logger = logging.getLogger(__name__)

# Kinds whose recovered text is worth a loose-line pass
LOOSE_TEXT_KINDS = (FileKind.CSV, FileKind.TEXT, FileKind.JSON, FileKind.PDF, FileKind.IMAGE)


class ExtractorRouter:
    """
    Routes extraction to the appropriate strategy.

    Tries extractors in priority order:
    1. JSON exports
    2. Delimited text (CSV / TSV)
    3. Spreadsheets (XLSX, SpreadsheetML)
    4. PDF text layer
    5. OCR (scanned PDF pages, photos)

    If the winning matrix is missing or weakly structured, the longest
    recovered text is re-read line by line as a last resort.
    """

    def __init__(
        self,
        extractors: list[BaseExtractor] | None = None,
        ocr_service: OcrService | None = None,
        ocr_config: OcrConfig | None = None,
    ):
        """
        Initialize with default extractors.

        Args:
            extractors: Replace the default strategy chain entirely
            ocr_service: OCR service for the OCR strategy
            ocr_config: OCR settings (used when ocr_service is not given)
        """
        if extractors is None:
            ocr_config = ocr_config or OcrConfig()
            ocr_service = ocr_service or OcrService(ocr_config)
            extractors = [
                JsonExtractor(),
                DelimitedTextExtractor(),
                SpreadsheetExtractor(),
                PdfTextLayerExtractor(),
                OcrExtractor(
                    ocr_service,
                    max_pdf_pages=ocr_config.max_pdf_pages,
                    render_scale=ocr_config.render_scale,
                ),
            ]
        self.extractors = sorted(extractors, key=lambda e: -e.priority)

    def extract(self, filename: str, content: bytes | str) -> ExtractedMatrix:
        """
        Extract a row matrix from an uploaded file.

        Args:
            filename: Original file name (extension decides the kind)
            content: File bytes (or already-decoded text)

        Returns:
            ExtractedMatrix with at least one non-blank data row

        Raises:
            ExtractionError: EMPTY_FILE, NO_USABLE_ROWS or UNSUPPORTED_FORMAT
        """
        raw_file = RawFile.from_upload(filename, content)

        if raw_file.kind == FileKind.UNKNOWN:
            raise ExtractionError(
                ExtractionFailure.UNSUPPORTED_FORMAT,
                f"{filename}: unsupported file type. "
                "Upload CSV, TSV, TXT, JSON, XLSX, PDF or an image.",
            )
        if raw_file.is_blank:
            raise ExtractionError(ExtractionFailure.EMPTY_FILE, f"{filename} is empty.")

        matrix: list[list[str]] = []
        strategy = "none"
        fallback_text = ""

        for extractor in self.extractors:
            if not extractor.can_extract(raw_file):
                continue
            if extractor.text_fallback_only and fallback_text:
                logger.debug(f"{filename}: text already recovered, skipping {extractor.name}")
                continue

            result: StrategyResult | None = extractor.extract(raw_file)
            if result is None:
                logger.debug(f"{filename}: {extractor.name} declined")
                continue

            if len(result.text) > len(fallback_text):
                fallback_text = result.text

            # If we got a usable matrix, stop trying
            if len(result.matrix) >= 2:
                matrix = result.matrix
                strategy = extractor.name
                break

        if raw_file.kind in LOOSE_TEXT_KINDS and fallback_text and is_low_structure(matrix):
            loose = matrix_from_loose_text(
                fallback_text, allow_amount_only=raw_file.kind == FileKind.IMAGE
            )
            if len(loose) >= 2:
                logger.info(f"{filename}: weak structure, using {len(loose) - 1} loose text rows")
                matrix = loose
                strategy = "loose_text" if strategy == "none" else f"{strategy}+loose_text"

        if len(matrix) < 2:
            raise ExtractionError(
                ExtractionFailure.NO_USABLE_ROWS, f"{filename} has no data rows."
            )

        extracted = ExtractedMatrix.from_matrix(matrix, strategy=strategy, raw_text=fallback_text)
        if not extracted.rows:
            raise ExtractionError(
                ExtractionFailure.NO_USABLE_ROWS, f"{filename} has only empty rows."
            )

        logger.info(
            f"{filename}: extracted {len(extracted.rows)} rows "
            f"({len(extracted.headers)} columns) via {strategy}"
        )
        return extracted
