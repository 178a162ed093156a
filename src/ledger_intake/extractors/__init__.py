"""
File extractors.

Provides:
- ExtractorRouter: Runs the strategy chain for one file
- JSON, delimited text, spreadsheet, PDF text layer and OCR strategies
- Loose text recovery for weakly structured files
- Base classes for custom extractors

Strategies are pluggable and testable.
"""

from .base import (
    BaseExtractor,
    ExtractedMatrix,
    ExtractionError,
    ExtractionFailure,
    FileKind,
    RawFile,
    StrategyResult,
    detect_file_kind,
)
from .delimited import DelimitedTextExtractor
from .json_extractor import JsonExtractor
from .pdf import OcrExtractor, PdfTextLayerExtractor
from .router import ExtractorRouter
from .spreadsheet import SpreadsheetExtractor

__all__ = [
    "BaseExtractor",
    "DelimitedTextExtractor",
    "ExtractedMatrix",
    "ExtractionError",
    "ExtractionFailure",
    "ExtractorRouter",
    "FileKind",
    "JsonExtractor",
    "OcrExtractor",
    "PdfTextLayerExtractor",
    "RawFile",
    "SpreadsheetExtractor",
    "StrategyResult",
    "detect_file_kind",
]
