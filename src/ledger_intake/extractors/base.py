"""
Base extractor interface and common types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath


class FileKind(str, Enum):
    """File kind, inferred from the extension."""

    CSV = "csv"
    TEXT = "text"  # .tsv / .txt
    JSON = "json"
    XLSX = "xlsx"
    XLS = "xls"  # legacy binary or SpreadsheetML
    PDF = "pdf"
    IMAGE = "image"
    UNKNOWN = "unknown"


EXTENSION_KINDS: dict[str, FileKind] = {
    ".csv": FileKind.CSV,
    ".tsv": FileKind.TEXT,
    ".txt": FileKind.TEXT,
    ".json": FileKind.JSON,
    ".xlsx": FileKind.XLSX,
    ".xlsm": FileKind.XLSX,
    ".xls": FileKind.XLS,
    ".xml": FileKind.XLS,
    ".pdf": FileKind.PDF,
    ".png": FileKind.IMAGE,
    ".jpg": FileKind.IMAGE,
    ".jpeg": FileKind.IMAGE,
    ".webp": FileKind.IMAGE,
    ".bmp": FileKind.IMAGE,
    ".tif": FileKind.IMAGE,
    ".tiff": FileKind.IMAGE,
}


def detect_file_kind(filename: str) -> FileKind:
    """Map a file name onto its kind by extension."""
    return EXTENSION_KINDS.get(PurePath(filename).suffix.lower(), FileKind.UNKNOWN)


class ExtractionFailure(str, Enum):
    """Why a file could not be turned into a matrix."""

    EMPTY_FILE = "EMPTY_FILE"
    NO_USABLE_ROWS = "NO_USABLE_ROWS"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"


class ExtractionError(Exception):
    """Raised when a file cannot be extracted. Aborts that file only."""

    def __init__(self, reason: ExtractionFailure, message: str):
        self.reason = reason
        self.message = message
        super().__init__(f"{reason.value}: {message}")


@dataclass
class RawFile:
    """An uploaded file as received."""

    filename: str
    content: bytes
    kind: FileKind = FileKind.UNKNOWN

    @classmethod
    def from_upload(cls, filename: str, content: bytes | str) -> "RawFile":
        """Build from an upload, detecting the kind from the extension."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(filename=filename, content=content, kind=detect_file_kind(filename))

    @property
    def is_blank(self) -> bool:
        return not self.content or not self.content.strip()


@dataclass
class StrategyResult:
    """Result from one extraction strategy."""

    # Row matrix; first row is the header
    matrix: list[list[str]] = field(default_factory=list)
    # Free text recovered along the way (text layer, OCR, decoded text)
    text: str = ""


@dataclass
class ExtractedMatrix:
    """
    Header + rows extracted from a file.

    Invariant: every row has exactly the header set as keys.
    """

    headers: list[str]
    rows: list[dict[str, str]]
    strategy: str = ""
    raw_text: str = ""

    @classmethod
    def from_matrix(
        cls, matrix: list[list[str]], strategy: str = "", raw_text: str = ""
    ) -> "ExtractedMatrix":
        """
        Build from a list-of-lists whose first row is the header.

        Short rows are padded with "", long rows are truncated, and rows
        whose cells are all blank are removed. Blank or repeated header
        cells get positional names so keys stay unique.
        """
        if not matrix:
            return cls(headers=[], rows=[], strategy=strategy, raw_text=raw_text)

        headers: list[str] = []
        for index, cell in enumerate(matrix[0]):
            name = (cell or "").strip() or f"column_{index + 1}"
            if name in headers:
                name = f"{name}_{index + 1}"
            headers.append(name)

        rows = []
        for raw_row in matrix[1:]:
            cells = [(cell or "").strip() for cell in raw_row[: len(headers)]]
            cells += [""] * (len(headers) - len(cells))
            if not any(cells):
                continue
            rows.append(dict(zip(headers, cells)))

        return cls(headers=headers, rows=rows, strategy=strategy, raw_text=raw_text)


class BaseExtractor(ABC):
    """
    Base class for all extractors.

    Each extractor implements a specific strategy:
    - JSON exports
    - Delimited text (CSV / TSV)
    - Spreadsheets (XLSX, SpreadsheetML)
    - PDF text layer
    - OCR of rasterized pages and photos
    """

    # Tried only when no earlier strategy recovered any text
    text_fallback_only: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor name for logging and provenance."""
        pass

    @property
    @abstractmethod
    def priority(self) -> int:
        """
        Priority for extractor selection.
        Higher = tried first.
        """
        pass

    @abstractmethod
    def can_extract(self, raw_file: RawFile) -> bool:
        """
        Check if this extractor can handle the given file.

        Returns:
            True if this extractor should be attempted
        """
        pass

    @abstractmethod
    def extract(self, raw_file: RawFile) -> StrategyResult | None:
        """
        Extract a row matrix from the file.

        Returns:
            StrategyResult, or None to let the next strategy try

        Raises:
            ExtractionError: If the file can never be read (aborts the chain)
        """
        pass
