"""
PDF and image extractors.

Tier 1: PDF text layer (PyMuPDF)
Tier 2: OCR of rasterized PDF pages, or of the photo itself
"""

import logging

import fitz  # PyMuPDF

from ..ocr import OcrFailure, OcrService
from .base import BaseExtractor, FileKind, RawFile, StrategyResult
from .text_matrix import matrix_from_extracted_text

logger = logging.getLogger(__name__)


def _open_pdf(content: bytes) -> "fitz.Document | None":
    try:
        return fitz.open(stream=content, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        logger.warning(f"Cannot open PDF: {e}")
        return None


def extract_pdf_text(content: bytes) -> str:
    """Read the text layer of every page, pages joined by newlines."""
    document = _open_pdf(content)
    if document is None:
        return ""
    with document:
        pages = [page.get_text("text") for page in document]
    return "\n".join(page.strip() for page in pages if page.strip())


def render_pdf_pages(content: bytes, max_pages: int = 3, scale: float = 1.7) -> list[bytes]:
    """
    Rasterize the first pages of a PDF.

    Returns:
        PNG bytes per page
    """
    document = _open_pdf(content)
    if document is None:
        return []
    images = []
    with document:
        matrix = fitz.Matrix(scale, scale)
        for index, page in enumerate(document):
            if index >= max_pages:
                break
            pixmap = page.get_pixmap(matrix=matrix, alpha=False)
            images.append(pixmap.tobytes("png"))
    return images


class PdfTextLayerExtractor(BaseExtractor):
    """Reads the embedded text layer of digital PDFs."""

    @property
    def name(self) -> str:
        return "pdf_text"

    @property
    def priority(self) -> int:
        return 50

    def can_extract(self, raw_file: RawFile) -> bool:
        return raw_file.kind == FileKind.PDF

    def extract(self, raw_file: RawFile) -> StrategyResult | None:
        text = extract_pdf_text(raw_file.content)
        if not text.strip():
            logger.info(f"{raw_file.filename}: no text layer, trying OCR")
            return None
        return StrategyResult(matrix=matrix_from_extracted_text(text), text=text)


class OcrExtractor(BaseExtractor):
    """
    OCR fallback for scanned PDFs and photos.

    PDFs are rasterized first (only the first pages); images are sent as-is.
    A PDF whose text layer held any text is never OCRed.
    """

    text_fallback_only = True

    def __init__(self, ocr_service: OcrService, max_pdf_pages: int = 3, render_scale: float = 1.7):
        self.ocr_service = ocr_service
        self.max_pdf_pages = max_pdf_pages
        self.render_scale = render_scale

    @property
    def name(self) -> str:
        return "ocr"

    @property
    def priority(self) -> int:
        return 10

    def can_extract(self, raw_file: RawFile) -> bool:
        return raw_file.kind in (FileKind.PDF, FileKind.IMAGE)

    def extract(self, raw_file: RawFile) -> StrategyResult | None:
        if raw_file.kind == FileKind.PDF:
            images = render_pdf_pages(raw_file.content, self.max_pdf_pages, self.render_scale)
            names = [f"{raw_file.filename}#page{index + 1}.png" for index in range(len(images))]
        else:
            images = [raw_file.content]
            names = [raw_file.filename]

        texts = []
        for image, name in zip(images, names):
            try:
                texts.append(self.ocr_service.recognize(image, name))
            except OcrFailure as e:
                logger.warning(f"OCR failed for {name}: {e}")

        text = "\n".join(t for t in texts if t.strip())
        if not text:
            return None
        return StrategyResult(matrix=matrix_from_extracted_text(text), text=text)
