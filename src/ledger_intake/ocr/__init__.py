"""
OCR for scanned PDFs and photos.

Provides:
- OcrService: remote-then-local recognition
- LocalOcrEngine: Tesseract passes over preprocessing variants
- RemoteOcrClient: HTTP OCR endpoint client
"""

from .engine import LocalOcrEngine, OcrImageError, build_variants, merge_ocr_passes, normalize_ocr_text
from .remote import RemoteOcrClient, RemoteOcrError
from .service import OcrFailure, OcrService

__all__ = [
    "LocalOcrEngine",
    "OcrFailure",
    "OcrImageError",
    "OcrService",
    "RemoteOcrClient",
    "RemoteOcrError",
    "build_variants",
    "merge_ocr_passes",
    "normalize_ocr_text",
]
