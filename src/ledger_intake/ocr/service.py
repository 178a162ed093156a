"""
OCR service: remote tier first (when configured), local Tesseract second.
"""

import logging

from ..config import OcrConfig
from .engine import LocalOcrEngine, OcrImageError, normalize_ocr_text
from .remote import RemoteOcrClient, RemoteOcrError

logger = logging.getLogger(__name__)


class OcrFailure(Exception):
    """Every OCR tier came back empty for an image."""

    pass


class OcrService:
    """
    Recognizes text in images.

    Tiers (in order):
    1. Remote endpoint (optional; failures fall through)
    2. Local multi-pass Tesseract
    """

    def __init__(
        self,
        config: OcrConfig | None = None,
        local_engine: LocalOcrEngine | None = None,
        remote_client: RemoteOcrClient | None = None,
    ):
        self.config = config or OcrConfig()
        self.local_engine = local_engine or LocalOcrEngine(
            language=self.config.language,
            psm_modes=self.config.psm_modes,
            tesseract_cmd=self.config.tesseract_cmd,
        )
        if remote_client is None and self.config.is_remote_enabled():
            remote_client = RemoteOcrClient(
                endpoint=self.config.remote_endpoint,
                timeout=self.config.remote_timeout_seconds,
                max_retries=self.config.remote_max_retries,
            )
        self.remote_client = remote_client

    def recognize(self, image_bytes: bytes, filename: str) -> str:
        """
        Recognize text in one image.

        Raises:
            OcrFailure: If OCR is disabled, the image is unreadable, or no
                tier produced text
        """
        if not self.config.enabled:
            raise OcrFailure("OCR is disabled")

        if self.remote_client is not None:
            try:
                text = normalize_ocr_text(self.remote_client.recognize(image_bytes, filename))
            except RemoteOcrError as e:
                logger.warning(f"Remote OCR failed for {filename}, using local OCR: {e}")
            else:
                if text:
                    return text
                logger.warning(f"Remote OCR returned no text for {filename}, using local OCR")

        try:
            text = self.local_engine.recognize(image_bytes)
        except OcrImageError as e:
            raise OcrFailure(f"{filename}: {e}") from e

        if not text.strip():
            raise OcrFailure(f"No text recognized in {filename}")
        return text
