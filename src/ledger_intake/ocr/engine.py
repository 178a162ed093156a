"""
Local OCR engine (Tesseract via pytesseract).

Photos of receipts are noisy, so every image is recognized several times:
each preprocessing variant under each page segmentation mode. The passes
are merged by line frequency, so text that most passes agree on comes
first.
"""

import io
import logging
import re
from collections import Counter

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError

from ..normalization.lexicon import expand_abbreviations

logger = logging.getLogger(__name__)

# Preprocessing constants
CONTRAST_PIVOT = 128
HARD_CONTRAST = 1.8
SOFT_CONTRAST = 1.35
BINARY_THRESHOLD = 145
UPSCALE_FACTOR = 2


class OcrImageError(Exception):
    """Raised when the image bytes cannot be decoded."""

    pass


def _contrast(image: Image.Image, factor: float) -> Image.Image:
    """Stretch grayscale values around the mid pivot."""
    return image.point(
        lambda p: max(0, min(255, int((p - CONTRAST_PIVOT) * factor + CONTRAST_PIVOT)))
    )


def build_variants(image: Image.Image) -> list[tuple[str, Image.Image]]:
    """
    Build the preprocessing variants for one image.

    Returns:
        (variant name, image) pairs: original, hard threshold, 2x upscaled
        threshold, soft contrast
    """
    original = image.convert("RGB")
    gray = ImageOps.grayscale(original)

    hard = _contrast(gray, HARD_CONTRAST).point(lambda p: 255 if p > BINARY_THRESHOLD else 0)
    upscaled = hard.resize(
        (hard.width * UPSCALE_FACTOR, hard.height * UPSCALE_FACTOR),
        Image.Resampling.LANCZOS,
    )
    soft = _contrast(gray, SOFT_CONTRAST)

    return [
        ("original", original),
        ("threshold", hard),
        ("threshold_2x", upscaled),
        ("soft", soft),
    ]


def normalize_ocr_text(text: str) -> str:
    """
    Clean one OCR pass.

    CR becomes LF, runs of spaces collapse, at most one blank line is kept
    between blocks, and receipt abbreviations are expanded.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [re.sub(r"[ \t\f\v]+", " ", line).strip() for line in text.split("\n")]
    cleaned = "\n".join(lines)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned).strip()
    return expand_abbreviations(cleaned)


def merge_ocr_passes(passes: list[str]) -> str:
    """
    Merge several OCR passes into one text.

    Distinct lines are ordered by how many passes produced them, then by
    length (longer first). Ties keep first-seen order.
    """
    counts: Counter[str] = Counter()
    for text in passes:
        for line in text.splitlines():
            line = re.sub(r"\s+", " ", line).strip()
            if line:
                counts[line] += 1

    ordered = sorted(counts, key=lambda line: (-counts[line], -len(line)))
    return "\n".join(ordered)


class LocalOcrEngine:
    """
    Tesseract-backed OCR with multi-variant, multi-mode passes.
    """

    def __init__(
        self,
        language: str = "eng",
        psm_modes: list[int] | None = None,
        tesseract_cmd: str | None = None,
    ):
        """
        Initialize the engine.

        Args:
            language: Tesseract language code
            psm_modes: Page segmentation modes, in pass order
            tesseract_cmd: Path to the tesseract binary (None = PATH lookup)
        """
        self.language = language
        self.psm_modes = list(psm_modes or [6, 11, 4])
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image_bytes: bytes) -> str:
        """
        Recognize text in an image.

        Returns:
            Merged text ("" if no pass produced anything)

        Raises:
            OcrImageError: If the bytes are not a readable image
        """
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise OcrImageError(f"Cannot decode image: {e}") from e

        passes: list[str] = []
        for variant_name, variant in build_variants(image):
            for psm in self.psm_modes:
                try:
                    raw = pytesseract.image_to_string(
                        variant, lang=self.language, config=f"--oem 3 --psm {psm}"
                    )
                except pytesseract.TesseractNotFoundError:
                    logger.warning("Tesseract binary not found; local OCR unavailable")
                    return merge_ocr_passes(passes)
                except (pytesseract.TesseractError, RuntimeError) as e:
                    logger.warning(f"OCR pass failed (variant={variant_name}, psm={psm}): {e}")
                    continue

                text = normalize_ocr_text(raw)
                if text:
                    passes.append(text)

        logger.debug(f"Local OCR produced {len(passes)} non-empty passes")
        return merge_ocr_passes(passes)
