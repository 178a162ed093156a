"""
Configuration management (SSOT).

This module defines ALL configuration for the ledger intake pipeline.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Risk thresholds (0.85 / 0.60) are NOT configuration. They live in
  confidence.scorer and are part of the review contract.
- The remote OCR endpoint is optional; local Tesseract is always the fallback.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class OcrConfig:
    """OCR settings.

    SSOT for OCR handling:
    - remote_endpoint: Optional HTTP OCR service, tried first for images
    - Local Tesseract passes are always available as the fallback
    """

    # Master switch (OCR_PROVIDER=none disables both tiers)
    enabled: bool = True
    # Remote OCR endpoint (multipart POST, field "file")
    remote_endpoint: str | None = None
    # Remote request timeout (seconds)
    remote_timeout_seconds: int = 30
    # Retries for transient remote failures
    remote_max_retries: int = 2
    # Tesseract language and page segmentation modes, in pass order
    language: str = "eng"
    psm_modes: list[int] = field(default_factory=lambda: [6, 11, 4])
    # Optional path to the tesseract binary
    tesseract_cmd: str | None = None
    # PDF rasterization (only the first pages are OCRed)
    max_pdf_pages: int = 3
    render_scale: float = 1.7

    def is_remote_enabled(self) -> bool:
        """Check if remote OCR should be attempted."""
        return self.enabled and bool(self.remote_endpoint)


@dataclass
class IngestionConfig:
    """Ingestion reporting settings."""

    # Maximum warnings/errors/suggestions reported per file
    max_report_items: int = 8
    # Source label written on ledger entries created from uploads
    source: str = "file_upload"
    # Business used by the CLI when --business is not given
    default_business_id: str | None = None


@dataclass
class Config:
    """Application configuration (SSOT).

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    ocr: OcrConfig = field(default_factory=OcrConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    state_db_path: Path = field(default_factory=lambda: Path("data/state.db"))

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if self.ocr.remote_endpoint and not self.ocr.remote_endpoint.startswith(
            ("http://", "https://")
        ):
            errors.append("ocr.remote_endpoint must be an http(s) URL")
        if self.ocr.remote_timeout_seconds <= 0:
            errors.append("ocr.remote_timeout_seconds must be positive")
        if not self.ocr.psm_modes:
            errors.append("ocr.psm_modes must list at least one mode")
        if self.ocr.max_pdf_pages < 1:
            errors.append("ocr.max_pdf_pages must be >= 1")
        if self.ocr.render_scale <= 0:
            errors.append("ocr.render_scale must be positive")
        if self.ingestion.max_report_items < 1:
            errors.append("ingestion.max_report_items must be >= 1")

        return errors


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - LEDGER_INTAKE_DB (state database path)
    - OCR_PROVIDER ("none" disables OCR)
    - OCR_ENDPOINT (remote OCR URL)
    - OCR_TIMEOUT (remote OCR timeout in seconds)
    - TESSERACT_CMD (path to tesseract binary)
    - LEDGER_INTAKE_BUSINESS (default business id for the CLI)

    Raises:
        ConfigValidationError: If the resulting configuration is invalid
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # OCR config
    ocr_data = data.get("ocr", {}) or {}
    ocr_enabled = ocr_data.get("enabled", True)
    if os.environ.get("OCR_PROVIDER", "").lower() == "none":
        ocr_enabled = False

    timeout = ocr_data.get("remote_timeout_seconds", 30)
    timeout_env = os.environ.get("OCR_TIMEOUT", "")
    if timeout_env:
        try:
            timeout = int(timeout_env)
        except ValueError:
            raise ConfigValidationError(f"OCR_TIMEOUT must be an integer, got {timeout_env!r}")

    ocr = OcrConfig(
        enabled=ocr_enabled,
        remote_endpoint=os.environ.get("OCR_ENDPOINT", ocr_data.get("remote_endpoint")) or None,
        remote_timeout_seconds=timeout,
        remote_max_retries=ocr_data.get("remote_max_retries", 2),
        language=ocr_data.get("language", "eng"),
        psm_modes=[int(mode) for mode in ocr_data.get("psm_modes", [6, 11, 4])],
        tesseract_cmd=os.environ.get("TESSERACT_CMD", ocr_data.get("tesseract_cmd")) or None,
        max_pdf_pages=ocr_data.get("max_pdf_pages", 3),
        render_scale=float(ocr_data.get("render_scale", 1.7)),
    )

    # Ingestion config
    ingestion_data = data.get("ingestion", {}) or {}
    ingestion = IngestionConfig(
        max_report_items=ingestion_data.get("max_report_items", 8),
        source=ingestion_data.get("source", "file_upload"),
        default_business_id=os.environ.get(
            "LEDGER_INTAKE_BUSINESS", ingestion_data.get("default_business_id")
        ),
    )

    # State DB
    state_db = os.environ.get("LEDGER_INTAKE_DB", data.get("state_db_path", "data/state.db"))

    config = Config(
        ocr=ocr,
        ingestion=ingestion,
        state_db_path=Path(state_db),
    )

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# Ledger intake pipeline configuration
#
# Risk thresholds (Trusted >= 0.85, Needs Review >= 0.60) are fixed and
# cannot be changed here.

# OCR for PDFs without a text layer and for receipt photos
ocr:
  enabled: true                  # OCR_PROVIDER=none disables OCR entirely
  remote_endpoint: null          # Optional remote OCR URL (tried first)
  remote_timeout_seconds: 30
  remote_max_retries: 2
  language: "eng"
  psm_modes: [6, 11, 4]          # Tesseract page segmentation passes
  tesseract_cmd: null            # Path to tesseract if not on PATH
  max_pdf_pages: 3               # Only the first pages of scanned PDFs are OCRed
  render_scale: 1.7              # Rasterization zoom for scanned PDFs

# Per-file reporting
ingestion:
  max_report_items: 8            # Warnings/errors/suggestions kept per file
  source: "file_upload"          # Source label on ledger entries
  default_business_id: null      # Used by the CLI when --business is omitted

# State database path
state_db_path: "data/state.db"
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
