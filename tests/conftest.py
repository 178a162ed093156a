"""Test fixtures and utilities."""

from datetime import date
from pathlib import Path

import pytest

from ledger_intake.config import Config, OcrConfig
from ledger_intake.extractors import ExtractorRouter
from ledger_intake.state_store import StateStore

BUSINESS_ID = "biz-001"

# Upload date used whenever a row has no usable date
INGESTION_DATE = date(2026, 2, 20)

SAMPLE_SALES_CSV = """Date,Description,Cash In,Cash Out,Reference,Payment Mode
2026-01-05,Received from Jane,5000,,N/A,
2026-01-06,"Paid to Acme Wholesalers, restock",,2300,QAB1234XYZ,M-Pesa
2026-01-07,Cash sale,1200,,,Cash
"""

SAMPLE_INVENTORY_CSV = """Date,Product,Qty,Unit Price,Supplier,Cash Out
2026-01-10,Sugar 1kg,10,150,Mumias Distributors,1500
"""

# Text that a PDF viewer exported badly: object syntax mixed with one
# real transaction line
SAMPLE_NOISY_TEXT = """%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
Paid to Acme Ltd KES 2,300 TXN1234567A
xref
0000000010 00000 n
trailer
"""


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_state.db"


@pytest.fixture
def store(temp_db) -> StateStore:
    """Fresh state store."""
    return StateStore(temp_db)


@pytest.fixture
def business_id() -> str:
    return BUSINESS_ID


@pytest.fixture
def today() -> date:
    """Fixed ingestion date."""
    return INGESTION_DATE


@pytest.fixture
def offline_config(temp_db) -> Config:
    """Config with OCR disabled (no tesseract or network needed)."""
    return Config(ocr=OcrConfig(enabled=False), state_db_path=temp_db)


@pytest.fixture
def offline_router(offline_config) -> ExtractorRouter:
    """Extractor router whose OCR tier always fails."""
    return ExtractorRouter(ocr_config=offline_config.ocr)


@pytest.fixture
def sample_sales_csv() -> str:
    return SAMPLE_SALES_CSV


@pytest.fixture
def sample_inventory_csv() -> str:
    return SAMPLE_INVENTORY_CSV


@pytest.fixture
def sample_noisy_text() -> str:
    return SAMPLE_NOISY_TEXT
