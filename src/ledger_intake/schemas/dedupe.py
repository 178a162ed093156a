"""
Trace key generation (CRITICAL).

This module defines THE deterministic trace key functions.
This is the ONLY way to generate trace keys in the system.

Trace Key Formats:
1. For uploaded file rows: file:{date}|{cash_in}|{cash_out}|{orders}|{file}|{row}
   - cash_in / cash_out normalized to 2 decimal places
   - row = spreadsheet row number (header is row 1)
   Candidate keys append a kind suffix: :IN, :OUT, :PRODUCT, :CLIENT, :SUPPLIER

2. For external provider transactions (POS): pos:{business}|{provider}|{reference}|{date}

Keys are namespaced by source kind so an uploaded row can never collide
with a provider transaction.

The trace key must be:
- Stable: Same row in the same file always produces the same key
- Reproducible: Can be regenerated from stored data
- Deduplicated: Same key = blocked duplicate (string equality only)
"""

import hashlib
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

# ============================================================================
# SSOT Constants for Trace Key Generation
# ============================================================================

# Separator between key components
TRACE_KEY_SEPARATOR = "|"

# Separator between source prefix and body
SOURCE_PREFIX_SEPARATOR = ":"

# Source kind prefixes
FILE_SOURCE_PREFIX = "file"
EXTERNAL_SOURCE_PREFIX = "pos"


class TraceKeySuffix(str, Enum):
    """Per-candidate suffix appended to a row key."""

    IN = "IN"
    OUT = "OUT"
    PRODUCT = "PRODUCT"
    CLIENT = "CLIENT"
    SUPPLIER = "SUPPLIER"


@dataclass
class TraceKeyComponents:
    """
    Components a trace key was built from.

    For file keys, business_id/provider/reference are None.
    For external keys, the row-level fields are None.
    """

    source: str  # "file" or "pos"
    date: str
    cash_in: Decimal | None = None
    cash_out: Decimal | None = None
    orders: int | None = None
    file_name: str | None = None
    row_number: int | None = None
    suffix: TraceKeySuffix | None = None
    business_id: str | None = None
    provider: str | None = None
    reference: str | None = None


def _normalize_amount(amount: Decimal | str | float | int) -> str:
    """
    Normalize amount to consistent format for keys.

    Args:
        amount: Amount in various formats

    Returns:
        Normalized amount string with 2 decimal places
    """
    if isinstance(amount, str):
        amount = Decimal(amount.strip() or "0")
    elif isinstance(amount, float):
        amount = Decimal(str(amount))
    elif isinstance(amount, int):
        amount = Decimal(amount)
    elif not isinstance(amount, Decimal):
        raise ValueError(f"amount must be Decimal, str, int or float, got: {type(amount)}")

    return f"{amount:.2f}"


def _clean_component(value: str) -> str:
    """Strip whitespace and the separator from a free-text component."""
    return value.strip().replace(TRACE_KEY_SEPARATOR, "/")


def build_row_trace_key(
    date: str,
    cash_in: Decimal | str | float | int,
    cash_out: Decimal | str | float | int,
    orders: int,
    file_name: str,
    row_number: int,
) -> str:
    """
    Generate the row-level trace key for an uploaded file row.

    Args:
        date: Row date (YYYY-MM-DD)
        cash_in: Inflow amount
        cash_out: Outflow amount
        orders: Order count
        file_name: Source file name (file identity)
        row_number: Spreadsheet row number (header is row 1)

    Returns:
        Trace key string

    Examples:
        >>> build_row_trace_key("2026-02-20", 5000, 0, 0, "jan.csv", 2)
        'file:2026-02-20|5000.00|0.00|0|jan.csv|2'
    """
    if row_number < 1:
        raise ValueError(f"row_number must be >= 1, got: {row_number}")

    body = TRACE_KEY_SEPARATOR.join(
        [
            date.strip(),
            _normalize_amount(cash_in),
            _normalize_amount(cash_out),
            str(int(orders)),
            _clean_component(file_name),
            str(row_number),
        ]
    )
    return f"{FILE_SOURCE_PREFIX}{SOURCE_PREFIX_SEPARATOR}{body}"


def with_suffix(row_key: str, suffix: TraceKeySuffix) -> str:
    """Derive a candidate trace key from its row key."""
    return f"{row_key}{SOURCE_PREFIX_SEPARATOR}{suffix.value}"


def build_external_trace_key(business_id: str, provider: str, reference: str, date: str) -> str:
    """
    Generate the trace key for an external provider transaction.

    Examples:
        >>> build_external_trace_key("biz-1", "square", "R123", "2026-02-20")
        'pos:biz-1|square|R123|2026-02-20'
    """
    if not business_id or not provider or not reference:
        raise ValueError("business_id, provider and reference are required")

    body = TRACE_KEY_SEPARATOR.join(
        [
            _clean_component(business_id),
            _clean_component(provider).lower(),
            _clean_component(reference),
            date.strip(),
        ]
    )
    return f"{EXTERNAL_SOURCE_PREFIX}{SOURCE_PREFIX_SEPARATOR}{body}"


def parse_trace_key(trace_key: str) -> TraceKeyComponents:
    """
    Parse a trace key back into its components.

    Raises:
        ValueError: If the key matches neither known format
    """
    prefix, sep, body = trace_key.partition(SOURCE_PREFIX_SEPARATOR)
    if not sep or not body:
        raise ValueError(f"Invalid trace key (missing source prefix): {trace_key}")

    if prefix == EXTERNAL_SOURCE_PREFIX:
        parts = body.split(TRACE_KEY_SEPARATOR)
        if len(parts) != 4:
            raise ValueError(f"Invalid external trace key: {trace_key}")
        business_id, provider, reference, date = parts
        return TraceKeyComponents(
            source=prefix,
            date=date,
            business_id=business_id,
            provider=provider,
            reference=reference,
        )

    if prefix != FILE_SOURCE_PREFIX:
        raise ValueError(f"Unknown trace key source: {prefix}")

    suffix = None
    head, sep, tail = body.rpartition(SOURCE_PREFIX_SEPARATOR)
    if sep and tail in TraceKeySuffix.__members__:
        suffix = TraceKeySuffix(tail)
        body = head

    parts = body.split(TRACE_KEY_SEPARATOR)
    if len(parts) != 6:
        raise ValueError(f"Invalid file trace key: {trace_key}")

    date, cash_in, cash_out, orders, file_name, row_number = parts
    try:
        return TraceKeyComponents(
            source=prefix,
            date=date,
            cash_in=Decimal(cash_in),
            cash_out=Decimal(cash_out),
            orders=int(orders),
            file_name=file_name,
            row_number=int(row_number),
            suffix=suffix,
        )
    except (ArithmeticError, ValueError) as e:
        raise ValueError(f"Invalid file trace key: {trace_key}") from e


def compute_content_hash(content: bytes) -> str:
    """
    Compute SHA256 hash of uploaded file content.

    Recorded on upload records so identical re-uploads can be spotted.

    Returns:
        64-character lowercase hex string
    """
    return hashlib.sha256(content).hexdigest()
