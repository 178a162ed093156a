"""
Header alias resolution (SSOT).

Source files name the same column many ways ("Sales", "Amount In",
"Revenue"). This module maps arbitrary headers onto the canonical fields
the normalizer understands.
"""

import re
from enum import Enum


class CanonicalField(str, Enum):
    """Fields a source column can be resolved to."""

    DATE = "date"
    CASH_IN = "cash_in"
    CASH_OUT = "cash_out"
    ORDERS = "orders"
    DESCRIPTION = "description"
    CATEGORY = "category"
    TRANSACTION_COST = "transaction_cost"
    REFERENCE_CODE = "reference_code"
    PAYMENT_MODE = "payment_mode"
    PAYMENT_CHANNEL = "payment_channel"
    PRODUCT_NAME = "product_name"
    QUANTITY = "quantity"
    UNIT_COST = "unit_cost"
    CLIENT_NAME = "client_name"
    SUPPLIER_NAME = "supplier_name"
    PHONE = "phone"


# Ordered alias lists; earlier aliases win
FIELD_ALIASES: dict[CanonicalField, list[str]] = {
    CanonicalField.DATE: ["date", "transaction date", "value date"],
    CanonicalField.CASH_IN: [
        "cash in",
        "cash_in",
        "amount in",
        "sales",
        "revenue",
        "credit",
        "received from",
        "inflow",
    ],
    CanonicalField.CASH_OUT: [
        "cash out",
        "cash_out",
        "amount out",
        "expense",
        "expenses",
        "cost",
        "debit",
        "paid to",
        "outflow",
    ],
    CanonicalField.ORDERS: ["orders", "order count", "qty orders", "transactions"],
    CanonicalField.DESCRIPTION: [
        "description",
        "details",
        "narration",
        "transaction type",
        "type",
        "notes",
    ],
    CanonicalField.CATEGORY: ["category", "expense category", "tag"],
    CanonicalField.TRANSACTION_COST: ["transaction cost", "charges", "charge", "fee", "cost"],
    CanonicalField.REFERENCE_CODE: [
        "reference code",
        "reference",
        "mpesa code",
        "receipt no",
        "transaction id",
        "trans id",
        "code",
    ],
    CanonicalField.PAYMENT_MODE: [
        "mode of payment",
        "payment mode",
        "payment method",
        "method",
        "mode",
    ],
    CanonicalField.PAYMENT_CHANNEL: ["payment channel", "channel", "account type", "mpesa type"],
    CanonicalField.PRODUCT_NAME: ["product", "item", "product name", "stock item", "goods"],
    CanonicalField.QUANTITY: ["qty", "quantity", "units", "pieces"],
    CanonicalField.UNIT_COST: [
        "unit price",
        "unit cost",
        "price",
        "cost per unit",
        "buying price",
    ],
    CanonicalField.CLIENT_NAME: ["customer", "client", "buyer", "paid by", "received from"],
    CanonicalField.SUPPLIER_NAME: ["supplier", "vendor", "paid to", "merchant"],
    CanonicalField.PHONE: ["phone", "mobile", "msisdn", "contact"],
}


def normalize_header(header: str) -> str:
    """Lowercase, treat '_' and '-' as spaces, collapse whitespace."""
    return re.sub(r"\s+", " ", re.sub(r"[_-]+", " ", header.lower())).strip()


def find_column(headers: list[str], aliases: list[str]) -> str | None:
    """
    Resolve one canonical field against the source headers.

    Pass 1 looks for an exact (normalized) match, alias by alias.
    Pass 2 accepts a header that contains, or is contained by, an alias,
    again alias by alias so alias order wins over column order. Blank
    headers never match.

    Returns:
        The original header text, or None
    """
    normalized = [(header, normalize_header(header)) for header in headers]
    normalized = [(header, norm) for header, norm in normalized if norm]

    for alias in aliases:
        alias_norm = normalize_header(alias)
        for header, norm in normalized:
            if norm == alias_norm:
                return header

    for alias in aliases:
        alias_norm = normalize_header(alias)
        for header, norm in normalized:
            if alias_norm in norm or norm in alias_norm:
                return header

    return None


def resolve_columns(headers: list[str]) -> dict[CanonicalField, str]:
    """Resolve every canonical field; unresolved fields are omitted."""
    resolved: dict[CanonicalField, str] = {}
    for canonical, aliases in FIELD_ALIASES.items():
        header = find_column(headers, aliases)
        if header is not None:
            resolved[canonical] = header
    return resolved


def closest_headers(headers: list[str], aliases: list[str], limit: int = 3) -> list[str]:
    """Headers sharing at least one word with any alias, for suggestions."""
    alias_words = {word for alias in aliases for word in normalize_header(alias).split()}
    matches = []
    for header in headers:
        words = set(normalize_header(header).split())
        if words & alias_words and header not in matches:
            matches.append(header)
    return matches[:limit]
