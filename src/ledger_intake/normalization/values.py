"""
Typed value parsing for raw cell text.

All parsers are total: they never raise on bad input. Amounts fall back to
zero and dates fall back to None so the caller can decide what to do.
"""

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dateutil import parser as date_parser

_AMOUNT_STRIP_RE = re.compile(r"[^0-9.\-]")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s].*)?$")
_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def parse_signed_amount(value: str | None) -> Decimal:
    """
    Parse an amount, keeping its sign.

    Everything except digits, '.' and '-' is dropped, so "KES 2,300" and
    "2,300/=" both parse to 2300. Unparseable input yields 0.
    """
    if not value:
        return Decimal("0")
    cleaned = _AMOUNT_STRIP_RE.sub("", str(value))
    negative = cleaned.startswith("-") or str(value).strip().startswith("(")
    cleaned = cleaned.replace("-", "")
    if not cleaned or cleaned == ".":
        return Decimal("0")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return -amount if negative else amount


def parse_amount(value: str | None) -> Decimal:
    """Parse a non-negative amount (absolute value)."""
    return abs(parse_signed_amount(value))


def parse_count(value: str | None) -> int:
    """Parse a non-negative whole count (orders, quantity)."""
    amount = parse_amount(value)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_iso_date(value: str | None) -> str | None:
    """
    Parse a date into YYYY-MM-DD.

    Accepts ISO dates (optionally with a time part), D/M/YYYY, and anything
    python-dateutil understands. Returns None if nothing parses.
    """
    raw = (value or "").strip()
    if not raw:
        return None

    match = _ISO_DATE_RE.match(raw)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_iso(year, month, day)

    match = _SLASH_DATE_RE.match(raw)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_iso(year, month, day)

    try:
        parsed = date_parser.parse(raw, dayfirst=True, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError):
        return None
    return parsed.date().isoformat()


def _safe_iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None
