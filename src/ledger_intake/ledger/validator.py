"""
Ledger entry validation.

Every violated field is reported, not just the first one.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation

from ..state_store import LedgerEntry

VALID_DIRECTIONS = ("IN", "OUT")


@dataclass
class ValidationError:
    """Fields that made a ledger entry invalid."""

    fields: list[str] = field(default_factory=list)
    messages: dict[str, str] = field(default_factory=dict)

    def add(self, field_name: str, message: str) -> None:
        self.fields.append(field_name)
        self.messages[field_name] = message

    def __bool__(self) -> bool:
        return bool(self.fields)

    def __str__(self) -> str:
        return "; ".join(f"{name}: {self.messages[name]}" for name in self.fields)


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


def validate_ledger_entry(entry: LedgerEntry) -> ValidationError | None:
    """
    Validate a ledger entry before commit.

    Checks:
    - business_id: non-empty
    - date: non-empty YYYY-MM-DD
    - amount: finite and > 0
    - direction: IN or OUT
    - trace_key: non-empty

    Returns:
        ValidationError naming every violated field, or None if valid
    """
    error = ValidationError()

    if not (entry.business_id or "").strip():
        error.add("business_id", "Missing business id")

    if not (entry.date or "").strip():
        error.add("date", "Missing date")
    elif not _is_iso_date(entry.date):
        error.add("date", f"Date is not YYYY-MM-DD: {entry.date}")

    try:
        amount = Decimal(entry.amount)
        amount_ok = amount.is_finite() and amount > 0
    except (InvalidOperation, TypeError, ValueError):
        amount_ok = False
    if not amount_ok:
        error.add("amount", f"Amount must be greater than zero, got: {entry.amount}")

    if entry.direction not in VALID_DIRECTIONS:
        error.add("direction", f"Direction must be IN or OUT, got: {entry.direction}")

    if not (entry.trace_key or "").strip():
        error.add("trace_key", "Missing trace key")

    return error or None
