"""
Normalized row record and shared enums.

A NormalizedRecord is the typed view of one matrix row after header
resolution. It is immutable: later stages derive candidates from it but
never change it.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Direction(str, Enum):
    """Direction of a cash movement."""

    IN = "IN"
    OUT = "OUT"


class PaymentChannel(str, Enum):
    """How money moved."""

    CASH = "Cash"
    BANK = "Bank"
    MOBILE_TRANSFER = "Mobile Transfer"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class NormalizedRecord:
    """Typed view of one source row."""

    row_number: int  # Spreadsheet row: header is 1, first data row is 2
    date: str  # YYYY-MM-DD
    date_inferred: bool  # True when the ingestion date was substituted
    cash_in: Decimal
    cash_out: Decimal
    orders: int
    description: str
    category: str
    reference: str  # "" when absent
    payment_channel: PaymentChannel
    payment_mode: str = ""
    transaction_cost: Decimal = Decimal("0")
    product: str = ""
    quantity: int = 0
    unit_cost: Decimal = Decimal("0")
    client: str = ""
    supplier: str = ""
    phone: str = ""
    direction_hint: Direction | None = None
    raw_text: str = ""

    @property
    def has_financial_signal(self) -> bool:
        """True if the row carries money, orders, or a direction keyword."""
        return (
            self.cash_in > 0
            or self.cash_out > 0
            or self.orders > 0
            or self.direction_hint is not None
        )
