"""
Row normalizer.

Resolves arbitrary headers onto canonical fields and derives one typed
NormalizedRecord per row. Rows with no financial signal are dropped with a
warning; everything else is kept, even when details are missing.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from ..extractors.base import ExtractedMatrix
from ..schemas.records import Direction, NormalizedRecord, PaymentChannel
from .aliases import FIELD_ALIASES, CanonicalField, closest_headers, resolve_columns
from .lexicon import (
    clean_reference,
    direction_hint,
    find_reference,
    infer_channel,
    infer_row_category,
    normalize_phone,
    sanitize_name,
)
from .values import parse_amount, parse_count, parse_signed_amount, to_iso_date

logger = logging.getLogger(__name__)

# Header row is row 1, so the first data row is row 2
FIRST_DATA_ROW = 2


@dataclass
class NormalizationResult:
    """Records plus the notes produced while normalizing one matrix."""

    records: list[NormalizedRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    rows_skipped: int = 0
    columns: dict[CanonicalField, str] = field(default_factory=dict)


class Normalizer:
    """
    Turns an ExtractedMatrix into NormalizedRecords.

    Per-row derivation:
    - Amounts: inflow/outflow columns (or one shared signed column)
    - Date: parsed, else the ingestion date (with a warning)
    - Channel: channel column, then mode column, then description
    - Reference: reference column, then a code found in the description
    - Category: category column, then description keywords
    """

    def __init__(self, today: date | None = None):
        """
        Args:
            today: Ingestion date used for rows without a usable date
        """
        self.today = today or date.today()

    def normalize(self, matrix: ExtractedMatrix) -> NormalizationResult:
        """Normalize every row of the matrix, in order."""
        columns = resolve_columns(matrix.headers)
        result = NormalizationResult(columns=columns)
        result.suggestions = self._suggestions(matrix.headers, columns)

        for index, row in enumerate(matrix.rows):
            row_number = index + FIRST_DATA_ROW
            record = self._normalize_row(row, row_number, columns, result.warnings)

            if not record.has_financial_signal:
                result.rows_skipped += 1
                message = f"Row {row_number}: Skipped row with no usable financial signal."
                result.warnings.append(message)
                logger.warning(message)
                continue

            result.records.append(record)

        logger.debug(
            f"Normalized {len(result.records)} rows, skipped {result.rows_skipped}, "
            f"resolved {len(columns)} columns"
        )
        return result

    def _normalize_row(
        self,
        row: dict[str, str],
        row_number: int,
        columns: dict[CanonicalField, str],
        warnings: list[str],
    ) -> NormalizedRecord:
        def value(canonical: CanonicalField) -> str:
            header = columns.get(canonical)
            return (row.get(header) or "").strip() if header else ""

        raw_text = " ".join(cell.strip() for cell in row.values() if cell and cell.strip())
        description = value(CanonicalField.DESCRIPTION) or raw_text
        hint = direction_hint(description)

        cash_in, cash_out = self._amounts(row, columns, hint)
        if cash_in > 0 and cash_out > 0:
            warnings.append(
                f"Row {row_number}: Both cash_in and cash_out detected; keeping both values."
            )

        iso_date = to_iso_date(value(CanonicalField.DATE))
        date_inferred = iso_date is None
        if date_inferred:
            iso_date = self.today.isoformat()
            warnings.append(
                f"Row {row_number}: Missing/invalid date; assigned upload date automatically."
            )

        reference = clean_reference(value(CanonicalField.REFERENCE_CODE))
        if not reference:
            reference = find_reference(description)

        payment_mode = value(CanonicalField.PAYMENT_MODE)
        channel = infer_channel(value(CanonicalField.PAYMENT_CHANNEL))
        if channel == PaymentChannel.UNKNOWN:
            channel = infer_channel(payment_mode)
        if channel == PaymentChannel.UNKNOWN:
            channel = infer_channel(f"{description} {payment_mode}")

        category = value(CanonicalField.CATEGORY) or infer_row_category(description)

        return NormalizedRecord(
            row_number=row_number,
            date=iso_date,
            date_inferred=date_inferred,
            cash_in=cash_in,
            cash_out=cash_out,
            orders=parse_count(value(CanonicalField.ORDERS)),
            description=description,
            category=category,
            reference=reference,
            payment_channel=channel,
            payment_mode=payment_mode,
            transaction_cost=parse_amount(value(CanonicalField.TRANSACTION_COST)),
            product=sanitize_name(value(CanonicalField.PRODUCT_NAME)),
            quantity=parse_count(value(CanonicalField.QUANTITY)),
            unit_cost=parse_amount(value(CanonicalField.UNIT_COST)),
            client=sanitize_name(value(CanonicalField.CLIENT_NAME)),
            supplier=sanitize_name(value(CanonicalField.SUPPLIER_NAME)),
            phone=normalize_phone(value(CanonicalField.PHONE)),
            # Only meaningful when no amount column said which way money moved
            direction_hint=hint if cash_in == 0 and cash_out == 0 else None,
            raw_text=raw_text,
        )

    def _amounts(
        self,
        row: dict[str, str],
        columns: dict[CanonicalField, str],
        hint: Direction | None,
    ) -> tuple[Decimal, Decimal]:
        in_header = columns.get(CanonicalField.CASH_IN)
        out_header = columns.get(CanonicalField.CASH_OUT)

        if in_header and in_header == out_header:
            # One shared column: the sign (or the description) decides
            signed = parse_signed_amount(row.get(in_header))
            if signed < 0 or (signed > 0 and hint == Direction.OUT):
                return Decimal("0"), abs(signed)
            return signed, Decimal("0")

        cash_in = parse_amount(row.get(in_header)) if in_header else Decimal("0")
        cash_out = parse_amount(row.get(out_header)) if out_header else Decimal("0")
        return cash_in, cash_out

    def _suggestions(self, headers: list[str], columns: dict[CanonicalField, str]) -> list[str]:
        suggestions = []

        if CanonicalField.DATE not in columns:
            aliases = ", ".join(FIELD_ALIASES[CanonicalField.DATE])
            suggestions.append(f"Missing date column. Try headers like: {aliases}.")

        if CanonicalField.CASH_IN not in columns and CanonicalField.CASH_OUT not in columns:
            aliases = FIELD_ALIASES[CanonicalField.CASH_IN] + FIELD_ALIASES[CanonicalField.CASH_OUT]
            closest = closest_headers(headers, aliases + ["amount", "total", "paid"])
            if closest:
                suggestions.append(
                    "Could not confidently map cash columns. Closest matches: "
                    f"{', '.join(closest)}."
                )
            else:
                suggestions.append(
                    "Could not find cash columns. Use Sales/Revenue/Amount In and "
                    "Expenses/Cost/Amount Out."
                )

        return suggestions
