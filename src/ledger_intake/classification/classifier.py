"""
Row classifier.

Derives zero or more candidates (transactions, products, clients,
suppliers) from one NormalizedRecord and scores each of them.
"""

import logging
from decimal import Decimal

from ..confidence import ConfidenceScorer
from ..normalization.lexicon import (
    CLIENT_CONTEXT_KEYWORDS,
    CLIENT_DESCRIPTION_KEYWORDS,
    CLIENT_PREFIXES,
    PRODUCT_PREFIXES,
    SUPPLIER_CONTEXT_KEYWORDS,
    SUPPLIER_PREFIXES,
    contains_any,
    extract_named_entity,
    infer_category,
    sanitize_name,
)
from ..schemas.candidates import (
    Candidate,
    ClientCandidate,
    ProductCandidate,
    SupplierCandidate,
    TransactionCandidate,
)
from ..schemas.dedupe import TraceKeySuffix, build_row_trace_key, with_suffix
from ..schemas.records import Direction, NormalizedRecord, PaymentChannel

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_NAME = "Unlabeled Product"
DEFAULT_PRODUCT_SUPPLIER = "Unknown"
DEFAULT_SUPPLIER_NAME = "Unknown Supplier"
DEFAULT_SUPPLIER_CATEGORY = "General"


def row_trace_key(record: NormalizedRecord, source_file: str) -> str:
    """Row-level trace key for a normalized record."""
    return build_row_trace_key(
        date=record.date,
        cash_in=record.cash_in,
        cash_out=record.cash_out,
        orders=record.orders,
        file_name=source_file,
        row_number=record.row_number,
    )


class RowClassifier:
    """
    Classifies normalized rows into scored candidates.

    Emission rules:
    - Transaction: one per positive inflow / outflow
    - Product: a product name, or quantity and unit cost together
    - Client: a name with an inflow, or a customer-like description
    - Supplier: a supplier name, or any outflow
    """

    def __init__(self, scorer: ConfidenceScorer | None = None, source: str = "file_upload"):
        self.scorer = scorer or ConfidenceScorer()
        self.source = source

    def classify(self, record: NormalizedRecord, source_file: str) -> list[Candidate]:
        """
        Classify one row.

        Args:
            record: Normalized row
            source_file: File identity used in trace keys

        Returns:
            Candidates in emission order: transactions, product, client, supplier
        """
        row_key = row_trace_key(record, source_file)
        candidates: list[Candidate] = []

        candidates.extend(self._transactions(record, source_file, row_key))
        for build in (self._product, self._client, self._supplier):
            candidate = build(record, source_file, row_key)
            if candidate is not None:
                candidates.append(candidate)

        logger.debug(
            f"Row {record.row_number}: {len(candidates)} candidates "
            f"({', '.join(c.kind.value for c in candidates) or 'none'})"
        )
        return candidates

    def _transactions(
        self, record: NormalizedRecord, source_file: str, row_key: str
    ) -> list[TransactionCandidate]:
        movements = [
            (Direction.IN, record.cash_in, TraceKeySuffix.IN),
            (Direction.OUT, record.cash_out, TraceKeySuffix.OUT),
        ]
        confidence = self.scorer.transaction(
            has_amount=True,
            has_reference=bool(record.reference),
            has_channel=record.payment_channel != PaymentChannel.UNKNOWN,
            has_row_date=not record.date_inferred,
        )

        transactions = []
        for direction, amount, suffix in movements:
            if amount <= 0:
                continue
            transactions.append(
                TransactionCandidate(
                    source_file=source_file,
                    row_number=record.row_number,
                    confidence=confidence,
                    trace_key=with_suffix(row_key, suffix),
                    date=record.date,
                    direction=direction,
                    amount=amount,
                    reference=record.reference,
                    channel=record.payment_channel,
                    category=record.category,
                    transaction_cost=record.transaction_cost,
                    description=record.description,
                    source=self.source,
                )
            )
        return transactions

    def _product(
        self, record: NormalizedRecord, source_file: str, row_key: str
    ) -> ProductCandidate | None:
        name = record.product or extract_named_entity(record.raw_text, PRODUCT_PREFIXES)
        has_pricing = record.quantity > 0 and record.unit_cost > 0
        if not name and not has_pricing:
            return None

        return ProductCandidate(
            source_file=source_file,
            row_number=record.row_number,
            confidence=self.scorer.product(
                has_name=bool(name),
                has_quantity=record.quantity > 0,
                has_unit_cost=record.unit_cost > 0,
            ),
            trace_key=with_suffix(row_key, TraceKeySuffix.PRODUCT),
            name=name or DEFAULT_PRODUCT_NAME,
            quantity=record.quantity,
            unit_cost=record.unit_cost,
            supplier=record.supplier or DEFAULT_PRODUCT_SUPPLIER,
        )

    def _client(
        self, record: NormalizedRecord, source_file: str, row_key: str
    ) -> ClientCandidate | None:
        if record.cash_in <= 0:
            return None

        trace_key = with_suffix(row_key, TraceKeySuffix.CLIENT)
        name = record.client or extract_named_entity(record.raw_text, CLIENT_PREFIXES)

        if name:
            confidence = self.scorer.client(
                explicit_column=bool(record.client),
                has_phone=bool(record.phone),
                has_reference_or_keyword=bool(record.reference)
                or contains_any(record.raw_text, CLIENT_CONTEXT_KEYWORDS),
                has_inflow=True,
            )
        else:
            # Secondary path: the description itself names the customer
            described = sanitize_name(record.description)
            if not described or not contains_any(record.raw_text, CLIENT_DESCRIPTION_KEYWORDS):
                return None
            name = described
            confidence = self.scorer.client_from_description()

        return ClientCandidate(
            source_file=source_file,
            row_number=record.row_number,
            confidence=confidence,
            trace_key=trace_key,
            name=name,
            phone=record.phone,
            total_spent=record.cash_in,
            first_seen=record.date,
        )

    def _supplier(
        self, record: NormalizedRecord, source_file: str, row_key: str
    ) -> SupplierCandidate | None:
        name = record.supplier or extract_named_entity(record.raw_text, SUPPLIER_PREFIXES)
        if not name and record.cash_out <= 0:
            return None

        last_price = record.unit_cost if record.unit_cost > 0 else record.cash_out
        category_hint = record.category or infer_category(
            record.raw_text, fallback=DEFAULT_SUPPLIER_CATEGORY
        )

        return SupplierCandidate(
            source_file=source_file,
            row_number=record.row_number,
            confidence=self.scorer.supplier(
                has_name=bool(name),
                has_outflow_or_unit_cost=record.cash_out > 0 or record.unit_cost > 0,
                has_keyword=contains_any(record.raw_text, SUPPLIER_CONTEXT_KEYWORDS),
            ),
            trace_key=with_suffix(row_key, TraceKeySuffix.SUPPLIER),
            name=name or DEFAULT_SUPPLIER_NAME,
            last_price=Decimal(last_price),
            category_hint=category_hint,
        )
