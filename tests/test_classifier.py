"""Tests for row classification into candidates."""

from decimal import Decimal

import pytest

from ledger_intake.classification import RowClassifier, row_trace_key
from ledger_intake.confidence import RiskLevel
from ledger_intake.schemas import (
    ClientCandidate,
    Direction,
    NormalizedRecord,
    PaymentChannel,
    ProductCandidate,
    SupplierCandidate,
    TransactionCandidate,
)


def _record(**overrides) -> NormalizedRecord:
    values = dict(
        row_number=2,
        date="2026-01-05",
        date_inferred=False,
        cash_in=Decimal("0"),
        cash_out=Decimal("0"),
        orders=0,
        description="",
        category="",
        reference="",
        payment_channel=PaymentChannel.UNKNOWN,
        payment_mode="",
        transaction_cost=Decimal("0"),
        product="",
        quantity=0,
        unit_cost=Decimal("0"),
        client="",
        supplier="",
        phone="",
        direction_hint=None,
        raw_text="",
    )
    values.update(overrides)
    return NormalizedRecord(**values)


@pytest.fixture
def classifier() -> RowClassifier:
    return RowClassifier()


def _of(candidates, kind):
    return [c for c in candidates if isinstance(c, kind)]


class TestTransactions:
    """Tests for transaction candidates."""

    def test_inflow_without_reference(self, classifier):
        record = _record(
            cash_in=Decimal("5000"),
            reference="",
            description="received from Jane",
            raw_text="2026-01-05 received from Jane 5000 N/A",
        )

        candidates = classifier.classify(record, "jan.csv")

        (tx,) = _of(candidates, TransactionCandidate)
        assert tx.direction == Direction.IN
        assert tx.amount == Decimal("5000")
        assert tx.confidence == 0.80
        assert tx.risk_level == RiskLevel.NEEDS_REVIEW
        assert tx.trace_key == "file:2026-01-05|5000.00|0.00|0|jan.csv|2:IN"
        assert tx.source == "file_upload"

    def test_fully_described_transaction_is_trusted(self, classifier):
        record = _record(
            cash_out=Decimal("2300"),
            reference="QAB1234XYZ",
            payment_channel=PaymentChannel.MOBILE_TRANSFER,
        )

        (tx,) = _of(classifier.classify(record, "jan.csv"), TransactionCandidate)

        assert tx.direction == Direction.OUT
        assert tx.confidence == 1.0
        assert tx.risk_level == RiskLevel.TRUSTED

    def test_inferred_date_lowers_confidence(self, classifier):
        record = _record(cash_in=Decimal("100"), date_inferred=True)

        (tx,) = _of(classifier.classify(record, "jan.csv"), TransactionCandidate)

        assert tx.confidence == 0.70

    def test_both_directions_emit_two_transactions(self, classifier):
        record = _record(cash_in=Decimal("100"), cash_out=Decimal("40"))

        transactions = _of(classifier.classify(record, "jan.csv"), TransactionCandidate)

        assert [tx.direction for tx in transactions] == [Direction.IN, Direction.OUT]
        assert transactions[0].trace_key.endswith(":IN")
        assert transactions[1].trace_key.endswith(":OUT")

    def test_no_amount_no_transaction(self, classifier):
        record = _record(
            direction_hint=Direction.OUT,
            description="paid to supplier for stock",
            raw_text="2026-01-05 paid to supplier for stock",
        )

        assert _of(classifier.classify(record, "jan.csv"), TransactionCandidate) == []


class TestProducts:
    """Tests for product candidates."""

    def test_named_product_with_pricing(self, classifier):
        record = _record(
            cash_out=Decimal("1500"),
            product="Sugar 1kg",
            quantity=10,
            unit_cost=Decimal("150"),
            supplier="Mumias Distributors",
        )

        (product,) = _of(classifier.classify(record, "stock.csv"), ProductCandidate)

        assert product.name == "Sugar 1kg"
        assert product.supplier == "Mumias Distributors"
        assert product.confidence == 1.0
        assert product.trace_key.endswith(":PRODUCT")

    def test_unnamed_product_from_pricing(self, classifier):
        record = _record(cash_out=Decimal("300"), quantity=3, unit_cost=Decimal("100"))

        (product,) = _of(classifier.classify(record, "stock.csv"), ProductCandidate)

        assert product.name == "Unlabeled Product"
        assert product.supplier == "Unknown"
        assert product.confidence == 0.75

    def test_quantity_alone_is_not_a_product(self, classifier):
        record = _record(cash_out=Decimal("300"), quantity=3)

        assert _of(classifier.classify(record, "stock.csv"), ProductCandidate) == []


class TestClients:
    """Tests for client candidates."""

    def test_inferred_client_needs_review(self, classifier):
        record = _record(
            cash_in=Decimal("5000"),
            description="received from Jane",
            raw_text="2026-01-05 received from Jane 5000 N/A",
        )

        (client,) = _of(classifier.classify(record, "jan.csv"), ClientCandidate)

        assert client.name == "Jane"
        assert client.confidence == 0.65
        assert client.risk_level == RiskLevel.NEEDS_REVIEW
        assert client.total_spent == Decimal("5000")
        assert client.first_seen == "2026-01-05"

    def test_explicit_client_with_phone_is_trusted(self, classifier):
        record = _record(
            cash_in=Decimal("800"),
            client="Jane Wanjiru",
            phone="+254712345678",
            raw_text="2026-01-05 Jane Wanjiru +254712345678 800",
        )

        (client,) = _of(classifier.classify(record, "jan.csv"), ClientCandidate)

        assert client.confidence == 0.95
        assert client.risk_level == RiskLevel.TRUSTED

    def test_client_from_description(self, classifier):
        record = _record(
            cash_in=Decimal("450"),
            description="Walk-in customer",
            raw_text="2026-01-05 Walk-in customer 450",
        )

        (client,) = _of(classifier.classify(record, "jan.csv"), ClientCandidate)

        assert client.name == "Walk-in customer"
        assert client.confidence == 0.60

    def test_no_inflow_no_client(self, classifier):
        record = _record(cash_out=Decimal("450"), client="Jane")

        assert _of(classifier.classify(record, "jan.csv"), ClientCandidate) == []


class TestSuppliers:
    """Tests for supplier candidates."""

    def test_supplier_inferred_from_description(self, classifier):
        record = _record(
            direction_hint=Direction.OUT,
            description="paid to supplier for stock",
            raw_text="2026-01-05 paid to supplier for stock",
        )

        (supplier,) = _of(classifier.classify(record, "jan.csv"), SupplierCandidate)

        assert supplier.name == "supplier for stock"
        assert supplier.confidence == 0.65
        assert supplier.risk_level == RiskLevel.NEEDS_REVIEW
        assert supplier.category_hint == "Stock Purchase"

    def test_outflow_without_name(self, classifier):
        record = _record(cash_out=Decimal("700"), raw_text="2026-01-05 700")

        (supplier,) = _of(classifier.classify(record, "jan.csv"), SupplierCandidate)

        assert supplier.name == "Unknown Supplier"
        assert supplier.last_price == Decimal("700")
        assert supplier.category_hint == "General"
        assert supplier.confidence == 0.55
        assert supplier.risk_level == RiskLevel.RISKY

    def test_unit_cost_preferred_for_last_price(self, classifier):
        record = _record(cash_out=Decimal("1500"), unit_cost=Decimal("150"), supplier="Bidco")

        (supplier,) = _of(classifier.classify(record, "jan.csv"), SupplierCandidate)

        assert supplier.last_price == Decimal("150")


class TestEmissionOrder:
    """Tests for candidate ordering and trace keys."""

    def test_order_is_transactions_product_client_supplier(self, classifier):
        record = _record(
            cash_in=Decimal("100"),
            cash_out=Decimal("40"),
            product="Bread",
            client="Jane",
            supplier="Bakery",
        )

        kinds = [c.kind.value for c in classifier.classify(record, "jan.csv")]

        assert kinds == ["transaction", "transaction", "product", "client", "supplier"]

    def test_row_trace_key_is_stable(self):
        record = _record(cash_in=Decimal("5000"))

        assert row_trace_key(record, "jan.csv") == row_trace_key(record, "jan.csv")
        assert row_trace_key(record, "jan.csv") != row_trace_key(record, "feb.csv")

    def test_confidence_always_two_decimals_in_range(self, classifier):
        record = _record(
            cash_in=Decimal("100"),
            cash_out=Decimal("40"),
            product="Bread",
            quantity=2,
            unit_cost=Decimal("20"),
            client="Jane",
            phone="0712345678",
            supplier="Bakery",
            reference="QAB1234XYZ",
            raw_text="customer supplier",
        )

        for candidate in classifier.classify(record, "jan.csv"):
            assert 0.0 <= candidate.confidence <= 1.0
            assert round(candidate.confidence, 2) == candidate.confidence
