"""Tests for candidate routing."""

from decimal import Decimal

import pytest

from ledger_intake.pipeline import route_candidates
from ledger_intake.schemas import (
    ClientCandidate,
    ProductCandidate,
    SupplierCandidate,
    TransactionCandidate,
)


def _tx(confidence: float, key: str) -> TransactionCandidate:
    return TransactionCandidate(
        source_file="jan.csv",
        row_number=2,
        confidence=confidence,
        trace_key=key,
        amount=Decimal("100"),
    )


class TestRouteCandidates:
    """Tests for route_candidates()."""

    def test_transactions_always_trusted(self):
        routed = route_candidates([_tx(0.45, "file:a:IN"), _tx(1.0, "file:b:OUT")])

        assert [tx.trace_key for tx in routed.trusted.transactions] == ["file:a:IN", "file:b:OUT"]
        assert routed.review.entities() == []

    def test_entities_split_on_trusted_level(self):
        trusted_product = ProductCandidate(
            source_file="f", row_number=2, confidence=1.0, trace_key="file:p1", name="Sugar"
        )
        review_product = ProductCandidate(
            source_file="f", row_number=3, confidence=0.60, trace_key="file:p2", name="Salt"
        )
        review_client = ClientCandidate(
            source_file="f", row_number=2, confidence=0.65, trace_key="file:c1", name="Jane"
        )
        risky_supplier = SupplierCandidate(
            source_file="f", row_number=2, confidence=0.55, trace_key="file:s1"
        )

        routed = route_candidates([trusted_product, review_product, review_client, risky_supplier])

        assert routed.trusted.products == [trusted_product]
        assert routed.review.products == [review_product]
        assert routed.review.clients == [review_client]
        # Risky candidates are reviewed, not dropped
        assert routed.review.suppliers == [risky_supplier]

    def test_every_candidate_lands_in_exactly_one_bucket(self):
        candidates = [
            _tx(0.8, "file:a:IN"),
            ClientCandidate(
                source_file="f", row_number=2, confidence=0.95, trace_key="file:c", name="Jane"
            ),
            SupplierCandidate(source_file="f", row_number=2, confidence=0.85, trace_key="file:s"),
        ]

        routed = route_candidates(candidates)

        routed_keys = [tx.trace_key for tx in routed.trusted.transactions]
        routed_keys += [c.trace_key for c in routed.trusted.entities()]
        routed_keys += [c.trace_key for c in routed.review.entities()]
        assert sorted(routed_keys) == sorted(c.trace_key for c in candidates)

    def test_unknown_candidate_type(self):
        with pytest.raises(TypeError):
            route_candidates([object()])
