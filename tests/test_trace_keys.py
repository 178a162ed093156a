"""Tests for trace key generation, parsing and candidate serialization."""

from decimal import Decimal

import pytest

from ledger_intake.schemas import (
    ClientCandidate,
    ProductCandidate,
    TraceKeySuffix,
    TransactionCandidate,
    build_external_trace_key,
    build_row_trace_key,
    compute_content_hash,
    entity_from_dict,
    parse_trace_key,
    with_suffix,
)

ROW_KEY = "file:2026-02-20|5000.00|0.00|0|jan.csv|2"


class TestBuildRowTraceKey:
    """Tests for row-level keys."""

    def test_format(self):
        assert build_row_trace_key("2026-02-20", 5000, 0, 0, "jan.csv", 2) == ROW_KEY

    def test_amount_formats_agree(self):
        keys = {
            build_row_trace_key("2026-02-20", amount, "0", 0, "jan.csv", 2)
            for amount in (5000, "5000", Decimal("5000.00"), 5000.0)
        }
        assert keys == {ROW_KEY}

    def test_separator_in_file_name_replaced(self):
        key = build_row_trace_key("2026-02-20", 1, 0, 0, "a|b.csv", 2)
        assert "|a/b.csv|" in key

    def test_row_number_must_be_positive(self):
        with pytest.raises(ValueError):
            build_row_trace_key("2026-02-20", 1, 0, 0, "jan.csv", 0)

    def test_suffix(self):
        assert with_suffix(ROW_KEY, TraceKeySuffix.CLIENT) == f"{ROW_KEY}:CLIENT"


class TestExternalTraceKey:
    """Tests for provider keys."""

    def test_format(self):
        key = build_external_trace_key("biz-1", "Square", "R123", "2026-02-20")
        assert key == "pos:biz-1|square|R123|2026-02-20"

    def test_reference_required(self):
        with pytest.raises(ValueError):
            build_external_trace_key("biz-1", "square", "", "2026-02-20")

    def test_never_collides_with_file_keys(self):
        external = build_external_trace_key("biz-1", "square", "R123", "2026-02-20")
        assert not external.startswith("file:")


class TestParseTraceKey:
    """Tests for parsing keys back into components."""

    def test_row_key(self):
        parts = parse_trace_key(ROW_KEY)

        assert parts.source == "file"
        assert parts.date == "2026-02-20"
        assert parts.cash_in == Decimal("5000.00")
        assert parts.cash_out == Decimal("0")
        assert parts.orders == 0
        assert parts.file_name == "jan.csv"
        assert parts.row_number == 2
        assert parts.suffix is None

    def test_candidate_key(self):
        parts = parse_trace_key(with_suffix(ROW_KEY, TraceKeySuffix.OUT))

        assert parts.suffix == TraceKeySuffix.OUT
        assert parts.row_number == 2

    def test_external_key(self):
        parts = parse_trace_key("pos:biz-1|square|R123|2026-02-20")

        assert parts.source == "pos"
        assert parts.provider == "square"
        assert parts.reference == "R123"

    @pytest.mark.parametrize(
        "key",
        [
            "garbage",
            "ftp:2026-02-20|1|2",
            "file:2026-02-20|5000.00|0.00",
            "file:2026-02-20|abc|0.00|0|jan.csv|2",
            "pos:biz-1|square",
        ],
    )
    def test_invalid_keys(self, key):
        with pytest.raises(ValueError):
            parse_trace_key(key)


def test_content_hash():
    assert compute_content_hash(b"abc") == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


class TestCandidateSerialization:
    """Tests for to_dict() and entity_from_dict()."""

    def test_to_dict_is_json_friendly(self):
        candidate = ClientCandidate(
            source_file="jan.csv",
            row_number=2,
            confidence=0.65,
            trace_key=with_suffix(ROW_KEY, TraceKeySuffix.CLIENT),
            name="Jane",
            total_spent=Decimal("5000"),
            first_seen="2026-01-05",
        )

        data = candidate.to_dict()

        assert data["kind"] == "client"
        assert data["risk_level"] == "Needs Review"
        assert data["total_spent"] == "5000.00"

    def test_entity_rebuilt_from_dict(self):
        candidate = ProductCandidate(
            source_file="stock.csv",
            row_number=2,
            confidence=1.0,
            trace_key="file:k:PRODUCT",
            name="Sugar 1kg",
            quantity=10,
            unit_cost=Decimal("150"),
            supplier="Mumias Distributors",
        )

        assert entity_from_dict(candidate.to_dict()) == candidate

    def test_transactions_are_not_entities(self):
        candidate = TransactionCandidate(
            source_file="jan.csv", row_number=2, confidence=0.8, trace_key="file:k:IN"
        )

        with pytest.raises(ValueError):
            entity_from_dict(candidate.to_dict())
