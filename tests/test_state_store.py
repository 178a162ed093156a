"""Tests for the SQLite state store."""

from decimal import Decimal

import pytest

from ledger_intake.state_store import LedgerEntry, ReviewStatus, StateStore, UploadRecord


def _entry(business_id: str = "biz-001", trace_key: str = "file:k:IN", **overrides) -> LedgerEntry:
    values = dict(
        business_id=business_id,
        date="2026-01-05",
        direction="IN",
        amount=Decimal("5000"),
        trace_key=trace_key,
    )
    values.update(overrides)
    return LedgerEntry(**values)


def _payload(trace_key: str, name: str = "Jane", kind: str = "client") -> dict:
    return {
        "kind": kind,
        "name": name,
        "trace_key": trace_key,
        "confidence": 0.65,
        "risk_level": "Needs Review",
        "source_file": "jan.csv",
        "row_number": 2,
    }


class TestLedgerTable:
    """Tests for ledger entries."""

    def test_insert_returns_stored_entry(self, store):
        saved = store.insert_ledger_entry(_entry())

        assert saved.id is not None
        assert saved.created_at
        assert saved.amount == Decimal("5000.00")

    def test_duplicate_trace_key_refused(self, store):
        store.insert_ledger_entry(_entry())

        assert store.insert_ledger_entry(_entry(amount=Decimal("1"))) is None
        assert len(store.list_ledger_entries("biz-001")) == 1

    def test_same_trace_key_other_business(self, store):
        store.insert_ledger_entry(_entry())

        assert store.insert_ledger_entry(_entry(business_id="biz-002")) is not None

    def test_list_filters_by_month(self, store):
        store.insert_ledger_entry(_entry(trace_key="file:a:IN", date="2026-01-31"))
        store.insert_ledger_entry(_entry(trace_key="file:b:IN", date="2026-02-01"))

        january = store.list_ledger_entries("biz-001", date_prefix="2026-01")

        assert [e.trace_key for e in january] == ["file:a:IN"]

    def test_list_newest_date_first(self, store):
        store.insert_ledger_entry(_entry(trace_key="file:a:IN", date="2026-01-05"))
        store.insert_ledger_entry(_entry(trace_key="file:b:IN", date="2026-01-20"))

        assert [e.date for e in store.list_ledger_entries("biz-001")] == [
            "2026-01-20",
            "2026-01-05",
        ]

    def test_persists_across_instances(self, temp_db):
        StateStore(temp_db).insert_ledger_entry(_entry())

        entries = StateStore(temp_db).list_ledger_entries("biz-001")
        assert [e.trace_key for e in entries] == ["file:k:IN"]


class TestEntities:
    """Tests for the entity store."""

    def test_insert_once_per_trace_key(self, store):
        assert store.insert_entity("biz-001", _payload("file:k:CLIENT")) is True
        assert store.insert_entity("biz-001", _payload("file:k:CLIENT")) is False

    def test_list_by_kind(self, store):
        store.insert_entity("biz-001", _payload("file:a:CLIENT"))
        store.insert_entity("biz-001", _payload("file:a:SUPPLIER", "Acme", "supplier"))

        suppliers = store.list_entities("biz-001", kind="supplier")

        assert [e.name for e in suppliers] == ["Acme"]
        assert suppliers[0].payload["trace_key"] == "file:a:SUPPLIER"


class TestReviewQueue:
    """Tests for review items."""

    def test_insert_is_idempotent(self, store):
        first = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))
        second = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))

        assert first.id == second.id
        assert first.status == ReviewStatus.PENDING
        assert len(store.list_review_items("biz-001")) == 1

    def test_approve_moves_payload_into_entities(self, store):
        item = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))

        approved = store.approve_review_item("biz-001", item.id)

        assert approved.status == ReviewStatus.APPROVED
        assert approved.decided_at
        assert store.entity_exists("biz-001", "file:k:CLIENT")

    def test_approve_twice_is_noop(self, store):
        item = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))
        store.approve_review_item("biz-001", item.id)

        again = store.approve_review_item("biz-001", item.id)

        assert again.status == ReviewStatus.APPROVED
        assert len(store.list_entities("biz-001")) == 1

    def test_approve_when_entity_exists_is_noop(self, store):
        item = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))
        store.insert_entity("biz-001", _payload("file:k:CLIENT"))

        result = store.approve_review_item("biz-001", item.id)

        assert result.status == ReviewStatus.PENDING
        assert len(store.list_entities("biz-001")) == 1

    def test_reject(self, store):
        item = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))

        rejected = store.reject_review_item("biz-001", item.id)

        assert rejected.status == ReviewStatus.REJECTED
        assert not store.entity_exists("biz-001", "file:k:CLIENT")

    def test_reject_after_approve_keeps_approval(self, store):
        item = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))
        store.approve_review_item("biz-001", item.id)

        assert store.reject_review_item("biz-001", item.id).status == ReviewStatus.APPROVED

    def test_items_scoped_to_business(self, store):
        item = store.insert_review_item("biz-001", _payload("file:k:CLIENT"))

        assert store.list_review_items("biz-002") == []
        assert store.approve_review_item("biz-002", item.id) is None
        assert store.reject_review_item("biz-002", item.id) is None

    def test_list_by_status(self, store):
        a = store.insert_review_item("biz-001", _payload("file:a:CLIENT"))
        store.insert_review_item("biz-001", _payload("file:b:CLIENT"))
        store.reject_review_item("biz-001", a.id)

        pending = store.list_review_items("biz-001", ReviewStatus.PENDING)

        assert [i.trace_key for i in pending] == ["file:b:CLIENT"]


class TestTraceKeys:
    """Tests for ingested rows and known keys."""

    def test_register_ingested_rows(self, store):
        rows = [("file:a", "jan.csv", 2), ("file:b", "jan.csv", 3)]

        assert store.register_ingested_rows("biz-001", rows) == 2
        assert store.register_ingested_rows("biz-001", rows) == 0
        assert store.register_ingested_rows("biz-001", []) == 0

    def test_known_trace_keys_spans_tables(self, store):
        store.register_ingested_rows("biz-001", [("file:row", "jan.csv", 2)])
        store.insert_ledger_entry(_entry(trace_key="file:row:IN"))
        store.insert_entity("biz-001", _payload("file:row:SUPPLIER"))
        store.insert_review_item("biz-001", _payload("file:row:CLIENT"))
        store.insert_ledger_entry(_entry(business_id="biz-002", trace_key="file:other:IN"))

        assert store.known_trace_keys("biz-001") == {
            "file:row",
            "file:row:IN",
            "file:row:SUPPLIER",
            "file:row:CLIENT",
        }


class TestUploadsAndStats:
    """Tests for upload reports and statistics."""

    def test_record_upload_roundtrip(self, store):
        saved = store.record_upload(
            UploadRecord(
                business_id="biz-001",
                file_name="jan.csv",
                status="error",
                errors=["jan.csv is empty."],
            )
        )

        (listed,) = store.list_uploads("biz-001")
        assert listed.id == saved.id
        assert listed.errors == ["jan.csv is empty."]
        assert listed.warnings == []

    def test_get_stats(self, store):
        store.insert_ledger_entry(_entry())
        store.insert_review_item("biz-001", _payload("file:k:CLIENT"))
        store.record_upload(UploadRecord(business_id="biz-001", file_name="a.csv", status="error"))

        stats = store.get_stats()

        assert stats["ledger_entries"] == 1
        assert stats["pending_review"] == 1
        assert stats["uploads_total"] == 1
        assert stats["uploads_failed"] == 1
        assert stats["entities"] == 0


def test_failed_update_rolls_back(store):
    def mutate(conn):
        conn.execute(
            "INSERT INTO ingested_rows (business_id, trace_key, source_file, row_number, "
            "first_seen) VALUES ('biz-001', 'file:x', 'f', 2, 'now')"
        )
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.update(mutate)

    assert store.known_trace_keys("biz-001") == set()
