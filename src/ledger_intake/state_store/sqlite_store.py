"""
SQLite-based state store implementation.

Tables:
- ledger_entries: Append-only committed transactions (unique per business + trace_key)
- entities: Trusted or approved products, clients and suppliers
- review_queue: Candidates waiting for a human decision
- ingested_rows: Row-level trace keys already ingested (re-upload dedupe)
- uploads: Per-file ingestion reports
"""

import json
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

T = TypeVar("T")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ReviewStatus(str, Enum):
    """Status of a review queue item."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class LedgerEntry:
    """A committed ledger transaction."""

    business_id: str
    date: str  # YYYY-MM-DD
    direction: str  # IN / OUT
    amount: Decimal
    trace_key: str
    source: str = "file_upload"
    reference: str | None = None
    category: str | None = None
    channel: str | None = None
    transaction_cost: Decimal = Decimal("0")
    description: str | None = None
    id: int | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "LedgerEntry":
        """Create from database row."""
        return cls(
            id=row["id"],
            business_id=row["business_id"],
            date=row["date"],
            direction=row["direction"],
            amount=Decimal(row["amount"]),
            trace_key=row["trace_key"],
            source=row["source"],
            reference=row["reference"],
            category=row["category"],
            channel=row["channel"],
            transaction_cost=Decimal(row["transaction_cost"] or "0"),
            description=row["description"],
            created_at=row["created_at"],
        )


@dataclass
class EntityRecord:
    """A stored product, client or supplier."""

    id: int
    business_id: str
    kind: str
    name: str
    trace_key: str
    confidence: float
    risk_level: str
    source_file: str
    row_number: int
    payload: dict[str, Any]
    created_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "EntityRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            business_id=row["business_id"],
            kind=row["kind"],
            name=row["name"],
            trace_key=row["trace_key"],
            confidence=row["confidence"],
            risk_level=row["risk_level"],
            source_file=row["source_file"],
            row_number=row["row_number"],
            payload=json.loads(row["payload_json"]) if row["payload_json"] else {},
            created_at=row["created_at"],
        )


@dataclass
class ReviewQueueItem:
    """A candidate waiting for (or past) human review."""

    id: int
    business_id: str
    kind: str
    name: str
    confidence: float
    risk_level: str
    source_file: str
    row_number: int
    trace_key: str
    payload: dict[str, Any]
    status: ReviewStatus
    created_at: str
    decided_at: str | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ReviewQueueItem":
        """Create from database row."""
        return cls(
            id=row["id"],
            business_id=row["business_id"],
            kind=row["kind"],
            name=row["name"],
            confidence=row["confidence"],
            risk_level=row["risk_level"],
            source_file=row["source_file"],
            row_number=row["row_number"],
            trace_key=row["trace_key"],
            payload=json.loads(row["payload_json"]) if row["payload_json"] else {},
            status=ReviewStatus(row["status"]),
            created_at=row["created_at"],
            decided_at=row["decided_at"],
        )


@dataclass
class UploadRecord:
    """Persisted report for one ingested file."""

    business_id: str
    file_name: str
    status: str  # success / error
    rows_processed: int = 0
    rows_skipped: int = 0
    duplicates_skipped: int = 0
    ledger_committed: int = 0
    review_queued: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    content_hash: str | None = None
    id: int | None = None
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "UploadRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            business_id=row["business_id"],
            file_name=row["file_name"],
            status=row["status"],
            rows_processed=row["rows_processed"],
            rows_skipped=row["rows_skipped"],
            duplicates_skipped=row["duplicates_skipped"],
            ledger_committed=row["ledger_committed"],
            review_queued=row["review_queued"],
            errors=json.loads(row["errors_json"]) if row["errors_json"] else [],
            warnings=json.loads(row["warnings_json"]) if row["warnings_json"] else [],
            content_hash=row["content_hash"],
            created_at=row["created_at"],
        )


class StateStore:
    """
    SQLite-based state store for the pipeline.

    Provides persistent tracking of:
    - Ledger entries (append-only)
    - Trusted / approved entities
    - Review queue items
    - Ingested row keys
    - Upload reports

    All mutations go through update(), which holds the store lock and runs
    inside a single BEGIN IMMEDIATE transaction. Reads go through read().
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | str):
        """
        Initialize state store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for a serialized write transaction."""
        with self._lock:
            conn = self._get_connection()
            conn.isolation_level = None
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.execute("COMMIT")
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                conn.close()

    def read(self, query: Callable[[sqlite3.Connection], T]) -> T:
        """Run a read-only query function against a fresh connection."""
        conn = self._get_connection()
        try:
            return query(conn)
        finally:
            conn.close()

    def update(self, mutate: Callable[[sqlite3.Connection], T]) -> T:
        """
        Run a mutation function atomically.

        The function sees a connection inside an open transaction; it is
        committed if the function returns and rolled back if it raises.
        """
        with self._transaction() as conn:
            return mutate(conn)

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    business_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    direction TEXT NOT NULL,
                    amount TEXT NOT NULL,  -- Decimal as string
                    source TEXT NOT NULL,
                    trace_key TEXT NOT NULL,
                    reference TEXT,
                    category TEXT,
                    channel TEXT,
                    transaction_cost TEXT,
                    description TEXT,
                    created_at TEXT NOT NULL,
                    UNIQUE (business_id, trace_key)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS entities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    business_id TEXT NOT NULL,
                    kind TEXT NOT NULL,  -- product, client, supplier
                    name TEXT NOT NULL,
                    trace_key TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    risk_level TEXT NOT NULL,
                    source_file TEXT NOT NULL,
                    row_number INTEGER NOT NULL,
                    payload_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    UNIQUE (business_id, trace_key)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS review_queue (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    business_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    name TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    risk_level TEXT NOT NULL,
                    source_file TEXT NOT NULL,
                    row_number INTEGER NOT NULL,
                    trace_key TEXT NOT NULL,
                    payload_json TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL,
                    decided_at TEXT,
                    UNIQUE (business_id, trace_key)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ingested_rows (
                    business_id TEXT NOT NULL,
                    trace_key TEXT NOT NULL,
                    source_file TEXT NOT NULL,
                    row_number INTEGER NOT NULL,
                    first_seen TEXT NOT NULL,
                    PRIMARY KEY (business_id, trace_key)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS uploads (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    business_id TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    content_hash TEXT,
                    status TEXT NOT NULL,
                    rows_processed INTEGER NOT NULL DEFAULT 0,
                    rows_skipped INTEGER NOT NULL DEFAULT 0,
                    duplicates_skipped INTEGER NOT NULL DEFAULT 0,
                    ledger_committed INTEGER NOT NULL DEFAULT 0,
                    review_queued INTEGER NOT NULL DEFAULT 0,
                    errors_json TEXT,
                    warnings_json TEXT,
                    created_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_ledger_business_date "
                "ON ledger_entries(business_id, date)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_review_business_status "
                "ON review_queue(business_id, status)"
            )

            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # ========================================================================
    # Ledger
    # ========================================================================

    def insert_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry | None:
        """
        Append a ledger entry.

        Returns:
            The stored entry (with id and created_at), or None if the
            business already has an entry with this trace key
        """

        def mutate(conn: sqlite3.Connection) -> LedgerEntry | None:
            exists = conn.execute(
                "SELECT 1 FROM ledger_entries WHERE business_id = ? AND trace_key = ?",
                (entry.business_id, entry.trace_key),
            ).fetchone()
            if exists:
                return None

            created_at = _now()
            cursor = conn.execute(
                """
                INSERT INTO ledger_entries
                (business_id, date, direction, amount, source, trace_key, reference,
                 category, channel, transaction_cost, description, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    entry.business_id,
                    entry.date,
                    entry.direction,
                    f"{entry.amount:.2f}",
                    entry.source,
                    entry.trace_key,
                    entry.reference,
                    entry.category,
                    entry.channel,
                    f"{entry.transaction_cost:.2f}",
                    entry.description,
                    created_at,
                ),
            )
            row = conn.execute(
                "SELECT * FROM ledger_entries WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            return LedgerEntry.from_row(row)

        return self.update(mutate)

    def list_ledger_entries(
        self, business_id: str, date_prefix: str | None = None
    ) -> list[LedgerEntry]:
        """List ledger entries, newest date first. date_prefix filters e.g. '2026-02'."""
        query = "SELECT * FROM ledger_entries WHERE business_id = ?"
        params: list[Any] = [business_id]
        if date_prefix:
            query += " AND date LIKE ?"
            params.append(f"{date_prefix}%")
        query += " ORDER BY date DESC, id DESC"

        rows = self.read(lambda conn: conn.execute(query, params).fetchall())
        return [LedgerEntry.from_row(row) for row in rows]

    # ========================================================================
    # Entities
    # ========================================================================

    @staticmethod
    def _insert_entity(
        conn: sqlite3.Connection, business_id: str, payload: dict[str, Any]
    ) -> bool:
        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO entities
            (business_id, kind, name, trace_key, confidence, risk_level,
             source_file, row_number, payload_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                business_id,
                payload["kind"],
                payload.get("name", ""),
                payload["trace_key"],
                payload["confidence"],
                payload["risk_level"],
                payload["source_file"],
                payload["row_number"],
                json.dumps(payload),
                _now(),
            ),
        )
        return cursor.rowcount > 0

    def insert_entity(self, business_id: str, payload: dict[str, Any]) -> bool:
        """
        Store an entity candidate (as produced by Candidate.to_dict()).

        Returns:
            True if inserted, False if the trace key was already stored
        """
        return self.update(lambda conn: self._insert_entity(conn, business_id, payload))

    def entity_exists(self, business_id: str, trace_key: str) -> bool:
        """Check whether an entity with this trace key exists."""
        return self.read(
            lambda conn: conn.execute(
                "SELECT 1 FROM entities WHERE business_id = ? AND trace_key = ?",
                (business_id, trace_key),
            ).fetchone()
            is not None
        )

    def list_entities(self, business_id: str, kind: str | None = None) -> list[EntityRecord]:
        """List stored entities, optionally of one kind."""
        query = "SELECT * FROM entities WHERE business_id = ?"
        params: list[Any] = [business_id]
        if kind:
            query += " AND kind = ?"
            params.append(kind)
        query += " ORDER BY id"

        rows = self.read(lambda conn: conn.execute(query, params).fetchall())
        return [EntityRecord.from_row(row) for row in rows]

    # ========================================================================
    # Review queue
    # ========================================================================

    def insert_review_item(self, business_id: str, payload: dict[str, Any]) -> ReviewQueueItem:
        """
        Queue an entity candidate for review.

        Returns:
            The new pending item, or the existing item if this trace key is
            already queued for the business
        """

        def mutate(conn: sqlite3.Connection) -> ReviewQueueItem:
            conn.execute(
                """
                INSERT OR IGNORE INTO review_queue
                (business_id, kind, name, confidence, risk_level, source_file,
                 row_number, trace_key, payload_json, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    business_id,
                    payload["kind"],
                    payload.get("name", ""),
                    payload["confidence"],
                    payload["risk_level"],
                    payload["source_file"],
                    payload["row_number"],
                    payload["trace_key"],
                    json.dumps(payload),
                    ReviewStatus.PENDING.value,
                    _now(),
                ),
            )
            row = conn.execute(
                "SELECT * FROM review_queue WHERE business_id = ? AND trace_key = ?",
                (business_id, payload["trace_key"]),
            ).fetchone()
            return ReviewQueueItem.from_row(row)

        return self.update(mutate)

    def list_review_items(
        self, business_id: str, status: ReviewStatus | None = None
    ) -> list[ReviewQueueItem]:
        """List review items, optionally filtered by status."""
        query = "SELECT * FROM review_queue WHERE business_id = ?"
        params: list[Any] = [business_id]
        if status:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY id"

        rows = self.read(lambda conn: conn.execute(query, params).fetchall())
        return [ReviewQueueItem.from_row(row) for row in rows]

    def approve_review_item(self, business_id: str, item_id: int) -> ReviewQueueItem | None:
        """
        Approve a pending item: copy its payload into the entity store and
        mark it approved, in one transaction.

        No-op (item returned unchanged) if the item is not pending or its
        trace key is already in the entity store.

        Returns:
            The item after the call, or None if it does not exist
        """

        def mutate(conn: sqlite3.Connection) -> ReviewQueueItem | None:
            row = conn.execute(
                "SELECT * FROM review_queue WHERE business_id = ? AND id = ?",
                (business_id, item_id),
            ).fetchone()
            if row is None:
                return None
            item = ReviewQueueItem.from_row(row)
            if item.status != ReviewStatus.PENDING:
                return item

            exists = conn.execute(
                "SELECT 1 FROM entities WHERE business_id = ? AND trace_key = ?",
                (business_id, item.trace_key),
            ).fetchone()
            if exists:
                return item

            self._insert_entity(conn, business_id, item.payload)
            conn.execute(
                "UPDATE review_queue SET status = ?, decided_at = ? WHERE id = ?",
                (ReviewStatus.APPROVED.value, _now(), item_id),
            )
            updated = conn.execute("SELECT * FROM review_queue WHERE id = ?", (item_id,)).fetchone()
            return ReviewQueueItem.from_row(updated)

        return self.update(mutate)

    def reject_review_item(self, business_id: str, item_id: int) -> ReviewQueueItem | None:
        """
        Reject a pending item (status change only).

        Returns:
            The item after the call, or None if it does not exist
        """

        def mutate(conn: sqlite3.Connection) -> ReviewQueueItem | None:
            conn.execute(
                "UPDATE review_queue SET status = ?, decided_at = ? "
                "WHERE business_id = ? AND id = ? AND status = ?",
                (
                    ReviewStatus.REJECTED.value,
                    _now(),
                    business_id,
                    item_id,
                    ReviewStatus.PENDING.value,
                ),
            )
            row = conn.execute(
                "SELECT * FROM review_queue WHERE business_id = ? AND id = ?",
                (business_id, item_id),
            ).fetchone()
            return ReviewQueueItem.from_row(row) if row else None

        return self.update(mutate)

    # ========================================================================
    # Ingested rows and trace keys
    # ========================================================================

    def register_ingested_rows(
        self, business_id: str, rows: list[tuple[str, str, int]]
    ) -> int:
        """
        Remember row-level trace keys so re-uploads are recognized.

        Args:
            rows: (trace_key, source_file, row_number) tuples

        Returns:
            Number of newly registered rows
        """
        if not rows:
            return 0

        def mutate(conn: sqlite3.Connection) -> int:
            first_seen = _now()
            inserted = 0
            for trace_key, source_file, row_number in rows:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO ingested_rows
                    (business_id, trace_key, source_file, row_number, first_seen)
                    VALUES (?, ?, ?, ?, ?)
                """,
                    (business_id, trace_key, source_file, row_number, first_seen),
                )
                inserted += cursor.rowcount
            return inserted

        return self.update(mutate)

    def known_trace_keys(self, business_id: str) -> set[str]:
        """Every trace key the business has persisted, across all tables."""

        def query(conn: sqlite3.Connection) -> set[str]:
            keys: set[str] = set()
            for table in ("ingested_rows", "ledger_entries", "entities", "review_queue"):
                rows = conn.execute(
                    f"SELECT trace_key FROM {table} WHERE business_id = ?", (business_id,)
                ).fetchall()
                keys.update(row["trace_key"] for row in rows)
            return keys

        return self.read(query)

    # ========================================================================
    # Uploads
    # ========================================================================

    def record_upload(self, record: UploadRecord) -> UploadRecord:
        """Persist an upload report."""

        def mutate(conn: sqlite3.Connection) -> UploadRecord:
            cursor = conn.execute(
                """
                INSERT INTO uploads
                (business_id, file_name, content_hash, status, rows_processed,
                 rows_skipped, duplicates_skipped, ledger_committed, review_queued,
                 errors_json, warnings_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    record.business_id,
                    record.file_name,
                    record.content_hash,
                    record.status,
                    record.rows_processed,
                    record.rows_skipped,
                    record.duplicates_skipped,
                    record.ledger_committed,
                    record.review_queued,
                    json.dumps(record.errors),
                    json.dumps(record.warnings),
                    _now(),
                ),
            )
            row = conn.execute("SELECT * FROM uploads WHERE id = ?", (cursor.lastrowid,)).fetchone()
            return UploadRecord.from_row(row)

        return self.update(mutate)

    def list_uploads(self, business_id: str) -> list[UploadRecord]:
        """List upload reports, newest first."""
        rows = self.read(
            lambda conn: conn.execute(
                "SELECT * FROM uploads WHERE business_id = ? ORDER BY id DESC", (business_id,)
            ).fetchall()
        )
        return [UploadRecord.from_row(row) for row in rows]

    # ========================================================================
    # Stats
    # ========================================================================

    def get_stats(self) -> dict[str, int]:
        """Get store statistics across all businesses."""

        def query(conn: sqlite3.Connection) -> dict[str, int]:
            def count(sql: str, params: tuple = ()) -> int:
                return conn.execute(sql, params).fetchone()[0]

            return {
                "uploads_total": count("SELECT COUNT(*) FROM uploads"),
                "uploads_failed": count("SELECT COUNT(*) FROM uploads WHERE status = 'error'"),
                "ledger_entries": count("SELECT COUNT(*) FROM ledger_entries"),
                "entities": count("SELECT COUNT(*) FROM entities"),
                "pending_review": count(
                    "SELECT COUNT(*) FROM review_queue WHERE status = ?",
                    (ReviewStatus.PENDING.value,),
                ),
                "rows_ingested": count("SELECT COUNT(*) FROM ingested_rows"),
            }

        return self.read(query)
