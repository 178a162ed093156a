"""
State Store (SQLite-based).

Lightweight persistent DB for tracking:
- Ledger entries (append-only)
- Trusted and approved entities
- Review queue
- Ingested row keys and upload reports

Enforces uniqueness on (business_id, trace_key).
"""

from .sqlite_store import (
    EntityRecord,
    LedgerEntry,
    ReviewQueueItem,
    ReviewStatus,
    StateStore,
    UploadRecord,
)

__all__ = [
    "EntityRecord",
    "LedgerEntry",
    "ReviewQueueItem",
    "ReviewStatus",
    "StateStore",
    "UploadRecord",
]
