"""
Ledger module.

Validated, append-only commits keyed by trace key, plus monthly summaries
and provider (POS) sync.
"""

from ..state_store import LedgerEntry
from .service import (
    CommitResult,
    CommitStatus,
    ExternalSyncResult,
    ExternalTransaction,
    LedgerService,
    MonthlySummary,
)
from .validator import ValidationError, validate_ledger_entry

__all__ = [
    "CommitResult",
    "CommitStatus",
    "ExternalSyncResult",
    "ExternalTransaction",
    "LedgerEntry",
    "LedgerService",
    "MonthlySummary",
    "ValidationError",
    "validate_ledger_entry",
]
