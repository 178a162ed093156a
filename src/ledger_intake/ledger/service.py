"""
Ledger service: validated, idempotent commits and summaries.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from ..schemas.candidates import TransactionCandidate
from ..schemas.dedupe import build_external_trace_key
from ..schemas.records import PaymentChannel
from ..state_store import LedgerEntry, StateStore
from .validator import ValidationError, validate_ledger_entry

logger = logging.getLogger(__name__)

EXTERNAL_SOURCE = "pos"


class CommitStatus(str, Enum):
    """Outcome of a ledger commit."""

    COMMITTED = "COMMITTED"
    DUPLICATE = "DUPLICATE"
    INVALID = "INVALID"


@dataclass
class CommitResult:
    """Result of LedgerService.commit()."""

    status: CommitStatus
    entry: LedgerEntry | None = None
    error: ValidationError | None = None


@dataclass
class MonthlySummary:
    """Cash totals for one calendar month."""

    month: str  # YYYY-MM
    cash_in: Decimal = Decimal("0")
    cash_out: Decimal = Decimal("0")
    entries: int = 0

    @property
    def profit(self) -> Decimal:
        return self.cash_in - self.cash_out


@dataclass
class ExternalTransaction:
    """A transaction reported by an external provider (e.g. a POS)."""

    date: str
    direction: str  # IN / OUT
    amount: Decimal
    reference: str
    channel: PaymentChannel | None = None
    category: str | None = None


@dataclass
class ExternalSyncResult:
    """Counts from syncing provider transactions."""

    committed: int = 0
    duplicates: int = 0
    invalid: int = 0
    errors: list[str] = field(default_factory=list)


class LedgerService:
    """
    Commits transactions to the append-only ledger.

    Responsibilities:
    - Validate entries (every violated field reported)
    - Refuse duplicate trace keys per business
    - Summarize cash in / out per month
    - Sync provider (POS) transactions with stable trace keys
    """

    def __init__(self, store: StateStore):
        """Initialize with state store."""
        self.store = store

    def commit(self, entry: LedgerEntry) -> CommitResult:
        """
        Validate and append one entry.

        Returns:
            CommitResult: COMMITTED with the stored entry, DUPLICATE if the
            trace key already exists for the business, INVALID with the
            validation error otherwise
        """
        error = validate_ledger_entry(entry)
        if error:
            logger.warning(f"Rejected ledger entry {entry.trace_key or '<no trace key>'}: {error}")
            return CommitResult(status=CommitStatus.INVALID, error=error)

        saved = self.store.insert_ledger_entry(entry)
        if saved is None:
            logger.debug(f"Duplicate ledger entry skipped: {entry.trace_key}")
            return CommitResult(status=CommitStatus.DUPLICATE)

        logger.info(
            f"Committed {saved.direction} {saved.amount:.2f} on {saved.date} "
            f"for {saved.business_id} ({saved.trace_key})"
        )
        return CommitResult(status=CommitStatus.COMMITTED, entry=saved)

    def commit_candidate(self, business_id: str, candidate: TransactionCandidate) -> CommitResult:
        """Commit a transaction candidate produced by the classifier."""
        return self.commit(
            LedgerEntry(
                business_id=business_id,
                date=candidate.date,
                direction=candidate.direction.value,
                amount=candidate.amount,
                trace_key=candidate.trace_key,
                source=candidate.source,
                reference=candidate.reference or None,
                category=candidate.category or None,
                channel=(
                    candidate.channel.value
                    if candidate.channel != PaymentChannel.UNKNOWN
                    else None
                ),
                transaction_cost=candidate.transaction_cost,
                description=candidate.description or None,
            )
        )

    def list_entries(self, business_id: str) -> list[LedgerEntry]:
        """All entries for a business, newest date first."""
        return self.store.list_ledger_entries(business_id)

    def monthly_summary(self, business_id: str, iso_date: str | None = None) -> MonthlySummary:
        """
        Summarize the month containing iso_date (default: today).

        Returns:
            MonthlySummary with cash in, cash out, profit and entry count
        """
        month = (iso_date or date.today().isoformat())[:7]
        summary = MonthlySummary(month=month)

        for entry in self.store.list_ledger_entries(business_id, date_prefix=month):
            if entry.direction == "IN":
                summary.cash_in += entry.amount
            elif entry.direction == "OUT":
                summary.cash_out += entry.amount
            summary.entries += 1

        return summary

    def sync_external(
        self,
        business_id: str,
        provider: str,
        transactions: list[ExternalTransaction],
    ) -> ExternalSyncResult:
        """
        Commit transactions reported by an external provider.

        Each transaction is keyed by provider, reference and date, so a
        repeated sync never double-counts.
        """
        result = ExternalSyncResult()

        for tx in transactions:
            if not tx.reference:
                result.invalid += 1
                result.errors.append(f"{tx.date} {tx.amount}: missing provider reference")
                continue

            commit = self.commit(
                LedgerEntry(
                    business_id=business_id,
                    date=tx.date,
                    direction=tx.direction,
                    amount=abs(Decimal(tx.amount)),
                    trace_key=build_external_trace_key(
                        business_id, provider, tx.reference, tx.date
                    ),
                    source=EXTERNAL_SOURCE,
                    reference=tx.reference,
                    category=tx.category,
                    channel=tx.channel.value if tx.channel else None,
                )
            )
            if commit.status == CommitStatus.COMMITTED:
                result.committed += 1
            elif commit.status == CommitStatus.DUPLICATE:
                result.duplicates += 1
            else:
                result.invalid += 1
                result.errors.append(f"{tx.reference}: {commit.error}")

        logger.info(
            f"Synced {provider} for {business_id}: committed={result.committed}, "
            f"duplicates={result.duplicates}, invalid={result.invalid}"
        )
        return result
