"""
Ingestion pipeline.

    Extractor -> Normalizer -> Classifier -> Deduplicator -> Router

One file runs through the whole chain before the next one starts, and rows
are processed in order. A bad row is recorded and skipped; a bad file
produces an error outcome and never raises.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date

from ..classification import RowClassifier, row_trace_key
from ..config import Config
from ..extractors import ExtractionError, ExtractorRouter
from ..normalization import Normalizer
from ..schemas.candidates import Candidate
from ..state_store import StateStore
from .deduplicator import Deduplicator
from .router import ReviewCandidates, TrustedCandidates, route_candidates

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


def bounded(items: list[str], limit: int) -> list[str]:
    """
    At most `limit` items. When truncated, the last slot becomes a
    '... and N more' line.
    """
    if len(items) <= limit:
        return list(items)
    if limit <= 0:
        return []
    kept = limit - 1
    return items[:kept] + [f"... and {len(items) - kept} more"]


@dataclass
class IngestionOutcome:
    """Per-file result of the pipeline."""

    file_name: str
    status: str = STATUS_SUCCESS
    trusted: TrustedCandidates = field(default_factory=TrustedCandidates)
    review: ReviewCandidates = field(default_factory=ReviewCandidates)
    rows_processed: int = 0
    rows_skipped: int = 0
    duplicates_skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    strategy: str = ""
    # (row trace key, source file, row number) for every processed row
    row_keys: list[tuple[str, str, int]] = field(default_factory=list)

    def bounded(self, limit: int) -> "IngestionOutcome":
        """Copy with warnings, errors and suggestions truncated to `limit`."""
        return replace(
            self,
            warnings=bounded(self.warnings, limit),
            errors=bounded(self.errors, limit),
            suggestions=bounded(self.suggestions, limit),
        )


class IngestionPipeline:
    """
    Runs uploaded files through extraction, normalization, classification,
    deduplication and routing for one business.

    The pipeline does not persist anything; UploadService commits the
    outcome. Keys admitted by earlier files on the same pipeline instance
    count as already seen, so one instance is one batch.
    """

    def __init__(
        self,
        store: StateStore,
        business_id: str,
        config: Config | None = None,
        router: ExtractorRouter | None = None,
        today: date | None = None,
    ):
        self.store = store
        self.business_id = business_id
        self.config = config or Config()
        self.router = router or ExtractorRouter(ocr_config=self.config.ocr)
        self.normalizer = Normalizer(today=today)
        self.classifier = RowClassifier(source=self.config.ingestion.source)
        self.admitted_keys: set[str] = set()

    def run_from_text(self, file_name: str, content: bytes | str) -> IngestionOutcome:
        """
        Run one file through the pipeline.

        Args:
            file_name: Original file name (the extension picks the extractor)
            content: File bytes or already-decoded text

        Returns:
            IngestionOutcome with report lists bounded to the configured size
        """
        return self.process(file_name, content).bounded(self.config.ingestion.max_report_items)

    def process(self, file_name: str, content: bytes | str) -> IngestionOutcome:
        """Like run_from_text(), but with the full warning and error lists."""
        outcome = IngestionOutcome(file_name=file_name)

        try:
            matrix = self.router.extract(file_name, content)
        except ExtractionError as e:
            logger.warning(f"{file_name}: {e}")
            outcome.status = STATUS_ERROR
            outcome.errors.append(e.message)
            return outcome

        outcome.strategy = matrix.strategy
        normalized = self.normalizer.normalize(matrix)
        outcome.rows_skipped = normalized.rows_skipped
        outcome.warnings.extend(normalized.warnings)
        outcome.suggestions.extend(normalized.suggestions)

        dedupe = Deduplicator(self.store, self.business_id, admitted=self.admitted_keys)
        candidates: list[Candidate] = []

        for record in normalized.records:
            row_key = row_trace_key(record, file_name)
            if dedupe.is_duplicate(row_key):
                outcome.duplicates_skipped += 1
                continue

            try:
                row_candidates = self.classifier.classify(record, file_name)
            except Exception as e:
                logger.exception(f"{file_name}: failed to classify row {record.row_number}")
                outcome.errors.append(f"Row {record.row_number}: {e}")
                continue

            dedupe.admit(row_key)
            outcome.row_keys.append((row_key, file_name, record.row_number))
            outcome.rows_processed += 1

            for candidate in row_candidates:
                if dedupe.admit(candidate.trace_key):
                    candidates.append(candidate)
                else:
                    outcome.duplicates_skipped += 1

        routed = route_candidates(candidates)
        outcome.trusted = routed.trusted
        outcome.review = routed.review

        logger.info(
            f"{file_name}: processed={outcome.rows_processed}, skipped={outcome.rows_skipped}, "
            f"duplicates={outcome.duplicates_skipped}, "
            f"transactions={len(outcome.trusted.transactions)}, "
            f"trusted_entities={len(outcome.trusted.entities())}, "
            f"review={len(outcome.review.entities())}"
        )
        return outcome
