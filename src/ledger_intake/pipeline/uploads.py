"""
Upload service: runs the pipeline and persists its outcome.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import date

from ..config import Config
from ..extractors import ExtractorRouter
from ..ledger import CommitStatus, LedgerService
from ..review import ReviewQueue
from ..schemas.dedupe import compute_content_hash
from ..state_store import StateStore, UploadRecord
from .ingestion import STATUS_ERROR, IngestionOutcome, IngestionPipeline, bounded

logger = logging.getLogger(__name__)

ENCODINGS = ("plain", "base64")


@dataclass
class UploadReport:
    """What happened to one uploaded file."""

    outcome: IngestionOutcome
    ledger_committed: int = 0
    ledger_duplicates: int = 0
    entities_stored: int = 0
    review_queued: int = 0
    upload: UploadRecord | None = None

    @property
    def file_name(self) -> str:
        return self.outcome.file_name

    @property
    def status(self) -> str:
        return self.outcome.status


class UploadService:
    """
    Persists pipeline outcomes.

    For each file:
    1. Run the pipeline
    2. Commit trusted transactions to the ledger
    3. Store trusted products, clients and suppliers
    4. Queue the rest for review
    5. Register row keys and save the upload report
    """

    def __init__(
        self,
        store: StateStore,
        config: Config | None = None,
        router: ExtractorRouter | None = None,
        today: date | None = None,
    ):
        self.store = store
        self.config = config or Config()
        self.router = router or ExtractorRouter(ocr_config=self.config.ocr)
        self.today = today
        self.ledger = LedgerService(store)
        self.review_queue = ReviewQueue(store)

    def _pipeline(self, business_id: str) -> IngestionPipeline:
        return IngestionPipeline(
            self.store,
            business_id,
            config=self.config,
            router=self.router,
            today=self.today,
        )

    def ingest(
        self,
        business_id: str,
        file_name: str,
        content: bytes | str,
        encoding: str = "plain",
        pipeline: IngestionPipeline | None = None,
    ) -> UploadReport:
        """
        Ingest one file for a business.

        Args:
            business_id: Owning business
            file_name: Original file name
            content: File bytes or text (base64 text when encoding="base64")
            encoding: "plain" or "base64"
            pipeline: Pipeline to reuse (batch callers share one)

        Returns:
            UploadReport with the bounded outcome and persistence counts
        """
        if encoding not in ENCODINGS:
            raise ValueError(f"Unknown encoding: {encoding} (expected one of {ENCODINGS})")

        pipeline = pipeline or self._pipeline(business_id)
        outcome = None

        if encoding == "base64":
            try:
                content = base64.b64decode(content, validate=True)
            except (binascii.Error, ValueError) as e:
                logger.warning(f"{file_name}: invalid base64 content: {e}")
                outcome = IngestionOutcome(
                    file_name=file_name,
                    status=STATUS_ERROR,
                    errors=[f"{file_name}: content is not valid base64."],
                )
                content = b""

        if outcome is None:
            outcome = pipeline.process(file_name, content)

        report = UploadReport(outcome=outcome)

        for tx in outcome.trusted.transactions:
            result = self.ledger.commit_candidate(business_id, tx)
            if result.status == CommitStatus.COMMITTED:
                report.ledger_committed += 1
            elif result.status == CommitStatus.DUPLICATE:
                report.ledger_duplicates += 1
            else:
                outcome.errors.append(f"Row {tx.row_number}: {result.error}")

        for entity in outcome.trusted.entities():
            if self.store.insert_entity(business_id, entity.to_dict()):
                report.entities_stored += 1

        for entity in outcome.review.entities():
            self.review_queue.enqueue(business_id, entity)
            report.review_queued += 1

        self.store.register_ingested_rows(business_id, outcome.row_keys)

        limit = self.config.ingestion.max_report_items
        report.outcome = outcome.bounded(limit)
        report.upload = self.store.record_upload(
            UploadRecord(
                business_id=business_id,
                file_name=file_name,
                status=outcome.status,
                rows_processed=outcome.rows_processed,
                rows_skipped=outcome.rows_skipped,
                duplicates_skipped=outcome.duplicates_skipped,
                ledger_committed=report.ledger_committed,
                review_queued=report.review_queued,
                errors=bounded(outcome.errors, limit),
                warnings=bounded(outcome.warnings, limit),
                content_hash=compute_content_hash(
                    content.encode("utf-8") if isinstance(content, str) else content
                ),
            )
        )

        logger.info(
            f"{file_name}: {outcome.status}, ledger_committed={report.ledger_committed}, "
            f"entities_stored={report.entities_stored}, review_queued={report.review_queued}"
        )
        return report

    def ingest_batch(
        self, business_id: str, files: list[tuple[str, bytes | str]]
    ) -> list[UploadReport]:
        """
        Ingest files one after another.

        A file that fails unexpectedly gets an error report; the batch
        continues with the next file.
        """
        pipeline = self._pipeline(business_id)
        reports = []

        for file_name, content in files:
            try:
                reports.append(self.ingest(business_id, file_name, content, pipeline=pipeline))
            except Exception as e:
                logger.exception(f"Failed to ingest {file_name}")
                reports.append(
                    UploadReport(
                        outcome=IngestionOutcome(
                            file_name=file_name,
                            status=STATUS_ERROR,
                            errors=[f"{file_name}: {e}"],
                        )
                    )
                )

        return reports
