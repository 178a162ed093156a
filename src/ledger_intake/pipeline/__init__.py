"""
Ingestion pipeline module.

Extractor -> Normalizer -> Classifier -> Deduplicator -> Router, plus the
upload service that commits outcomes to the ledger, the entity store and
the review queue.
"""

from .deduplicator import Deduplicator
from .ingestion import IngestionOutcome, IngestionPipeline, bounded
from .router import ReviewCandidates, RoutedCandidates, TrustedCandidates, route_candidates
from .uploads import UploadReport, UploadService

__all__ = [
    "Deduplicator",
    "IngestionOutcome",
    "IngestionPipeline",
    "ReviewCandidates",
    "RoutedCandidates",
    "TrustedCandidates",
    "UploadReport",
    "UploadService",
    "bounded",
    "route_candidates",
]
