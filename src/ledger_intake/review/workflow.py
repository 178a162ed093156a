"""
Review queue workflow.
"""

import logging
from enum import Enum

from ..schemas.candidates import Candidate
from ..state_store import ReviewQueueItem, ReviewStatus, StateStore

logger = logging.getLogger(__name__)


class ReviewDecision(str, Enum):
    """Reviewer's decision on a queued candidate."""

    APPROVED = "APPROVED"  # Store as an entity
    REJECTED = "REJECTED"  # Keep out of the entity store


class ReviewQueue:
    """
    Manages candidates waiting for a human reviewer.

    Responsibilities:
    - Queue non-trusted products, clients and suppliers
    - Promote approved items into the entity store
    - Record rejections
    """

    def __init__(self, store: StateStore):
        """Initialize with state store."""
        self.store = store

    def enqueue(self, business_id: str, candidate: Candidate) -> ReviewQueueItem:
        """
        Queue a candidate as pending.

        Returns:
            The queued item (the existing one if this trace key is already queued)
        """
        item = self.store.insert_review_item(business_id, candidate.to_dict())
        logger.debug(
            f"Queued {item.kind} '{item.name}' ({item.risk_level}, {item.confidence:.2f}) "
            f"for review as #{item.id}"
        )
        return item

    def list_items(
        self, business_id: str, status: ReviewStatus | None = None
    ) -> list[ReviewQueueItem]:
        """List queued items, optionally by status."""
        return self.store.list_review_items(business_id, status)

    def decide(
        self, business_id: str, item_id: int, decision: ReviewDecision
    ) -> ReviewQueueItem | None:
        """Apply a reviewer decision."""
        if decision == ReviewDecision.APPROVED:
            return self.approve(business_id, item_id)
        return self.reject(business_id, item_id)

    def approve(self, business_id: str, item_id: int) -> ReviewQueueItem | None:
        """
        Approve a pending item and copy it into the entity store.

        Items that are no longer pending, or whose trace key is already an
        entity, are returned unchanged.

        Returns:
            The item after the call, or None if it does not exist
        """
        item = self.store.approve_review_item(business_id, item_id)
        if item is None:
            logger.warning(f"Review item #{item_id} not found for {business_id}")
        elif item.status == ReviewStatus.APPROVED:
            logger.info(f"Approved {item.kind} '{item.name}' (#{item.id})")
        return item

    def reject(self, business_id: str, item_id: int) -> ReviewQueueItem | None:
        """Reject a pending item. Returns None if it does not exist."""
        item = self.store.reject_review_item(business_id, item_id)
        if item is None:
            logger.warning(f"Review item #{item_id} not found for {business_id}")
        elif item.status == ReviewStatus.REJECTED:
            logger.info(f"Rejected {item.kind} '{item.name}' (#{item.id})")
        return item
