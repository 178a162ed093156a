"""
Trace-key deduplication.

A key is a duplicate if the business already persisted it (ingested rows,
ledger, entities, review queue) or if it was admitted earlier in the same
batch. Equality is plain string equality.
"""

import logging

from ..state_store import StateStore

logger = logging.getLogger(__name__)


class Deduplicator:
    """Seen-set over trace keys for one business."""

    def __init__(self, store: StateStore, business_id: str, admitted: set[str] | None = None):
        """
        Args:
            store: State store holding previously persisted keys
            business_id: Business whose keys are loaded
            admitted: Keys admitted earlier in the batch (shared, updated in place)
        """
        self.business_id = business_id
        self.admitted = admitted if admitted is not None else set()
        self.persisted = store.known_trace_keys(business_id)
        logger.debug(
            f"Dedupe for {business_id}: {len(self.persisted)} persisted keys, "
            f"{len(self.admitted)} admitted in batch"
        )

    def is_duplicate(self, trace_key: str) -> bool:
        return trace_key in self.persisted or trace_key in self.admitted

    def admit(self, trace_key: str) -> bool:
        """
        Admit a key.

        Returns:
            False if the key was already seen (duplicate), True otherwise
        """
        if self.is_duplicate(trace_key):
            return False
        self.admitted.add(trace_key)
        return True
