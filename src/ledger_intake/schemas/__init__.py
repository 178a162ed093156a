"""
Data schemas for the ingestion pipeline.

Contains:
- NormalizedRecord: typed view of one source row
- Candidate union: transaction / product / client / supplier
- Trace key generation (deterministic deduplication keys)
"""

from .candidates import (
    Candidate,
    CandidateKind,
    ClientCandidate,
    ProductCandidate,
    SupplierCandidate,
    TransactionCandidate,
    entity_from_dict,
)
from .dedupe import (
    TraceKeyComponents,
    TraceKeySuffix,
    build_external_trace_key,
    build_row_trace_key,
    compute_content_hash,
    parse_trace_key,
    with_suffix,
)
from .records import Direction, NormalizedRecord, PaymentChannel

__all__ = [
    "Candidate",
    "CandidateKind",
    "ClientCandidate",
    "Direction",
    "NormalizedRecord",
    "PaymentChannel",
    "ProductCandidate",
    "SupplierCandidate",
    "TraceKeyComponents",
    "TraceKeySuffix",
    "TransactionCandidate",
    "build_external_trace_key",
    "build_row_trace_key",
    "compute_content_hash",
    "entity_from_dict",
    "parse_trace_key",
    "with_suffix",
]
