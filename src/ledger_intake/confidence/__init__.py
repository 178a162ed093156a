"""
Confidence scoring module.

Computes per-candidate confidence scores from row signals.
Maps confidence onto the fixed risk levels that decide trust vs. review.
"""

from .scorer import (
    NEEDS_REVIEW_THRESHOLD,
    TRUSTED_THRESHOLD,
    ConfidenceScorer,
    RiskLevel,
    clamp_confidence,
    risk_for,
)

__all__ = [
    "ConfidenceScorer",
    "RiskLevel",
    "clamp_confidence",
    "risk_for",
    "TRUSTED_THRESHOLD",
    "NEEDS_REVIEW_THRESHOLD",
]
