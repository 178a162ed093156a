"""
Confidence scoring implementation.

Every candidate kind has its own additive formula. Scores are clamped to
[0, 1] and rounded to two decimals before the risk level is derived, so
the stored confidence and the stored risk level always agree.
"""

from enum import Enum

# Fixed risk thresholds (not configurable)
TRUSTED_THRESHOLD = 0.85  # At or above: trusted automatically
NEEDS_REVIEW_THRESHOLD = 0.60  # At or above: review, below: risky


class RiskLevel(str, Enum):
    """Risk classification derived from confidence."""

    TRUSTED = "Trusted"
    NEEDS_REVIEW = "Needs Review"
    RISKY = "Risky"


def clamp_confidence(value: float) -> float:
    """Clamp to [0, 1] and round to two decimals."""
    return round(min(1.0, max(0.0, value)), 2)


def risk_for(confidence: float) -> RiskLevel:
    """
    Map a confidence score onto a risk level.

    Rules:
    - TRUSTED: confidence >= 0.85
    - NEEDS_REVIEW: confidence >= 0.60
    - RISKY: otherwise
    """
    if confidence >= TRUSTED_THRESHOLD:
        return RiskLevel.TRUSTED
    if confidence >= NEEDS_REVIEW_THRESHOLD:
        return RiskLevel.NEEDS_REVIEW
    return RiskLevel.RISKY


class ConfidenceScorer:
    """
    Computes candidate confidence from row signals.

    Signal weights by candidate kind:
    - Transaction: amount, reference, channel, date
    - Product: name, quantity, unit cost
    - Client: explicit column, phone, reference/keyword, inflow
    - Supplier: name, outflow/unit cost, keyword
    """

    TRANSACTION_BASE = 0.45
    PRODUCT_BASE = 0.35
    CLIENT_BASE = 0.35
    SUPPLIER_BASE = 0.35

    # Description-derived clients get a fixed score
    CLIENT_FROM_DESCRIPTION = 0.60

    def transaction(
        self,
        *,
        has_amount: bool,
        has_reference: bool,
        has_channel: bool,
        has_row_date: bool,
    ) -> float:
        """Score a ledger transaction candidate."""
        score = self.TRANSACTION_BASE
        if has_amount:
            score += 0.25
        if has_reference:
            score += 0.10
        if has_channel:
            score += 0.10
        if has_row_date:
            score += 0.10
        return clamp_confidence(score)

    def product(self, *, has_name: bool, has_quantity: bool, has_unit_cost: bool) -> float:
        """Score a product candidate."""
        score = self.PRODUCT_BASE
        if has_name:
            score += 0.25
        if has_quantity:
            score += 0.20
        if has_unit_cost:
            score += 0.20
        return clamp_confidence(score)

    def client(
        self,
        *,
        explicit_column: bool,
        has_phone: bool,
        has_reference_or_keyword: bool,
        has_inflow: bool,
    ) -> float:
        """Score a client candidate resolved from a column or a name prefix."""
        score = self.CLIENT_BASE
        if explicit_column:
            score += 0.15
        if has_phone:
            score += 0.25
        if has_reference_or_keyword:
            score += 0.10
        if has_inflow:
            score += 0.20
        return clamp_confidence(score)

    def client_from_description(self) -> float:
        """Score a client whose name is the row description itself."""
        return clamp_confidence(self.CLIENT_FROM_DESCRIPTION)

    def supplier(
        self,
        *,
        has_name: bool,
        has_outflow_or_unit_cost: bool,
        has_keyword: bool,
    ) -> float:
        """Score a supplier candidate."""
        score = self.SUPPLIER_BASE
        if has_name:
            score += 0.10
        if has_outflow_or_unit_cost:
            score += 0.20
        if has_keyword:
            score += 0.20
        return clamp_confidence(score)
