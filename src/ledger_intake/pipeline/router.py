"""
Candidate routing.

Transactions always go to the trusted side: cash movements are recorded
immediately. Products, clients and suppliers are trusted only at the
Trusted risk level; everything else waits for a reviewer.
"""

from dataclasses import dataclass, field

from ..confidence import RiskLevel
from ..schemas.candidates import (
    Candidate,
    ClientCandidate,
    ProductCandidate,
    SupplierCandidate,
    TransactionCandidate,
)


@dataclass
class TrustedCandidates:
    transactions: list[TransactionCandidate] = field(default_factory=list)
    products: list[ProductCandidate] = field(default_factory=list)
    clients: list[ClientCandidate] = field(default_factory=list)
    suppliers: list[SupplierCandidate] = field(default_factory=list)

    def entities(self) -> list[Candidate]:
        return [*self.products, *self.clients, *self.suppliers]


@dataclass
class ReviewCandidates:
    products: list[ProductCandidate] = field(default_factory=list)
    clients: list[ClientCandidate] = field(default_factory=list)
    suppliers: list[SupplierCandidate] = field(default_factory=list)

    def entities(self) -> list[Candidate]:
        return [*self.products, *self.clients, *self.suppliers]


@dataclass
class RoutedCandidates:
    """Candidates split into auto-trusted and review-bound sets."""

    trusted: TrustedCandidates = field(default_factory=TrustedCandidates)
    review: ReviewCandidates = field(default_factory=ReviewCandidates)


def route_candidates(candidates: list[Candidate]) -> RoutedCandidates:
    """Partition candidates, preserving their order within each bucket."""
    routed = RoutedCandidates()

    for candidate in candidates:
        if isinstance(candidate, TransactionCandidate):
            routed.trusted.transactions.append(candidate)
            continue

        if not isinstance(candidate, (ProductCandidate, ClientCandidate, SupplierCandidate)):
            raise TypeError(f"Unknown candidate type: {type(candidate).__name__}")

        side = routed.trusted if candidate.risk_level == RiskLevel.TRUSTED else routed.review
        if isinstance(candidate, ProductCandidate):
            side.products.append(candidate)
        elif isinstance(candidate, ClientCandidate):
            side.clients.append(candidate)
        else:
            side.suppliers.append(candidate)

    return routed
