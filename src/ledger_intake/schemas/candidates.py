"""
Candidate records produced by the classifier.

Candidates form a tagged union over four kinds. Each carries its own
provenance (source file, row number), confidence, derived risk level and
trace key. The risk level is always computed from the confidence at
construction time; it is never passed in.
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from ..confidence import RiskLevel, clamp_confidence, risk_for
from .records import Direction, PaymentChannel


class CandidateKind(str, Enum):
    """Discriminator for the candidate union."""

    TRANSACTION = "transaction"
    PRODUCT = "product"
    CLIENT = "client"
    SUPPLIER = "supplier"


def _jsonable(value: Any) -> Any:
    """Convert dataclass field values into JSON-friendly primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return value


@dataclass
class _CandidateBase:
    """Fields shared by every candidate kind."""

    source_file: str
    row_number: int
    confidence: float
    trace_key: str
    risk_level: RiskLevel = field(init=False)

    kind = CandidateKind.TRANSACTION  # overridden per subclass

    def __post_init__(self) -> None:
        self.confidence = clamp_confidence(self.confidence)
        self.risk_level = risk_for(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict, including the kind tag."""
        data = {key: _jsonable(value) for key, value in asdict(self).items()}
        data["kind"] = self.kind.value
        return data


@dataclass
class TransactionCandidate(_CandidateBase):
    """A cash movement destined for the ledger."""

    date: str = ""
    direction: Direction = Direction.IN
    amount: Decimal = Decimal("0")
    reference: str = ""
    channel: PaymentChannel = PaymentChannel.UNKNOWN
    category: str = ""
    transaction_cost: Decimal = Decimal("0")
    description: str = ""
    source: str = "file_upload"

    kind = CandidateKind.TRANSACTION


@dataclass
class ProductCandidate(_CandidateBase):
    """A stock item seen in a row."""

    name: str = "Unlabeled Product"
    quantity: int = 0
    unit_cost: Decimal = Decimal("0")
    supplier: str = "Unknown"

    kind = CandidateKind.PRODUCT


@dataclass
class ClientCandidate(_CandidateBase):
    """A paying customer."""

    name: str = ""
    phone: str = ""
    total_spent: Decimal = Decimal("0")
    first_seen: str = ""

    kind = CandidateKind.CLIENT


@dataclass
class SupplierCandidate(_CandidateBase):
    """A vendor the business paid."""

    name: str = "Unknown Supplier"
    last_price: Decimal = Decimal("0")
    category_hint: str = "General"

    kind = CandidateKind.SUPPLIER


Candidate = Union[TransactionCandidate, ProductCandidate, ClientCandidate, SupplierCandidate]

_ENTITY_CLASSES: dict[CandidateKind, type] = {
    CandidateKind.PRODUCT: ProductCandidate,
    CandidateKind.CLIENT: ClientCandidate,
    CandidateKind.SUPPLIER: SupplierCandidate,
}

_DECIMAL_FIELDS = {"unit_cost", "total_spent", "last_price", "amount", "transaction_cost"}


def entity_from_dict(data: dict[str, Any]) -> Candidate:
    """Rebuild an entity candidate from its to_dict() form."""
    kind = CandidateKind(data["kind"])
    cls = _ENTITY_CLASSES.get(kind)
    if cls is None:
        raise ValueError(f"Not an entity kind: {kind.value}")

    kwargs = {}
    for key, value in data.items():
        if key in ("kind", "risk_level"):
            continue
        if key in _DECIMAL_FIELDS:
            value = Decimal(str(value))
        kwargs[key] = value
    return cls(**kwargs)
