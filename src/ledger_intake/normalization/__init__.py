"""
Normalization module.

Maps arbitrary source headers onto canonical fields and derives typed
NormalizedRecords (amounts, dates, channels, references, categories).
"""

from .aliases import FIELD_ALIASES, CanonicalField, find_column, normalize_header, resolve_columns
from .normalizer import NormalizationResult, Normalizer
from .values import parse_amount, parse_count, parse_signed_amount, to_iso_date

__all__ = [
    "CanonicalField",
    "FIELD_ALIASES",
    "NormalizationResult",
    "Normalizer",
    "find_column",
    "normalize_header",
    "parse_amount",
    "parse_count",
    "parse_signed_amount",
    "resolve_columns",
    "to_iso_date",
]
