"""
Classification module.

Turns normalized rows into scored transaction, product, client and
supplier candidates.
"""

from .classifier import RowClassifier, row_trace_key

__all__ = [
    "RowClassifier",
    "row_trace_key",
]
