"""
Human-in-the-loop review module.

Provides:
- Review queue for products, clients and suppliers below the trusted threshold
- Approve / reject decisions persisted in the state store
"""

from .workflow import ReviewDecision, ReviewQueue

__all__ = [
    "ReviewDecision",
    "ReviewQueue",
]
