"""
CLI runner module.

Provides commands:
- ingest: Run files through the pipeline
- review: List, approve or reject queued entities
- ledger: List entries and monthly summaries
- status: Store statistics
- init-config: Write a default config file
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
