"""
Messy financial records → Structured candidates → Human-in-the-loop → Ledger

A deterministic, testable pipeline that turns small-business CSVs, workbooks,
PDFs and receipt photos into ledger entries and counterparty records, with
confidence scoring, a review queue for uncertain rows, and strict
deduplication.
"""

__version__ = "0.1.0"
