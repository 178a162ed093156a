"""Tests for confidence scoring and risk levels."""

import pytest

from ledger_intake.confidence import (
    ConfidenceScorer,
    RiskLevel,
    clamp_confidence,
    risk_for,
)
from ledger_intake.schemas import ProductCandidate


class TestRiskFor:
    """Tests for the fixed risk thresholds."""

    @pytest.mark.parametrize(
        "confidence,expected",
        [
            (1.0, RiskLevel.TRUSTED),
            (0.85, RiskLevel.TRUSTED),
            (0.849999, RiskLevel.NEEDS_REVIEW),
            (0.6, RiskLevel.NEEDS_REVIEW),
            (0.599999, RiskLevel.RISKY),
            (0.0, RiskLevel.RISKY),
        ],
    )
    def test_thresholds(self, confidence, expected):
        assert risk_for(confidence) == expected


class TestClampConfidence:
    """Tests for clamping and rounding."""

    def test_clamps_to_unit_interval(self):
        assert clamp_confidence(1.4) == 1.0
        assert clamp_confidence(-0.2) == 0.0

    def test_rounds_to_two_decimals(self):
        assert clamp_confidence(0.456) == 0.46


class TestConfidenceScorer:
    """Tests for per-kind formulas."""

    @pytest.fixture
    def scorer(self):
        return ConfidenceScorer()

    def test_transaction_all_signals(self, scorer):
        score = scorer.transaction(
            has_amount=True, has_reference=True, has_channel=True, has_row_date=True
        )
        assert score == 1.0

    def test_transaction_amount_only(self, scorer):
        score = scorer.transaction(
            has_amount=True, has_reference=False, has_channel=False, has_row_date=False
        )
        assert score == 0.70

    def test_product_name_only(self, scorer):
        assert scorer.product(has_name=True, has_quantity=False, has_unit_cost=False) == 0.60

    def test_client_full(self, scorer):
        score = scorer.client(
            explicit_column=True,
            has_phone=True,
            has_reference_or_keyword=True,
            has_inflow=True,
        )
        assert score == 1.0

    def test_client_from_description_is_fixed(self, scorer):
        assert scorer.client_from_description() == 0.60

    def test_supplier_formula(self, scorer):
        assert scorer.supplier(has_name=True, has_outflow_or_unit_cost=True, has_keyword=True) == 0.85
        assert scorer.supplier(has_name=False, has_outflow_or_unit_cost=False, has_keyword=False) == 0.35


class TestCandidateRisk:
    """Risk level always agrees with the stored confidence."""

    def test_risk_derived_after_rounding(self):
        candidate = ProductCandidate(
            source_file="stock.csv", row_number=2, confidence=0.849, trace_key="file:k"
        )

        assert candidate.confidence == 0.85
        assert candidate.risk_level == RiskLevel.TRUSTED

    def test_out_of_range_confidence_clamped(self):
        candidate = ProductCandidate(
            source_file="stock.csv", row_number=2, confidence=1.7, trace_key="file:k"
        )

        assert candidate.confidence == 1.0
