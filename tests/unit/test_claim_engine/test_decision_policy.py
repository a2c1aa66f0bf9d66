"""
Unit Tests: Decision Policy
---------------------------
Covers chainsure/claim_engine/decision_policy.py.
Validates:
- Threshold boundaries at 0 / 30 / 31 / 70 / 71 / 100
- requires_transfer <=> APPROVED, payout amount in octas
- Out-of-range scores are thresholded, not rejected
"""

import pytest
from chainsure.models.claim import ClaimStatus
from chainsure.models.fraud import RiskLevel
from chainsure.claim_engine.decision_policy import decide, get_claim_status, get_risk_level


class TestDecisionPolicy:

    @pytest.mark.parametrize(
        "score, expected",
        [
            (0, ClaimStatus.APPROVED),
            (30, ClaimStatus.APPROVED),
            (31, ClaimStatus.PENDING),
            (70, ClaimStatus.PENDING),
            (71, ClaimStatus.REJECTED),
            (100, ClaimStatus.REJECTED),
        ],
    )
    def test_boundaries(self, score, expected):
        assert get_claim_status(score) == expected
        assert decide(score, 1000).status == expected

    @pytest.mark.parametrize("score", [-50, -1, 101, 10_000])
    def test_out_of_range_scores_are_thresholded(self, score):
        expected = ClaimStatus.APPROVED if score < 0 else ClaimStatus.REJECTED
        assert decide(score, 1000).status == expected

    def test_requires_transfer_only_when_approved(self):
        for score in range(-5, 106):
            decision = decide(score, 5000)
            assert decision.requires_transfer == (decision.status == ClaimStatus.APPROVED)
            if not decision.requires_transfer:
                assert decision.transfer_amount == 0

    def test_approved_transfer_amount_in_octas(self):
        decision = decide(20, 5000)
        assert decision.requires_transfer is True
        assert decision.transfer_amount == 500_000

    def test_risk_levels(self):
        assert get_risk_level(30) == RiskLevel.LOW
        assert get_risk_level(31) == RiskLevel.MEDIUM
        assert get_risk_level(71) == RiskLevel.HIGH
        assert decide(85, 5000).risk_level == RiskLevel.HIGH

    def test_decision_is_immutable(self):
        decision = decide(10, 100)
        with pytest.raises(Exception):
            decision.status = ClaimStatus.REJECTED
