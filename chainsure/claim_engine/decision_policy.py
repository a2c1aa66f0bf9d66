"""
Decision Policy Engine
----------------------
Maps an aggregate fraud score to a claim decision.

Decisions (inclusive bounds):
- APPROVED: score <= 30   -> payout of the full claim amount
- PENDING:  31..70        -> manual review, no payout
- REJECTED: score > 70    -> no payout

Total over all integers: out-of-range scores are thresholded the same way.
"""

from chainsure.models.claim import ClaimStatus, Decision
from chainsure.models.fraud import RiskLevel
from chainsure.claim_engine.constants import APPROVE_MAX_SCORE, PENDING_MAX_SCORE
from chainsure.claim_engine.currency import to_ledger_units
from chainsure.utils.logger import log_event

_RISK_BY_STATUS = {
    ClaimStatus.APPROVED: RiskLevel.LOW,
    ClaimStatus.PENDING: RiskLevel.MEDIUM,
    ClaimStatus.REJECTED: RiskLevel.HIGH,
}


def get_claim_status(aggregate_score: int) -> ClaimStatus:
    if aggregate_score <= APPROVE_MAX_SCORE:
        return ClaimStatus.APPROVED
    if aggregate_score <= PENDING_MAX_SCORE:
        return ClaimStatus.PENDING
    return ClaimStatus.REJECTED


def get_risk_level(aggregate_score: int) -> RiskLevel:
    return _RISK_BY_STATUS[get_claim_status(aggregate_score)]


def decide(aggregate_score: int, claim_amount: int = 0) -> Decision:
    """
    Derive status, whether a transfer is required, and its amount in octas.

    Args:
        aggregate_score: 0-100 fraud risk (not validated).
        claim_amount: claim amount in INR; only used when the claim is approved.

    Returns:
        Decision with requires_transfer == (status == APPROVED).
    """
    status = get_claim_status(aggregate_score)
    requires_transfer = status == ClaimStatus.APPROVED
    transfer_amount = to_ledger_units(claim_amount) if requires_transfer else 0

    log_event(
        "claim_decided",
        aggregate_score=aggregate_score,
        status=status.value,
        requires_transfer=requires_transfer,
        transfer_amount=transfer_amount,
    )
    return Decision(
        status=status,
        risk_level=_RISK_BY_STATUS[status],
        requires_transfer=requires_transfer,
        transfer_amount=transfer_amount,
    )
