"""
Claim Models
------------
Input and response schemas for claim adjudication.
Compatible with Pydantic v2 and FastAPI 0.110+.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from chainsure.models.fraud import FraudAnalysisRequest, RiskLevel, ScoreSource


# =========================================================
# 🧩 ENUMS
# =========================================================
class ClaimStatus(str, Enum):
    """Adjudication outcome, derived only from the aggregate score."""
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"


# =========================================================
# ⚖️ DECISION
# =========================================================
class Decision(BaseModel):
    status: ClaimStatus
    risk_level: RiskLevel
    requires_transfer: bool
    transfer_amount: int = Field(0, ge=0, description="Payout in octas; zero unless APPROVED")

    model_config = ConfigDict(frozen=True)


class SettlementResult(BaseModel):
    transaction_hash: Optional[str] = None
    error: Optional[str] = None
    attempted: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def failed(self) -> bool:
        return self.error is not None


# =========================================================
# 📄 CLAIM INPUT MODEL
# =========================================================
class ClaimSubmission(BaseModel):
    """Body of POST /claims/submit. Field presence is checked by the service (400, not 422)."""
    policy_id: Optional[str] = Field(default=None, description="Purchased policy identifier")
    user_address: Optional[str] = Field(default=None, description="Claimant's ledger account")
    claim_amount: Optional[int] = Field(default=None, description="Claim amount in INR")
    abha_id: Optional[str] = Field(default=None, description="Consented ABHA id used to build the scoring context")
    fraud_payload: Optional[FraudAnalysisRequest] = Field(default=None, description="Explicit scoring context")

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "policy_id": "3",
                "user_address": "0xabcdef1234567890abcdef1234567890abcdef12",
                "claim_amount": 5000,
                "abha_id": "12-3456-7890-1234",
            }
        },
    )


# =========================================================
# 🧾 CLAIM RECORD
# =========================================================
class Claim(BaseModel):
    """One adjudicated claim. Immutable once the decision is rendered."""
    claim_id: str
    policy_id: str
    user_address: str
    claim_amount: int = Field(..., gt=0)
    aggregate_score: int
    status: ClaimStatus
    risk_level: RiskLevel
    score_source: ScoreSource
    transfer_amount: int = Field(0, ge=0)
    transaction_hash: Optional[str] = None
    settlement_error: Optional[str] = None
    claimed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)


# =========================================================
# 🧠 CLAIM RESPONSE MODEL
# =========================================================
class ClaimResult(BaseModel):
    """Returned to callers of submit_claim. `error` is set only for settlement failures."""
    success: bool = True
    claim_id: str
    policy_id: str
    user_address: str
    claim_amount: int
    status: ClaimStatus
    aggregate_score: int
    risk_level: RiskLevel
    score_source: ScoreSource
    requires_transfer: bool
    transfer_amount: int
    transfer_amount_apt: str
    transaction_hash: Optional[str] = None
    error: Optional[str] = None

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "success": True,
                "claim_id": "0x5e1f...",
                "policy_id": "3",
                "user_address": "0xabcdef1234567890abcdef1234567890abcdef12",
                "claim_amount": 5000,
                "status": "APPROVED",
                "aggregate_score": 20,
                "risk_level": "LOW",
                "score_source": "api",
                "requires_transfer": True,
                "transfer_amount": 500000,
                "transfer_amount_apt": "0.0050",
                "transaction_hash": "0x5e1f...",
                "error": None,
            }
        },
    )
