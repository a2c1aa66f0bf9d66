"""
Fraud Models
------------
Request/response contract of the external fraud-scoring service
(`POST /analyze-fraud-risk`) and the acquirer's own result type.
"""

import math
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from chainsure.models.abha import AbhaProfile


# =========================================================
# 🧩 ENUMS
# =========================================================
class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ScoreSource(str, Enum):
    """Where an aggregate score came from."""
    API = "api"
    MOCK = "mock"


# =========================================================
# 📤 REQUEST PAYLOAD
# =========================================================
class HospitalDetails(BaseModel):
    name: str = ""
    address: str = ""
    registration_number: str = ""
    doctor_name: str = ""
    doctor_registration: str = ""

    model_config = ConfigDict(extra="allow")


class FraudClaim(BaseModel):
    claim_id: str
    abha_id: str
    policy_id: str
    claim_amount: int
    claim_date: str
    hospital_details: HospitalDetails = Field(default_factory=HospitalDetails)
    diagnosis: str = ""
    treatment: str = ""
    medications: List[str] = Field(default_factory=list)
    admission_date: Optional[str] = None
    discharge_date: Optional[str] = None
    claim_type: str = Field(default="reimbursement", description="'cashless' or 'reimbursement'")
    documents: List[str] = Field(default_factory=list)
    ip_address: Optional[str] = None
    device_info: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class FraudPolicyTerms(BaseModel):
    """Policy terms as the scoring service expects them (ledger u64s as strings)."""
    policy_id: str
    title: str = ""
    description: str = ""
    policy_type: int = 1
    coverage_amount: str
    monthly_premium: str = "0"
    yearly_premium: str = "0"
    min_age: str = "0"
    max_age: str = "0"
    duration_days: str = "0"
    waiting_period_days: str = "0"
    created_at: str = "0"
    created_by: str = ""

    model_config = ConfigDict(extra="allow")


class FraudAnalysisRequest(BaseModel):
    """Full claim context: claim attributes, claimant profile and policy terms."""
    claim: FraudClaim
    abha_user: AbhaProfile
    policy: FraudPolicyTerms

    model_config = ConfigDict(extra="ignore")

    def to_payload(self) -> dict:
        payload = self.model_dump(mode="json")
        payload["abha_user"] = self.abha_user.model_dump(mode="json", by_alias=True)
        return payload


# =========================================================
# 📥 RESPONSE
# =========================================================
class FraudAnalysisResponse(BaseModel):
    """
    Only `aggregate_score` is relied on. Fractional scores are floored; the
    per-model scores and the service's own risk label are informational and
    never fail validation.
    """
    ai1_score: Optional[float] = None
    ai2_score: Optional[float] = None
    ai3_score: Optional[float] = None
    aggregate_score: int = Field(..., ge=0, le=100, description="Weighted 0-100 fraud risk")
    risk_level: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("aggregate_score", mode="before")
    @classmethod
    def floor_score(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("aggregate_score must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            return value
        return math.floor(number) if math.isfinite(number) else value

    @field_validator("ai1_score", "ai2_score", "ai3_score", mode="before")
    @classmethod
    def lenient_subscore(cls, value: Any) -> Optional[float]:
        if isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @field_validator("risk_level", mode="before")
    @classmethod
    def lenient_label(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return value.value if isinstance(value, Enum) else str(value)


class ScoreResult(BaseModel):
    """What the Fraud Score Acquirer hands to the decision engine."""
    aggregate_score: int
    source: ScoreSource
    analysis: Optional[FraudAnalysisResponse] = None

    model_config = ConfigDict(frozen=True)


__all__ = [
    "RiskLevel",
    "ScoreSource",
    "HospitalDetails",
    "FraudClaim",
    "FraudPolicyTerms",
    "FraudAnalysisRequest",
    "FraudAnalysisResponse",
    "ScoreResult",
]
