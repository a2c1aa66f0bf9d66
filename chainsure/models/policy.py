"""
Policy Models
-------------
Two read models kept apart on purpose:
- Ledger* mirror what the insurance portal module returns (authoritative).
- UserPolicyView is the reconciled, locally derived view (status by duration,
  claim flag from the claim ledger) that the API returns.
"""

from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, AliasChoices

from chainsure.models.claim import Claim


class PolicyType(IntEnum):
    HEALTH = 1
    LIFE = 2
    AUTO = 3
    HOME = 4
    TRAVEL = 5

    @property
    def label(self) -> str:
        return self.name.title()


def policy_type_label(value: int) -> str:
    try:
        return PolicyType(int(value)).label
    except ValueError:
        return "Unknown"


class UserPolicyStatus(str, Enum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"


# =========================================================
# ⛓️ LEDGER READ MODELS
# =========================================================
class LedgerPolicy(BaseModel):
    """Policy registered on-ledger. u64 fields arrive as strings and are coerced."""
    policy_id: str = Field(..., validation_alias=AliasChoices("policy_id", "id"))
    title: str = ""
    description: str = ""
    policy_type: int = 1
    monthly_premium: int = 0
    yearly_premium: int = 0
    coverage_amount: int = 0
    min_age: int = 0
    max_age: int = 0
    duration_days: int = 0
    waiting_period_days: int = 0
    status: int = 1
    created_at: int = 0
    created_by: str = ""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class LedgerUserPolicy(BaseModel):
    """A purchase record. `status` is the ledger's stored flag and is not trusted for expiry."""
    id: str
    policy_id: str
    user_address: str
    purchase_date: int = Field(..., description="Unix seconds")
    expiry_date: int = 0
    premium_paid: int = 0
    status: int = 1

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


# =========================================================
# 🔁 RECONCILED VIEWS
# =========================================================
class PolicyView(BaseModel):
    policy: LedgerPolicy
    type_label: str
    monthly_premium_octas: int
    monthly_premium_apt: str
    yearly_premium_octas: int


class UserPolicyView(BaseModel):
    id: str
    policy_id: str
    user_address: str
    purchase_date: datetime
    expires_at: Optional[datetime] = None
    status: UserPolicyStatus
    premium_paid: int
    policy: Optional[LedgerPolicy] = None
    has_claim: bool = False
    claim: Optional[Claim] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserPolicyStatus.ACTIVE


class WalletRequest(BaseModel):
    wallet_address: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
