"""
ABHA Models
-----------
Health-record profile returned by the (mocked) ABHA consent store.
Serialized with camelCase keys, which is what the fraud-scoring service expects.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AbhaAddress(_CamelModel):
    state: str
    district: str
    pincode: str
    address: str


class MedicalHistoryEntry(_CamelModel):
    condition: str
    diagnosed_date: str
    treatment: str
    medications: List[str] = Field(default_factory=list)
    status: str = "Active"


class ExistingInsurance(_CamelModel):
    provider: str
    policy_number: str
    coverage: str
    expiry_date: str


class EmergencyContact(_CamelModel):
    name: str
    relation: str
    phone: str


class AbhaProfile(_CamelModel):
    """A claimant's ABHA health profile."""
    abha_id: str
    full_name: str
    dob: str
    gender: str
    blood_group: str
    address: AbhaAddress
    phone: str
    email: str
    allergies: List[str] = Field(default_factory=list)
    medical_history: List[MedicalHistoryEntry] = Field(default_factory=list)
    existing_insurance: List[ExistingInsurance] = Field(default_factory=list)
    emergency_contact: EmergencyContact
    has_consent: bool = False
    consent_date: Optional[str] = None


class AbhaRequest(BaseModel):
    abha_id: Optional[str] = Field(default=None, description="ABHA id in XX-XXXX-XXXX-XXXX format")

    model_config = ConfigDict(extra="ignore")
