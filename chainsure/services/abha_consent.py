"""
ABHA Consent Store
------------------
Mocked ABHA (health account) directory with per-user consent flags.
Profiles with consent feed the fraud-scoring context.
"""

import re
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from chainsure.models.abha import AbhaProfile
from chainsure.claim_engine.constants import ABHA_ID_PATTERN
from chainsure.claim_engine.errors import ConsentRequired, InvalidClaimRequest, NotFound
from chainsure.utils.logger import logger

_ABHA_RE = re.compile(ABHA_ID_PATTERN)

SEED_PROFILES: List[dict] = [
    {
        "abhaId": "12-3456-7890-1234",
        "fullName": "Priya Sharma",
        "dob": "1990-05-15",
        "gender": "Female",
        "bloodGroup": "B+",
        "address": {"state": "Maharashtra", "district": "Mumbai", "pincode": "400001", "address": "123 Colaba Street, Fort, Mumbai"},
        "phone": "+91-9876543210",
        "email": "priya.sharma@email.com",
        "allergies": ["Peanuts", "Shellfish"],
        "medicalHistory": [
            {"condition": "Hypertension", "diagnosedDate": "2022-03-10", "treatment": "Medication and lifestyle changes",
             "medications": ["Amlodipine 5mg", "Lisinopril 10mg"], "status": "Active"},
            {"condition": "Type 2 Diabetes", "diagnosedDate": "2021-11-20", "treatment": "Diet control and medication",
             "medications": ["Metformin 500mg"], "status": "Active"},
        ],
        "existingInsurance": [
            {"provider": "Star Health Insurance", "policyNumber": "SH-2023-001234", "coverage": "₹5,00,000", "expiryDate": "2024-12-31"},
        ],
        "emergencyContact": {"name": "Raj Sharma", "relation": "Husband", "phone": "+91-9876543211"},
        "hasConsent": False,
    },
    {
        "abhaId": "98-7654-3210-9876",
        "fullName": "Arjun Patel",
        "dob": "1985-08-22",
        "gender": "Male",
        "bloodGroup": "O+",
        "address": {"state": "Gujarat", "district": "Ahmedabad", "pincode": "380001", "address": "45 CG Road, Navrangpura, Ahmedabad"},
        "phone": "+91-9123456780",
        "email": "arjun.patel@email.com",
        "allergies": [],
        "medicalHistory": [
            {"condition": "Asthma", "diagnosedDate": "2015-06-01", "treatment": "Inhaler as needed",
             "medications": ["Salbutamol inhaler"], "status": "Chronic"},
        ],
        "existingInsurance": [],
        "emergencyContact": {"name": "Meera Patel", "relation": "Wife", "phone": "+91-9123456781"},
        "hasConsent": False,
    },
    {
        "abhaId": "11-2233-4455-6677",
        "fullName": "Kavya Reddy",
        "dob": "1995-12-03",
        "gender": "Female",
        "bloodGroup": "A-",
        "address": {"state": "Telangana", "district": "Hyderabad", "pincode": "500081", "address": "Plot 12, Hitech City, Hyderabad"},
        "phone": "+91-9988776655",
        "email": "kavya.reddy@email.com",
        "allergies": ["Penicillin"],
        "medicalHistory": [],
        "existingInsurance": [],
        "emergencyContact": {"name": "Suresh Reddy", "relation": "Father", "phone": "+91-9988776650"},
        "hasConsent": False,
    },
]


def is_valid_abha_id(abha_id: Optional[str]) -> bool:
    return bool(abha_id) and bool(_ABHA_RE.match(abha_id))


class AbhaConsentStore:

    def __init__(self, profiles: Optional[List[dict]] = None):
        self._profiles: Dict[str, AbhaProfile] = {}
        self._lock = threading.Lock()
        for raw in SEED_PROFILES if profiles is None else profiles:
            profile = AbhaProfile.model_validate(raw)
            self._profiles[profile.abha_id] = profile

    def find(self, abha_id: str) -> Optional[AbhaProfile]:
        with self._lock:
            return self._profiles.get(abha_id)

    def authorize(self, abha_id: Optional[str]) -> AbhaProfile:
        """Grant consent. 400 on missing/malformed id, 404 when unknown."""
        if not abha_id:
            raise InvalidClaimRequest("ABHA ID is required")
        if not is_valid_abha_id(abha_id):
            raise InvalidClaimRequest("Invalid ABHA ID format. Please use XX-XXXX-XXXX-XXXX format.")
        with self._lock:
            profile = self._profiles.get(abha_id)
            if profile is None:
                raise NotFound("ABHA ID not found in our records")
            profile = profile.model_copy(update={"has_consent": True, "consent_date": datetime.now(timezone.utc).isoformat()})
            self._profiles[abha_id] = profile
        logger.info(f"✅ ABHA consent granted for {abha_id}")
        return profile

    def get_profile(self, abha_id: Optional[str]) -> AbhaProfile:
        """Profile for a consented id. 400 missing, 404 unknown, 403 without consent."""
        if not abha_id:
            raise InvalidClaimRequest("ABHA ID is required")
        profile = self.find(abha_id)
        if profile is None:
            raise NotFound("ABHA ID not found")
        if not profile.has_consent:
            raise ConsentRequired("ABHA consent not provided. Please authorize access first.")
        return profile

    def consented_profile(self, abha_id: Optional[str]) -> Optional[AbhaProfile]:
        """Like get_profile but returns None instead of raising."""
        if not abha_id:
            return None
        profile = self.find(abha_id)
        return profile if profile is not None and profile.has_consent else None
