"""
Claim Ledger
------------
Bookkeeping for claims made through this service, keyed by (wallet, policy).

- `reserve` marks a policy as claimed the moment submission starts, before any
  awaits, so two rapid submissions for one policy cannot both pass the check.
- `record` stores the final claim; `release` drops a reservation when the
  pipeline fails before a status exists.

ClaimLedger is the in-process session cache (lost on restart; the ledger's own
purchase state is the only durable record). DatabaseClaimLedger adds the
SQLAlchemy claim store behind the same interface.
"""

import threading
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import sessionmaker

from chainsure.models.claim import Claim
from chainsure.claim_engine.errors import DuplicateClaim
from chainsure.utils.db import get_claim_from_db, list_claims_from_db, save_claim_to_db
from chainsure.utils.logger import log_event
from chainsure.utils.security import canonical_address

ClaimKey = Tuple[str, str]


def claim_key(policy_id: str, user_address: str) -> ClaimKey:
    return (canonical_address(user_address), str(policy_id))


class ClaimLedger:

    def __init__(self):
        self._claims: Dict[ClaimKey, Claim] = {}
        self._reserved: Set[ClaimKey] = set()
        self._lock = threading.Lock()

    # ---------------- Queries ---------------- #
    def _stored(self, key: ClaimKey) -> Optional[Claim]:
        return self._claims.get(key)

    def has_claim(self, policy_id: str, user_address: str) -> bool:
        key = claim_key(policy_id, user_address)
        with self._lock:
            in_memory = key in self._claims or key in self._reserved
        return in_memory or self._stored(key) is not None

    def get(self, policy_id: str, user_address: str) -> Optional[Claim]:
        key = claim_key(policy_id, user_address)
        with self._lock:
            claim = self._claims.get(key)
        return claim or self._stored(key)

    def list(self, user_address: Optional[str] = None) -> List[Claim]:
        with self._lock:
            claims = list(self._claims.values())
        if user_address:
            wallet = canonical_address(user_address)
            claims = [c for c in claims if canonical_address(c.user_address) == wallet]
        return sorted(claims, key=lambda c: c.claimed_at)

    # ---------------- Mutations ---------------- #
    def reserve(self, policy_id: str, user_address: str) -> None:
        """Raise DuplicateClaim if the policy already has a claim or one in flight."""
        key = claim_key(policy_id, user_address)
        with self._lock:
            taken = key in self._claims or key in self._reserved
            if not taken:
                self._reserved.add(key)
        if not taken and self._stored(key) is not None:
            self.release(policy_id, user_address)
            taken = True
        if taken:
            log_event("duplicate_claim", level="warning", policy_id=policy_id, user_address=user_address)
            raise DuplicateClaim(
                "You can only make one claim per policy. This policy already has a claim.",
                {"policy_id": str(policy_id)},
            )

    def release(self, policy_id: str, user_address: str) -> None:
        with self._lock:
            self._reserved.discard(claim_key(policy_id, user_address))

    def record(self, claim: Claim) -> None:
        key = claim_key(claim.policy_id, claim.user_address)
        self._persist(claim)
        with self._lock:
            self._claims[key] = claim
            self._reserved.discard(key)
        log_event(
            "claim_recorded",
            claim_id=claim.claim_id,
            policy_id=claim.policy_id,
            user_address=claim.user_address,
            status=claim.status.value,
        )

    def _persist(self, claim: Claim) -> None:
        return None


class DatabaseClaimLedger(ClaimLedger):
    """Session cache backed by the SQLAlchemy `claims` table."""

    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self.session_factory = session_factory

    def _stored(self, key: ClaimKey) -> Optional[Claim]:
        user_address, policy_id = key
        with self.session_factory() as db:
            return get_claim_from_db(db, user_address, policy_id)

    def _persist(self, claim: Claim) -> None:
        with self.session_factory() as db:
            save_claim_to_db(claim, db)

    def list(self, user_address: Optional[str] = None) -> List[Claim]:
        with self.session_factory() as db:
            return list_claims_from_db(db, user_address)
