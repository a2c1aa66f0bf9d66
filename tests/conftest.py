"""
Pytest Configuration File
-------------------------
Defines global test fixtures and mock setup for the ChainSure claims backend.

- Forces ENV=test before any chainsure import (auth bypass, no file logging)
- FakeLedger stands in for the Aptos client (policies, roles, transfers)
- `client` wires the FastAPI app to fresh fakes through dependency overrides
"""

import os

os.environ["ENV"] = "test"
os.environ.setdefault("DEBUG", "True")
os.environ.pop("FRAUD_API_URL", None)
os.environ.pop("REDIS_URL", None)

import time
import pytest
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

from chainsure.config import config
from chainsure.models.fraud import ScoreResult, ScoreSource
from chainsure.models.policy import LedgerPolicy, LedgerUserPolicy
from chainsure.ledger.aptos_client import LedgerClient
from chainsure.claim_engine.claim_ledger import ClaimLedger
from chainsure.claim_engine.errors import SettlementFailure
from chainsure.claim_engine.fraud_scoring import FraudScoreAcquirer
from chainsure.claim_engine.settlement import SettlementOrchestrator
from chainsure.services.abha_consent import AbhaConsentStore
from chainsure.services.adjudication import ClaimAdjudicationService
from chainsure.services.policy_registry import PolicyRegistry
from chainsure.utils.cache import RedisCache
from chainsure.utils.security import canonical_address

USER = "0x" + "a1" * 32
OTHER_USER = "0x" + "b2" * 32
TREASURY = "0x" + "c3" * 32
TX_HASH = "0x" + "5e" * 32
DAY = 86_400


def make_policy(policy_id: str = "1", coverage: int = 500_000, duration_days: int = 365, **overrides) -> LedgerPolicy:
    data = {
        "id": policy_id,
        "title": f"Health Shield {policy_id}",
        "description": "Hospitalisation cover",
        "policy_type": 1,
        "monthly_premium": "1500",
        "yearly_premium": "15000",
        "coverage_amount": str(coverage),
        "min_age": "18",
        "max_age": "65",
        "duration_days": str(duration_days),
        "waiting_period_days": "30",
        "status": 1,
        "created_at": "1700000000",
        "created_by": TREASURY,
    }
    data.update(overrides)
    return LedgerPolicy.model_validate(data)


def make_purchase(policy_id: str = "1", user: str = USER, days_ago: int = 10, status: int = 1) -> LedgerUserPolicy:
    purchased = int(time.time()) - days_ago * DAY
    return LedgerUserPolicy.model_validate({
        "id": f"up-{policy_id}",
        "policy_id": policy_id,
        "user_address": user,
        "purchase_date": str(purchased),
        "expiry_date": "0",
        "premium_paid": "1500",
        "status": status,
    })


class FakeLedger(LedgerClient):
    """In-memory ledger: reads come from lists, transfers are recorded or fail on demand."""

    def __init__(self, policies: Optional[List[LedgerPolicy]] = None, purchases: Optional[List[LedgerUserPolicy]] = None):
        self.policies = policies if policies is not None else [make_policy("1"), make_policy("2", duration_days=30)]
        self.purchases = purchases if purchases is not None else [make_purchase("1"), make_purchase("2", days_ago=60)]
        self.roles: Dict[str, int] = {USER: 1}
        self.transfers: List[tuple] = []
        self.fail_transfer: Optional[Exception] = None
        self.policy_reads = 0

    async def get_all_policies(self):
        self.policy_reads += 1
        return list(self.policies)

    async def get_user_policies(self, address):
        return [p for p in self.purchases if canonical_address(p.user_address) == canonical_address(address)]

    async def get_user_role(self, address):
        return self.roles.get(address, 0)

    async def is_initialized(self):
        return True

    async def transfer_native(self, recipient, amount_octas):
        self.transfers.append((recipient, amount_octas))
        if self.fail_transfer is not None:
            raise self.fail_transfer
        return TX_HASH

    @property
    def treasury_address(self):
        return TREASURY


def forced_acquirer(score: int, source: ScoreSource = ScoreSource.API) -> FraudScoreAcquirer:
    """Acquirer whose acquire_score always returns `score` and counts calls."""
    acquirer = FraudScoreAcquirer()
    acquirer.acquire_score = AsyncMock(return_value=ScoreResult(aggregate_score=score, source=source))
    return acquirer


# =========================================================
# 🧩 Fixtures
# =========================================================
@pytest.fixture
def fake_ledger():
    return FakeLedger()


@pytest.fixture
def claim_ledger():
    return ClaimLedger()


@pytest.fixture
def abha_store():
    return AbhaConsentStore()


@pytest.fixture
def registry(fake_ledger):
    return PolicyRegistry(fake_ledger, cache=RedisCache(), cache_ttl=30)


@pytest.fixture
def make_service(fake_ledger, claim_ledger, registry, abha_store):
    """Factory: service with a forced score (or a given acquirer)."""
    def _make(score: Optional[int] = None, acquirer: Optional[FraudScoreAcquirer] = None, enforce: bool = True):
        return ClaimAdjudicationService(
            acquirer=acquirer or forced_acquirer(20 if score is None else score),
            settlement=SettlementOrchestrator(fake_ledger),
            claims=claim_ledger,
            policies=registry,
            abha_store=abha_store,
            enforce_policy_checks=enforce,
        )
    return _make


@pytest.fixture
def client(fake_ledger, claim_ledger, abha_store, monkeypatch):
    """FastAPI test client wired to fresh fakes. Scoring falls back to mock unless overridden."""
    from fastapi.testclient import TestClient
    from chainsure.main import app
    from chainsure.api import dependencies

    monkeypatch.setattr(config, "ENFORCE_POLICY_CHECKS", True)
    app.dependency_overrides[dependencies.get_ledger_client] = lambda: fake_ledger
    app.dependency_overrides[dependencies.get_claim_ledger] = lambda: claim_ledger
    app.dependency_overrides[dependencies.get_abha_store] = lambda: abha_store
    app.dependency_overrides[dependencies.get_cache] = lambda: RedisCache()
    app.dependency_overrides[dependencies.get_acquirer] = lambda: FraudScoreAcquirer()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
