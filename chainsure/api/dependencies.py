"""
Dependencies for FastAPI endpoints
-----------------------------------
Manages:
- Process-wide service singletons (ledger client, claim ledger, consent store)
- The adjudication service wired from config
- Per-request session context
Tests replace any of these through `app.dependency_overrides`.
"""

from functools import lru_cache
from fastapi import Depends

from chainsure.config import config
from chainsure.ledger.aptos_client import LedgerClient, build_ledger_client
from chainsure.claim_engine.claim_ledger import ClaimLedger, DatabaseClaimLedger
from chainsure.claim_engine.fraud_scoring import FraudScoreAcquirer, build_acquirer
from chainsure.claim_engine.settlement import SettlementOrchestrator
from chainsure.services.abha_consent import AbhaConsentStore
from chainsure.services.adjudication import ClaimAdjudicationService, SessionContext
from chainsure.services.policy_registry import PolicyRegistry
from chainsure.utils.cache import RedisCache
from chainsure.utils.db import create_db_engine, init_db, make_session_factory
from chainsure.utils.logger import logger
from chainsure.utils.security import get_current_user


# =========================================================
# ⛓️ LEDGER & STORES
# =========================================================
@lru_cache(maxsize=1)
def get_ledger_client() -> LedgerClient:
    return build_ledger_client()


@lru_cache(maxsize=1)
def get_claim_ledger() -> ClaimLedger:
    """Session cache by default; SQLAlchemy-backed when CLAIM_STORE=db."""
    if config.is_durable_store:
        engine = create_db_engine(config.DB_URL)
        init_db(engine)
        logger.info(f"🗄️ Durable claim store enabled ({engine.url.drivername})")
        return DatabaseClaimLedger(make_session_factory(engine))
    return ClaimLedger()


@lru_cache(maxsize=1)
def get_abha_store() -> AbhaConsentStore:
    return AbhaConsentStore()


@lru_cache(maxsize=1)
def get_cache() -> RedisCache:
    return RedisCache(config.REDIS_URL)


def get_policy_registry(
    ledger: LedgerClient = Depends(get_ledger_client),
    cache: RedisCache = Depends(get_cache),
) -> PolicyRegistry:
    return PolicyRegistry(ledger, cache=cache, cache_ttl=config.POLICY_CACHE_TTL)


# =========================================================
# 🧠 FRAUD SCORING
# =========================================================
@lru_cache(maxsize=1)
def get_acquirer() -> FraudScoreAcquirer:
    return build_acquirer()


# =========================================================
# ⚖️ ADJUDICATION
# =========================================================
def get_adjudication_service(
    ledger: LedgerClient = Depends(get_ledger_client),
    claims: ClaimLedger = Depends(get_claim_ledger),
    policies: PolicyRegistry = Depends(get_policy_registry),
    abha_store: AbhaConsentStore = Depends(get_abha_store),
    acquirer: FraudScoreAcquirer = Depends(get_acquirer),
) -> ClaimAdjudicationService:
    return ClaimAdjudicationService(
        acquirer=acquirer,
        settlement=SettlementOrchestrator(ledger),
        claims=claims,
        policies=policies,
        abha_store=abha_store,
        enforce_policy_checks=config.ENFORCE_POLICY_CHECKS,
    )


# =========================================================
# 👤 SESSION CONTEXT
# =========================================================
def get_session_context(user: dict = Depends(get_current_user)) -> SessionContext:
    """Caller state passed explicitly into the pipeline instead of living in globals."""
    return SessionContext(wallet_address=user.get("wallet_address"), role=user.get("role", 0))
