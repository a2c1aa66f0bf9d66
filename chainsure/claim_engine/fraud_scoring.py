"""
Fraud Score Acquirer
--------------------
Obtains a 0-100 aggregate fraud score for a claim.

1. With a full context (claim + ABHA profile + policy terms) and a configured
   service, one POST to `{FRAUD_API_URL}/analyze-fraud-risk`.
2. Otherwise, or when that call fails for any reason (network, timeout, non-2xx,
   malformed body), a mock analysis derived from the claim amount and policy id.

Nothing is raised to the caller: adjudication always gets a score.
No retries; the HTTP timeout bounds the primary path.
"""

import asyncio
import hashlib
import math
from typing import Callable, Optional, Dict, Any

import requests
from pydantic import ValidationError

from chainsure.config import config
from chainsure.models.fraud import FraudAnalysisRequest, FraudAnalysisResponse, ScoreResult, ScoreSource
from chainsure.claim_engine.constants import (
    MOCK_AMOUNT_CEILING,
    MOCK_WEIGHTS,
    MOCK_SUBSCORE_COEFFICIENTS,
)
from chainsure.claim_engine.decision_policy import get_risk_level
from chainsure.claim_engine.errors import ScoringUnavailable
from chainsure.utils.logger import logger, log_event


# =========================================================
# 🌐 Scoring Service Client
# =========================================================
class FraudScoringClient:
    """Thin `requests` client for the external scoring service."""

    def __init__(self, base_url: str, timeout: float = 15.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def analyze(self, request: FraudAnalysisRequest) -> FraudAnalysisResponse:
        """POST /analyze-fraud-risk. Raises ScoringUnavailable on any failure."""
        url = self._url("analyze-fraud-risk")
        try:
            resp = self.session.post(url, json=request.to_payload(), timeout=self.timeout)
            resp.raise_for_status()
            return FraudAnalysisResponse.model_validate(resp.json())
        except requests.RequestException as e:
            raise ScoringUnavailable(f"Fraud API request failed: {e}") from e
        except (ValueError, ValidationError) as e:
            # ValueError covers JSON decode errors
            raise ScoringUnavailable(f"Malformed fraud API response: {e}") from e

    def check_health(self) -> bool:
        try:
            resp = self.session.get(self._url("health"), timeout=self.timeout)
            if resp.status_code != 200:
                return False
            health = resp.json()
            return health.get("status") == "healthy" and bool(health.get("models_loaded"))
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning(f"⚠️ Fraud API health check failed: {e}")
            return False

    def get_model_info(self) -> Optional[Dict[str, Any]]:
        try:
            resp = self.session.get(self._url("model-info"), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"⚠️ Model info fetch failed: {e}")
            return None


# =========================================================
# 🎭 Mock Analysis
# =========================================================
def policy_random_factor(policy_id: str) -> float:
    """Stable value in [0, 1) for a policy id, so repeated mocks agree."""
    digest = hashlib.sha256(str(policy_id).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / 2 ** 64


def generate_mock_analysis(claim_amount: int, policy_id: str, random_factor: Optional[float] = None) -> FraudAnalysisResponse:
    """
    Weighted three-model mock. Higher amounts never lower the score for a fixed
    random factor; the aggregate always lies in [0, 100].
    """
    r = policy_random_factor(policy_id) if random_factor is None else min(max(float(random_factor), 0.0), 1.0)
    amount_factor = min(max(claim_amount, 0) / MOCK_AMOUNT_CEILING, 1.0)

    sub_scores = [
        math.floor(amount_factor * amount_coef + r * random_coef)
        for amount_coef, random_coef in MOCK_SUBSCORE_COEFFICIENTS
    ]
    aggregate = math.floor(sum(w * s for w, s in zip(MOCK_WEIGHTS, sub_scores)))
    aggregate = min(max(aggregate, 0), 100)

    return FraudAnalysisResponse(
        ai1_score=sub_scores[0],
        ai2_score=sub_scores[1],
        ai3_score=sub_scores[2],
        aggregate_score=aggregate,
        risk_level=get_risk_level(aggregate),
    )


# =========================================================
# 🧠 Acquirer
# =========================================================
class FraudScoreAcquirer:
    """
    Args:
        client: scoring service client, or None when no service is configured.
        random_source: callable returning a float in [0, 1) for the mock path;
            defaults to a per-policy stable factor.
    """

    def __init__(self, client: Optional[FraudScoringClient] = None, random_source: Optional[Callable[[], float]] = None):
        self.client = client
        self.random_source = random_source

    def _mock(self, claim_amount: int, policy_id: str, reason: str) -> ScoreResult:
        random_factor = self.random_source() if self.random_source else None
        analysis = generate_mock_analysis(claim_amount, policy_id, random_factor)
        log_event(
            "score_fallback",
            level="warning" if reason != "no_context" else "info",
            policy_id=policy_id,
            claim_amount=claim_amount,
            aggregate_score=analysis.aggregate_score,
            reason=reason,
        )
        return ScoreResult(aggregate_score=analysis.aggregate_score, source=ScoreSource.MOCK, analysis=analysis)

    async def acquire_score(
        self,
        claim_amount: int,
        policy_id: str,
        context: Optional[FraudAnalysisRequest] = None,
    ) -> ScoreResult:
        if context is None or self.client is None:
            return self._mock(claim_amount, policy_id, "no_context" if context is None else "no_service")

        try:
            analysis = await asyncio.to_thread(self.client.analyze, context)
        except Exception as e:
            logger.warning(f"⚠️ Fraud scoring degraded to mock for policy {policy_id}: {e}")
            return self._mock(claim_amount, policy_id, type(e).__name__)

        log_event(
            "score_acquired",
            policy_id=policy_id,
            claim_id=context.claim.claim_id,
            aggregate_score=analysis.aggregate_score,
        )
        return ScoreResult(aggregate_score=analysis.aggregate_score, source=ScoreSource.API, analysis=analysis)


def build_acquirer() -> FraudScoreAcquirer:
    client = FraudScoringClient(config.FRAUD_API_URL, config.FRAUD_API_TIMEOUT) if config.FRAUD_API_URL else None
    return FraudScoreAcquirer(client)
