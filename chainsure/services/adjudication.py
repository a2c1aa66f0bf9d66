"""
Claim Adjudication Service
--------------------------
The `submit_claim` pipeline:

    validate -> reserve -> (policy guard) -> score -> decide -> settle -> record

- Validation and the duplicate check happen before anything is awaited, so a
  rejected request never reaches the scoring service or the ledger.
- Failures before a status exists release the reservation and propagate.
- Once a status exists it is returned even if settlement or recording fails;
  the failure is reported in `ClaimResult.error`.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from chainsure.models.abha import AbhaProfile
from chainsure.models.claim import Claim, ClaimResult, ClaimSubmission, Decision, SettlementResult
from chainsure.models.fraud import FraudAnalysisRequest, FraudClaim, FraudPolicyTerms, ScoreResult
from chainsure.models.policy import LedgerPolicy
from chainsure.claim_engine.claim_ledger import ClaimLedger
from chainsure.claim_engine.constants import ROLE_UNREGISTERED
from chainsure.claim_engine.currency import format_apt
from chainsure.claim_engine.decision_policy import decide
from chainsure.claim_engine.errors import InvalidClaimRequest, LedgerError, PolicyNotEligible
from chainsure.claim_engine.fraud_scoring import FraudScoreAcquirer
from chainsure.claim_engine.settlement import SettlementOrchestrator
from chainsure.services.abha_consent import AbhaConsentStore
from chainsure.services.policy_registry import PolicyRegistry
from chainsure.utils.logger import logger
from chainsure.utils.security import canonical_address, is_valid_address, mask_address


@dataclass
class SessionContext:
    """Per-request caller state: the signed-in wallet and any consented ABHA profile."""
    wallet_address: Optional[str] = None
    role: int = ROLE_UNREGISTERED
    abha_profile: Optional[AbhaProfile] = None


def policy_terms(policy: LedgerPolicy) -> FraudPolicyTerms:
    return FraudPolicyTerms(
        policy_id=policy.policy_id,
        title=policy.title,
        description=policy.description,
        policy_type=policy.policy_type,
        coverage_amount=str(policy.coverage_amount),
        monthly_premium=str(policy.monthly_premium),
        yearly_premium=str(policy.yearly_premium),
        min_age=str(policy.min_age),
        max_age=str(policy.max_age),
        duration_days=str(policy.duration_days),
        waiting_period_days=str(policy.waiting_period_days),
        created_at=str(policy.created_at),
        created_by=policy.created_by,
    )


def build_fraud_request(claim_id: str, policy: LedgerPolicy, claim_amount: int, profile: AbhaProfile) -> FraudAnalysisRequest:
    """Assemble the scoring context from a consented profile and ledger policy terms."""
    latest = profile.medical_history[-1] if profile.medical_history else None
    claim = FraudClaim(
        claim_id=claim_id,
        abha_id=profile.abha_id,
        policy_id=policy.policy_id,
        claim_amount=claim_amount,
        claim_date=datetime.now(timezone.utc).date().isoformat(),
        diagnosis=latest.condition if latest else "",
        treatment=latest.treatment if latest else "",
        medications=list(latest.medications) if latest else [],
    )
    return FraudAnalysisRequest(claim=claim, abha_user=profile, policy=policy_terms(policy))


def validate_submission(submission: ClaimSubmission) -> Tuple[str, str, int]:
    """Return (policy_id, canonical user_address, claim_amount) or raise InvalidClaimRequest."""
    missing = [
        name for name, value in (
            ("policy_id", submission.policy_id),
            ("user_address", submission.user_address),
            ("claim_amount", submission.claim_amount),
        )
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise InvalidClaimRequest("Missing required fields", {"missing": missing})
    if submission.claim_amount <= 0:
        raise InvalidClaimRequest("Claim amount must be positive", {"claim_amount": submission.claim_amount})
    if not is_valid_address(submission.user_address):
        raise InvalidClaimRequest("Invalid wallet address", {"user_address": mask_address(submission.user_address)})
    return str(submission.policy_id).strip(), canonical_address(submission.user_address), int(submission.claim_amount)


def is_session_wallet(session_wallet: str, user_address: str) -> bool:
    try:
        return canonical_address(session_wallet) == user_address
    except ValueError:
        return False


class ClaimAdjudicationService:

    def __init__(
        self,
        acquirer: FraudScoreAcquirer,
        settlement: SettlementOrchestrator,
        claims: ClaimLedger,
        policies: Optional[PolicyRegistry] = None,
        abha_store: Optional[AbhaConsentStore] = None,
        enforce_policy_checks: bool = False,
    ):
        self.acquirer = acquirer
        self.settlement = settlement
        self.claims = claims
        self.policies = policies
        self.abha_store = abha_store
        self.enforce_policy_checks = enforce_policy_checks and policies is not None

    # ---------------- Public API ---------------- #
    def has_claim(self, policy_id: str, user_address: str) -> bool:
        return self.claims.has_claim(policy_id, user_address)

    def list_claims(self, user_address: Optional[str] = None) -> List[Claim]:
        return self.claims.list(user_address)

    async def submit_claim(self, submission: ClaimSubmission, session: Optional[SessionContext] = None) -> ClaimResult:
        policy_id, user_address, claim_amount = validate_submission(submission)
        session = session or SessionContext()
        if session.wallet_address and not is_session_wallet(session.wallet_address, user_address):
            raise InvalidClaimRequest("Claims can only be submitted for the signed-in wallet")

        self.claims.reserve(policy_id, user_address)
        provisional_id = f"claim_{uuid.uuid4().hex[:16]}"

        try:
            policy = await self._check_policy(policy_id, user_address, claim_amount)
            context = await self._fraud_context(submission, provisional_id, policy_id, claim_amount, policy, session)
            score = await self.acquirer.acquire_score(claim_amount, policy_id, context)
            decision = decide(score.aggregate_score, claim_amount)
        except Exception:
            self.claims.release(policy_id, user_address)
            raise

        result = await self.settlement.settle(user_address, decision, policy_id)
        claim = Claim(
            claim_id=result.transaction_hash or provisional_id,
            policy_id=policy_id,
            user_address=user_address,
            claim_amount=claim_amount,
            aggregate_score=score.aggregate_score,
            status=decision.status,
            risk_level=decision.risk_level,
            score_source=score.source,
            transfer_amount=decision.transfer_amount,
            transaction_hash=result.transaction_hash,
            settlement_error=result.error,
        )

        error = result.error
        try:
            self.claims.record(claim)
        except Exception as e:
            # reservation stays in place so the policy cannot be paid twice
            logger.exception(f"❌ Claim {claim.claim_id} decided but not recorded")
            error = error or f"Claim decided but could not be recorded: {e}"

        return self._result(claim, score, decision, result, error)

    # ---------------- Pipeline steps ---------------- #
    async def _check_policy(self, policy_id: str, user_address: str, claim_amount: int) -> Optional[LedgerPolicy]:
        if not self.enforce_policy_checks:
            return None
        _, policy = await self.policies.resolve_claimable(policy_id, user_address)
        if policy.coverage_amount and claim_amount > policy.coverage_amount:
            raise PolicyNotEligible(
                "Claim amount exceeds policy coverage",
                {"claim_amount": claim_amount, "coverage_amount": policy.coverage_amount},
            )
        return policy

    async def _fraud_context(
        self,
        submission: ClaimSubmission,
        claim_id: str,
        policy_id: str,
        claim_amount: int,
        policy: Optional[LedgerPolicy],
        session: SessionContext,
    ) -> Optional[FraudAnalysisRequest]:
        if submission.fraud_payload is not None:
            return submission.fraud_payload

        profile = session.abha_profile
        if profile is None and self.abha_store is not None:
            profile = self.abha_store.consented_profile(submission.abha_id)
        if profile is None:
            return None

        if policy is None and self.policies is not None:
            try:
                policy = await self.policies.get_policy(policy_id)
            except LedgerError as e:
                logger.warning(f"⚠️ Policy terms unavailable for {policy_id}, scoring without context: {e.message}")
                return None
        if policy is None:
            return None
        return build_fraud_request(claim_id, policy, claim_amount, profile)

    @staticmethod
    def _result(
        claim: Claim,
        score: ScoreResult,
        decision: Decision,
        settlement: SettlementResult,
        error: Optional[str],
    ) -> ClaimResult:
        return ClaimResult(
            success=error is None,
            claim_id=claim.claim_id,
            policy_id=claim.policy_id,
            user_address=claim.user_address,
            claim_amount=claim.claim_amount,
            status=decision.status,
            aggregate_score=score.aggregate_score,
            risk_level=decision.risk_level,
            score_source=score.source,
            requires_transfer=decision.requires_transfer,
            transfer_amount=decision.transfer_amount,
            transfer_amount_apt=format_apt(decision.transfer_amount),
            transaction_hash=settlement.transaction_hash,
            error=error,
        )
