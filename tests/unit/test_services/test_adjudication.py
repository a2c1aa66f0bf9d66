"""
Unit Tests: Claim Adjudication Service
--------------------------------------
Covers the submit_claim pipeline:
- Request validation and duplicate rejection before any scoring
- Server-side policy guard (ownership, expiry, coverage)
- Fraud context assembly (explicit payload, consented ABHA, none)
- Status preserved when settlement or recording fails
"""

import asyncio
from unittest.mock import patch

import pytest

from conftest import OTHER_USER, TX_HASH, USER, forced_acquirer, make_policy, make_purchase
from chainsure.models.claim import ClaimStatus, ClaimSubmission
from chainsure.models.fraud import ScoreSource
from chainsure.claim_engine.errors import DuplicateClaim, InvalidClaimRequest, PolicyNotEligible, SettlementFailure
from chainsure.claim_engine.fraud_scoring import FraudScoreAcquirer
from chainsure.services.adjudication import SessionContext, build_fraud_request, validate_submission

# one account, two spellings: leading zero dropped and kept
SHORT_USER = "0x" + "a1" * 31 + "a"
PADDED_USER = "0x0" + "a1" * 31 + "a"


def submit(service, session=None, **fields):
    body = {"policy_id": "1", "user_address": USER, "claim_amount": 5000}
    body.update(fields)
    return asyncio.run(service.submit_claim(ClaimSubmission(**body), session))


# =========================================================
# 🧾 Validation
# =========================================================
class TestValidation:

    @pytest.mark.parametrize(
        "fields",
        [
            {"policy_id": None},
            {"policy_id": "  "},
            {"user_address": None},
            {"claim_amount": None},
            {"claim_amount": 0},
            {"claim_amount": -10},
            {"user_address": "not-an-address"},
            {"user_address": "a1" * 32},
            {"user_address": "0x" + "f" * 65},
        ],
    )
    def test_invalid_requests_make_no_external_calls(self, make_service, fake_ledger, claim_ledger, fields):
        service = make_service(score=20)
        with pytest.raises(InvalidClaimRequest):
            submit(service, **fields)

        service.acquirer.acquire_score.assert_not_awaited()
        assert fake_ledger.transfers == []
        assert claim_ledger.list() == []

    def test_validate_submission_strips(self):
        assert validate_submission(ClaimSubmission(policy_id=" 7 ", user_address=f" {USER} ", claim_amount=1)) == ("7", USER, 1)

    def test_validate_submission_canonicalises_address(self):
        _, address, _ = validate_submission(ClaimSubmission(policy_id="1", user_address=SHORT_USER, claim_amount=1))
        assert address == PADDED_USER
        _, address, _ = validate_submission(ClaimSubmission(policy_id="1", user_address=USER.upper().replace("0X", "0x"), claim_amount=1))
        assert address == USER

    def test_session_wallet_compared_canonically(self, make_service, fake_ledger):
        fake_ledger.purchases.append(make_purchase("1", user=PADDED_USER))
        result = submit(make_service(score=20), session=SessionContext(wallet_address=SHORT_USER), user_address=PADDED_USER)
        assert result.status == ClaimStatus.APPROVED

    def test_session_wallet_must_match(self, make_service):
        service = make_service(score=20)
        with pytest.raises(InvalidClaimRequest):
            submit(service, session=SessionContext(wallet_address=OTHER_USER))
        service.acquirer.acquire_score.assert_not_awaited()


# =========================================================
# 🔁 Duplicates
# =========================================================
class TestDuplicates:

    def test_second_claim_rejected_without_scoring(self, make_service):
        service = make_service(score=50)
        submit(service)
        assert service.acquirer.acquire_score.await_count == 1

        with pytest.raises(DuplicateClaim):
            submit(service)
        assert service.acquirer.acquire_score.await_count == 1

    def test_short_and_padded_forms_are_one_account(self, make_service, fake_ledger):
        fake_ledger.purchases.append(make_purchase("1", user=PADDED_USER))
        service = make_service(score=10)

        result = submit(service, user_address=SHORT_USER)
        assert result.user_address == PADDED_USER
        assert fake_ledger.transfers == [(PADDED_USER, 500_000)]

        with pytest.raises(DuplicateClaim):
            submit(service, user_address=PADDED_USER)
        assert len(fake_ledger.transfers) == 1

    def test_concurrent_submissions_for_same_policy(self, make_service, fake_ledger):
        service = make_service(score=10)

        async def both():
            return await asyncio.gather(
                service.submit_claim(ClaimSubmission(policy_id="1", user_address=USER, claim_amount=5000)),
                service.submit_claim(ClaimSubmission(policy_id="1", user_address=USER, claim_amount=5000)),
                return_exceptions=True,
            )

        results = asyncio.run(both())
        assert sum(isinstance(r, DuplicateClaim) for r in results) == 1
        assert len(fake_ledger.transfers) == 1

    def test_failure_before_status_releases_reservation(self, make_service, claim_ledger):
        acquirer = forced_acquirer(20)
        acquirer.acquire_score.side_effect = RuntimeError("unexpected")
        service = make_service(acquirer=acquirer)

        with pytest.raises(RuntimeError):
            submit(service)
        assert not claim_ledger.has_claim("1", USER)


# =========================================================
# 🛡️ Policy Guard
# =========================================================
class TestPolicyGuard:

    def test_expired_policy_rejected(self, make_service, claim_ledger):
        service = make_service(score=10)
        with pytest.raises(PolicyNotEligible):
            submit(service, policy_id="2")
        service.acquirer.acquire_score.assert_not_awaited()
        assert not claim_ledger.has_claim("2", USER)

    def test_policy_not_owned(self, make_service):
        with pytest.raises(PolicyNotEligible):
            submit(make_service(score=10), user_address=OTHER_USER)

    def test_amount_above_coverage(self, make_service):
        with pytest.raises(PolicyNotEligible, match="coverage"):
            submit(make_service(score=10), claim_amount=500_001)

    def test_guard_disabled(self, make_service):
        result = submit(make_service(score=10, enforce=False), policy_id="2")
        assert result.status == ClaimStatus.APPROVED


# =========================================================
# ⚖️ Outcomes
# =========================================================
class TestOutcomes:

    def test_approved_pays_out(self, make_service, fake_ledger, claim_ledger):
        result = submit(make_service(score=20))

        assert result.success is True
        assert result.status == ClaimStatus.APPROVED
        assert result.transfer_amount == 500_000
        assert result.transfer_amount_apt == "0.0050"
        assert result.transaction_hash == TX_HASH
        assert result.claim_id == TX_HASH
        assert fake_ledger.transfers == [(USER, 500_000)]
        assert claim_ledger.get("1", USER).transaction_hash == TX_HASH

    @pytest.mark.parametrize("score, status", [(50, ClaimStatus.PENDING), (85, ClaimStatus.REJECTED)])
    def test_no_payout_when_not_approved(self, make_service, fake_ledger, score, status):
        result = submit(make_service(score=score))

        assert result.status == status
        assert result.transfer_amount == 0
        assert result.transaction_hash is None
        assert result.claim_id.startswith("claim_")
        assert fake_ledger.transfers == []

    def test_settlement_failure_keeps_approved(self, make_service, fake_ledger, claim_ledger):
        fake_ledger.fail_transfer = SettlementFailure("confirmation timed out")
        result = submit(make_service(score=5))

        assert result.status == ClaimStatus.APPROVED
        assert result.success is False
        assert result.error == "confirmation timed out"
        assert result.transaction_hash is None
        stored = claim_ledger.get("1", USER)
        assert stored.status == ClaimStatus.APPROVED
        assert stored.settlement_error == "confirmation timed out"

    def test_record_failure_keeps_status_and_reservation(self, make_service, claim_ledger):
        service = make_service(score=50)
        with patch.object(claim_ledger, "_persist", side_effect=RuntimeError("disk full")):
            result = submit(service)

        assert result.status == ClaimStatus.PENDING
        assert "disk full" in result.error
        assert claim_ledger.has_claim("1", USER)


# =========================================================
# 🧠 Fraud Context
# =========================================================
class TestFraudContext:

    def test_no_abha_scores_without_context(self, make_service):
        service = make_service(score=20)
        submit(service)
        args = service.acquirer.acquire_score.await_args.args
        assert args == (5000, "1", None)

    def test_consented_abha_builds_context(self, make_service, abha_store):
        abha_store.authorize("11-2233-4455-6677")
        service = make_service(score=20)
        submit(service, abha_id="11-2233-4455-6677")

        context = service.acquirer.acquire_score.await_args.args[2]
        assert context.abha_user.full_name == "Kavya Reddy"
        assert context.policy.policy_id == "1"
        assert context.claim.claim_amount == 5000

    def test_unconsented_abha_ignored(self, make_service):
        service = make_service(score=20)
        submit(service, abha_id="11-2233-4455-6677")
        assert service.acquirer.acquire_score.await_args.args[2] is None

    def test_explicit_payload_takes_precedence(self, make_service, abha_store):
        profile = abha_store.authorize("12-3456-7890-1234")
        payload = build_fraud_request("ext-1", make_policy("1"), 5000, profile)
        service = make_service(score=20)
        submit(service, fraud_payload=payload.model_dump(), abha_id="11-2233-4455-6677")

        context = service.acquirer.acquire_score.await_args.args[2]
        assert context.claim.claim_id == "ext-1"

    def test_session_profile_used(self, make_service, abha_store):
        profile = abha_store.authorize("98-7654-3210-9876")
        service = make_service(score=20)
        submit(service, session=SessionContext(wallet_address=USER, abha_profile=profile))
        assert service.acquirer.acquire_score.await_args.args[2].abha_user.abha_id == "98-7654-3210-9876"

    def test_mock_source_reported(self, make_service):
        service = make_service(acquirer=FraudScoreAcquirer())
        result = submit(service)
        assert result.score_source == ScoreSource.MOCK
        assert 0 <= result.aggregate_score <= 100
