"""
E2E Tests: Claim Adjudication Flow
----------------------------------
Full HTTP flow: ABHA consent -> claim submission -> scoring service (mocked with
`responses`) -> decision -> treasury transfer (fake ledger) -> claim history.

Scenarios:
A. score 20 -> APPROVED, 500000 octas, exactly one transfer
B. score 50 -> PENDING, no transfer
C. score 85 -> REJECTED, no transfer
D. scoring service unreachable -> mock score, status still derived
E. APPROVED but the transfer throws -> APPROVED with error, no hash
"""

import json

import pytest
import requests
import responses

from conftest import USER
from chainsure.api import dependencies
from chainsure.claim_engine.constants import RATE, UNIT_DECIMALS
from chainsure.claim_engine.errors import SettlementFailure
from chainsure.claim_engine.fraud_scoring import FraudScoreAcquirer, FraudScoringClient, generate_mock_analysis
from chainsure.main import app

FRAUD_URL = "http://fraud.test"
ABHA_ID = "12-3456-7890-1234"


@pytest.fixture
def flow(client):
    """Client with a live scoring client (HTTP mocked) and a consented ABHA profile."""
    app.dependency_overrides[dependencies.get_acquirer] = lambda: FraudScoreAcquirer(FraudScoringClient(FRAUD_URL, timeout=1))
    assert client.post("/api/v1/abha/authorize", json={"abha_id": ABHA_ID}).status_code == 200
    return client


def scoring_returns(score):
    responses.add(
        responses.POST,
        f"{FRAUD_URL}/analyze-fraud-risk",
        json={"ai1_score": score, "ai2_score": score, "ai3_score": score, "aggregate_score": score},
    )


def submit(client, amount=5000, policy_id="1"):
    response = client.post(
        "/api/v1/claims/submit",
        json={"policy_id": policy_id, "user_address": USER, "claim_amount": amount, "abha_id": ABHA_ID},
    )
    assert response.status_code == 200, response.text
    return response.json()


@responses.activate
def test_scenario_a_approved_and_settled(flow, fake_ledger):
    scoring_returns(20)
    data = submit(flow)

    assert data["status"] == "APPROVED"
    assert data["score_source"] == "api"
    assert data["aggregate_score"] == 20
    assert data["transfer_amount"] == (5000 * UNIT_DECIMALS) // RATE == 500_000
    assert data["transaction_hash"] == data["claim_id"]
    assert fake_ledger.transfers == [(USER, 500_000)]

    sent = json.loads(responses.calls[0].request.body)
    assert sent["abha_user"]["fullName"] == "Priya Sharma"
    assert sent["policy"]["policy_id"] == "1"

    history = flow.get(f"/api/v1/claims/{USER}").json()
    assert history[0]["transaction_hash"] == data["transaction_hash"]

    policies = flow.post("/api/v1/policies/user", json={"wallet_address": USER}).json()
    assert {p["policy_id"]: p["has_claim"] for p in policies} == {"1": True, "2": False}


@responses.activate
def test_scenario_b_pending(flow, fake_ledger):
    scoring_returns(50)
    data = submit(flow)

    assert data["status"] == "PENDING"
    assert data["transfer_amount"] == 0
    assert data["requires_transfer"] is False
    assert fake_ledger.transfers == []


@responses.activate
def test_scenario_c_rejected(flow, fake_ledger):
    scoring_returns(85)
    data = submit(flow)

    assert data["status"] == "REJECTED"
    assert data["risk_level"] == "HIGH"
    assert data["transfer_amount"] == 0
    assert fake_ledger.transfers == []


@responses.activate
def test_scenario_d_scoring_unreachable(flow):
    responses.add(responses.POST, f"{FRAUD_URL}/analyze-fraud-risk", body=requests.ConnectionError("refused"))
    data = submit(flow)

    assert data["score_source"] == "mock"
    assert data["aggregate_score"] == generate_mock_analysis(5000, "1").aggregate_score
    assert 0 <= data["aggregate_score"] <= 100
    assert data["status"] in ("APPROVED", "PENDING", "REJECTED")


@responses.activate
def test_scenario_e_settlement_failure(flow, fake_ledger):
    scoring_returns(10)
    fake_ledger.fail_transfer = SettlementFailure("Transfer failed: transaction not confirmed")
    data = submit(flow)

    assert data["status"] == "APPROVED"
    assert data["success"] is False
    assert data["error"] == "Transfer failed: transaction not confirmed"
    assert data["transaction_hash"] is None
    assert len(fake_ledger.transfers) == 1

    # the policy stays claimed; a retry is a duplicate, not a second payout
    retry = flow.post(
        "/api/v1/claims/submit",
        json={"policy_id": "1", "user_address": USER, "claim_amount": 5000, "abha_id": ABHA_ID},
    )
    assert retry.status_code == 409
    assert len(fake_ledger.transfers) == 1
