"""
/claims Endpoints
-----------------
Claim submission (the adjudication pipeline) and per-wallet claim history.
"""

from typing import List

from fastapi import APIRouter, Body, Depends

from chainsure.models.claim import Claim, ClaimResult, ClaimSubmission
from chainsure.api.dependencies import get_adjudication_service, get_session_context
from chainsure.services.adjudication import ClaimAdjudicationService, SessionContext
from chainsure.utils.logger import logger
from chainsure.claim_engine.errors import InvalidClaimRequest
from chainsure.utils.security import canonical_address, is_valid_address, mask_address

router = APIRouter(tags=["Claims"])


@router.post(
    "/claims/submit",
    response_model=ClaimResult,
    summary="Submit a claim for adjudication",
    description="Scores the claim, derives APPROVED/PENDING/REJECTED and pays out approved claims from the treasury.",
)
async def submit_claim_endpoint(
    submission: ClaimSubmission = Body(..., description="Claim for one purchased policy"),
    service: ClaimAdjudicationService = Depends(get_adjudication_service),
    session: SessionContext = Depends(get_session_context),
):
    logger.info(f"🚀 Claim submitted for policy {submission.policy_id} by {mask_address(submission.user_address)}")
    result = await service.submit_claim(submission, session)
    logger.info(
        f"✅ Claim {result.claim_id} | Score: {result.aggregate_score} ({result.score_source.value}) | Status: {result.status.value}"
    )
    return result


@router.get("/claims/{user_address}", response_model=List[Claim], summary="Claims recorded for a wallet")
async def list_claims_endpoint(
    user_address: str,
    service: ClaimAdjudicationService = Depends(get_adjudication_service),
):
    if not is_valid_address(user_address):
        raise InvalidClaimRequest("Invalid wallet address", {"user_address": mask_address(user_address)})
    return service.list_claims(canonical_address(user_address))
