"""
/policies Endpoints
-------------------
Ledger policy catalogue and a wallet's purchased policies, reconciled with the
local claim ledger.
"""

from typing import List

from fastapi import APIRouter, Depends

from chainsure.models.policy import PolicyView, UserPolicyView, WalletRequest
from chainsure.api.dependencies import get_claim_ledger, get_policy_registry
from chainsure.claim_engine.claim_ledger import ClaimLedger
from chainsure.claim_engine.errors import InvalidClaimRequest
from chainsure.services.policy_registry import PolicyRegistry
from chainsure.utils.security import canonical_address, is_valid_address

router = APIRouter(tags=["Policies"])


@router.get("/policies", response_model=List[PolicyView], summary="All policies registered on the ledger")
async def list_policies_endpoint(registry: PolicyRegistry = Depends(get_policy_registry)):
    return await registry.policy_views()


@router.post("/policies/user", response_model=List[UserPolicyView], summary="Policies purchased by a wallet")
async def user_policies_endpoint(
    request: WalletRequest,
    registry: PolicyRegistry = Depends(get_policy_registry),
    claims: ClaimLedger = Depends(get_claim_ledger),
):
    if not request.wallet_address:
        raise InvalidClaimRequest("Wallet address is required")
    if not is_valid_address(request.wallet_address):
        raise InvalidClaimRequest("Invalid wallet address format")
    return await registry.user_policies(canonical_address(request.wallet_address), claims)
