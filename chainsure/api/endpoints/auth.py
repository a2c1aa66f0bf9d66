"""
/auth Endpoints
---------------
Wallet login: resolves the on-ledger role and issues a session token.
"""

from fastapi import APIRouter, Depends

from chainsure.models.policy import WalletRequest
from chainsure.api.dependencies import get_ledger_client
from chainsure.ledger.aptos_client import LedgerClient
from chainsure.claim_engine.errors import InvalidClaimRequest
from chainsure.utils.security import canonical_address, create_jwt_token, is_valid_address

router = APIRouter(tags=["Auth"])


@router.post("/auth/login", summary="Issue a session token for a wallet")
async def login_endpoint(request: WalletRequest, ledger: LedgerClient = Depends(get_ledger_client)):
    if not is_valid_address(request.wallet_address):
        raise InvalidClaimRequest("Invalid wallet address format")

    wallet = canonical_address(request.wallet_address)
    role = await ledger.get_user_role(wallet)
    token = create_jwt_token({"sub": wallet, "role": role})
    return {"access_token": token, "token_type": "bearer", "wallet_address": wallet, "role": role}
