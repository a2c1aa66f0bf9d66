"""
/admin Endpoints
----------------
Direct treasury payout, for settling claims whose automatic transfer failed.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from chainsure.api.dependencies import get_ledger_client
from chainsure.ledger.aptos_client import LedgerClient
from chainsure.claim_engine.currency import format_apt
from chainsure.claim_engine.errors import InvalidClaimRequest
from chainsure.utils.logger import log_event
from chainsure.utils.security import canonical_address, is_valid_address, mask_address, require_admin

router = APIRouter(tags=["Admin"])


class FundClaimRequest(BaseModel):
    user_address: str = ""
    amount_octas: int = Field(0, description="Payout in octas")


@router.post("/admin/fund-claim", summary="Transfer funds from the treasury to a claimant")
async def fund_claim_endpoint(
    request: FundClaimRequest,
    ledger: LedgerClient = Depends(get_ledger_client),
    admin: dict = Depends(require_admin),
):
    if not is_valid_address(request.user_address):
        raise InvalidClaimRequest("Invalid user address", {"user_address": mask_address(request.user_address)})
    if request.amount_octas <= 0:
        raise InvalidClaimRequest("Amount must be positive", {"amount_octas": request.amount_octas})

    recipient = canonical_address(request.user_address)
    tx_hash = await ledger.transfer_native(recipient, request.amount_octas)
    log_event(
        "settlement_complete",
        user_address=recipient,
        amount_octas=request.amount_octas,
        tx_hash=tx_hash,
        manual=True,
    )
    return {
        "success": True,
        "tx_hash": tx_hash,
        "amount_apt": format_apt(request.amount_octas),
        "admin_address": ledger.treasury_address,
    }
