"""
/abha Endpoints
---------------
Consent grant and consented profile retrieval for ABHA health ids.
"""

from fastapi import APIRouter, Depends

from chainsure.models.abha import AbhaRequest
from chainsure.api.dependencies import get_abha_store
from chainsure.services.abha_consent import AbhaConsentStore

router = APIRouter(tags=["ABHA"])


@router.post("/abha/authorize", summary="Grant consent to read an ABHA profile")
async def authorize_endpoint(request: AbhaRequest, store: AbhaConsentStore = Depends(get_abha_store)):
    profile = store.authorize(request.abha_id)
    return {
        "success": True,
        "message": "ABHA consent granted successfully",
        "abha_id": profile.abha_id,
        "consent_date": profile.consent_date,
    }


@router.post("/abha/data", summary="Consented ABHA profile")
async def abha_data_endpoint(request: AbhaRequest, store: AbhaConsentStore = Depends(get_abha_store)):
    profile = store.get_profile(request.abha_id)
    return {"success": True, "data": profile.model_dump(mode="json", by_alias=True)}
