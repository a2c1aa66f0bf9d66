"""
/fraud Endpoints
----------------
Reachability of the external fraud-scoring service.
"""

import asyncio

from fastapi import APIRouter, Depends

from chainsure.api.dependencies import get_acquirer
from chainsure.claim_engine.fraud_scoring import FraudScoreAcquirer

router = APIRouter(tags=["Fraud Scoring"])


@router.get("/fraud/status", summary="Scoring service health and model info")
async def fraud_status_endpoint(acquirer: FraudScoreAcquirer = Depends(get_acquirer)):
    client = acquirer.client
    if client is None:
        return {"enabled": False, "healthy": False, "model_info": None}

    healthy = await asyncio.to_thread(client.check_health)
    model_info = await asyncio.to_thread(client.get_model_info) if healthy else None
    return {"enabled": True, "healthy": healthy, "model_info": model_info}
