"""
Main Application Entry Point
----------------------------
FastAPI app for the ChainSure claims backend.

Handles:
 - Claim submission, adjudication and treasury settlement
 - Ledger policy catalogue and user policies
 - ABHA consent and wallet login
 - Health and system info endpoints
"""

from fastapi import Depends, FastAPI, Request
from fastapi.responses import ORJSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import traceback
import json

# =========================================================
# 📦 Internal Imports
# =========================================================
from chainsure.utils.logger import logger
from chainsure.utils.logging_middleware import LoggingMiddleware
from chainsure.config import config
from chainsure.claim_engine.errors import ChainSureError
from chainsure.api.dependencies import get_ledger_client
from chainsure.ledger.aptos_client import LedgerClient
from chainsure.api.endpoints import abha, admin, auth, claims, fraud, policies

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    routes = [path for path in (getattr(route, "path", None) for route in app.routes) if path]
    logger.info("🚦 Registered Routes:")
    for r in routes:
        logger.info(f"  • {r}")
    yield
    if get_ledger_client.cache_info().currsize:
        await get_ledger_client().close()


# =========================================================
# 🚀 FastAPI Initialization
# =========================================================
app = FastAPI(
    title="ChainSure Claims API",
    version=API_VERSION,
    description="Fraud-scored claim adjudication with on-ledger settlement.",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# =========================================================
# 🌐 Middleware
# =========================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

# =========================================================
# 🔌 Include Routers (only main file uses prefix)
# =========================================================
for module in (claims, admin, policies, abha, auth, fraud):
    app.include_router(module.router, prefix="/api/v1")


# =========================================================
# ⚙️ Exception Handlers
# =========================================================
@app.exception_handler(ChainSureError)
async def chainsure_exception_handler(request: Request, exc: ChainSureError):
    """Domain errors carry their own HTTP status."""
    logger.warning(json.dumps({
        "event": "request_error",
        "type": type(exc).__name__,
        "status": exc.status_code,
        "path": str(request.url.path),
        "error": exc.message,
    }))
    return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles invalid request payloads gracefully."""
    logger.error(json.dumps({
        "event": "request_error",
        "type": "ValidationError",
        "status": 422,
        "path": str(request.url.path),
        "errors": exc.errors(),
    }, default=str))
    return ORJSONResponse(
        status_code=422,
        content={"detail": "Invalid input. Please check your request payload."},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all for unexpected runtime exceptions."""
    logger.error(json.dumps({
        "event": "request_error",
        "type": type(exc).__name__,
        "status": 500,
        "path": str(request.url.path),
        "trace": traceback.format_exc(),
    }))
    return ORJSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please try again later."},
    )


# =========================================================
# 🧩 Utility Endpoints
# =========================================================
@app.get("/")
async def root():
    """Root endpoint for system information."""
    return {
        "status": "running",
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": "Welcome to ChainSure Claims API",
        "scoring_enabled": config.is_scoring_enabled,
        "claim_store": config.CLAIM_STORE,
    }


@app.get("/health")
async def health(ledger: LedgerClient = Depends(get_ledger_client)):
    """Basic health check plus whether the insurance portal is initialized on the ledger."""
    return {"status": "healthy", "ledger_initialized": await ledger.is_initialized()}



# =========================================================
# 🏁 Runner
# =========================================================
def run_api():
    import uvicorn

    logger.info(f"🚀 Starting ChainSure Claims API ({config.ENV})")
    uvicorn.run(
        "chainsure.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=config.DEBUG,
    )


if __name__ == "__main__":
    run_api()
