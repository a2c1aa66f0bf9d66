"""
Request/Response Logging Middleware
-----------------------------------
Logs every API request and response as one JSON line each.

- Captures method, path, wallet (from JWT), latency and status code
- Masks sensitive query parameters (addresses, tokens, ABHA ids, keys)
- Skips health check & docs routes
"""

import time
import json
import uuid
from fastapi import Request, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from chainsure.utils.logger import logger
from chainsure.utils.security import verify_jwt_token, mask_address
from chainsure.config import config

SENSITIVE_KEYS = ("address", "token", "abha", "key")
SKIP_PATHS = ("/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico")


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, redact_pii: bool = True):
        super().__init__(app)
        self.redact_pii = redact_pii

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        path = request.url.path
        method = request.method
        trace_id = str(uuid.uuid4())
        wallet = "anonymous"

        if any(path.startswith(skip) for skip in SKIP_PATHS):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            try:
                payload = verify_jwt_token(auth_header.split(" ", 1)[1])
                wallet = mask_address(payload.get("sub")) or "unknown"
            except HTTPException:
                wallet = "invalid_token"

        params = dict(request.query_params)
        if self.redact_pii:
            params = self._mask_sensitive(params)

        logger.info(
            json.dumps({
                "trace_id": trace_id,
                "event": "request_start",
                "method": method,
                "path": path,
                "wallet": wallet,
                "client_ip": request.client.host if request.client else "unknown",
                "params": params,
                "content_length": int(request.headers.get("content-length", 0) or 0),
            }, default=str)
        )

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.error(
                json.dumps({
                    "trace_id": trace_id,
                    "event": "request_error",
                    "method": method,
                    "path": path,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "wallet": wallet,
                    "latency_ms": round((time.time() - start_time) * 1000, 2),
                }, default=str)
            )
            raise

        logger.info(
            json.dumps({
                "trace_id": trace_id,
                "event": "request_end",
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "wallet": wallet,
                "latency_ms": round((time.time() - start_time) * 1000, 2),
                **({"response_headers": dict(response.headers)} if config.DEBUG else {}),
            }, default=str)
        )
        response.headers["X-Trace-Id"] = trace_id
        return response

    def _mask_sensitive(self, params: dict) -> dict:
        masked = {}
        for key, val in params.items():
            if any(x in key.lower() for x in SENSITIVE_KEYS):
                masked[key] = "[REDACTED]"
            else:
                masked[key] = val
        return masked
