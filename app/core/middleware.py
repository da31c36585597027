"""
HTTP middleware: security headers, access logging and a request size cap.
"""

import logging
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings


logger = logging.getLogger("app.requests")

# Paths whose responses hold private data
PRIVATE_PREFIXES = ("/profiles", "/chat", "/coach")

QUIET_PATHS = {"/", "/health", "/docs", "/openapi.json"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Tags each response with a request id and the usual hardening headers."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.request_id = uuid.uuid4().hex[:8]

        response = await call_next(request)

        headers = response.headers
        headers["X-Request-ID"] = request.state.request_id
        headers["X-Content-Type-Options"] = "nosniff"
        headers["X-Frame-Options"] = "DENY"
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        api_path = request.url.path[len(settings.API_V1_PREFIX):]
        if api_path.startswith(PRIVATE_PREFIXES):
            headers["Cache-Control"] = "no-store, private"

        if settings.ENVIRONMENT == "production":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per API request: method, path, status, duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)

        if request.url.path not in QUIET_PATHS:
            logger.info(
                "%s %s - %s (%.2fms) [%s] %s",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
                getattr(request.state, "request_id", "-"),
                client_ip(request),
            )

        return response


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the peer address."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects bodies whose declared Content-Length is over the limit.
    The limit leaves room for one profile photo plus multipart framing.
    """

    def __init__(self, app, max_body_size: int = settings.MAX_PHOTO_BYTES + 64 * 1024):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("Content-Length", "")
        if content_length.isdigit() and int(content_length) > self.max_body_size:
            return JSONResponse(
                status_code=413,
                content={"detail": "Request body too large."},
            )
        return await call_next(request)
