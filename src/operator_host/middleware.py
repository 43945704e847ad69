"""HTTP middleware: request logging, security headers and API key auth."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .auth import ApiKeyVerifier, AuthenticationError, extract_api_key, is_public_path
from .responses import error_response


logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s %s %.2fms request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        return response


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, verifier: Optional[ApiKeyVerifier] = None) -> None:
        super().__init__(app)
        self.verifier = verifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.verifier is None or request.method == "OPTIONS":
            request.state.auth = {"type": "anonymous"}
            return await call_next(request)
        if is_public_path(request.url.path):
            return await call_next(request)

        api_key = extract_api_key(request.headers)
        if not api_key:
            return error_response(
                "Missing API key", code="MISSING_API_KEY", status_code=401
            )

        try:
            request.state.auth = await self.verifier.verify(api_key)
        except AuthenticationError as exc:
            logger.warning("API key validation failed: %s", exc)
            return error_response("Authentication failed", code="UNAUTHORIZED", status_code=401)
        except Exception as exc:
            logger.error("API key validation error: %s", exc)
            return error_response(
                "Authentication service error", code="AUTH_SERVICE_ERROR", status_code=500
            )

        logger.info("Authenticated subject=%s path=%s", request.state.auth.subject, request.url.path)
        return await call_next(request)
