"""Starlette application setup for the operator host."""

from __future__ import annotations

import logging
from typing import Optional

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .auth import ApiKeyVerifier
from .config import Settings
from .logging import redact_payload
from .middleware import ApiKeyAuthMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
from .responses import error_response
from .routes import build_routes
from .service import ApplicationService

logger = logging.getLogger(__name__)


def build_app(settings: Settings, service: Optional[ApplicationService] = None) -> Starlette:
    """Create the app, load operators from ``settings.operators_dir`` and mount them."""
    logger.info("Starting %s with settings=%s", settings.service_name, redact_payload(settings.model_dump()))
    service = service or ApplicationService(settings)
    service.initialize(settings.operators_dir)

    app = Starlette(
        debug=False,
        routes=build_routes(service),
        middleware=_middleware(settings),
        exception_handlers={
            HTTPException: _http_exception_handler,
            Exception: _unhandled_exception_handler,
        },
    )
    app.state.service = service
    service.apply_to(app)

    stats = service.get_stats()
    logger.info(
        "Operator host ready: operators=%d endpoints=%d",
        stats["total_operators"],
        stats["total_endpoints"],
    )
    return app


def _middleware(settings: Settings) -> list[Middleware]:
    verifier: Optional[ApiKeyVerifier] = None
    if settings.auth_enabled:
        verifier = ApiKeyVerifier(
            base_url=settings.auth_base_url,
            timeout_seconds=settings.auth_timeout_seconds,
            cache_seconds=settings.auth_cache_seconds,
        )
        logger.info("API key authentication enabled")
    else:
        logger.info("API key authentication disabled")

    origins = settings.cors_origin_list()
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(SecurityHeadersMiddleware),
        Middleware(RequestLoggingMiddleware),
        Middleware(ApiKeyAuthMiddleware, verifier=verifier),
    ]


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code == 404:
        logger.warning("404 Not Found: %s %s", request.method, request.url.path)
        return error_response(
            "The requested resource does not exist",
            code="NOT_FOUND",
            details={"path": request.url.path, "method": request.method},
            status_code=404,
        )
    return error_response(str(exc.detail), code="HTTP_ERROR", status_code=exc.status_code)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response("Internal server error", code="INTERNAL_ERROR", status_code=500)
