"""Mounts registered operator routers onto the Starlette application."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Tuple

from starlette.applications import Starlette
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .models import OperatorDescriptor, RegisteredOperator
from .registry import OperatorRegistry


logger = logging.getLogger(__name__)


class OperatorTimingMiddleware:
    """Observes requests routed to one operator and logs their duration."""

    def __init__(self, app: ASGIApp, descriptor: OperatorDescriptor) -> None:
        self.app = app
        self.descriptor = descriptor

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status: Dict[str, int] = {}
        state = dict(scope.get("state") or {})
        state["operator_info"] = self.descriptor.info()
        scope = {**scope, "state": state}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            self._trace(scope, status.get("code", 500), started)

    def _trace(self, scope: Scope, status_code: int, started: float) -> None:
        try:
            if not logger.isEnabledFor(logging.DEBUG):
                return
            duration_ms = (time.perf_counter() - started) * 1000
            logger.debug(
                "Operator request completed: %s %s %s %s %.2fms",
                self.descriptor.name,
                scope.get("method"),
                scope.get("path"),
                status_code,
                duration_ms,
            )
        except Exception:  # noqa: BLE001
            pass


class RouterBuilder:
    def __init__(self) -> None:
        self._handler_cache: Dict[str, Tuple[Callable[..., Any], OperatorTimingMiddleware]] = {}
        self.routes_count = 0
        self.operators_count = 0
        self.errors = 0

    def apply_routes(self, app: Starlette, registry: OperatorRegistry) -> None:
        operators = registry.get_all()
        logger.info("Applying routes for %d operator(s)", len(operators))
        for operator in operators:
            self._register_operator_routes(app, operator, registry)
        logger.info("Route mounting complete: %d route(s) registered", self.routes_count)

    def get_stats(self) -> Dict[str, int]:
        return {
            "routes_count": self.routes_count,
            "operators_count": self.operators_count,
            "errors": self.errors,
        }

    def clear_cache(self) -> None:
        self._handler_cache.clear()
        logger.debug("Router handler cache cleared")

    def _register_operator_routes(
        self, app: Starlette, operator: RegisteredOperator, registry: OperatorRegistry
    ) -> None:
        descriptor = operator.descriptor
        try:
            router = registry.get_routes(operator.id)
            if router is None:
                logger.warning("No router found for operator: %s", descriptor.name)
                return

            base_path = descriptor.base_path
            app.mount(base_path, app=self._wrap_router(router, descriptor), name=operator.id)
            self.routes_count += 1
            self.operators_count += 1
            logger.debug("Mounted operator %s at %s", descriptor.name, base_path)
        except Exception as exc:
            self.errors += 1
            logger.error("Failed to mount operator %s: %s", descriptor.name, exc)

    def _wrap_router(
        self, router: Callable[..., Any], descriptor: OperatorDescriptor
    ) -> OperatorTimingMiddleware:
        cached = self._handler_cache.get(descriptor.identity)
        if cached and cached[0] is router:
            return cached[1]

        wrapped = OperatorTimingMiddleware(router, descriptor)
        self._handler_cache[descriptor.identity] = (router, wrapped)
        return wrapped
