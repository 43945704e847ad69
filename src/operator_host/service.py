"""Application service: orchestrates discovery, registration, docs and routing."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.requests import Request

from .config import Settings
from .discovery import OperatorDiscovery
from .docs import DocumentGenerator
from .errors import RegistrationError, ServiceNotInitializedError
from .models import LoadedOperator, OperatorSummary, RegisteredOperator
from .openapi import FragmentOperation, OperationSchemaExtractor
from .registry import OperatorRegistry
from .router import RouterBuilder

logger = logging.getLogger(__name__)

DEFINITION_TYPE = "custom-operator"
DEFINITION_VERSION = "1.0.0"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_CACHE_TTL_SECONDS = 3600

_HEADER_LIST_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {"key": {"type": "string"}, "value": {"type": "string"}},
    },
}


class ApplicationService:
    """
    Owns the registry and coordinates the operator lifecycle.

    ``initialize`` must complete before ``apply_to`` mounts routes on an app;
    ``reload`` rebuilds the registry from disk but leaves routes that are
    already mounted in place.
    """

    def __init__(
        self,
        settings: Settings,
        discovery: Optional[OperatorDiscovery] = None,
        docs_generator: Optional[DocumentGenerator] = None,
    ) -> None:
        self.settings = settings
        self.registry = OperatorRegistry()
        self.discovery = discovery or OperatorDiscovery()
        self.router = RouterBuilder()
        self.docs_generator = docs_generator or DocumentGenerator(self._docs_base_config())
        self.initialized = False
        self._openapi_document: Dict[str, Any] = {}

    def initialize(self, operators_dir: str | Path) -> None:
        logger.info("Initializing application service from %s", operators_dir)
        discovered = self.discovery.scan(operators_dir)
        self._register_all(self.registry, discovered)
        self._openapi_document = self.docs_generator.generate(self.registry)
        self.initialized = True
        logger.info("Application service initialized")

    def apply_to(self, app: Starlette) -> "ApplicationService":
        if not self.initialized:
            raise ServiceNotInitializedError(
                "Application service is not initialized; call initialize() first"
            )
        self.router.apply_routes(app, self.registry)
        return self

    def reload(self, operators_dir: str | Path) -> None:
        """Rebuild operators from disk.

        The new registry and document replace the current ones only after the
        scan succeeds; a failing scan leaves the service as it was.
        """
        logger.info("Reloading operators")
        self.discovery.reset()
        discovered = self.discovery.scan(operators_dir)

        registry = OperatorRegistry()
        self._register_all(registry, discovered)
        document = self.docs_generator.generate(registry)

        self.registry = registry
        self._openapi_document = document
        self.initialized = True
        logger.info("Operators reloaded")

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_openapi_document(self) -> Dict[str, Any]:
        return self._openapi_document

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.registry.get_stats().model_dump(),
            **self.router.get_stats(),
            "discovery_errors": self.discovery.error_count,
            "initialized": self.initialized,
        }

    def get_operators(self) -> List[OperatorSummary]:
        return [self._summarize(operator) for operator in self.registry.get_all()]

    def get_operators_by_category(self, category: str) -> List[OperatorSummary]:
        return [self._summarize(operator) for operator in self.registry.get_by_category(category)]

    def get_operator_definition(
        self, operator_id: str, request: Optional[Request] = None
    ) -> Optional[Dict[str, Any]]:
        operator = self.registry.get(operator_id)
        if not operator:
            return None

        descriptor = operator.descriptor
        base_url = self._base_url(request) if request is not None else ""
        extractor = OperationSchemaExtractor(descriptor.openapi)

        return {
            "type": DEFINITION_TYPE,
            "version": DEFINITION_VERSION,
            "operator": {
                "identifier": descriptor.name,
                "name": descriptor.title,
                "description": descriptor.description,
                "version": descriptor.version,
                "category": descriptor.category,
                "tags": list(descriptor.tags),
                "author": descriptor.author or self.settings.service_name,
                "configuration": {"schema": self._operator_configuration_schema(base_url)},
                "methods": [
                    self._method_definition(extractor, operation, descriptor.base_path, order)
                    for order, operation in enumerate(extractor.extract_operations())
                ],
                "metadata": {
                    "source": self.settings.service_name,
                    "exportedAt": datetime.now(timezone.utc).isoformat(),
                    "exportedBy": self.settings.service_name,
                    "originalOperatorId": operator_id,
                    "registeredAt": operator.registered_at,
                },
            },
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _register_all(self, registry: OperatorRegistry, discovered: List[LoadedOperator]) -> None:
        success_count = 0
        error_count = 0
        for loaded in discovered:
            try:
                registry.register(loaded)
                success_count += 1
            except RegistrationError as exc:
                error_count += 1
                logger.error("Skipping operator %s: %s", exc.operator_name or "unknown", exc)

        logger.info(
            "Operators loaded: %d succeeded, %d failed", success_count, error_count
        )
        if success_count == 0:
            logger.warning("No operators were registered")

    def _summarize(self, operator: RegisteredOperator) -> OperatorSummary:
        descriptor = operator.descriptor
        sub_paths = list(descriptor.paths)
        return OperatorSummary(
            id=operator.id,
            name=descriptor.name,
            title=descriptor.title,
            description=descriptor.description,
            version=descriptor.version,
            category=descriptor.category,
            endpoints=[descriptor.base_path + path for path in sub_paths],
            endpoint_count=len(sub_paths),
            registered_at=operator.registered_at,
        )

    def _base_url(self, request: Request) -> str:
        headers = request.headers
        protocol = headers.get("x-forwarded-proto") or request.url.scheme or "http"
        host = (
            headers.get("x-forwarded-host")
            or headers.get("host")
            or f"{self.settings.host}:{self.settings.port}"
        )
        return f"{protocol}://{host}"

    def _operator_configuration_schema(self, base_url: str) -> Dict[str, Any]:
        return {
            "type": "api",
            "properties": {
                "serverUrl": {
                    "type": "string",
                    "title": "Server URL",
                    "required": True,
                    "description": "Base address of the API server",
                    "default": base_url,
                },
                "timeout": {
                    "type": "number",
                    "title": "Global timeout",
                    "default": DEFAULT_TIMEOUT_MS,
                    "description": "Request timeout in milliseconds",
                },
                "headers": {
                    **_HEADER_LIST_SCHEMA,
                    "title": "Global headers",
                    "description": "Headers applied to every request",
                },
                "retryPolicy": {
                    "type": "object",
                    "title": "Global retry policy",
                    "properties": {
                        "intervalMs": {"type": "number", "title": "Retry interval", "default": 1000},
                        "maxAttempts": {"type": "number", "title": "Max attempts", "default": 3},
                    },
                },
            },
        }

    def _method_definition(
        self,
        extractor: OperationSchemaExtractor,
        operation: FragmentOperation,
        base_path: str,
        order: int,
    ) -> Dict[str, Any]:
        http_method = operation.method.upper()
        endpoint = base_path + operation.path
        caching = {"enabled": False, "ttlSeconds": DEFAULT_CACHE_TTL_SECONDS}
        identifier = operation.identifier

        return {
            "name": operation.operation.get("summary") or identifier,
            "identifier": identifier,
            "description": operation.operation.get("description") or "",
            "inputSchema": extractor.input_schema(operation),
            "outputSchema": extractor.output_schema(operation),
            "configuration": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "method": {"type": "string", "enum": [http_method], "default": http_method},
                        "endpoint": {"type": "string", "default": endpoint},
                        "headers": {**_HEADER_LIST_SCHEMA, "title": "Request headers", "default": []},
                        "caching": {
                            "type": "object",
                            "properties": {
                                "enabled": {"type": "boolean", "default": False},
                                "ttlSeconds": {"type": "number", "default": DEFAULT_CACHE_TTL_SECONDS},
                            },
                        },
                    },
                },
                "values": {
                    "method": http_method,
                    "endpoint": endpoint,
                    "headers": [],
                    "caching": caching,
                },
            },
            "isDefault": order == 0,
            "order": order,
            "status": "ACTIVE",
        }

    def _docs_base_config(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "info": {
                "title": f"{self.settings.service_name} API",
                "version": self.settings.service_version,
                "description": "Operators discovered and served by operator-host",
            }
        }
        if self.settings.docs_server_url:
            config["servers"] = [{"url": self.settings.docs_server_url}]
        return config
