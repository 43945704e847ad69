"""Aggregated OpenAPI document generation."""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, List, Optional

from .openapi import HTTP_METHODS
from .registry import OperatorRegistry


logger = logging.getLogger(__name__)

_OPERATION_ID_CHARS = re.compile(r"[/{}]")

_ERROR_CONTENT = {
    "application/json": {"schema": {"$ref": "#/components/schemas/ErrorResponse"}}
}


def category_label(category: str) -> str:
    """``text-processing`` -> ``Text Processing``."""
    words = re.split(r"[-_\s]+", category or "")
    return " ".join(word.capitalize() for word in words if word) or "Default"


def default_operation_id(name: str, method: str, path: str) -> str:
    return f"{name}_{method}_{_OPERATION_ID_CHARS.sub('_', path)}"


class DocumentGenerator:
    def __init__(self, base_config: Optional[Dict[str, Any]] = None) -> None:
        self.base_config: Dict[str, Any] = {
            "openapi": "3.0.3",
            "info": {
                "title": "Operator Host API",
                "version": "1.0.0",
                "description": "Operators discovered and served by operator-host",
                "license": {"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
            },
            "servers": [{"url": "http://localhost:8080", "description": "Development server"}],
            **(base_config or {}),
        }

    def generate(self, registry: OperatorRegistry) -> Dict[str, Any]:
        document = copy.deepcopy(self.base_config)
        document["paths"] = self._generate_paths(registry)
        document["components"] = self._generate_components(registry)
        document["tags"] = self._generate_tags(registry)
        logger.debug(
            "OpenAPI document generated: operators=%d paths=%d",
            registry.get_stats().total_operators,
            len(document["paths"]),
        )
        return document

    def _generate_paths(self, registry: OperatorRegistry) -> Dict[str, Dict[str, Any]]:
        paths: Dict[str, Dict[str, Any]] = {}
        for operator in registry.get_all():
            descriptor = operator.descriptor
            for sub_path, source_item in descriptor.paths.items():
                full_path = descriptor.base_path + sub_path
                path_item = paths.setdefault(full_path, {})
                for key, value in source_item.items():
                    if not (isinstance(key, str) and key.lower() in HTTP_METHODS):
                        path_item[key] = copy.deepcopy(value)
                        continue
                    method = key.lower()
                    operation = copy.deepcopy(value) if isinstance(value, dict) else {}
                    operation["tags"] = operation.get("tags") or [
                        category_label(descriptor.category)
                    ]
                    operation["operationId"] = operation.get(
                        "operationId"
                    ) or default_operation_id(descriptor.name, method, sub_path)
                    path_item[method] = operation
        return paths

    def _generate_components(self, registry: OperatorRegistry) -> Dict[str, Any]:
        components: Dict[str, Any] = {
            "securitySchemes": {
                "ApiKeyAuth": {
                    "type": "apiKey",
                    "in": "header",
                    "name": "Authorization",
                    "description": "API key authentication, format: ApiKey <your-api-key>",
                }
            },
            "schemas": {
                "SuccessResponse": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean", "example": True},
                        "data": {"type": "object"},
                        "timestamp": {"type": "string", "format": "date-time"},
                    },
                },
                "ErrorResponse": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean", "example": False},
                        "error": {"type": "string"},
                        "code": {"type": "string"},
                        "timestamp": {"type": "string", "format": "date-time"},
                    },
                },
            },
            "responses": {
                "BadRequest": {"description": "Invalid request parameters", "content": _ERROR_CONTENT},
                "Unauthorized": {"description": "API key authentication failed", "content": _ERROR_CONTENT},
                "InternalServerError": {"description": "Internal server error", "content": _ERROR_CONTENT},
            },
        }

        # Later operators overwrite same-named components.
        for operator in registry.get_all():
            contributed = operator.descriptor.components
            for section in ("schemas", "responses"):
                if contributed.get(section):
                    components[section].update(copy.deepcopy(contributed[section]))
        return copy.deepcopy(components)

    def _generate_tags(self, registry: OperatorRegistry) -> List[Dict[str, str]]:
        tags: List[Dict[str, str]] = []
        for operator in registry.get_all():
            descriptor = operator.descriptor
            tags.append(
                {
                    "name": descriptor.display_title,
                    "description": descriptor.description
                    or f"{descriptor.display_title} operator",
                }
            )
        return tags
