"""OpenAPI fragment helpers: operation listing, schema extraction and $ref lookup."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple


logger = logging.getLogger(__name__)

HTTP_METHODS = {"get", "post", "put", "patch", "delete", "head", "options", "trace"}
SUCCESS_STATUSES = ("200", "201", "default")

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_MISSING = object()


def empty_object_schema() -> Dict[str, Any]:
    return {"type": "object", "properties": {}}


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def resolve_pointer(document: Any, ref: str) -> Tuple[bool, Any]:
    """Look up a local ``#/...`` JSON pointer in *document*.

    Returns ``(True, value)`` when found and ``(False, None)`` otherwise.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return False, None

    current = document
    for token in ref[2:].split("/"):
        part = _unescape(token)
        if isinstance(current, Mapping):
            value = current.get(part, _MISSING)
            # Python descriptors often use int status codes as keys.
            if value is _MISSING and part.isdigit():
                value = current.get(int(part), _MISSING)
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            value = current[int(part)]
        else:
            value = _MISSING
        if value is _MISSING:
            return False, None
        current = value
    return True, current


@dataclass(frozen=True)
class FragmentOperation:
    path: str
    method: str
    operation: Dict[str, Any]

    @property
    def identifier(self) -> str:
        operation_id = self.operation.get("operationId")
        if not operation_id:
            operation_id = f"{self.method}{_NON_ALNUM.sub('', self.path)}"
        return operation_id.lower()


class OperationSchemaExtractor:
    """Reads operations and their JSON schemas out of one operator's OpenAPI fragment."""

    def __init__(self, fragment: Mapping[str, Any]) -> None:
        self.fragment = fragment

    def extract_operations(self) -> List[FragmentOperation]:
        operations: List[FragmentOperation] = []
        for path, path_item in (self.fragment.get("paths") or {}).items():
            for method, operation in (path_item or {}).items():
                if method.lower() not in HTTP_METHODS or not isinstance(operation, Mapping):
                    continue
                operations.append(
                    FragmentOperation(path=path, method=method.lower(), operation=dict(operation))
                )
        return operations

    def input_schema(self, operation: FragmentOperation) -> Dict[str, Any]:
        request_body = operation.operation.get("requestBody") or {}
        schema = self._json_schema(request_body)
        if schema is None:
            return empty_object_schema()
        return self.resolve(schema)

    def output_schema(self, operation: FragmentOperation) -> Dict[str, Any]:
        responses = operation.operation.get("responses") or {}
        success = None
        for status in SUCCESS_STATUSES:
            success = responses.get(status)
            if success is None and status.isdigit():
                success = responses.get(int(status))
            if success is not None:
                break
        if isinstance(success, Mapping) and "$ref" in success:
            success = self.resolve(success)
        if not success:
            return empty_object_schema()

        schema = self._json_schema(success)
        if schema is None:
            return empty_object_schema()
        return self.resolve(schema)

    def resolve(self, schema: Any) -> Dict[str, Any]:
        if not isinstance(schema, Mapping):
            return empty_object_schema()
        ref = schema.get("$ref")
        if ref is None:
            return dict(schema)

        found, value = resolve_pointer(self.fragment, ref)
        if not found or not isinstance(value, Mapping):
            logger.warning("Unable to resolve $ref: %s", ref)
            return empty_object_schema()
        return dict(value)

    def _json_schema(self, container: Mapping[str, Any]) -> Any:
        content = container.get("content") or {}
        json_body = content.get("application/json") or {}
        return json_body.get("schema")
