"""In-memory operator registry with derived endpoint and category indices."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from .errors import RegistrationError
from .models import Endpoint, LoadedOperator, RegisteredOperator, RegistryStats


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "default"


class OperatorRegistry:
    def __init__(self) -> None:
        self._operators: Dict[str, RegisteredOperator] = {}
        self._endpoints: Dict[str, Endpoint] = {}
        self._categories: Set[str] = set()
        self._load_errors = 0

        self._operator_list: Optional[List[RegisteredOperator]] = None
        self._category_index: Dict[str, List[RegisteredOperator]] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def register(self, loaded: LoadedOperator) -> str:
        """Store *loaded* under ``category/name`` and return that id.

        Re-registering an id replaces the previous record and its endpoints.
        """
        descriptor = loaded.descriptor
        try:
            self._validate(loaded)
        except RegistrationError as exc:
            self._load_errors += 1
            logger.error("Operator registration failed: %s (%s)", exc.operator_name or "unknown", exc)
            raise

        if not descriptor.category:
            descriptor = dataclasses.replace(descriptor, category=DEFAULT_CATEGORY)
        operator_id = self._generate_id(descriptor.name, descriptor.category)

        record = RegisteredOperator(
            id=operator_id,
            descriptor=descriptor,
            router=loaded.router,
            metadata=loaded.metadata,
            registered_at=datetime.now(timezone.utc).isoformat(),
        )

        endpoints = {
            key: endpoint
            for key, endpoint in self._endpoints.items()
            if endpoint.operator_id != operator_id
        }
        for path, method, spec in descriptor.operations():
            endpoint = Endpoint(
                operator_id=operator_id,
                operator_name=descriptor.name,
                path=path,
                method=method.upper(),
                spec=spec,
                category=descriptor.category,
            )
            endpoints[endpoint.key] = endpoint

        operators = dict(self._operators)
        operators[operator_id] = record
        self._operators = operators
        self._endpoints = endpoints
        self._categories = self._categories | {descriptor.category}
        self._invalidate_cache()

        logger.debug(
            "Registered operator %s (id=%s paths=%d)",
            descriptor.name,
            operator_id,
            len(descriptor.paths),
        )
        return operator_id

    def clear(self) -> None:
        self._operators = {}
        self._endpoints = {}
        self._categories = set()
        self._load_errors = 0
        self._invalidate_cache()
        logger.debug("Operator registry cleared")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, operator_id: str) -> Optional[RegisteredOperator]:
        return self._operators.get(operator_id)

    def get_routes(self, operator_id: str) -> Optional[Callable[..., Any]]:
        record = self._operators.get(operator_id)
        return record.router if record else None

    def get_all(self) -> List[RegisteredOperator]:
        if self._operator_list is None:
            self._operator_list = list(self._operators.values())
        return self._operator_list

    def get_by_category(self, category: str) -> List[RegisteredOperator]:
        cached = self._category_index.get(category)
        if cached is not None:
            return cached
        operators = [op for op in self.get_all() if op.descriptor.category == category]
        self._category_index[category] = operators
        return operators

    def get_endpoints(self) -> Mapping[str, Endpoint]:
        return MappingProxyType(self._endpoints)

    def get_stats(self) -> RegistryStats:
        return RegistryStats(
            total_operators=len(self._operators),
            total_endpoints=len(self._endpoints),
            total_categories=len(self._categories),
            load_errors=self._load_errors,
            categories=sorted(self._categories),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, loaded: LoadedOperator) -> None:
        descriptor = getattr(loaded, "descriptor", None)
        name = getattr(descriptor, "name", None)
        if not name:
            raise RegistrationError("Operator requires info.name")
        paths = getattr(descriptor, "paths", None)
        if not isinstance(paths, Mapping) or not paths:
            raise RegistrationError("Operator requires openapi.paths", operator_name=name)
        for path, path_item in paths.items():
            if not isinstance(path_item, Mapping):
                raise RegistrationError(
                    f"openapi.paths[{path!r}] must be a mapping of operations", operator_name=name
                )

    def _generate_id(self, name: str, category: str) -> str:
        return f"{category or DEFAULT_CATEGORY}/{name}"

    def _invalidate_cache(self) -> None:
        self._category_index = {}
        self._operator_list = None
