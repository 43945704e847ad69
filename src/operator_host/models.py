"""Internal models for operator descriptors and registry records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from .errors import DescriptorError
from .openapi import HTTP_METHODS


DEFAULT_VERSION = "1.0.0"


@dataclass(frozen=True)
class OperatorDescriptor:
    """Static declaration of one operator, taken from its ``OPERATOR`` mapping."""

    name: str
    routes: str
    openapi: Dict[str, Any]
    title: str = ""
    description: str = ""
    version: str = DEFAULT_VERSION
    category: str = ""
    tags: List[str] = field(default_factory=list)
    author: str = ""

    @classmethod
    def from_mapping(
        cls, config: Any, default_category: str = ""
    ) -> "OperatorDescriptor":
        """Validate the plugin contract and build a descriptor.

        Raises ``DescriptorError`` when ``info.name``, the ``routes`` reference
        or ``openapi.paths`` is missing.
        """
        if not isinstance(config, Mapping):
            raise DescriptorError("Operator definition must be a mapping")

        info = config.get("info")
        if not isinstance(info, Mapping) or not info.get("name"):
            raise DescriptorError("Operator definition requires info.name")

        routes = config.get("routes")
        if not isinstance(routes, str) or not routes:
            raise DescriptorError("Operator definition requires a routes reference")

        openapi = config.get("openapi")
        if not isinstance(openapi, Mapping) or not isinstance(openapi.get("paths"), Mapping):
            raise DescriptorError("Operator definition requires openapi.paths")
        if not openapi["paths"]:
            raise DescriptorError("Operator definition declares no openapi paths")
        for path, path_item in openapi["paths"].items():
            if not isinstance(path_item, Mapping):
                raise DescriptorError(f"openapi.paths[{path!r}] must be a mapping of operations")

        return cls(
            name=str(info["name"]),
            routes=routes,
            openapi=dict(openapi),
            title=str(info.get("title") or ""),
            description=str(info.get("description") or ""),
            version=str(info.get("version") or DEFAULT_VERSION),
            category=str(info.get("category") or default_category or ""),
            tags=list(info.get("tags") or []),
            author=str(info.get("author") or ""),
        )

    @property
    def paths(self) -> Dict[str, Dict[str, Any]]:
        return self.openapi.get("paths") or {}

    def operations(self) -> Iterator[Tuple[str, str, Any]]:
        """Yield ``(path, method, spec)`` for HTTP method keys only.

        Path-level fields such as ``parameters`` or ``summary`` are skipped.
        """
        for path, path_item in self.paths.items():
            if not isinstance(path_item, Mapping):
                continue
            for method, spec in path_item.items():
                if isinstance(method, str) and method.lower() in HTTP_METHODS:
                    yield path, method.lower(), spec

    @property
    def components(self) -> Dict[str, Any]:
        return self.openapi.get("components") or {}

    @property
    def display_title(self) -> str:
        return self.title or self.name

    @property
    def identity(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def base_path(self) -> str:
        return f"/api/{self.category}/{self.name}"

    def info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "version": self.version,
            "category": self.category,
            "tags": list(self.tags),
            "author": self.author,
        }


@dataclass(frozen=True)
class OperatorMetadata:
    descriptor_path: str
    routes_path: str
    category: str
    file_name: str


@dataclass(frozen=True)
class LoadedOperator:
    descriptor: OperatorDescriptor
    router: Optional[Callable[..., Any]]
    metadata: OperatorMetadata


@dataclass(frozen=True)
class RegisteredOperator:
    id: str
    descriptor: OperatorDescriptor
    router: Optional[Callable[..., Any]]
    metadata: OperatorMetadata
    registered_at: str


@dataclass(frozen=True)
class Endpoint:
    operator_id: str
    operator_name: str
    path: str
    method: str
    spec: Dict[str, Any]
    category: str

    @property
    def key(self) -> str:
        return f"{self.operator_id}:{self.path}:{self.method}"


class RegistryStats(BaseModel):
    total_operators: int = 0
    total_endpoints: int = 0
    total_categories: int = 0
    load_errors: int = 0
    categories: List[str] = Field(default_factory=list)


class OperatorSummary(BaseModel):
    id: str
    name: str
    title: str
    description: str
    version: str
    category: str
    endpoints: List[str]
    endpoint_count: int
    registered_at: str
