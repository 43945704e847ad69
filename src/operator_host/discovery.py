"""Filesystem discovery of operator descriptor and route modules."""

from __future__ import annotations

import hashlib
import importlib.machinery
import importlib.util
import logging
import sys
from itertools import count
from pathlib import Path
from types import CodeType, ModuleType
from typing import Iterable, List, Optional, Set, Tuple

from .errors import DescriptorError, DirectoryNotFoundError, OperatorLoadError
from .models import LoadedOperator, OperatorDescriptor, OperatorMetadata


logger = logging.getLogger(__name__)

OPERATOR_SUFFIX = ".operator.py"
DEFAULT_EXCLUDE_PATTERNS = ("__pycache__", ".git", "node_modules", "test", "__test__")

_load_counter = count()


class _SourceOnlyLoader(importlib.machinery.SourceFileLoader):
    """Source loader that neither reads nor writes ``__pycache__`` bytecode."""

    def get_code(self, fullname: str) -> CodeType:
        return self.source_to_code(self.get_data(self.path), self.path)


def load_fresh(path: Path) -> ModuleType:
    """Execute the Python file at *path* as a brand new module object.

    Neither ``sys.modules`` nor ``__pycache__`` is consulted, so edits on disk
    are always picked up.
    """
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    module_name = f"operator_host_plugins.m{digest}_{next(_load_counter)}"
    spec = importlib.util.spec_from_file_location(
        module_name, path, loader=_SourceOnlyLoader(module_name, str(path))
    )
    if spec is None or spec.loader is None:
        raise OperatorLoadError(f"Could not create module spec for {path}")

    module = importlib.util.module_from_spec(spec)
    # Registered only while executing so dataclasses and typing lookups work.
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise OperatorLoadError(f"Failed to execute {path}: {exc}") from exc
    finally:
        sys.modules.pop(module_name, None)
    return module


class OperatorDiscovery:
    def __init__(
        self,
        exclude_patterns: Optional[Iterable[str]] = None,
        suffix: str = OPERATOR_SUFFIX,
    ) -> None:
        self.exclude_patterns = tuple(
            DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns
        )
        self.suffix = suffix
        self.root: Optional[Path] = None
        self.errors: List[Tuple[str, str]] = []
        self._discovered: Set[str] = set()

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def scan(self, directory: str | Path) -> List[LoadedOperator]:
        root = Path(directory).resolve()
        if not root.is_dir():
            logger.error("Operator discovery failed: %s", directory)
            raise DirectoryNotFoundError(str(directory))

        logger.info("Scanning operators directory: %s", root)
        self.root = root
        operators: List[LoadedOperator] = []
        self._scan_recursive(root, operators)
        logger.info("Operator discovery complete: %d operator(s) found", len(operators))
        return operators

    def load_operator(self, file_path: str | Path) -> Optional[LoadedOperator]:
        path = Path(file_path).resolve()
        key = str(path)
        if key in self._discovered:
            logger.debug("Skipping already loaded operator: %s", path)
            return None

        try:
            module = load_fresh(path)
            descriptor = OperatorDescriptor.from_mapping(
                getattr(module, "OPERATOR", None),
                default_category=self._extract_category(path),
            )
        except (OperatorLoadError, DescriptorError) as exc:
            self._record_error(path, str(exc))
            logger.error("Invalid operator definition %s: %s", path, exc)
            return None

        routes_path = (path.parent / descriptor.routes).resolve()
        try:
            routes_module = load_fresh(routes_path)
        except OperatorLoadError as exc:
            self._record_error(path, str(exc))
            logger.error("Failed to load routes %s: %s", routes_path, exc)
            return None

        router = getattr(routes_module, "router", None)
        if not callable(router):
            self._record_error(path, "routes module does not define a router")
            logger.error("Routes module %s does not define a router", routes_path)
            return None

        self._discovered.add(key)
        logger.debug(
            "Loaded operator %s (file=%s routes=%s category=%s)",
            descriptor.name,
            path.name,
            descriptor.routes,
            descriptor.category,
        )
        return LoadedOperator(
            descriptor=descriptor,
            router=router,
            metadata=OperatorMetadata(
                descriptor_path=key,
                routes_path=str(routes_path),
                category=descriptor.category,
                file_name=path.name,
            ),
        )

    def reset(self) -> None:
        self._discovered.clear()
        self.errors = []

    def _scan_recursive(self, directory: Path, operators: List[LoadedOperator]) -> None:
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if self._should_exclude(entry.name):
                continue
            if entry.is_dir():
                self._scan_recursive(entry, operators)
            elif entry.is_file() and entry.name.endswith(self.suffix):
                loaded = self.load_operator(entry)
                if loaded:
                    operators.append(loaded)

    def _should_exclude(self, name: str) -> bool:
        if name.startswith("."):
            return True
        return any(pattern in name for pattern in self.exclude_patterns)

    def _extract_category(self, path: Path) -> str:
        if self.root is None:
            return ""
        try:
            relative = path.relative_to(self.root)
        except ValueError:
            return ""
        parts = relative.parts
        return parts[0] if len(parts) >= 2 else ""

    def _record_error(self, path: Path, reason: str) -> None:
        self.errors.append((str(path), reason))
