"""Shared fixtures for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import pytest
from starlette.responses import JSONResponse
from starlette.routing import Route, Router

from operator_host.config import Settings
from operator_host.models import LoadedOperator, OperatorDescriptor, OperatorMetadata


ROUTES_TEMPLATE = '''
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Router

CALLS = []


async def handle(request: Request) -> JSONResponse:
    CALLS.append(request.url.path)
    info = getattr(request.state, "operator_info", None) or {{}}
    return JSONResponse(
        {{"handled_by": {name!r}, "operator_info": info.get("name")}}
    )


router = Router(routes=[{routes}])
'''


def make_openapi(paths: Iterable[str], method: str = "post") -> Dict[str, Any]:
    return {
        "paths": {
            path: {
                method: {
                    "summary": f"Call {path}",
                    "responses": {"200": {"description": "ok"}},
                }
            }
            for path in paths
        }
    }


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(operators_dir=str(tmp_path), host="127.0.0.1", port=8080)


@pytest.fixture
def write_operator() -> Callable[..., Path]:
    """Write a ``<name>.operator.py`` plus its routes module under *root*."""

    def _write(
        root: Path,
        category: str,
        name: str,
        paths: Iterable[str] = ("/run",),
        version: str = "1.0.0",
        declare_category: bool = True,
        config: Optional[Dict[str, Any]] = None,
    ) -> Path:
        directory = root / category if category else root
        directory.mkdir(parents=True, exist_ok=True)
        paths = list(paths)

        if config is None:
            info: Dict[str, Any] = {
                "name": name,
                "title": name.replace("-", " ").title(),
                "description": f"{name} operator",
                "version": version,
            }
            if declare_category:
                info["category"] = category
            config = {
                "info": info,
                "routes": f"./{name}.routes.py",
                "openapi": make_openapi(paths),
            }

        descriptor_path = directory / f"{name}.operator.py"
        descriptor_path.write_text(f"OPERATOR = {config!r}\n")

        routes = ", ".join(
            f'Route({path!r}, handle, methods=["GET", "POST"])' for path in paths
        )
        (directory / f"{name}.routes.py").write_text(
            ROUTES_TEMPLATE.format(name=name, routes=routes)
        )
        return descriptor_path

    return _write


@pytest.fixture
def make_loaded() -> Callable[..., LoadedOperator]:
    """Build an in-memory ``LoadedOperator`` without touching the filesystem."""

    def _make(
        name: str,
        category: str = "text-processing",
        paths: Iterable[str] = ("/run",),
        version: str = "1.0.0",
        components: Optional[Dict[str, Any]] = None,
        title: str = "",
    ) -> LoadedOperator:
        openapi = make_openapi(paths)
        if components:
            openapi["components"] = components

        async def handle(request):
            return JSONResponse({"handled_by": name})

        router = Router(routes=[Route(path, handle, methods=["GET", "POST"]) for path in paths])
        descriptor = OperatorDescriptor(
            name=name,
            routes=f"./{name}.routes.py",
            openapi=openapi,
            title=title,
            description=f"{name} operator",
            version=version,
            category=category,
        )
        return LoadedOperator(
            descriptor=descriptor,
            router=router,
            metadata=OperatorMetadata(
                descriptor_path=f"/operators/{category}/{name}.operator.py",
                routes_path=f"/operators/{category}/{name}.routes.py",
                category=category,
                file_name=f"{name}.operator.py",
            ),
        )

    return _make
