"""Built-in HTTP routes: dashboard, health, operator introspection and docs."""

from __future__ import annotations

import html
import json
import logging
import time
from typing import List

from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Route

from .responses import error_response, success_response
from .service import ApplicationService


logger = logging.getLogger(__name__)

_SWAGGER_UI_VERSION = "5"

_SWAGGER_UI_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/swagger-ui-dist@{version}/swagger-ui.css">
  <style>.swagger-ui .topbar {{ display: none }}</style>
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://cdn.jsdelivr.net/npm/swagger-ui-dist@{version}/swagger-ui-bundle.js"></script>
  <script>
    SwaggerUIBundle({{
      url: {spec_url},
      dom_id: "#swagger-ui",
      docExpansion: "list",
      filter: true,
      tryItOutEnabled: true
    }});
  </script>
</body>
</html>
"""


def build_routes(service: ApplicationService) -> List[Route]:
    started_at = time.time()
    settings = service.settings

    async def homepage(request: Request) -> HTMLResponse:
        stats = service.get_stats()
        base_url = f"{request.url.scheme}://{request.headers.get('host', request.url.netloc)}"
        cards = "\n".join(
            "<li><strong>{title}</strong> <code>{category}</code> {count} endpoint(s)"
            " <a href=\"{url}\">definition</a></li>".format(
                title=html.escape(op.title or op.name),
                category=html.escape(op.category),
                count=op.endpoint_count,
                url=html.escape(f"{base_url}/api/operators/{op.category}/{op.name}/definition"),
            )
            for op in service.get_operators()
        )
        page = (
            f"<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
            f"<title>{html.escape(settings.service_name)}</title></head><body>"
            f"<h1>{html.escape(settings.service_name)} v{html.escape(settings.service_version)}</h1>"
            f"<p>{stats['total_operators']} operator(s), {stats['total_endpoints']} endpoint(s), "
            f"{stats['routes_count']} mounted route(s)</p>"
            f"<ul>{cards}</ul>"
            f"<p><a href=\"/api/docs\">API docs</a> | <a href=\"/api/operators\">Operators</a></p>"
            f"</body></html>"
        )
        return HTMLResponse(page)

    async def health(_request: Request) -> JSONResponse:
        stats = service.get_stats()
        return success_response(
            {
                "status": "healthy",
                "uptime": round(time.time() - started_at, 3),
                "version": settings.service_version,
                "environment": settings.environment,
                "operators": {
                    "loaded": stats["total_operators"],
                    "categories": stats["categories"],
                    "endpoints": stats["total_endpoints"],
                },
            }
        )

    async def list_operators(_request: Request) -> JSONResponse:
        stats = service.get_stats()
        operators = [op.model_dump() for op in service.get_operators()]
        return success_response(
            {
                "operators": operators,
                "total": stats["total_operators"],
                "categories": stats["categories"],
                "endpoints": stats["total_endpoints"],
            }
        )

    async def list_category(request: Request) -> JSONResponse:
        category = request.path_params["category"]
        operators = service.get_operators_by_category(category)
        if not operators:
            return error_response(
                f'Category "{category}" does not exist or has no operators',
                code="CATEGORY_NOT_FOUND",
                status_code=404,
            )
        return success_response(
            {
                "category": category,
                "operators": [op.model_dump() for op in operators],
                "total": len(operators),
            }
        )

    async def operator_definition(request: Request) -> JSONResponse:
        operator_id = f"{request.path_params['category']}/{request.path_params['name']}"
        try:
            definition = service.get_operator_definition(operator_id, request)
        except Exception:
            logger.exception("Failed to build operator definition: %s", operator_id)
            return error_response(
                "Failed to build operator definition", code="INTERNAL_ERROR", status_code=500
            )
        if definition is None:
            return error_response(
                "Operator not found", code="OPERATOR_NOT_FOUND", status_code=404
            )
        return success_response(definition)

    async def stats(_request: Request) -> JSONResponse:
        return success_response(service.get_stats())

    async def docs_json(_request: Request) -> JSONResponse:
        return JSONResponse(
            service.get_openapi_document(),
            headers={"Access-Control-Allow-Origin": "*"},
        )

    async def docs_ui(_request: Request) -> Response:
        return HTMLResponse(
            _SWAGGER_UI_PAGE.format(
                title=html.escape(f"{settings.service_name} API"),
                version=_SWAGGER_UI_VERSION,
                spec_url=json.dumps("/api/docs.json"),
            )
        )

    return [
        Route("/", homepage, methods=["GET"]),
        Route("/health", health, methods=["GET"]),
        Route("/api/docs.json", docs_json, methods=["GET"]),
        Route("/api/docs", docs_ui, methods=["GET"]),
        Route("/api/stats", stats, methods=["GET"]),
        Route("/api/operators", list_operators, methods=["GET"]),
        Route("/api/operators/{category}", list_category, methods=["GET"]),
        Route("/api/operators/{category}/{name}/definition", operator_definition, methods=["GET"]),
    ]
