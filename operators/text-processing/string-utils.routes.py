"""String utilities routes."""

import re

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Router

from operator_host.responses import error_response, read_json_object, success_response

_VALIDATORS = {
    "email": re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
    "phone": re.compile(r"^\+?[0-9][0-9 \-]{6,14}[0-9]$"),
    "url": re.compile(r"^https?://.+"),
}


async def format_string(request: Request) -> JSONResponse:
    body = await read_json_object(request)
    if body is None:
        return error_response("Request body must be a JSON object", code="VALIDATION_ERROR")
    value = body.get("input")
    if not isinstance(value, str):
        return error_response("input must be a string", code="VALIDATION_ERROR")

    options = body.get("options") or {}
    result = value
    transformations = []
    if options.get("trim", True):
        result = result.strip()
        transformations.append("trim")

    case = options.get("case")
    if case == "upper":
        result = result.upper()
        transformations.append("uppercase")
    elif case == "lower":
        result = result.lower()
        transformations.append("lowercase")
    elif case == "title":
        result = result.title()
        transformations.append("title-case")

    return success_response(
        {
            "result": result,
            "original": value,
            "transformations": transformations,
            "length": {"before": len(value), "after": len(result)},
        }
    )


async def validate_string(request: Request) -> JSONResponse:
    body = await read_json_object(request)
    if body is None:
        return error_response("Request body must be a JSON object", code="VALIDATION_ERROR")
    value = body.get("input") or ""
    if not isinstance(value, str) or not isinstance(body.get("type"), str):
        return error_response("input and type must be strings", code="VALIDATION_ERROR")
    pattern = _VALIDATORS.get(body.get("type"))
    if pattern is None:
        return error_response("Unsupported validation type", code="VALIDATION_ERROR")

    valid = bool(pattern.match(value))
    return success_response(
        {
            "valid": valid,
            "type": body["type"],
            "input": value,
            "message": "valid" if valid else "invalid",
        }
    )


router = Router(
    routes=[
        Route("/format", format_string, methods=["POST"]),
        Route("/validate", validate_string, methods=["POST"]),
    ]
)
