"""JSON transformer routes."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Router

from operator_host.responses import error_response, read_json_object, success_response


async def filter_json(request: Request) -> JSONResponse:
    body = await read_json_object(request)
    if body is None:
        return error_response("Request body must be a JSON object", code="VALIDATION_ERROR")
    data = body.get("data")
    fields = body.get("fields")
    if not isinstance(data, dict) or not isinstance(fields, list):
        return error_response("data must be an object and fields a list", code="VALIDATION_ERROR")

    result = {field: data[field] for field in fields if field in data}
    return success_response(
        {"result": result, "fieldsCount": len(result), "originalFields": len(data)}
    )


async def merge_json(request: Request) -> JSONResponse:
    body = await read_json_object(request)
    if body is None:
        return error_response("Request body must be a JSON object", code="VALIDATION_ERROR")
    objects = body.get("objects")
    if not isinstance(objects, list):
        return error_response("objects must be a list", code="VALIDATION_ERROR")

    result = {}
    for item in objects:
        if isinstance(item, dict):
            result.update(item)
    return success_response(
        {"result": result, "mergedCount": len(objects), "totalFields": len(result)}
    )


router = Router(
    routes=[
        Route("/filter", filter_json, methods=["POST"]),
        Route("/merge", merge_json, methods=["POST"]),
    ]
)
