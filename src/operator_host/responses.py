"""Standard JSON response envelope shared by the host and its operators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.responses import JSONResponse


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def success_payload(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": True, "data": data, "timestamp": _timestamp()}
    if message:
        payload["message"] = message
    return payload


def error_payload(error: str, code: Optional[str] = None, details: Any = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": False, "error": error, "timestamp": _timestamp()}
    if code:
        payload["code"] = code
    if details is not None:
        payload["details"] = details
    return payload


def success_response(data: Any, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(success_payload(data, message), status_code=status_code)


def error_response(
    error: str,
    code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400,
) -> JSONResponse:
    return JSONResponse(error_payload(error, code, details), status_code=status_code)


async def read_json_object(request: Request) -> Optional[Dict[str, Any]]:
    """Return the request body as a dict, or ``None`` if it is not a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
