"""Logging setup and secret redaction for settings dumps."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable


_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|apikey|password|authorization)", re.IGNORECASE)
REDACTED = "***REDACTED***"

# Request lines are already emitted by RequestLoggingMiddleware.
_QUIET_LOGGERS = ("uvicorn.access",)


def configure_logging(level: str, quiet: Iterable[str] = _QUIET_LOGGERS) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: _redact_value(key, value) for key, value in payload.items()}


def _redact_value(key: str, value: Any) -> Any:
    if _SENSITIVE_KEYS.search(key):
        return REDACTED
    if isinstance(value, dict):
        return redact_payload(value)
    if isinstance(value, list):
        return [redact_payload(item) if isinstance(item, dict) else item for item in value]
    return value
