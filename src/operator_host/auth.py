"""API key validation against the external identity service."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx


logger = logging.getLogger(__name__)

PUBLIC_PATHS = {"/", "/health", "/api/docs", "/api/docs.json", "/api/operators"}
_DEFINITION_PATH = re.compile(r"^/api/operators/[^/]+/[^/]+/definition$")


class AuthenticationError(Exception):
    pass


@dataclass
class AuthContext:
    subject: str
    key_id: Optional[str]
    permissions: list
    claims: Dict[str, Any]


def extract_api_key(headers: Mapping[str, str]) -> Optional[str]:
    """Read the key from an ``ApiKey`` header or ``Authorization: ApiKey <key>``.

    Bearer tokens are left alone so operators can use their own auth schemes.
    """
    direct = headers.get("apikey")
    if direct:
        return direct.strip()
    authorization = headers.get("authorization", "")
    if authorization.startswith("ApiKey "):
        return authorization[len("ApiKey "):].strip() or None
    return None


def is_public_path(path: str) -> bool:
    if path in PUBLIC_PATHS or path.startswith("/api/docs/"):
        return True
    if _DEFINITION_PATH.match(path):
        return True
    return not path.startswith("/api/")


class ApiKeyVerifier:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10,
        cache_seconds: int = 300,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.cache_seconds = cache_seconds
        self.transport = transport
        self._cache: Dict[str, Tuple[float, AuthContext]] = {}

    async def verify(self, api_key: str) -> AuthContext:
        cached = self._cache.get(api_key)
        if cached and time.time() - cached[0] < self.cache_seconds:
            return cached[1]

        url = f"{self.base_url}/api/api-keys/validate"
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
            response = await client.post(url, json={"apiKey": api_key})
        if response.status_code != 200:
            raise AuthenticationError(f"API key validation failed ({response.status_code})")

        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data.get("valid"):
            reason = data.get("reason") if isinstance(data, dict) else None
            raise AuthenticationError(reason or "API key rejected")

        key_info = data.get("keyInfo") or {}
        owner = key_info.get("owner") or {}
        context = AuthContext(
            subject=str(owner.get("id") or "unknown"),
            key_id=key_info.get("id"),
            permissions=list(key_info.get("permissions") or []),
            claims=data,
        )
        self._cache[api_key] = (time.time(), context)
        return context
