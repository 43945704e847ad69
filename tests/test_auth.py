"""Tests for API key authentication."""

import asyncio

import httpx
import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from operator_host.auth import ApiKeyVerifier, AuthenticationError, extract_api_key, is_public_path
from operator_host.middleware import ApiKeyAuthMiddleware

VALID_KEY = "key-123"


def _validation_transport(calls):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        body = request.read().decode()
        if VALID_KEY in body:
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "data": {
                        "valid": True,
                        "keyInfo": {"id": "k1", "owner": {"id": "user-1"}, "permissions": ["run"]},
                    },
                },
            )
        return httpx.Response(200, json={"success": True, "data": {"valid": False, "reason": "revoked"}})

    return httpx.MockTransport(handler)


class TestHelpers:
    def test_extract_from_dedicated_header(self):
        assert extract_api_key({"apikey": " abc "}) == "abc"

    def test_extract_from_authorization(self):
        assert extract_api_key({"authorization": "ApiKey abc"}) == "abc"

    def test_bearer_is_ignored(self):
        assert extract_api_key({"authorization": "Bearer abc"}) is None

    @pytest.mark.parametrize(
        "path",
        ["/", "/health", "/api/docs", "/api/docs.json", "/api/operators", "/api/operators/a/b/definition"],
    )
    def test_public_paths(self, path):
        assert is_public_path(path)

    def test_operator_paths_are_protected(self):
        assert not is_public_path("/api/text-processing/string-utils/format")
        assert not is_public_path("/api/stats")


class TestVerifier:
    def test_valid_key_is_cached(self):
        calls = []
        verifier = ApiKeyVerifier("https://auth.example.com/", transport=_validation_transport(calls))

        first = asyncio.run(verifier.verify(VALID_KEY))
        second = asyncio.run(verifier.verify(VALID_KEY))

        assert first.subject == "user-1"
        assert first.permissions == ["run"]
        assert second is first
        assert len(calls) == 1
        assert str(calls[0].url) == "https://auth.example.com/api/api-keys/validate"

    def test_rejected_key(self):
        verifier = ApiKeyVerifier("https://auth.example.com", transport=_validation_transport([]))
        with pytest.raises(AuthenticationError, match="revoked"):
            asyncio.run(verifier.verify("other"))

    def test_non_200_response(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        verifier = ApiKeyVerifier("https://auth.example.com", transport=transport)
        with pytest.raises(AuthenticationError):
            asyncio.run(verifier.verify(VALID_KEY))


class TestMiddleware:
    @pytest.fixture
    def client(self):
        async def protected(request: Request) -> JSONResponse:
            return JSONResponse({"subject": request.state.auth.subject})

        async def health(_request: Request) -> JSONResponse:
            return JSONResponse({"ok": True})

        verifier = ApiKeyVerifier("https://auth.example.com", transport=_validation_transport([]))
        app = Starlette(
            routes=[
                Route("/api/misc/op/run", protected),
                Route("/health", health),
            ],
            middleware=[Middleware(ApiKeyAuthMiddleware, verifier=verifier)],
        )
        return TestClient(app)

    def test_missing_key(self, client):
        response = client.get("/api/misc/op/run")
        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_API_KEY"

    def test_invalid_key(self, client):
        response = client.get("/api/misc/op/run", headers={"Authorization": "ApiKey nope"})
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_valid_key(self, client):
        response = client.get("/api/misc/op/run", headers={"ApiKey": VALID_KEY})
        assert response.status_code == 200
        assert response.json() == {"subject": "user-1"}

    def test_public_path_skips_auth(self, client):
        assert client.get("/health").status_code == 200
