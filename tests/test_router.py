"""Tests for router."""

import logging

from starlette.applications import Starlette
from starlette.testclient import TestClient

from operator_host.registry import OperatorRegistry
from operator_host.router import OperatorTimingMiddleware, RouterBuilder


def _registry(make_loaded, *loaded_specs):
    reg = OperatorRegistry()
    for name, category in loaded_specs:
        reg.register(make_loaded(name, category=category, paths=["/run"]))
    return reg


class TestApplyRoutes:
    def test_mounts_each_operator_under_base_path(self, make_loaded):
        reg = _registry(make_loaded, ("string-utils", "text-processing"), ("json-transformer", "data-transform"))
        app = Starlette()
        builder = RouterBuilder()

        builder.apply_routes(app, reg)

        client = TestClient(app)
        assert client.post("/api/text-processing/string-utils/run").json() == {"handled_by": "string-utils"}
        assert client.post("/api/data-transform/json-transformer/run").json() == {
            "handled_by": "json-transformer"
        }
        assert builder.get_stats() == {"routes_count": 2, "operators_count": 2, "errors": 0}

    def test_operator_without_router_is_skipped(self, make_loaded):
        import dataclasses

        reg = OperatorRegistry()
        loaded = make_loaded("ghost", category="misc")
        reg.register(dataclasses.replace(loaded, router=None))
        reg.register(make_loaded("real", category="misc"))
        app = Starlette()
        builder = RouterBuilder()

        builder.apply_routes(app, reg)

        client = TestClient(app)
        assert client.post("/api/misc/real/run").status_code == 200
        assert client.post("/api/misc/ghost/run").status_code == 404
        assert builder.get_stats()["routes_count"] == 1

    def test_mount_failure_does_not_stop_others(self, make_loaded):
        class ExplodingApp(Starlette):
            def mount(self, path, app, name=None):
                if "bad" in path:
                    raise RuntimeError("boom")
                super().mount(path, app=app, name=name)

        reg = _registry(make_loaded, ("bad", "misc"), ("good", "misc"))
        app = ExplodingApp()
        builder = RouterBuilder()

        builder.apply_routes(app, reg)

        assert builder.get_stats() == {"routes_count": 1, "operators_count": 1, "errors": 1}
        assert TestClient(app).post("/api/misc/good/run").status_code == 200


class TestHandlerCache:
    def test_same_router_reuses_wrapper(self, make_loaded):
        loaded = make_loaded("string-utils")
        builder = RouterBuilder()

        first = builder._wrap_router(loaded.router, loaded.descriptor)
        second = builder._wrap_router(loaded.router, loaded.descriptor)

        assert first is second

    def test_fresh_router_with_same_identity_is_rewrapped(self, make_loaded):
        builder = RouterBuilder()
        old = make_loaded("string-utils")
        new = make_loaded("string-utils")

        first = builder._wrap_router(old.router, old.descriptor)
        second = builder._wrap_router(new.router, new.descriptor)

        assert first is not second
        assert second.app is new.router

    def test_clear_cache(self, make_loaded):
        loaded = make_loaded("string-utils")
        builder = RouterBuilder()
        first = builder._wrap_router(loaded.router, loaded.descriptor)

        builder.clear_cache()

        assert builder._wrap_router(loaded.router, loaded.descriptor) is not first


class TestTimingMiddleware:
    def test_response_unchanged_and_trace_logged(self, make_loaded, caplog):
        loaded = make_loaded("string-utils")
        app = Starlette()
        app.mount("/api/text-processing/string-utils", OperatorTimingMiddleware(loaded.router, loaded.descriptor))

        with caplog.at_level(logging.DEBUG, logger="operator_host.router"):
            response = TestClient(app).post("/api/text-processing/string-utils/run")

        assert response.status_code == 200
        assert response.json() == {"handled_by": "string-utils"}
        messages = [r.getMessage() for r in caplog.records if r.name == "operator_host.router"]
        assert any("string-utils POST" in m and " 200 " in m for m in messages)

    def test_operator_info_attached_to_request_state(self, tmp_path, write_operator):
        from operator_host.discovery import OperatorDiscovery

        write_operator(tmp_path, "text-processing", "string-utils")
        loaded = OperatorDiscovery().scan(tmp_path)[0]
        app = Starlette()
        app.mount(loaded.descriptor.base_path, OperatorTimingMiddleware(loaded.router, loaded.descriptor))

        body = TestClient(app).get("/api/text-processing/string-utils/run").json()

        assert body["operator_info"] == "string-utils"

    def test_logging_failure_is_swallowed(self, make_loaded, monkeypatch):
        loaded = make_loaded("string-utils")
        app = Starlette()
        app.mount("/op", OperatorTimingMiddleware(loaded.router, loaded.descriptor))

        def broken(*args, **kwargs):
            raise RuntimeError("log sink down")

        monkeypatch.setattr("operator_host.router.logger.isEnabledFor", broken)

        response = TestClient(app).post("/op/run")
        assert response.status_code == 200
