"""Tests for settings and logging helpers."""

import logging

import pytest
from pydantic import ValidationError

from operator_host.config import Settings
from operator_host.logging import REDACTED, configure_logging, redact_payload


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.port == 8080
        assert settings.operators_dir == "operators"
        assert settings.auth_enabled is False
        assert settings.is_development

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("OPERATORS_DIR", "/srv/operators")
        monkeypatch.setenv("AUTH_ENABLED", "true")

        settings = Settings(_env_file=None)

        assert settings.port == 9090
        assert settings.operators_dir == "/srv/operators"
        assert settings.auth_enabled is True

    def test_port_range_is_validated(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, port=0)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("*", ["*"]),
            ("https://a.example.com, https://b.example.com", ["https://a.example.com", "https://b.example.com"]),
            (" , ", ["*"]),
        ],
    )
    def test_cors_origin_list(self, raw, expected):
        assert Settings(_env_file=None, cors_origins=raw).cors_origin_list() == expected


class TestLogging:
    def test_redacts_nested_secrets(self):
        payload = {
            "service_name": "operator-host",
            "auth": {"api_key": "abc", "timeout": 10},
            "headers": [{"Authorization": "ApiKey abc"}, "plain"],
            "db_password": "hunter2",
        }

        redacted = redact_payload(payload)

        assert redacted["service_name"] == "operator-host"
        assert redacted["auth"] == {"api_key": REDACTED, "timeout": 10}
        assert redacted["headers"] == [{"Authorization": REDACTED}, "plain"]
        assert redacted["db_password"] == REDACTED
        assert payload["auth"]["api_key"] == "abc"

    def test_configure_logging_quiets_loggers(self):
        configure_logging("debug", quiet=["operator_host.quieted"])
        assert logging.getLogger("operator_host.quieted").level == logging.WARNING
