"""Unit tests for the version and health endpoints."""

from unittest.mock import MagicMock, PropertyMock

import pytest
from fastapi.testclient import TestClient

from api.dependencies.rate_limits import get_limiter
from api.routes.system import router
from infrastructure.configuration import Settings
from infrastructure.operations import OperationResult
from infrastructure.services.providers import (
    get_chat_channel,
    get_email_channel,
    get_settings,
)
from utils.tests import create_test_app, rate_limiting_helper


@pytest.fixture(autouse=True)
def reset_limiter():
    get_limiter().reset()
    yield
    get_limiter().reset()


def _channel(name, configured, result):
    channel = MagicMock()
    channel.channel_name = name
    type(channel).is_configured = PropertyMock(return_value=configured)
    channel.health_check.return_value = result
    return channel


def _app(email_channel=None, chat_channel=None, settings=None):
    overrides = {get_settings: lambda: settings or Settings(GIT_SHA="abc123")}
    if email_channel is not None:
        overrides[get_email_channel] = lambda: email_channel
    if chat_channel is not None:
        overrides[get_chat_channel] = lambda: chat_channel
    return create_test_app(router, overrides=overrides)


@pytest.mark.unit
class TestVersionAndHealth:
    def test_version_reports_git_sha(self):
        client = TestClient(_app())
        response = client.get("/version")
        assert response.status_code == 200
        assert response.json() == {"version": "abc123"}

    def test_health_is_ok(self):
        client = TestClient(_app())
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_rate_limited(self):
        rate_limiting_helper(
            _app(), "/health", 50, headers={"X-Forwarded-For": "198.51.100.10"}
        )


@pytest.mark.unit
class TestChannelHealth:
    def test_all_channels_healthy(self):
        email = _channel("email", True, OperationResult.success(message="SMTP ok"))
        chat = _channel("chat", True, OperationResult.success(message="Bot ok"))
        client = TestClient(_app(email, chat))

        response = client.get("/health/channels")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["channels"]["email"] == {
            "configured": True,
            "status": "success",
            "message": "SMTP ok",
        }
        assert body["channels"]["chat"]["status"] == "success"

    def test_degraded_when_a_channel_fails(self):
        email = _channel(
            "email",
            False,
            OperationResult.permanent_error(
                "SMTP is not configured", error_code="NOT_CONFIGURED"
            ),
        )
        chat = _channel("chat", True, OperationResult.success(message="Bot ok"))
        client = TestClient(_app(email, chat))

        response = client.get("/health/channels")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["channels"]["email"]["configured"] is False
        assert body["channels"]["email"]["status"] == "permanent_error"
        assert body["channels"]["chat"]["status"] == "success"

    def test_channel_health_rate_limited(self):
        email = _channel("email", True, OperationResult.success())
        chat = _channel("chat", True, OperationResult.success())
        rate_limiting_helper(
            _app(email, chat),
            "/health/channels",
            10,
            headers={"X-Forwarded-For": "198.51.100.11"},
        )
