"""Shared fixtures for the print proxy test suite."""

from unittest.mock import AsyncMock

import httpx
import pytest

import print_proxy.broadcast.broadcaster as broadcaster_mod
import print_proxy.upstream.services as services_mod
from print_proxy.broadcast.broadcaster import SessionEventBroadcaster
from print_proxy.config.settings import Settings, get_settings
from print_proxy.environments.registry import build_registry, get_registry

CREDENTIAL_ENV_VARS = [
    "UAT_ACCOUNT_ID", "UAT_API_KEY", "UAT_AGENT_KEY",
    "PROD_ACCOUNT_ID", "PROD_API_KEY", "PROD_AGENT_KEY",
    "API_URL_PREVIEW_UAT", "API_URL_PRODUCTION",
]


class FakeConnection:
    """Stand-in for a WebSocket: records sent messages, optionally fails."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(data)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from credentials in the host environment and reset singletons."""
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"REACT_APP_{name}", raising=False)
    monkeypatch.setattr(broadcaster_mod, "_broadcaster", None)
    monkeypatch.setattr(services_mod, "_authenticator", None)
    monkeypatch.setattr(services_mod, "_forwarder", None)
    get_settings.cache_clear()
    get_registry.cache_clear()
    yield
    get_settings.cache_clear()
    get_registry.cache_clear()


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings/registry caches.

    Usage:
        override_settings(UAT_ACCOUNT_ID="acct", PROD_API_KEY="key")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        get_settings.cache_clear()
        get_registry.cache_clear()

    yield _override

    get_settings.cache_clear()
    get_registry.cache_clear()


@pytest.fixture
def full_settings() -> Settings:
    """Settings with every credential populated."""
    return Settings(
        api_url_preview_uat="https://uat.example.test",
        uat_account_id="acct-uat",
        uat_api_key="key-uat",
        uat_agent_key="agent-uat",
        api_url_production="https://prod.example.test",
        prod_account_id="acct-prod",
        prod_api_key="key-prod",
    )


@pytest.fixture
def registry(full_settings):
    return build_registry(full_settings)


@pytest.fixture
def broadcaster() -> SessionEventBroadcaster:
    return SessionEventBroadcaster()


def make_mock_client(response: httpx.Response | None = None, side_effect=None) -> AsyncMock:
    """AsyncMock standing in for httpx.AsyncClient."""
    mock_client = AsyncMock()
    mock_client.is_closed = False
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
        mock_client.options.side_effect = side_effect
    else:
        mock_client.post.return_value = response
        mock_client.options.return_value = response
    return mock_client
