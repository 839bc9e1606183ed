"""Tests for print_proxy/api/realtime.py: WebSocket protocol."""

import httpx
import pytest
from fastapi.testclient import TestClient

import print_proxy.upstream.services as services_mod
from print_proxy.broadcast.broadcaster import get_broadcaster
from print_proxy.environments.registry import get_registry
from print_proxy.upstream.authenticator import UpstreamAuthenticator
from tests.conftest import make_mock_client


@pytest.fixture
def client(override_settings):
    override_settings(
        UAT_ACCOUNT_ID="acct-uat",
        UAT_API_KEY="key-uat",
        UAT_AGENT_KEY="agent-uat",
    )
    from print_proxy.main import app
    return TestClient(app)


@pytest.fixture
def mock_upstream(client):
    authenticator = UpstreamAuthenticator(get_registry(), get_broadcaster())
    authenticator._client = make_mock_client(httpx.Response(200, json={"token": "Bearer abc.def.ghi"}))
    services_mod._authenticator = authenticator
    return authenticator._client


class TestConnection:

    def test_welcome_message(self, client):
        with client.websocket_connect("/ws") as ws:
            welcome = ws.receive_json()
            assert welcome["type"] == "connection"
            assert "timestamp" in welcome

    def test_registered_while_open(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})
            ws.receive_json()
            assert get_broadcaster().count == 1
        assert get_broadcaster().count == 0


class TestMessages:

    def test_ping_pong(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"

    def test_subscribe(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe", "environment": "production"})
            ack = ws.receive_json()
            assert ack["type"] == "subscribed"
            assert ack["environment"] == "production"

    def test_subscribe_unknown_environment(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe", "environment": "staging"})
            assert ws.receive_json()["type"] == "error"

    def test_subscribe_without_environment(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe"})
            assert ws.receive_json()["type"] == "error"

    def test_unknown_type(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "dance"})
            reply = ws.receive_json()
            assert reply["type"] == "error"
            assert reply["message"] == "Unknown message type"

    def test_invalid_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("not json")
            reply = ws.receive_json()
            assert reply["type"] == "error"
            assert reply["message"] == "Invalid message format"

    def test_non_object_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("[1, 2]")
            assert ws.receive_json()["message"] == "Invalid message format"

    @pytest.mark.parametrize("environment", [["production"], {"key": "production"}, 42])
    def test_subscribe_non_string_environment(self, client, environment):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "subscribe", "environment": environment})
            assert ws.receive_json()["type"] == "error"
            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"

    def test_binary_frame_is_parsed_as_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_bytes(b'{"type": "ping"}')
            assert ws.receive_json()["type"] == "pong"

    def test_binary_frame_not_utf8(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_bytes(b"\x80\x81")
            assert ws.receive_json()["message"] == "Invalid message format"
            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"


class TestLoginOverWebSocket:

    def test_login_result(self, client, mock_upstream):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "login", "environment": "previewUat"})

            # Unfiltered connection also receives the login-success push
            pushed = ws.receive_json()
            result = ws.receive_json()

            assert pushed["type"] == "login-success"
            assert pushed["environment"] == "Preview UAT"
            assert result["type"] == "login-result"
            assert result["success"] is True
            assert result["jwt"] == "abc.def.ghi"

    def test_login_missing_credentials(self, client, mock_upstream):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"type": "login", "environment": "production"})
            result = ws.receive_json()
            assert result["type"] == "login-result"
            assert result["success"] is False
            assert result["missing"] == ["accountId", "apiKey"]
        mock_upstream.post.assert_not_called()

    def test_filtered_subscriber_skips_other_environment(self, client, mock_upstream):
        with client.websocket_connect("/ws") as watcher, client.websocket_connect("/ws") as actor:
            watcher.receive_json()
            actor.receive_json()
            watcher.send_json({"type": "subscribe", "environment": "production"})
            watcher.receive_json()

            actor.send_json({"type": "login", "environment": "previewUat"})
            assert actor.receive_json()["type"] == "login-success"
            assert actor.receive_json()["type"] == "login-result"

            watcher.send_json({"type": "ping"})
            assert watcher.receive_json()["type"] == "pong"
