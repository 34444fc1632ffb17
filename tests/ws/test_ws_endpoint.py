"""Tests for the /ws realtime channel."""

from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from connectblog.auth.jwt import create_access_token
from connectblog.main import create_app


@pytest.fixture
def ws_app():
    return create_app()


@pytest.fixture
def ws_client(ws_app) -> TestClient:
    return TestClient(ws_app)


def test_ping(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"action": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_register_updates_presence(ws_app, ws_client: TestClient) -> None:
    token = create_access_token(7, "alice")
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"action": "register", "token": token})
        assert ws.receive_json() == {"type": "registered"}
        assert ws_app.state.presence.resolve(7) is not None
        assert ws_app.state.connections.get_stats()["identified"] == 1

    assert ws_app.state.presence.resolve(7) is None
    assert ws_app.state.connections.connection_count == 0


def test_bad_token_keeps_connection_open(ws_app, ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"action": "register", "token": "garbage"})
        msg = ws.receive_json()
        assert msg["type"] == "error"
        assert msg["message"].startswith("Authentication failed")
        assert len(ws_app.state.presence) == 0

        ws.send_json({"action": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_invalid_json(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}


def test_unknown_action(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"action": "subscribe"})
        assert ws.receive_json() == {"type": "error", "message": "Unknown action: subscribe"}


def test_reconnect_replaces_previous_connection(ws_app, ws_client: TestClient) -> None:
    token = create_access_token(7, "alice")
    with ws_client.websocket_connect("/ws") as first:
        first.send_json({"action": "register", "token": token})
        first.receive_json()
        first_conn = ws_app.state.presence.resolve(7)

        with ws_client.websocket_connect("/ws") as second:
            second.send_json({"action": "register", "token": token})
            second.receive_json()
            second_conn = ws_app.state.presence.resolve(7)
            assert second_conn != first_conn

        assert ws_app.state.presence.resolve(7) is None

    # The older connection closing later does not resurrect or remove anything.
    assert ws_app.state.presence.resolve(7) is None
