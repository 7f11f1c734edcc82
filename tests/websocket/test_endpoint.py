"""Tests for the WebSocket endpoint.

Drives the relay through Starlette's TestClient. The client is entered as a
context manager so every socket shares one event loop, like a real server.

Covers:
- welcome on connect
- the create/join/chat/disconnect scenario across two clients
- error envelopes for malformed frames
- binary frames
- heartbeat pings
- disconnect cleanup of registries
"""

from __future__ import annotations

import json
import re
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

from roomrelay.config import Settings
from roomrelay.services.dispatcher import Dispatcher
from tests.factories import create_test_app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def relay_settings() -> Settings:
    return Settings(_env_file=None, heartbeat_interval=0)


@pytest.fixture
def ws_app():
    """Minimal FastAPI app with a fresh dispatcher."""
    app = create_test_app()
    app.state.dispatcher = Dispatcher()
    return app


@pytest.fixture
def client(ws_app, relay_settings):
    with patch("roomrelay.routers.websocket.get_settings", return_value=relay_settings):
        with TestClient(ws_app) as c:
            yield c


def _welcome(ws) -> str:
    message = ws.receive_json()
    assert message["type"] == "welcome"
    return message["payload"]["id"]


# ---------------------------------------------------------------------------
# Connect
# ---------------------------------------------------------------------------


class TestConnect:
    def test_welcome_carries_connection_id(self, client, ws_app):
        with client.websocket_connect("/ws") as ws:
            identity = _welcome(ws)
            assert len(identity) == 8
            assert identity in ws_app.state.dispatcher.connections

    def test_each_connection_gets_distinct_id(self, client):
        with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
            assert _welcome(a) != _welcome(b)


# ---------------------------------------------------------------------------
# Two-client scenario
# ---------------------------------------------------------------------------


class TestRoomScenario:
    def test_create_join_chat_disconnect(self, client, ws_app):
        dispatcher = ws_app.state.dispatcher

        with client.websocket_connect("/ws") as a:
            a_id = _welcome(a)
            a.send_json({"type": "createRoom", "payload": {"name": "Alice"}})

            created = a.receive_json()
            assert created["type"] == "roomCreated"
            code = created["payload"]["roomId"]
            assert re.fullmatch(r"[A-Z0-9]{6}", code)
            assert created["payload"]["members"] == [{"id": a_id, "name": "Alice"}]
            assert a.receive_json()["type"] == "presence"

            with client.websocket_connect("/ws") as b:
                b_id = _welcome(b)
                b.send_json({"type": "join", "payload": {"roomId": code, "name": "Bob"}})

                both = [{"id": a_id, "name": "Alice"}, {"id": b_id, "name": "Bob"}]
                joined = b.receive_json()
                assert joined == {"type": "joined", "payload": {"roomId": code, "members": both}}
                assert b.receive_json() == {"type": "presence", "payload": {"members": both}}
                assert a.receive_json() == {"type": "presence", "payload": {"members": both}}

                b.send_json({"type": "chat", "payload": {"text": "hi"}})
                for ws in (a, b):
                    chat = ws.receive_json()
                    assert chat["type"] == "chat"
                    assert chat["payload"]["text"] == "hi"
                    assert chat["payload"]["from"] == {"id": b_id, "name": "Bob"}
                    assert chat["payload"]["roomId"] == code

            assert a.receive_json() == {
                "type": "presence",
                "payload": {"members": [{"id": a_id, "name": "Alice"}]},
            }
            assert code in dispatcher.rooms

        assert code not in dispatcher.rooms
        assert len(dispatcher.connections) == 0

    def test_typing_not_echoed_to_sender(self, client):
        with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
            a_id = _welcome(a)
            _welcome(b)
            a.send_json({"type": "join", "payload": {"roomId": "lobby", "name": "A"}})
            a.receive_json()  # joined
            a.receive_json()  # presence
            b.send_json({"type": "join", "payload": {"roomId": "lobby", "name": "B"}})
            b.receive_json()  # joined
            b.receive_json()  # presence
            a.receive_json()  # presence

            a.send_json({"type": "typing", "payload": {"isTyping": True}})
            a.send_json({"type": "chat", "payload": {"text": "done"}})

            typing = b.receive_json()
            assert typing == {
                "type": "typing",
                "payload": {"from": {"id": a_id, "name": "A"}, "isTyping": True},
            }
            # The sender's next frame is its own chat, not the typing signal.
            assert a.receive_json()["type"] == "chat"


# ---------------------------------------------------------------------------
# Malformed frames
# ---------------------------------------------------------------------------


class TestErrorFrames:
    def test_invalid_json(self, client):
        with client.websocket_connect("/ws") as ws:
            _welcome(ws)
            ws.send_text("{not json")
            assert ws.receive_json() == {"type": "error", "payload": {"message": "Invalid JSON"}}

    def test_unknown_type(self, client):
        with client.websocket_connect("/ws") as ws:
            _welcome(ws)
            ws.send_json({"type": "shout", "payload": {}})
            assert ws.receive_json() == {"type": "error", "payload": {"message": "Unknown type"}}

    def test_connection_survives_errors(self, client):
        with client.websocket_connect("/ws") as ws:
            _welcome(ws)
            ws.send_text("garbage")
            ws.receive_json()
            ws.send_json({"type": "join", "payload": {"roomId": "lobby"}})
            assert ws.receive_json()["type"] == "joined"


class TestBinaryFrames:
    def test_binary_frame_decoded_as_utf8(self, client):
        with client.websocket_connect("/ws") as ws:
            _welcome(ws)
            ws.send_bytes(json.dumps({"type": "join", "payload": {"roomId": "bin"}}).encode("utf-8"))
            assert ws.receive_json()["payload"]["roomId"] == "bin"


# ---------------------------------------------------------------------------
# Heartbeat
# ---------------------------------------------------------------------------


class TestHeartbeat:
    def test_heartbeat_sends_ping(self, ws_app):
        settings = Settings(_env_file=None, heartbeat_interval=0.05)
        with patch("roomrelay.routers.websocket.get_settings", return_value=settings):
            with TestClient(ws_app) as client:
                with client.websocket_connect("/ws") as ws:
                    _welcome(ws)
                    assert ws.receive_json() == {"type": "ping", "payload": {}}


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------


class TestConnectionCleanup:
    def test_connection_removed_on_disconnect(self, client, ws_app):
        dispatcher = ws_app.state.dispatcher
        with client.websocket_connect("/ws") as ws:
            _welcome(ws)
            assert len(dispatcher.connections) == 1
        assert len(dispatcher.connections) == 0

    def test_sole_member_disconnect_deletes_room(self, client, ws_app):
        dispatcher = ws_app.state.dispatcher
        with client.websocket_connect("/ws") as ws:
            _welcome(ws)
            ws.send_json({"type": "join", "payload": {"roomId": "solo"}})
            ws.receive_json()
            assert "solo" in dispatcher.rooms
        assert "solo" not in dispatcher.rooms
