"""End-to-end tests for the collaboration websocket."""
from __future__ import annotations

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from coderoom.main import app
from coderoom.routers import collab
from coderoom.services.coordinator import RoomCoordinator, RoomState
from coderoom.services.document_store import SharedDocumentStore
from coderoom.services.hub import ConnectionHub


@pytest.fixture
def hub():
    isolated = ConnectionHub(RoomCoordinator(RoomState(documents=SharedDocumentStore())))
    app.dependency_overrides[collab.get_hub] = lambda: isolated
    yield isolated
    app.dependency_overrides.clear()


def _join(ws, room: str, email: str) -> None:
    ws.send_json({"event": "join", "data": {"roomId": room, "email": email}})


def test_room_session_over_websocket(hub):
    client = TestClient(app)

    with client.websocket_connect("/ws") as ws_a:
        ack_a = ws_a.receive_json()
        assert ack_a["event"] == "connection:ack"
        a_id = ack_a["data"]["id"]

        _join(ws_a, "r1", "a@x.com")
        joined_a = ws_a.receive_json()
        assert joined_a["event"] == "joined"
        assert joined_a["data"]["users"] == [{"email": "a@x.com", "socketId": a_id}]
        assert joined_a["data"]["code"] == "// Start coding here..."

        with client.websocket_connect("/ws") as ws_b:
            b_id = ws_b.receive_json()["data"]["id"]
            assert b_id != a_id

            _join(ws_b, "r1", "b@x.com")
            joined_b = ws_b.receive_json()
            assert [user["email"] for user in joined_b["data"]["users"]] == ["a@x.com", "b@x.com"]

            notice = ws_a.receive_json()
            assert notice == {"event": "user:joined", "data": {"email": "b@x.com", "socketId": b_id}}

            ws_a.send_json({"event": "code-change", "data": {"roomId": "r1", "code": "X", "cursorPosition": 1}})
            changed = ws_b.receive_json()
            assert changed == {"event": "code-changed", "data": {"code": "X", "cursorPosition": 1, "changedBy": a_id}}

            ws_b.send_json({"event": "user:call", "data": {"to": a_id, "offer": {"sdp": "v=0"}}})
            call = ws_a.receive_json()
            assert call == {"event": "incomming:call", "data": {"from": b_id, "offer": {"sdp": "v=0"}}}

            assert hub.connection_count == 2

        left = ws_a.receive_json()
        assert left == {"event": "user:disconnected", "data": {"socketId": b_id, "email": "b@x.com"}}

    assert hub.room_ids() == []


def test_join_error_keeps_connection_open(hub):
    client = TestClient(app)

    with client.websocket_connect("/ws") as ws:
        ws.receive_json()

        _join(ws, "r1", "")
        error = ws.receive_json()
        assert error == {
            "event": "error",
            "data": {"message": "Failed to join room: Room ID and email are required"},
        }
        assert hub.room_ids() == []

        ws.send_text("{not json")
        _join(ws, "r1", "a@x.com")
        assert ws.receive_json()["event"] == "joined"


def test_disallowed_origin_is_rejected(hub, monkeypatch):
    monkeypatch.setattr(collab.settings, "cors_allow_origins", ["http://allowed.example"])
    client = TestClient(app)

    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws", headers={"origin": "http://evil.example"}):
            pass

    assert exc.value.code == 1008
    assert hub.connection_count == 0

    with client.websocket_connect("/ws", headers={"origin": "http://allowed.example"}) as ws:
        assert ws.receive_json()["event"] == "connection:ack"
