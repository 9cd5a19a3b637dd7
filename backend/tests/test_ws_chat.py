from __future__ import annotations

import time

import pytest
from starlette.websockets import WebSocketDisconnect

from app.api import ws as ws_module
from app.core.security import create_access_token
from app.models import User


@pytest.fixture()
def tokens(session_factory) -> dict[str, str]:
    with session_factory() as session:
        users = [
            User(username=name, email=f"{name}@example.com", hashed_password="hashed")
            for name in ("alice", "bob")
        ]
        session.add_all(users)
        session.commit()
        return {user.username: create_access_token({"sub": str(user.id)}) for user in users}


def test_chat_requires_token(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/chat"):
            pass
    assert exc.value.code == 1008

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/chat?token=garbage"):
            pass


def test_message_round_trip_between_two_connections(client, tokens):
    with client.websocket_connect(f"/ws/chat?token={tokens['alice']}") as alice, client.websocket_connect(
        "/ws/chat", headers={"Authorization": f"Bearer {tokens['bob']}"}
    ) as bob:
        for connection in (alice, bob):
            connection.send_json({"type": "join_room", "roomId": "1_2"})
            assert connection.receive_json() == {"type": "room_joined", "roomId": "1_2"}

        alice.send_json({"type": "send_message", "senderId": 1, "receiverId": 2, "message": "hey"})

        received = alice.receive_json()
        assert received["type"] == "receive_message"
        assert received["message"] == "hey"
        ack = alice.receive_json()
        assert ack == {"type": "message_sent", "messageId": received["messageId"], "chatRoomId": "1_2"}

        delivered = bob.receive_json()
        assert delivered["type"] == "receive_message"
        assert delivered["messageId"] == received["messageId"]

        bob.send_json({"type": "read_message", "messageId": received["messageId"]})
        assert alice.receive_json() == {"type": "message_read", "messageId": received["messageId"]}


def test_invalid_frames_produce_errors_without_closing(client, tokens):
    with client.websocket_connect(f"/ws/chat?token={tokens['alice']}") as connection:
        connection.send_text("not json")
        assert connection.receive_json() == {"type": "error", "detail": "Invalid payload"}

        connection.send_json({"type": "user_connected", "userId": 2})
        assert connection.receive_json()["type"] == "error"

        connection.send_json({"type": "ping"})
        assert connection.receive_json() == {"type": "pong"}


def test_chat_connection_survives_keepalive_timeout(client, tokens) -> None:
    """Server side keepalive pings keep an idle socket open."""

    settings = ws_module.settings
    original_timeout = settings.websocket_keepalive_timeout_seconds
    original_interval = settings.websocket_keepalive_ping_interval_seconds

    settings.websocket_keepalive_timeout_seconds = 0.1
    settings.websocket_keepalive_ping_interval_seconds = 0.05

    try:
        with client.websocket_connect(f"/ws/chat?token={tokens['alice']}") as connection:
            time.sleep(0.15)
            assert connection.receive_json()["type"] == "ping"

            connection.send_json({"type": "ping"})
            frame = connection.receive_json()
            while frame["type"] == "ping":
                frame = connection.receive_json()
            assert frame == {"type": "pong"}
    finally:
        settings.websocket_keepalive_timeout_seconds = original_timeout
        settings.websocket_keepalive_ping_interval_seconds = original_interval
