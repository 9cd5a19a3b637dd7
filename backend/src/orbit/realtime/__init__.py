"""Realtime helpers for the chat websocket."""

from .events import (  # noqa: F401
    ClientEvent,
    DeleteMessage,
    DeleteMessageForAll,
    EditMessage,
    JoinRoom,
    LeaveRoom,
    Ping,
    ReadMessage,
    SendMessage,
    Typing,
    UserConnected,
    parse_client_event,
)
from .sessions import SessionRegistry, safe_send_json  # noqa: F401

__all__ = [
    "SessionRegistry",
    "safe_send_json",
    "parse_client_event",
    "ClientEvent",
    "UserConnected",
    "JoinRoom",
    "LeaveRoom",
    "Typing",
    "SendMessage",
    "ReadMessage",
    "DeleteMessage",
    "DeleteMessageForAll",
    "EditMessage",
    "Ping",
]
