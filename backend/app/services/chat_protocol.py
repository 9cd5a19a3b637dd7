"""Per-connection dispatcher for chat socket events."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi.websockets import WebSocket
from pydantic import ValidationError as PayloadValidationError
from sqlalchemy.orm import Session, sessionmaker

from orbit.realtime import (
    ClientEvent,
    DeleteMessage,
    DeleteMessageForAll,
    EditMessage,
    JoinRoom,
    LeaveRoom,
    Ping,
    ReadMessage,
    SendMessage,
    SessionRegistry,
    Typing,
    UserConnected,
    parse_client_event,
)

from app.core.encryption import MessageCipher
from app.core.errors import AppError, ForbiddenError
from app.database import get_db_session
from app.monitoring.metrics import realtime_errors_total, realtime_events_total
from app.services import messages as message_store

logger = logging.getLogger(__name__)

_FAILURE_MESSAGES: dict[str, str] = {
    "user_connected": "Failed to register connection",
    "join_room": "Failed to join room",
    "leave_room": "Failed to leave room",
    "typing": "Failed to send typing status",
    "send_message": "Failed to send message",
    "read_message": "Failed to mark message as read",
    "delete_message": "Failed to delete message",
    "delete_message_for_all": "Failed to delete message for everyone",
    "edit_message": "Failed to edit message",
}


class ChatProtocolHandler:
    """Handles the events of a single authenticated chat connection.

    Every failure is reported back to this connection as an ``error`` event;
    the connection itself stays open.
    """

    def __init__(
        self,
        *,
        websocket: WebSocket,
        user_id: int,
        registry: SessionRegistry,
        session_factory: sessionmaker[Session],
        cipher: MessageCipher,
    ) -> None:
        self.websocket = websocket
        self.user_id = user_id
        self.registry = registry
        self.session_factory = session_factory
        self.cipher = cipher
        self._handlers: dict[type[ClientEvent], Callable[[Any], Awaitable[None]]] = {
            UserConnected: self._user_connected,
            JoinRoom: self._join_room,
            LeaveRoom: self._leave_room,
            Typing: self._typing,
            SendMessage: self._send_message,
            ReadMessage: self._read_message,
            DeleteMessage: self._delete_message,
            DeleteMessageForAll: self._delete_message_for_all,
            EditMessage: self._edit_message,
            Ping: self._ping,
        }

    async def open(self) -> None:
        await self.registry.bind(self.user_id, self.websocket)

    async def close(self) -> None:
        await self.registry.unbind(self.websocket)

    async def handle(self, raw: Any) -> None:
        event_type = raw.get("type") if isinstance(raw, dict) else None
        event_name = event_type if isinstance(event_type, str) else "unknown"
        realtime_events_total.labels("in", event_name).inc()

        try:
            event = parse_client_event(raw)
        except PayloadValidationError as exc:
            logger.debug("Rejected %s frame from user %s: %s", event_name, self.user_id, exc)
            if event_name in _FAILURE_MESSAGES:
                await self.send_error(f"Invalid {event_name} payload", event_name)
            else:
                await self.send_error("Unsupported event type", event_name)
            return

        handler = self._handlers[type(event)]
        try:
            await handler(event)
        except AppError as exc:
            await self.send_error(exc.message, event.type)
        except Exception:
            logger.exception("Unhandled error while processing %s for user %s", event.type, self.user_id)
            await self.send_error(_FAILURE_MESSAGES.get(event.type, "Something went wrong"), event.type)

    async def send_error(self, detail: str, event_name: str = "unknown") -> None:
        realtime_errors_total.labels(event_name).inc()
        await self.registry.emit(self.websocket, {"type": "error", "detail": detail})

    def _require_self(self, claimed_id: int) -> None:
        if claimed_id != self.user_id:
            raise ForbiddenError("You can only act as yourself")

    async def _user_connected(self, event: UserConnected) -> None:
        self._require_self(event.user_id)
        await self.registry.bind(self.user_id, self.websocket)

    async def _join_room(self, event: JoinRoom) -> None:
        message_store.ensure_room_participant(event.room_id, self.user_id)
        await self.registry.join(event.room_id, self.websocket)
        await self.registry.emit(self.websocket, {"type": "room_joined", "roomId": event.room_id})

    async def _leave_room(self, event: LeaveRoom) -> None:
        message_store.ensure_room_participant(event.room_id, self.user_id)
        await self.registry.leave(event.room_id, self.websocket)
        await self.registry.emit(self.websocket, {"type": "room_left", "roomId": event.room_id})

    async def _typing(self, event: Typing) -> None:
        self._require_self(event.sender_id)
        message_store.ensure_room_participant(event.chat_room_id, self.user_id)
        await self.registry.emit_to_room(
            event.chat_room_id,
            {"type": "typing", "senderId": event.sender_id, "isTyping": event.is_typing},
        )

    async def _send_message(self, event: SendMessage) -> None:
        self._require_self(event.sender_id)
        with get_db_session(self.session_factory) as db:
            message = message_store.create_message(
                db,
                self.cipher,
                sender_id=event.sender_id,
                receiver_id=event.receiver_id,
                text=event.message,
                reply_to_id=event.reply_to_id,
                forward_from_id=event.forward_from_id,
            )
            payload = message_store.message_event(self.cipher, message, "receive_message")
            room_id = message.room_id
            message_id = message.id

        await self.registry.emit_to_room(room_id, payload)
        await self.registry.emit(
            self.websocket,
            {"type": "message_sent", "messageId": message_id, "chatRoomId": room_id},
        )

    async def _edit_message(self, event: EditMessage) -> None:
        self._require_self(event.sender_id)
        with get_db_session(self.session_factory) as db:
            message = message_store.edit_message(
                db,
                self.cipher,
                message_id=event.message_id,
                sender_id=event.sender_id,
                new_text=event.new_message,
            )
            room_id = message.room_id
            payload = message_store.edited_event(self.cipher, message)

        await self.registry.emit_to_room(room_id, payload)

    async def _delete_message(self, event: DeleteMessage) -> None:
        self._require_self(event.user_id)
        with get_db_session(self.session_factory) as db:
            message_store.delete_for_self(db, message_id=event.message_id, user_id=event.user_id)

        await self.registry.emit(
            self.websocket, {"type": "message_deleted_for_me", "messageId": event.message_id}
        )

    async def _delete_message_for_all(self, event: DeleteMessageForAll) -> None:
        self._require_self(event.sender_id)
        with get_db_session(self.session_factory) as db:
            message = message_store.delete_for_everyone(
                db, message_id=event.message_id, sender_id=event.sender_id
            )
            room_id = message.room_id

        await self.registry.emit_to_room(
            room_id, {"type": "message_deleted_for_everyone", "messageId": event.message_id}
        )

    async def _read_message(self, event: ReadMessage) -> None:
        with get_db_session(self.session_factory) as db:
            message = message_store.mark_read(db, message_id=event.message_id, reader_id=self.user_id)
            sender_id = message.sender_id

        await self.registry.emit_to_user(
            sender_id, {"type": "message_read", "messageId": event.message_id}
        )

    async def _ping(self, event: Ping) -> None:
        await self.registry.emit(self.websocket, {"type": "pong"})
