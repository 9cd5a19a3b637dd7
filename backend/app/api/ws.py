"""WebSocket endpoint for realtime direct messaging."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Dict, TypeVar

from fastapi import APIRouter, WebSocket, status
from fastapi.exceptions import HTTPException
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from orbit.realtime import SessionRegistry, safe_send_json

from app.api.deps import get_user_from_token
from app.config import get_settings
from app.core.encryption import get_cipher
from app.database import get_db_session
from app.models import User
from app.services.chat_protocol import ChatProtocolHandler

router = APIRouter(prefix="/ws", tags=["ws"])

settings = get_settings()

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def iter_keepalive_messages(
    websocket: WebSocket,
    receiver: Callable[[], Awaitable[T]],
    *,
    timeout_seconds: float | int | None,
    ping_interval_seconds: float | int | None,
    ping_payload: Dict[str, Any] | None = None,
) -> AsyncIterator[T]:
    """Yield frames from *receiver*, sending a ping whenever the socket idles."""

    ping_payload = ping_payload or {"type": "ping"}
    timeout = float(timeout_seconds) if timeout_seconds else 0.0
    interval = float(ping_interval_seconds) if ping_interval_seconds else 0.0
    last_activity = time.monotonic()
    last_ping_sent: float | None = None

    while True:
        try:
            if timeout > 0:
                message = await asyncio.wait_for(receiver(), timeout=timeout)
            else:
                message = await receiver()
        except asyncio.TimeoutError:
            if websocket.application_state != WebSocketState.CONNECTED:
                break
            now = time.monotonic()
            idle_long_enough = interval <= 0 or now - last_activity >= interval
            ping_due = last_ping_sent is None or interval <= 0 or now - last_ping_sent >= interval
            if idle_long_enough and ping_due:
                if not await safe_send_json(websocket, ping_payload):
                    break
                last_ping_sent = now
            continue
        except (RuntimeError, WebSocketDisconnect):
            break
        else:
            last_activity = time.monotonic()
            last_ping_sent = None
            yield message


async def _resolve_user(websocket: WebSocket) -> User | None:
    token = websocket.query_params.get("token")
    if not token:
        auth_header = websocket.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header.removeprefix("Bearer ").strip()
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
        return None

    try:
        with get_db_session(websocket.app.state.session_factory) as db:
            return get_user_from_token(token, db)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return None


@router.websocket("/chat")
async def websocket_chat(websocket: WebSocket) -> None:
    """Authenticated chat connection speaking the room-based message protocol."""

    user = await _resolve_user(websocket)
    if user is None:
        return

    registry: SessionRegistry = websocket.app.state.sessions
    handler = ChatProtocolHandler(
        websocket=websocket,
        user_id=user.id,
        registry=registry,
        session_factory=websocket.app.state.session_factory,
        cipher=get_cipher(),
    )

    await websocket.accept()
    await handler.open()
    logger.info("Chat connection opened for user %s", user.id)
    try:
        async for raw_message in iter_keepalive_messages(
            websocket,
            websocket.receive_text,
            timeout_seconds=settings.websocket_keepalive_timeout_seconds,
            ping_interval_seconds=settings.websocket_keepalive_ping_interval_seconds,
        ):
            try:
                payload = json.loads(raw_message)
            except json.JSONDecodeError:
                await handler.send_error("Invalid payload")
                continue
            await handler.handle(payload)
    except WebSocketDisconnect:
        pass
    finally:
        await handler.close()
        logger.info("Chat connection closed for user %s", user.id)
