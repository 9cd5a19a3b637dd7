"""Process-local registry of live chat connections and room membership."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, Set

from fastapi.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from app.monitoring.metrics import realtime_connections, realtime_events_total, realtime_room_members

logger = logging.getLogger(__name__)


async def safe_send_json(websocket: WebSocket, data: dict[str, Any]) -> bool:
    """Send JSON through ``websocket``; returns False instead of raising on a dead socket."""

    if websocket.application_state != WebSocketState.CONNECTED:
        return False
    try:
        await websocket.send_json(data)
        return True
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug("Failed to send websocket message: %s", e)
        return False


class SessionRegistry:
    """Maps user ids to their live connection and room ids to joined connections.

    One connection per user; binding a new connection for the same user
    replaces the previous one. All map mutations happen under one lock and
    emission always works on a snapshot taken under it.
    """

    def __init__(self) -> None:
        self._user_connections: Dict[int, WebSocket] = {}
        self._connection_users: Dict[WebSocket, int] = {}
        self._rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._connection_rooms: Dict[WebSocket, Set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def bind(self, user_id: int, websocket: WebSocket) -> WebSocket | None:
        """Bind ``user_id`` to ``websocket``; returns the connection it replaced, if any."""

        async with self._lock:
            previous = self._user_connections.get(user_id)
            if previous is websocket:
                return None
            previous_user = self._connection_users.get(websocket)
            if previous_user is not None and previous_user != user_id:
                self._user_connections.pop(previous_user, None)
            self._user_connections[user_id] = websocket
            self._connection_users[websocket] = user_id
            if previous is not None:
                self._connection_users.pop(previous, None)
            elif previous_user is None:
                realtime_connections.labels("chat").inc()
        if previous is not None:
            logger.info("User %s reconnected; replacing previous connection", user_id)
        return previous

    async def unbind(self, websocket: WebSocket) -> int | None:
        """Forget ``websocket`` entirely; returns the user it was bound to."""

        async with self._lock:
            user_id = self._connection_users.pop(websocket, None)
            if user_id is not None and self._user_connections.get(user_id) is websocket:
                self._user_connections.pop(user_id, None)
                realtime_connections.labels("chat").dec()
            self._leave_all_locked(websocket)
        return user_id

    async def connection_for(self, user_id: int) -> WebSocket | None:
        async with self._lock:
            return self._user_connections.get(user_id)

    async def user_for(self, websocket: WebSocket) -> int | None:
        async with self._lock:
            return self._connection_users.get(websocket)

    async def join(self, room_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            bucket = self._rooms[room_id]
            if websocket not in bucket:
                bucket.add(websocket)
                self._connection_rooms[websocket].add(room_id)
                realtime_room_members.labels().inc()

    async def leave(self, room_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._leave_locked(room_id, websocket)

    def _leave_locked(self, room_id: str, websocket: WebSocket) -> None:
        bucket = self._rooms.get(room_id)
        if bucket and websocket in bucket:
            bucket.discard(websocket)
            realtime_room_members.labels().dec()
            if not bucket:
                self._rooms.pop(room_id, None)
        rooms = self._connection_rooms.get(websocket)
        if rooms is not None:
            rooms.discard(room_id)
            if not rooms:
                self._connection_rooms.pop(websocket, None)

    def _leave_all_locked(self, websocket: WebSocket) -> None:
        for room_id in list(self._connection_rooms.get(websocket, ())):
            self._leave_locked(room_id, websocket)

    async def members(self, room_id: str) -> set[WebSocket]:
        async with self._lock:
            return set(self._rooms.get(room_id, ()))

    async def rooms_of(self, websocket: WebSocket) -> set[str]:
        async with self._lock:
            return set(self._connection_rooms.get(websocket, ()))

    async def emit_to_room(
        self,
        room_id: str,
        payload: dict[str, Any],
        *,
        exclude: Iterable[WebSocket] | None = None,
    ) -> int:
        """Send ``payload`` to every connection in the room; returns how many received it."""

        exclude_set = set(exclude or ())
        delivered = 0
        for connection in await self.members(room_id):
            if connection in exclude_set:
                continue
            if await safe_send_json(connection, payload):
                delivered += 1
        realtime_events_total.labels("out", payload.get("type", "unknown")).inc()
        return delivered

    async def emit_to_user(self, user_id: int, payload: dict[str, Any]) -> bool:
        connection = await self.connection_for(user_id)
        if connection is None:
            return False
        return await self.emit(connection, payload)

    async def emit(self, websocket: WebSocket, payload: dict[str, Any]) -> bool:
        sent = await safe_send_json(websocket, payload)
        if sent:
            realtime_events_total.labels("out", payload.get("type", "unknown")).inc()
        return sent

    async def online_users(self) -> set[int]:
        async with self._lock:
            return set(self._user_connections)
