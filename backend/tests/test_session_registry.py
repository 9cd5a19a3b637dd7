from __future__ import annotations

from typing import Any

import pytest
from fastapi.websockets import WebSocketState

from app.monitoring.metrics import realtime_connections
from orbit.realtime import SessionRegistry


class DummyWebSocket:
    def __init__(self) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, payload: dict[str, Any]) -> None:
        self.sent.append(payload)


class BrokenWebSocket(DummyWebSocket):
    async def send_json(self, payload: dict[str, Any]) -> None:
        raise RuntimeError("socket closed")


@pytest.mark.anyio("asyncio")
async def test_bind_is_last_writer_wins():
    registry = SessionRegistry()
    first, second = DummyWebSocket(), DummyWebSocket()

    assert await registry.bind(1, first) is None
    assert await registry.bind(1, second) is first

    assert await registry.connection_for(1) is second
    assert await registry.user_for(first) is None
    assert await registry.user_for(second) == 1


@pytest.mark.anyio("asyncio")
async def test_unbinding_a_replaced_connection_keeps_the_new_one():
    registry = SessionRegistry()
    first, second = DummyWebSocket(), DummyWebSocket()
    await registry.bind(1, first)
    await registry.bind(1, second)

    assert await registry.unbind(first) is None
    assert await registry.connection_for(1) is second

    assert await registry.unbind(second) == 1
    assert await registry.connection_for(1) is None
    assert await registry.online_users() == set()


@pytest.mark.anyio("asyncio")
async def test_connection_gauge_tracks_bound_users():
    registry = SessionRegistry()
    before = realtime_connections.value("chat")
    first, second = DummyWebSocket(), DummyWebSocket()

    await registry.bind(1, first)
    await registry.bind(1, second)
    await registry.bind(2, DummyWebSocket())
    assert realtime_connections.value("chat") == before + 2

    await registry.unbind(second)
    assert realtime_connections.value("chat") == before + 1


@pytest.mark.anyio("asyncio")
async def test_room_emission_reaches_members_only():
    registry = SessionRegistry()
    alice, bob, outsider = DummyWebSocket(), DummyWebSocket(), DummyWebSocket()
    await registry.join("1_2", alice)
    await registry.join("1_2", bob)
    await registry.join("1_3", outsider)

    delivered = await registry.emit_to_room("1_2", {"type": "typing", "senderId": 1})

    assert delivered == 2
    assert alice.sent == bob.sent == [{"type": "typing", "senderId": 1}]
    assert outsider.sent == []


@pytest.mark.anyio("asyncio")
async def test_leave_and_unbind_drop_room_membership():
    registry = SessionRegistry()
    alice, bob = DummyWebSocket(), DummyWebSocket()
    await registry.bind(1, alice)
    await registry.join("1_2", alice)
    await registry.join("1_3", alice)
    await registry.join("1_2", bob)

    await registry.leave("1_3", alice)
    assert await registry.rooms_of(alice) == {"1_2"}

    await registry.unbind(alice)
    assert await registry.members("1_2") == {bob}
    assert await registry.rooms_of(alice) == set()


@pytest.mark.anyio("asyncio")
async def test_dead_connections_are_skipped():
    registry = SessionRegistry()
    healthy, broken, closed = DummyWebSocket(), BrokenWebSocket(), DummyWebSocket()
    closed.application_state = WebSocketState.DISCONNECTED
    for socket in (healthy, broken, closed):
        await registry.join("1_2", socket)

    assert await registry.emit_to_room("1_2", {"type": "ping"}) == 1
    assert healthy.sent == [{"type": "ping"}]


@pytest.mark.anyio("asyncio")
async def test_emit_to_offline_user_returns_false():
    registry = SessionRegistry()
    assert await registry.emit_to_user(42, {"type": "message_read", "messageId": 1}) is False
