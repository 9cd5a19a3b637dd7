"""Client to server events accepted on the chat socket.

Frames are JSON objects discriminated by ``type`` with camelCase fields.
Anything outside this closed set fails validation.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ClientEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class UserConnected(ClientEvent):
    type: Literal["user_connected"]
    user_id: int


class JoinRoom(ClientEvent):
    type: Literal["join_room"]
    room_id: str


class LeaveRoom(ClientEvent):
    type: Literal["leave_room"]
    room_id: str


class Typing(ClientEvent):
    type: Literal["typing"]
    chat_room_id: str
    sender_id: int
    is_typing: bool


class SendMessage(ClientEvent):
    type: Literal["send_message"]
    sender_id: int
    receiver_id: int
    message: str
    reply_to_id: int | None = None
    forward_from_id: int | None = None


class ReadMessage(ClientEvent):
    type: Literal["read_message"]
    message_id: int


class DeleteMessage(ClientEvent):
    type: Literal["delete_message"]
    message_id: int
    user_id: int


class DeleteMessageForAll(ClientEvent):
    type: Literal["delete_message_for_all"]
    message_id: int
    sender_id: int


class EditMessage(ClientEvent):
    type: Literal["edit_message"]
    message_id: int
    new_message: str
    sender_id: int


class Ping(ClientEvent):
    type: Literal["ping"]


AnyClientEvent = Annotated[
    Union[
        UserConnected,
        JoinRoom,
        LeaveRoom,
        Typing,
        SendMessage,
        ReadMessage,
        DeleteMessage,
        DeleteMessageForAll,
        EditMessage,
        Ping,
    ],
    Field(discriminator="type"),
]

_adapter: TypeAdapter[AnyClientEvent] = TypeAdapter(AnyClientEvent)


def parse_client_event(data: Any) -> ClientEvent:
    """Validate a decoded frame; raises :class:`pydantic.ValidationError`."""

    return _adapter.validate_python(data)
