"""Schemas related to direct messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessagePreview(_CamelModel):
    """Short view of a replied-to or forwarded message."""

    message_id: int
    sender_id: int
    message: str | None = None


class MessageRead(_CamelModel):
    """Decrypted message as delivered to a participant.

    ``message`` is ``None`` when the message was deleted for everyone or its
    ciphertext could not be decrypted.
    """

    message_id: int
    sender_id: int
    receiver_id: int
    room_id: str
    message: str | None = None
    is_edited: bool = False
    is_read: bool = False
    is_deleted_for_everyone: bool = False
    reply_to: MessagePreview | None = None
    forward_from: MessagePreview | None = None
    created_at: datetime
    updated_at: datetime
    edited_at: datetime | None = None
    deleted_at: datetime | None = None


class MessageCreate(_CamelModel):
    """Payload for sending a message over HTTP."""

    message: constr(min_length=1, max_length=4000) = Field(..., description="Plain text body")
    reply_to_id: int | None = None
    forward_from_id: int | None = None


class MessageUpdate(_CamelModel):
    new_message: constr(min_length=1, max_length=4000)
