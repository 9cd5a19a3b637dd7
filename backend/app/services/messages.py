"""Per-room encrypted message log: send, edit, read and both kinds of delete."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.core.encryption import MessageCipher
from app.core.errors import (
    ExpiredWindowError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.database import unit_of_work
from app.models import Message, MessageDeletion, User
from app.monitoring.metrics import messages_total
from app.schemas.messages import MessagePreview, MessageRead

logger = logging.getLogger(__name__)

_ROOM_ID_RE = re.compile(r"^(\d+)_(\d+)$")


def room_id_for(user_a: int, user_b: int) -> str:
    """Room id shared by two users, independent of argument order."""

    low, high = sorted((int(user_a), int(user_b)))
    return f"{low}_{high}"


def parse_room_id(room_id: str) -> tuple[int, int]:
    """Split a canonical ``"{low}_{high}"`` room id into its participants."""

    match = _ROOM_ID_RE.match(room_id or "")
    if match is None:
        raise ValidationError("Malformed room id")
    low, high = int(match.group(1)), int(match.group(2))
    if low >= high:
        raise ValidationError("Malformed room id")
    return low, high


def ensure_room_participant(room_id: str, user_id: int) -> tuple[int, int]:
    participants = parse_room_id(room_id)
    if user_id not in participants:
        raise ForbiddenError("You are not a participant of this room")
    return participants


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_text(text: object) -> str:
    if not isinstance(text, str) or len(text) < 1:
        raise ValidationError("Message must be a non-empty string")
    return text


def _get_message(db: Session, message_id: int) -> Message:
    message = db.get(Message, message_id)
    if message is None:
        raise NotFoundError("Message not found")
    return message


def create_message(
    db: Session,
    cipher: MessageCipher,
    *,
    sender_id: int,
    receiver_id: int,
    text: object,
    reply_to_id: int | None = None,
    forward_from_id: int | None = None,
    now: datetime | None = None,
) -> Message:
    """Encrypt and persist a message in the pair's room."""

    body = _clean_text(text)
    if sender_id == receiver_id:
        raise ValidationError("You cannot message yourself")

    timestamp = now or datetime.now(timezone.utc)
    room_id = room_id_for(sender_id, receiver_id)
    with unit_of_work(db):
        if db.get(User, sender_id) is None:
            raise NotFoundError("Sender not found")
        if db.get(User, receiver_id) is None:
            raise NotFoundError("Receiver not found")

        if reply_to_id is not None:
            target = _get_message(db, reply_to_id)
            if target.room_id != room_id:
                raise ValidationError("Replies must reference a message in the same room")
        if forward_from_id is not None:
            source = _get_message(db, forward_from_id)
            if not source.has_participant(sender_id):
                raise ForbiddenError("You cannot forward this message")
            if source.is_deleted_for_everyone:
                raise InvalidStateError("Cannot forward a deleted message")

        payload = cipher.encrypt(body)
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            room_id=room_id,
            content=payload.ciphertext,
            iv=payload.iv,
            reply_to_id=reply_to_id,
            forward_from_id=forward_from_id,
            created_at=timestamp,
            updated_at=timestamp,
        )
        db.add(message)
        db.flush()

    messages_total.labels("create").inc()
    db.refresh(message)
    return message


def edit_message(
    db: Session,
    cipher: MessageCipher,
    *,
    message_id: int,
    sender_id: int,
    new_text: object,
    now: datetime | None = None,
) -> Message:
    body = _clean_text(new_text)
    timestamp = now or datetime.now(timezone.utc)
    with unit_of_work(db):
        message = _get_message(db, message_id)
        if message.sender_id != sender_id:
            raise ForbiddenError("You can only edit your own messages")
        if message.is_deleted_for_everyone:
            raise InvalidStateError("Message was deleted")
        payload = cipher.encrypt(body)
        message.content = payload.ciphertext
        message.iv = payload.iv
        message.is_edited = True
        message.edited_at = timestamp
        message.updated_at = timestamp

    messages_total.labels("edit").inc()
    db.refresh(message)
    return message


def delete_for_self(db: Session, *, message_id: int, user_id: int) -> Message:
    """Hide the message from ``user_id`` only; repeating the call is a no-op."""

    with unit_of_work(db):
        message = _get_message(db, message_id)
        if not message.has_participant(user_id):
            raise ForbiddenError("You are not a participant of this conversation")
        stmt = select(MessageDeletion.id).where(
            MessageDeletion.message_id == message_id,
            MessageDeletion.user_id == user_id,
        )
        if db.execute(stmt).scalar_one_or_none() is None:
            db.add(MessageDeletion(message_id=message_id, user_id=user_id))

    messages_total.labels("delete_for_self").inc()
    return message


def delete_for_everyone(
    db: Session,
    *,
    message_id: int,
    sender_id: int,
    now: datetime | None = None,
) -> Message:
    """Blank the message for both participants within the deletion window.

    A message whose age has reached the window is already expired.
    """

    hours = get_settings().message_delete_window_hours
    window = timedelta(hours=hours)
    timestamp = now or datetime.now(timezone.utc)
    with unit_of_work(db):
        message = _get_message(db, message_id)
        if message.sender_id != sender_id:
            raise ForbiddenError("You can only delete your own messages for everyone")
        if message.is_deleted_for_everyone:
            raise InvalidStateError("Message was already deleted")
        if as_utc(timestamp) - as_utc(message.created_at) >= window:
            raise ExpiredWindowError(f"Messages can only be deleted for everyone within {hours} hours")
        message.is_deleted_for_everyone = True
        message.deleted_at = timestamp
        message.updated_at = timestamp

    messages_total.labels("delete_for_everyone").inc()
    db.refresh(message)
    return message


def mark_read(
    db: Session,
    *,
    message_id: int,
    reader_id: int,
    now: datetime | None = None,
) -> Message:
    """Mark a received message as read. Only the receiver can do this."""

    with unit_of_work(db):
        message = _get_message(db, message_id)
        if message.receiver_id != reader_id:
            raise ForbiddenError("Only the receiver can mark a message as read")
        if not message.is_read:
            message.is_read = True
            message.read_at = now or datetime.now(timezone.utc)

    db.refresh(message)
    return message


def get_messages_by_room(
    db: Session,
    cipher: MessageCipher,
    *,
    user_id: int,
    room_id: str,
) -> list[MessageRead]:
    """Room history, oldest first, as seen by ``user_id``."""

    if db.get(User, user_id) is None:
        raise NotFoundError("User not found")
    ensure_room_participant(room_id, user_id)

    stmt = (
        select(Message)
        .where(
            Message.room_id == room_id,
            ~Message.deletions.any(MessageDeletion.user_id == user_id),
        )
        .options(selectinload(Message.reply_to), selectinload(Message.forward_from))
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return [serialize_message(cipher, message) for message in db.execute(stmt).scalars()]


def _body(cipher: MessageCipher, message: Message) -> str | None:
    if message.is_deleted_for_everyone:
        return None
    return cipher.decrypt(message.content, message.iv)


def _preview(cipher: MessageCipher, message: Message | None) -> MessagePreview | None:
    if message is None:
        return None
    return MessagePreview(
        message_id=message.id,
        sender_id=message.sender_id,
        message=_body(cipher, message),
    )


def serialize_message(cipher: MessageCipher, message: Message) -> MessageRead:
    return MessageRead(
        message_id=message.id,
        sender_id=message.sender_id,
        receiver_id=message.receiver_id,
        room_id=message.room_id,
        message=_body(cipher, message),
        is_edited=message.is_edited,
        is_read=message.is_read,
        is_deleted_for_everyone=message.is_deleted_for_everyone,
        reply_to=_preview(cipher, message.reply_to),
        forward_from=_preview(cipher, message.forward_from),
        created_at=as_utc(message.created_at),
        updated_at=as_utc(message.updated_at),
        edited_at=as_utc(message.edited_at) if message.edited_at else None,
        deleted_at=as_utc(message.deleted_at) if message.deleted_at else None,
    )


def message_event(cipher: MessageCipher, message: Message, event_type: str) -> dict:
    """Wire representation of ``message`` tagged with an event ``type``."""

    payload = serialize_message(cipher, message).model_dump(by_alias=True, mode="json")
    payload["type"] = event_type
    return payload


def edited_event(cipher: MessageCipher, message: Message) -> dict:
    """``message_edited`` payload carrying the body as stored after the edit."""

    serialized = serialize_message(cipher, message)
    return {
        "type": "message_edited",
        "messageId": serialized.message_id,
        "newMessage": serialized.message,
        "isEdited": serialized.is_edited,
        "editedAt": serialized.edited_at.isoformat() if serialized.edited_at else None,
        "updatedAt": serialized.updated_at.isoformat(),
    }
