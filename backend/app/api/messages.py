"""HTTP endpoints for direct messages.

Mutations made here are fanned out to the room over the chat socket exactly
as if they had arrived on it.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from orbit.realtime import SessionRegistry

from app.api.deps import get_cipher, get_current_user, get_session_registry
from app.core.encryption import MessageCipher
from app.database import get_db
from app.models import User
from app.schemas import ApiResponse, MessageCreate, MessageRead, MessageUpdate, ok
from app.services import messages as message_store

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post(
    "/{receiver_id}",
    response_model=ApiResponse[MessageRead],
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    receiver_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cipher: MessageCipher = Depends(get_cipher),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ApiResponse[MessageRead]:
    message = message_store.create_message(
        db,
        cipher,
        sender_id=current_user.id,
        receiver_id=receiver_id,
        text=payload.message,
        reply_to_id=payload.reply_to_id,
        forward_from_id=payload.forward_from_id,
    )
    await registry.emit_to_room(
        message.room_id, message_store.message_event(cipher, message, "receive_message")
    )
    return ok("Message sent", message_store.serialize_message(cipher, message))


@router.get("/{room_id}", response_model=ApiResponse[list[MessageRead]], response_model_by_alias=True)
def get_room_messages(
    room_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cipher: MessageCipher = Depends(get_cipher),
) -> ApiResponse[list[MessageRead]]:
    """Room history for the current user, oldest first."""

    messages = message_store.get_messages_by_room(db, cipher, user_id=current_user.id, room_id=room_id)
    return ok("Messages fetched", messages)


@router.put("/{message_id}", response_model=ApiResponse[MessageRead], response_model_by_alias=True)
async def edit_message(
    message_id: int,
    payload: MessageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    cipher: MessageCipher = Depends(get_cipher),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ApiResponse[MessageRead]:
    message = message_store.edit_message(
        db, cipher, message_id=message_id, sender_id=current_user.id, new_text=payload.new_message
    )
    await registry.emit_to_room(message.room_id, message_store.edited_event(cipher, message))
    return ok("Message edited", message_store.serialize_message(cipher, message))


@router.delete("/self/{message_id}", response_model=ApiResponse[None])
def delete_message_for_self(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    message_store.delete_for_self(db, message_id=message_id, user_id=current_user.id)
    return ok("Message deleted for you")


@router.delete("/everyone/{message_id}", response_model=ApiResponse[None])
async def delete_message_for_everyone(
    message_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> ApiResponse[None]:
    message = message_store.delete_for_everyone(db, message_id=message_id, sender_id=current_user.id)
    await registry.emit_to_room(
        message.room_id, {"type": "message_deleted_for_everyone", "messageId": message.id}
    )
    return ok("Message deleted for everyone")
