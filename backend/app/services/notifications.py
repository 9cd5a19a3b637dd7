"""Persisted notifications about follow graph changes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.errors import ForbiddenError, NotFoundError
from app.models import Notification, NotificationType, User
from app.schemas.notifications import NotificationRead

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from orbit.realtime import SessionRegistry

logger = logging.getLogger(__name__)

_TEMPLATES: dict[NotificationType, str] = {
    NotificationType.FOLLOW: "{username} started following you.",
    NotificationType.FOLLOW_REQUEST: "{username} sent you a follow request.",
    NotificationType.REQUEST_ACCEPTED: "{username} accepted your follow request.",
    NotificationType.REQUEST_REJECTED: "{username} rejected your follow request.",
}


def create_notification(
    db: Session,
    *,
    user_id: int,
    sender: User,
    notification_type: NotificationType,
) -> Notification:
    """Stage a notification in the caller's unit of work."""

    notification = Notification(
        user_id=user_id,
        sender_id=sender.id,
        type=notification_type,
        message=_TEMPLATES[notification_type].format(username=sender.username),
        is_read=False,
    )
    db.add(notification)
    db.flush()
    return notification


def list_notifications(db: Session, user_id: int) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .options(selectinload(Notification.sender))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def _get_owned(db: Session, user_id: int, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != user_id:
        raise ForbiddenError("You can only manage your own notifications")
    return notification


def mark_notification_read(db: Session, user_id: int, notification_id: int) -> Notification:
    notification = _get_owned(db, user_id, notification_id)
    notification.is_read = True
    db.flush()
    return notification


def delete_notification(db: Session, user_id: int, notification_id: int) -> None:
    notification = _get_owned(db, user_id, notification_id)
    db.delete(notification)
    db.flush()


def serialize_notification(notification: Notification) -> dict:
    return NotificationRead.model_validate(notification).model_dump(mode="json")


async def push_notification(registry: "SessionRegistry", notification: Notification) -> bool:
    """Deliver ``receive_notification`` to the recipient's live connection, if any."""

    payload = {"type": "receive_notification", "notification": serialize_notification(notification)}
    delivered = await registry.emit_to_user(notification.user_id, payload)
    if not delivered:
        logger.debug("Recipient %s offline; notification %s stored only", notification.user_id, notification.id)
    return delivered
