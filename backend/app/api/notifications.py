"""Notification inbox endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.database import get_db, unit_of_work
from app.models import User
from app.schemas import ApiResponse, NotificationRead, ok
from app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[list[NotificationRead]])
def list_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[list[NotificationRead]]:
    """Notifications for the current user, newest first."""

    items = notification_service.list_notifications(db, current_user.id)
    return ok("Notifications fetched", [NotificationRead.model_validate(item) for item in items])


@router.patch("/{notification_id}", response_model=ApiResponse[NotificationRead])
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[NotificationRead]:
    with unit_of_work(db):
        notification = notification_service.mark_notification_read(db, current_user.id, notification_id)
    return ok("Notification marked as read", NotificationRead.model_validate(notification))


@router.delete("/{notification_id}", response_model=ApiResponse[None])
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    with unit_of_work(db):
        notification_service.delete_notification(db, current_user.id, notification_id)
    return ok("Notification deleted")
