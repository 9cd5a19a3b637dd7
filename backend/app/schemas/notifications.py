"""Schemas for user notifications."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models.enums import NotificationType
from app.schemas.users import UserSummary


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    sender_id: int | None = None
    sender: UserSummary | None = None
    type: NotificationType
    message: str
    is_read: bool
    created_at: datetime
