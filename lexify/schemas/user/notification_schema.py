# Fichier: lexify/schemas/user/notification_schema.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lexify.models.user.notification_model import NotificationType
from lexify.schemas.base_schema import CamelModel
from lexify.schemas.user.user_schema import UserSummary


# Internal, used by the notifier
class NotificationCreate(BaseModel):
    recipient_id: int
    type: NotificationType
    title: str
    message: str
    sender_id: Optional[int] = None
    learning_goal_id: Optional[int] = None


# Sent to the client
class NotificationRead(CamelModel):
    id: int
    type: NotificationType
    title: str
    message: str
    read: bool
    learning_goal_id: Optional[int] = None
    sender: Optional[UserSummary] = None
    created_at: Optional[datetime] = None


class UnreadCount(CamelModel):
    unread_count: int


class MessageOut(CamelModel):
    message: str
