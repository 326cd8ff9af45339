from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lexify.crud import notification_crud
from lexify.models.user.notification_model import Notification, NotificationType
from lexify.notifications.websocket_manager import NotificationSocketManager, notification_socket_manager
from lexify.schemas.user import notification_schema

logger = logging.getLogger(__name__)


class Notifier:
    """Fire-and-forget delivery of goal events.

    Callers commit their own change first; a failure here is logged and
    rolled back locally, never raised.
    """

    def __init__(self, db: Session, sockets: NotificationSocketManager | None = notification_socket_manager):
        self.db = db
        self.sockets = sockets

    def notify(
        self,
        recipient_id: int,
        type: NotificationType,
        title: str,
        message: str,
        *,
        sender_id: Optional[int] = None,
        learning_goal_id: Optional[int] = None,
    ) -> Optional[Notification]:
        payload = notification_schema.NotificationCreate(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            title=title,
            message=message,
            learning_goal_id=learning_goal_id,
        )
        try:
            notification = notification_crud.create_notification(self.db, payload)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not persist %s notification for user %s", type.value, recipient_id)
            return None

        self._push(notification)
        return notification

    def _push(self, notification: Notification) -> None:
        if self.sockets is None:
            return
        try:
            self.sockets.notify(
                notification.recipient_id,
                {
                    "type": "notification",
                    "notification": notification_schema.NotificationRead.model_validate(notification).model_dump(
                        by_alias=True
                    ),
                },
            )
        except Exception:
            logger.exception("WebSocket push failed for notification %s", notification.id)
