# Fichier: lexify/crud/notification_crud.py

from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from lexify.models.user.notification_model import Notification
from lexify.schemas.user import notification_schema

RECENT_LIMIT = 50


def create_notification(db: Session, notification: notification_schema.NotificationCreate) -> Notification:
    """Persist one notification and return it refreshed."""
    db_notification = Notification(
        recipient_id=notification.recipient_id,
        sender_id=notification.sender_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        learning_goal_id=notification.learning_goal_id,
    )
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification


def get_notifications_by_user(db: Session, user_id: int, limit: int = RECENT_LIMIT) -> List[Notification]:
    """Most recent notifications first, with their sender loaded."""
    return (
        db.query(Notification)
        .options(joinedload(Notification.sender))
        .filter(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def get_unread_notifications_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id, Notification.read.is_(False))
        .count()
    )


def mark_as_read(db: Session, notification_id: int, user_id: int) -> Optional[Notification]:
    """``None`` when the notification does not exist or belongs to someone else."""
    db_notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.recipient_id == user_id)
        .first()
    )
    if db_notification:
        db_notification.read = True
        db.commit()
        db.refresh(db_notification)
    return db_notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id, Notification.read.is_(False))
        .update({"read": True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: int, user_id: int) -> bool:
    deleted = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.recipient_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0
