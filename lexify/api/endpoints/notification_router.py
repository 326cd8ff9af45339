# Fichier: lexify/api/endpoints/notification_router.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lexify.api.dependencies import get_current_user, get_db
from lexify.crud import notification_crud
from lexify.models.user.user_model import User
from lexify.schemas.user import notification_schema

router = APIRouter()


@router.get("", response_model=List[notification_schema.NotificationRead], summary="List the caller's notifications")
def read_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The 50 most recent notifications, newest first."""
    return notification_crud.get_notifications_by_user(db, user_id=current_user.id)


@router.get("/unread-count", response_model=notification_schema.UnreadCount, summary="Count unread notifications")
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    count = notification_crud.get_unread_notifications_count(db, user_id=current_user.id)
    return {"unread_count": count}


@router.patch("/read-all", response_model=notification_schema.MessageOut, summary="Mark every notification as read")
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification_crud.mark_all_as_read(db, user_id=current_user.id)
    return {"message": "All notifications marked as read"}


@router.patch(
    "/{notification_id}/read",
    response_model=notification_schema.NotificationRead,
    summary="Mark one notification as read",
)
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = notification_crud.mark_as_read(db, notification_id=notification_id, user_id=current_user.id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


@router.delete("/{notification_id}", response_model=notification_schema.MessageOut, summary="Delete a notification")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not notification_crud.delete_notification(db, notification_id=notification_id, user_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return {"message": "Notification deleted"}
