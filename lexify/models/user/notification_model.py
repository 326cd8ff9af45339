# Fichier: lexify/models/user/notification_model.py

import enum
from sqlalchemy import Boolean, Column, Integer, String, ForeignKey, DateTime, func, Enum
from sqlalchemy.orm import relationship
from lexify.db.base_class import Base


class NotificationType(str, enum.Enum):
    GOAL_INVITE = "goal_invite"
    GOAL_ACCEPTED = "goal_accepted"
    QUIZ_COMPLETED = "quiz_completed"
    GOAL_COMPLETED = "goal_completed"
    DAILY_REMINDER = "daily_reminder"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    type = Column(
        Enum(NotificationType, name="notification_type", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)

    # No foreign key: deleting a goal leaves this reference dangling.
    learning_goal_id = Column(Integer, nullable=True, index=True)

    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    recipient = relationship("User", back_populates="notifications", foreign_keys=[recipient_id])
    sender = relationship("User", foreign_keys=[sender_id])
