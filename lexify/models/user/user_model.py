from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from lexify.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from .notification_model import Notification

DEFAULT_LANGUAGE = "English"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    profile_pic: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Profile languages are edited elsewhere; the goal engine only reads them.
    native_language: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    learning_language: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    notifications: Mapped[List["Notification"]] = relationship(
        back_populates="recipient",
        cascade="all, delete-orphan",
        foreign_keys="Notification.recipient_id",
    )

    @property
    def effective_learning_language(self) -> str:
        return self.learning_language or DEFAULT_LANGUAGE

    @property
    def effective_native_language(self) -> str:
        return self.native_language or DEFAULT_LANGUAGE

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
