from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lexify.db.base_class import Base
from lexify.models.user.user_model import DEFAULT_LANGUAGE, User
from lexify.schemas.learning.quiz_schema import QuizQuestion, quiz_from_storage

MIN_DURATION_DAYS = 3
MAX_DURATION_DAYS = 30
DAY = timedelta(days=1)


class GoalStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Allowed status changes; cancelled and completed are terminal.
ALLOWED_TRANSITIONS: dict[GoalStatus, frozenset[GoalStatus]] = {
    GoalStatus.PENDING: frozenset({GoalStatus.ACTIVE, GoalStatus.CANCELLED}),
    GoalStatus.ACTIVE: frozenset({GoalStatus.COMPLETED}),
    GoalStatus.CANCELLED: frozenset(),
    GoalStatus.COMPLETED: frozenset(),
}


class GoalRole(str, enum.Enum):
    CREATOR = "creator"
    PARTNER = "partner"

    @property
    def other(self) -> "GoalRole":
        return GoalRole.PARTNER if self is GoalRole.CREATOR else GoalRole.CREATOR


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Completion:
    completed: bool
    completed_at: Optional[datetime]
    score: Optional[int]
    answers: Optional[List[int]]


class SharedLearningGoal(Base):
    __tablename__ = "shared_learning_goals"
    __table_args__ = (
        CheckConstraint("creator_id <> partner_id", name="ck_goal_distinct_participants"),
        CheckConstraint(
            f"duration >= {MIN_DURATION_DAYS} AND duration <= {MAX_DURATION_DAYS}",
            name="ck_goal_duration_range",
        ),
        Index("ix_goal_creator_status", "creator_id", "status"),
        Index("ix_goal_partner_status", "partner_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    creator_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    partner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[GoalStatus] = mapped_column(
        Enum(GoalStatus, name="goal_status", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=GoalStatus.PENDING,
        server_default=GoalStatus.PENDING.value,
    )

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Language snapshots, refreshed at acceptance and on drift.
    creator_language: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_LANGUAGE)
    partner_language: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_LANGUAGE)
    creator_native_language: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_LANGUAGE)
    partner_native_language: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_LANGUAGE)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    creator: Mapped[User] = relationship(foreign_keys=[creator_id])
    partner: Mapped[User] = relationship(foreign_keys=[partner_id])
    days: Mapped[List["LearningGoalDay"]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="LearningGoalDay.day",
    )

    # ------------------------------------------------------------------
    # Time helpers
    # ------------------------------------------------------------------
    def days_elapsed(self, now: datetime | None = None) -> int | None:
        started = as_utc(self.started_at)
        if started is None:
            return None
        reference = as_utc(now) or utcnow()
        return (reference - started) // DAY

    def is_day_unlocked(self, day: int, now: datetime | None = None) -> bool:
        elapsed = self.days_elapsed(now)
        if elapsed is None:
            return False
        return day <= elapsed + 1

    def current_day(self, now: datetime | None = None) -> int:
        elapsed = self.days_elapsed(now)
        if elapsed is None:
            return 0
        return min(elapsed + 1, self.duration)

    def is_expired(self, now: datetime | None = None) -> bool:
        end = as_utc(self.end_date)
        if end is None:
            return False
        return (as_utc(now) or utcnow()) > end

    # ------------------------------------------------------------------
    # Participants & state
    # ------------------------------------------------------------------
    def role_of(self, user_id: int) -> GoalRole | None:
        if user_id == self.creator_id:
            return GoalRole.CREATOR
        if user_id == self.partner_id:
            return GoalRole.PARTNER
        return None

    def participant_id(self, role: GoalRole) -> int:
        return self.creator_id if role is GoalRole.CREATOR else self.partner_id

    def can_transition_to(self, target: GoalStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[GoalStatus(self.status)]

    def day_progress(self, day: int) -> Optional["LearningGoalDay"]:
        return next((entry for entry in self.days if entry.day == day), None)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<SharedLearningGoal(id={self.id}, status='{self.status}', duration={self.duration})>"


class LearningGoalDay(Base):
    """One day of a goal: both quizzes and both completions."""

    __tablename__ = "learning_goal_days"
    __table_args__ = (
        UniqueConstraint("goal_id", "day", name="uq_goal_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    goal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shared_learning_goals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day: Mapped[int] = mapped_column(Integer, nullable=False)

    creator_quiz: Mapped[List[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    partner_quiz: Mapped[List[dict[str, Any]]] = mapped_column(JSON, nullable=False)

    creator_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    creator_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    creator_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    creator_answers: Mapped[Optional[List[int]]] = mapped_column(JSON, nullable=True)

    partner_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")
    partner_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    partner_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    partner_answers: Mapped[Optional[List[int]]] = mapped_column(JSON, nullable=True)

    goal: Mapped[SharedLearningGoal] = relationship(back_populates="days")

    def quiz_for(self, role: GoalRole) -> List[QuizQuestion]:
        raw = self.creator_quiz if role is GoalRole.CREATOR else self.partner_quiz
        return quiz_from_storage(raw)

    def completion_for(self, role: GoalRole) -> Completion:
        prefix = role.value
        return Completion(
            completed=bool(getattr(self, f"{prefix}_completed")),
            completed_at=as_utc(getattr(self, f"{prefix}_completed_at")),
            score=getattr(self, f"{prefix}_score"),
            answers=getattr(self, f"{prefix}_answers"),
        )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<LearningGoalDay(goal_id={self.goal_id}, day={self.day})>"
