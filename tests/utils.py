"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import timedelta
from typing import List

from lexify.models.learning.learning_goal_model import GoalStatus, SharedLearningGoal, utcnow
from lexify.models.user.user_model import User
from lexify.schemas.learning.quiz_schema import Difficulty, QuizQuestion
from lexify.services.notification_service import Notifier
from lexify.services.quiz_generator import FallbackQuizGenerator, QuizGenerator


def create_user(db, **kwargs) -> User:
    defaults = {
        "username": "user",
        "email": "user@example.com",
        "full_name": "User",
        "is_active": True,
        "native_language": "English",
        "learning_language": "Spanish",
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_pair(db) -> tuple[User, User]:
    alice = create_user(
        db,
        username="alice",
        email="alice@example.com",
        full_name="Alice",
        native_language="English",
        learning_language="Spanish",
    )
    bob = create_user(
        db,
        username="bob",
        email="bob@example.com",
        full_name="Bob",
        native_language="Spanish",
        learning_language="English",
    )
    return alice, bob


def quiet_notifier(db) -> Notifier:
    """A notifier that persists but never touches WebSockets."""
    return Notifier(db, sockets=None)


def fixed_generator() -> FallbackQuizGenerator:
    """Offline bank with the correct option always first."""
    return FallbackQuizGenerator(shuffle=False)


def backdate(db, goal: SharedLearningGoal, days: int) -> SharedLearningGoal:
    """Pretend the goal started ``days`` days ago."""
    started = utcnow() - timedelta(days=days, minutes=1)
    goal.started_at = started
    goal.end_date = started + timedelta(days=goal.duration)
    db.commit()
    db.refresh(goal)
    return goal


def create_active_goal(service, partner_service, partner: User, duration: int = 3) -> SharedLearningGoal:
    goal = service.create_goal(partner_id=partner.id, duration=duration)
    goal = partner_service.accept_goal(goal.id)
    assert goal.status == GoalStatus.ACTIVE
    return goal


class RecordingGenerator(QuizGenerator):
    """Fixed quiz whose questions mention the languages they were built for."""

    def __init__(self, fail_on_day: int | None = None):
        self.calls: List[tuple] = []
        self.fail_on_day = fail_on_day

    def generate(self, day, duration, learner_language, native_language, difficulty: Difficulty):
        self.calls.append((day, learner_language, native_language, difficulty))
        if self.fail_on_day is not None and day == self.fail_on_day:
            raise RuntimeError("upstream unavailable")
        return [
            QuizQuestion(
                question=f"Day {day} question {index} ({native_language} -> {learner_language})",
                options=["a", "b", "c", "d"],
                correct_answer=index % 4,
                difficulty=difficulty,
                concept="general",
            )
            for index in range(5)
        ]
