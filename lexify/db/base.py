"""Imports every model so ``Base.metadata`` knows about all tables."""

from lexify.db.base_class import Base

from lexify.models.user.user_model import User
from lexify.models.user.notification_model import Notification
from lexify.models.learning.learning_goal_model import LearningGoalDay, SharedLearningGoal

__all__ = (
    "Base",
    "User",
    "Notification",
    "SharedLearningGoal",
    "LearningGoalDay",
)
