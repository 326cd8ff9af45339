"""Errors raised by the learning-goal engine, each carrying its HTTP status."""

from __future__ import annotations


class LearningGoalError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.message


class GoalValidationError(LearningGoalError):
    """Malformed input: duration, self-invite, answers."""

    status_code = 400


class GoalNotFoundError(LearningGoalError):
    status_code = 404


class GoalAccessError(LearningGoalError):
    """The caller does not take part in the goal, or holds the wrong role."""

    status_code = 403


class GoalConflictError(LearningGoalError):
    """The goal's current state forbids the operation."""

    status_code = 400


class QuizGenerationError(LearningGoalError):
    status_code = 500
