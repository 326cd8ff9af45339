from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from lexify.models.learning.learning_goal_model import GoalStatus
from lexify.schemas.base_schema import CamelModel
from lexify.schemas.learning.quiz_schema import Difficulty
from lexify.schemas.user.user_schema import UserSummary


# --- Requests ---
class LearningGoalCreateIn(CamelModel):
    partner_id: Optional[int] = None
    duration: Optional[int] = None


class QuizSubmitIn(CamelModel):
    answers: Optional[List[int]] = None


# --- Goal payloads ---
class GoalDayDigest(CamelModel):
    day: int
    unlocked: bool
    creator_completed: bool
    partner_completed: bool
    creator_score: Optional[int] = None
    partner_score: Optional[int] = None


class LearningGoalOut(CamelModel):
    id: int
    creator: UserSummary
    partner: UserSummary
    duration: int
    status: GoalStatus
    started_at: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    creator_language: str
    partner_language: str
    creator_native_language: str
    partner_native_language: str
    current_day: int
    expired: bool = False
    progress: List[GoalDayDigest]


# --- Quiz payloads ---
class QuizQuestionOut(CamelModel):
    """A question as the learner sees it: never the correct answer."""

    question: str
    options: List[str]
    difficulty: Difficulty
    concept: str


class DailyQuizOut(CamelModel):
    day: int
    quiz: List[QuizQuestionOut]
    completed: bool
    score: Optional[int] = None


class QuestionResult(CamelModel):
    question_index: int
    user_answer: int
    correct_answer: int
    is_correct: bool
    was_answered: bool


class QuizSubmitOut(CamelModel):
    score: int
    total_questions: int
    completed: bool
    goal_completed: bool
    results: List[QuestionResult]


# --- Summary ---
class GoalFacts(CamelModel):
    duration: int
    status: GoalStatus
    started_at: Optional[datetime] = None
    end_date: Optional[datetime] = None
    creator_language: str
    partner_language: str


class ParticipantSummary(CamelModel):
    user: UserSummary
    total_score: int
    days_completed: int
    average_score: float


class GoalSummaryOut(CamelModel):
    goal: GoalFacts
    creator: ParticipantSummary
    partner: ParticipantSummary
    total_possible_score: int
