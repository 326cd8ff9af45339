from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, List, Sequence

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from lexify.core.config import settings
from lexify.models.learning.learning_goal_model import (
    MAX_DURATION_DAYS,
    MIN_DURATION_DAYS,
    GoalRole,
    GoalStatus,
    LearningGoalDay,
    SharedLearningGoal,
    utcnow,
)
from lexify.models.user.notification_model import NotificationType
from lexify.models.user.user_model import User
from lexify.schemas.learning.quiz_schema import QUESTIONS_PER_QUIZ, QuizQuestion, quiz_to_storage
from lexify.services.learning_goal_errors import (
    GoalAccessError,
    GoalConflictError,
    GoalNotFoundError,
    GoalValidationError,
    QuizGenerationError,
)
from lexify.services.notification_service import Notifier
from lexify.services.quiz_generator import (
    LanguagePair,
    QuizGenerator,
    QuizPair,
    build_quiz_generator,
    generate_quiz_pair,
)

logger = logging.getLogger(__name__)

UNANSWERED = -1


def score_answers(quiz: Sequence[QuizQuestion], answers: Sequence[int]) -> int:
    """Count correct answers; ``-1`` (unanswered) never counts."""
    return sum(
        1
        for question, answer in zip(quiz, answers)
        if answer != UNANSWERED and answer == question.correct_answer
    )


def _user_summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "full_name": user.full_name,
        "profile_pic": user.profile_pic,
        "learning_language": user.learning_language,
    }


class LearningGoalService:
    """Lifecycle of a shared learning goal, seen from one participant."""

    def __init__(
        self,
        db: Session,
        user: User,
        quiz_generator: QuizGenerator | None = None,
        notifier: Notifier | None = None,
        *,
        generation_workers: int | None = None,
    ):
        self.db = db
        self.user = user
        self.quiz_generator = quiz_generator or build_quiz_generator()
        self.notifier = notifier or Notifier(db)
        self.generation_workers = max(1, generation_workers or settings.QUIZ_GENERATION_WORKERS)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create_goal(self, partner_id: int | None, duration: Any) -> SharedLearningGoal:
        """Invite ``partner_id`` to a pending goal of ``duration`` days."""
        if partner_id is None or duration is None:
            raise GoalValidationError("Partner and duration are required")

        duration_days = self._coerce_duration(duration)

        if partner_id == self.user.id:
            raise GoalValidationError("Cannot create a goal with yourself")

        partner = self.db.get(User, partner_id)
        if partner is None:
            raise GoalNotFoundError("Partner not found")

        existing = (
            self.db.query(SharedLearningGoal.id)
            .filter(
                or_(
                    and_(SharedLearningGoal.creator_id == self.user.id, SharedLearningGoal.partner_id == partner.id),
                    and_(SharedLearningGoal.creator_id == partner.id, SharedLearningGoal.partner_id == self.user.id),
                ),
                SharedLearningGoal.status.in_([GoalStatus.PENDING, GoalStatus.ACTIVE]),
            )
            .first()
        )
        if existing is not None:
            raise GoalConflictError("You already have an active or pending goal with this user")

        goal = SharedLearningGoal(
            creator_id=self.user.id,
            partner_id=partner.id,
            duration=duration_days,
            status=GoalStatus.PENDING,
            creator_language=self.user.effective_learning_language,
            creator_native_language=self.user.effective_native_language,
            partner_language=partner.effective_learning_language,
            partner_native_language=partner.effective_native_language,
        )
        self.db.add(goal)
        self.db.commit()
        self.db.refresh(goal)
        logger.info("Goal %s created: user %s invited user %s for %s days", goal.id, self.user.id, partner.id, duration_days)

        self.notifier.notify(
            partner.id,
            NotificationType.GOAL_INVITE,
            "New Learning Goal Invitation",
            f"{self.user.full_name} invited you to a {duration_days}-day learning goal!",
            sender_id=self.user.id,
            learning_goal_id=goal.id,
        )
        return goal

    def accept_goal(self, goal_id: int) -> SharedLearningGoal:
        """Activate a pending goal with its whole quiz schedule, in one commit."""
        goal = self._load_goal(goal_id)
        if goal.partner_id != self.user.id:
            raise GoalAccessError("Only the invited partner can accept")
        if not goal.can_transition_to(GoalStatus.ACTIVE):
            raise GoalConflictError("Goal is not pending")

        creator_langs, partner_langs = self._live_languages(goal)
        try:
            schedule = self._generate_schedule(goal.duration, creator_langs, partner_langs)
        except Exception as exc:
            logger.exception("Quiz schedule generation failed for goal %s", goal.id)
            raise QuizGenerationError("Internal Server Error") from exc

        now = self._utcnow()
        activated = self.db.execute(
            update(SharedLearningGoal)
            .where(SharedLearningGoal.id == goal.id, SharedLearningGoal.status == GoalStatus.PENDING)
            .values(
                status=GoalStatus.ACTIVE,
                started_at=now,
                end_date=now + timedelta(days=goal.duration),
                **self._snapshot_values(creator_langs, partner_langs),
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        if activated != 1:
            self.db.rollback()
            raise GoalConflictError("Goal is not pending")

        goal.days.extend(
            LearningGoalDay(
                day=day,
                creator_quiz=quiz_to_storage(pair.creator_quiz),
                partner_quiz=quiz_to_storage(pair.partner_quiz),
                creator_completed=False,
                partner_completed=False,
            )
            for day, pair in enumerate(schedule, start=1)
        )
        self.db.commit()
        self.db.refresh(goal)
        logger.info("Goal %s accepted: %s days scheduled", goal.id, goal.duration)

        self.notifier.notify(
            goal.creator_id,
            NotificationType.GOAL_ACCEPTED,
            "Goal Invitation Accepted",
            f"{goal.partner.full_name} accepted your learning goal invitation!",
            sender_id=self.user.id,
            learning_goal_id=goal.id,
        )
        return goal

    def decline_goal(self, goal_id: int) -> SharedLearningGoal:
        goal = self._load_goal(goal_id)
        if goal.partner_id != self.user.id:
            raise GoalAccessError("Only the invited partner can decline")
        if not goal.can_transition_to(GoalStatus.CANCELLED):
            raise GoalConflictError("Goal is not pending")

        cancelled = self.db.execute(
            update(SharedLearningGoal)
            .where(SharedLearningGoal.id == goal.id, SharedLearningGoal.status == GoalStatus.PENDING)
            .values(status=GoalStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        ).rowcount
        if cancelled != 1:
            self.db.rollback()
            raise GoalConflictError("Goal is not pending")

        self.db.commit()
        self.db.refresh(goal)
        logger.info("Goal %s declined by user %s", goal.id, self.user.id)
        return goal

    def delete_goal(self, goal_id: int) -> None:
        """Hard delete, any status. Notifications keep their goal id."""
        goal = self._load_goal(goal_id)
        self._require_role(goal)
        self.db.delete(goal)
        self.db.commit()
        logger.info("Goal %s deleted by user %s", goal_id, self.user.id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_goals(self) -> List[SharedLearningGoal]:
        return (
            self.db.query(SharedLearningGoal)
            .filter(or_(SharedLearningGoal.creator_id == self.user.id, SharedLearningGoal.partner_id == self.user.id))
            .order_by(SharedLearningGoal.created_at.desc(), SharedLearningGoal.id.desc())
            .all()
        )

    def get_goal(self, goal_id: int) -> SharedLearningGoal:
        goal = self._load_goal(goal_id)
        self._require_role(goal)
        return goal

    # ------------------------------------------------------------------
    # Quizzes
    # ------------------------------------------------------------------
    def get_daily_quiz(self, goal_id: int, day: Any) -> dict[str, Any]:
        """The caller's quiz for ``day``, without answers.

        When a participant's profile languages drifted from the goal snapshot,
        only this day's pair is regenerated before it is served.
        """
        goal, role, entry = self._load_active_day(goal_id, day)

        creator_langs, partner_langs = self._live_languages(goal)
        if self._snapshot_pairs(goal) != (creator_langs, partner_langs):
            self._regenerate_day(goal, entry, creator_langs, partner_langs)

        completion = entry.completion_for(role)
        return {
            "day": entry.day,
            "quiz": [
                {
                    "question": question.question,
                    "options": list(question.options),
                    "difficulty": question.difficulty,
                    "concept": question.concept,
                }
                for question in entry.quiz_for(role)
            ],
            "completed": completion.completed,
            "score": completion.score,
        }

    def submit_quiz(self, goal_id: int, day: Any, answers: Any) -> dict[str, Any]:
        """Score the caller's answers once; may complete the whole goal."""
        if not isinstance(answers, list):
            raise GoalValidationError("Answers must be an array")
        if any(isinstance(answer, bool) or not isinstance(answer, int) for answer in answers):
            raise GoalValidationError("Answers must be integers")

        goal, role, entry = self._load_active_day(goal_id, day)
        if entry.completion_for(role).completed:
            raise GoalConflictError("Quiz already completed for this day")

        quiz = entry.quiz_for(role)
        padded = [answers[index] if index < len(answers) else UNANSWERED for index in range(len(quiz))]
        score = score_answers(quiz, padded)

        prefix = role.value
        completed_column = getattr(LearningGoalDay, f"{prefix}_completed")
        written = self.db.execute(
            update(LearningGoalDay)
            .where(LearningGoalDay.id == entry.id, completed_column.is_(False))
            .values(
                {
                    f"{prefix}_completed": True,
                    f"{prefix}_completed_at": self._utcnow(),
                    f"{prefix}_score": score,
                    f"{prefix}_answers": list(answers),
                }
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        if written != 1:
            self.db.rollback()
            raise GoalConflictError("Quiz already completed for this day")

        # Last submissions on different days must not both count one open day.
        self.db.execute(select(SharedLearningGoal.id).where(SharedLearningGoal.id == goal.id).with_for_update())
        remaining = (
            self.db.query(func.count(LearningGoalDay.id))
            .filter(
                LearningGoalDay.goal_id == goal.id,
                or_(LearningGoalDay.creator_completed.is_(False), LearningGoalDay.partner_completed.is_(False)),
            )
            .scalar()
        )
        goal_completed_now = False
        if remaining == 0:
            flipped = self.db.execute(
                update(SharedLearningGoal)
                .where(SharedLearningGoal.id == goal.id, SharedLearningGoal.status == GoalStatus.ACTIVE)
                .values(status=GoalStatus.COMPLETED)
                .execution_options(synchronize_session=False)
            ).rowcount
            goal_completed_now = flipped == 1

        self.db.commit()
        self.db.refresh(goal)
        self.db.refresh(entry)
        logger.info(
            "User %s submitted day %s of goal %s: %s/%s",
            self.user.id,
            entry.day,
            goal.id,
            score,
            len(quiz),
        )

        if goal_completed_now:
            self._notify_goal_completed(goal)
        elif remaining:
            other = role.other
            self.notifier.notify(
                goal.participant_id(other),
                NotificationType.QUIZ_COMPLETED,
                "Partner Completed Quiz",
                f"{self.user.full_name} completed today's quiz!",
                sender_id=self.user.id,
                learning_goal_id=goal.id,
            )

        return {
            "score": score,
            "total_questions": len(quiz),
            "completed": True,
            "goal_completed": goal.status == GoalStatus.COMPLETED,
            "results": [
                {
                    "question_index": index,
                    "user_answer": padded[index],
                    "correct_answer": question.correct_answer,
                    "is_correct": padded[index] != UNANSWERED and padded[index] == question.correct_answer,
                    "was_answered": padded[index] != UNANSWERED,
                }
                for index, question in enumerate(quiz)
            ],
        }

    # ------------------------------------------------------------------
    # Payloads
    # ------------------------------------------------------------------
    def build_goal_payload(self, goal: SharedLearningGoal) -> dict[str, Any]:
        now = self._utcnow()
        return {
            "id": goal.id,
            "creator": _user_summary(goal.creator),
            "partner": _user_summary(goal.partner),
            "duration": goal.duration,
            "status": goal.status,
            "started_at": goal.started_at,
            "end_date": goal.end_date,
            "created_at": goal.created_at,
            "creator_language": goal.creator_language,
            "partner_language": goal.partner_language,
            "creator_native_language": goal.creator_native_language,
            "partner_native_language": goal.partner_native_language,
            "current_day": goal.current_day(now),
            "expired": goal.is_expired(now),
            "progress": [
                {
                    "day": entry.day,
                    "unlocked": goal.is_day_unlocked(entry.day, now),
                    "creator_completed": entry.creator_completed,
                    "partner_completed": entry.partner_completed,
                    "creator_score": entry.creator_score,
                    "partner_score": entry.partner_score,
                }
                for entry in goal.days
            ],
        }

    def build_summary(self, goal_id: int) -> dict[str, Any]:
        goal = self.get_goal(goal_id)
        return {
            "goal": {
                "duration": goal.duration,
                "status": goal.status,
                "started_at": goal.started_at,
                "end_date": goal.end_date,
                "creator_language": goal.creator_language,
                "partner_language": goal.partner_language,
            },
            "creator": self._participant_summary(goal, GoalRole.CREATOR),
            "partner": self._participant_summary(goal, GoalRole.PARTNER),
            "total_possible_score": len(goal.days) * QUESTIONS_PER_QUIZ,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _utcnow() -> datetime:
        return utcnow()

    @staticmethod
    def _coerce_duration(duration: Any) -> int:
        invalid = GoalValidationError(
            f"Duration must be between {MIN_DURATION_DAYS} and {MAX_DURATION_DAYS} days"
        )
        if isinstance(duration, bool):
            raise invalid
        try:
            value = float(duration)
        except (TypeError, ValueError):
            raise invalid from None
        if not value.is_integer() or not MIN_DURATION_DAYS <= value <= MAX_DURATION_DAYS:
            raise invalid
        return int(value)

    @staticmethod
    def _coerce_day(day: Any) -> int:
        try:
            return int(day)
        except (TypeError, ValueError):
            raise GoalValidationError("Day must be a number") from None

    def _load_goal(self, goal_id: int) -> SharedLearningGoal:
        goal = self.db.get(SharedLearningGoal, goal_id)
        if goal is None:
            raise GoalNotFoundError("Goal not found")
        return goal

    def _require_role(self, goal: SharedLearningGoal) -> GoalRole:
        role = goal.role_of(self.user.id)
        if role is None:
            raise GoalAccessError("Access denied")
        return role

    def _load_active_day(self, goal_id: int, day: Any) -> tuple[SharedLearningGoal, GoalRole, LearningGoalDay]:
        goal = self._load_goal(goal_id)
        role = self._require_role(goal)
        if goal.status != GoalStatus.ACTIVE:
            raise GoalConflictError("Goal is not active")

        day_number = self._coerce_day(day)
        if not goal.is_day_unlocked(day_number, self._utcnow()):
            raise GoalConflictError("This day is not yet unlocked")

        entry = goal.day_progress(day_number)
        if entry is None:
            raise GoalNotFoundError("Quiz not found for this day")
        return goal, role, entry

    @staticmethod
    def _live_languages(goal: SharedLearningGoal) -> tuple[LanguagePair, LanguagePair]:
        return (
            LanguagePair(goal.creator.effective_learning_language, goal.creator.effective_native_language),
            LanguagePair(goal.partner.effective_learning_language, goal.partner.effective_native_language),
        )

    @staticmethod
    def _snapshot_pairs(goal: SharedLearningGoal) -> tuple[LanguagePair, LanguagePair]:
        return (
            LanguagePair(goal.creator_language, goal.creator_native_language),
            LanguagePair(goal.partner_language, goal.partner_native_language),
        )

    @staticmethod
    def _snapshot_values(creator: LanguagePair, partner: LanguagePair) -> dict[str, str]:
        return {
            "creator_language": creator.learning_language,
            "creator_native_language": creator.native_language,
            "partner_language": partner.learning_language,
            "partner_native_language": partner.native_language,
        }

    def _generate_schedule(self, duration: int, creator: LanguagePair, partner: LanguagePair) -> List[QuizPair]:
        """Quiz pairs for days 1..duration, in day order; the first failure propagates."""

        def for_day(day: int) -> QuizPair:
            return generate_quiz_pair(self.quiz_generator, day, duration, creator, partner)

        days = range(1, duration + 1)
        if self.generation_workers == 1:
            return [for_day(day) for day in days]

        with ThreadPoolExecutor(max_workers=min(self.generation_workers, duration)) as pool:
            return list(pool.map(for_day, days))

    def _regenerate_day(
        self,
        goal: SharedLearningGoal,
        entry: LearningGoalDay,
        creator: LanguagePair,
        partner: LanguagePair,
    ) -> None:
        previous_creator, previous_partner = self._snapshot_pairs(goal)
        logger.info(
            "Language change detected on goal %s, regenerating day %s (creator %s/%s -> %s/%s, partner %s/%s -> %s/%s)",
            goal.id,
            entry.day,
            previous_creator.learning_language,
            previous_creator.native_language,
            creator.learning_language,
            creator.native_language,
            previous_partner.learning_language,
            previous_partner.native_language,
            partner.learning_language,
            partner.native_language,
        )
        try:
            pair = generate_quiz_pair(self.quiz_generator, entry.day, goal.duration, creator, partner)
        except Exception as exc:
            logger.exception("Quiz regeneration failed for goal %s day %s", goal.id, entry.day)
            raise QuizGenerationError("Internal Server Error") from exc

        entry.creator_quiz = quiz_to_storage(pair.creator_quiz)
        entry.partner_quiz = quiz_to_storage(pair.partner_quiz)
        for field, value in self._snapshot_values(creator, partner).items():
            setattr(goal, field, value)
        self.db.commit()

    def _notify_goal_completed(self, goal: SharedLearningGoal) -> None:
        for recipient, other in ((goal.creator, goal.partner), (goal.partner, goal.creator)):
            self.notifier.notify(
                recipient.id,
                NotificationType.GOAL_COMPLETED,
                "Learning Goal Completed!",
                f"You and {other.full_name} completed your {goal.duration}-day learning goal!",
                sender_id=other.id,
                learning_goal_id=goal.id,
            )

    @staticmethod
    def _participant_summary(goal: SharedLearningGoal, role: GoalRole) -> dict[str, Any]:
        completions = [entry.completion_for(role) for entry in goal.days]
        done = [completion for completion in completions if completion.completed]
        total_score = sum(completion.score or 0 for completion in done)
        user = goal.creator if role is GoalRole.CREATOR else goal.partner
        return {
            "user": _user_summary(user),
            "total_score": total_score,
            "days_completed": len(done),
            "average_score": round(total_score / len(done), 1) if done else 0,
        }
