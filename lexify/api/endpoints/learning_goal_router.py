from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lexify.api.dependencies import get_current_user, get_db, get_notifier, get_quiz_generator
from lexify.models.user.user_model import User
from lexify.schemas.learning import learning_goal_schema
from lexify.schemas.user.notification_schema import MessageOut
from lexify.services.learning_goal_errors import LearningGoalError
from lexify.services.learning_goal_service import LearningGoalService
from lexify.services.notification_service import Notifier
from lexify.services.quiz_generator import QuizGenerator

router = APIRouter()


def _service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    quiz_generator: QuizGenerator = Depends(get_quiz_generator),
    notifier: Notifier = Depends(get_notifier),
) -> LearningGoalService:
    return LearningGoalService(db=db, user=current_user, quiz_generator=quiz_generator, notifier=notifier)


def _http_error(exc: LearningGoalError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.post(
    "/create",
    response_model=learning_goal_schema.LearningGoalOut,
    status_code=status.HTTP_201_CREATED,
)
def create_learning_goal(
    payload: learning_goal_schema.LearningGoalCreateIn,
    service: LearningGoalService = Depends(_service),
):
    try:
        goal = service.create_goal(partner_id=payload.partner_id, duration=payload.duration)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc
    return service.build_goal_payload(goal)


@router.get("", response_model=List[learning_goal_schema.LearningGoalOut])
def list_learning_goals(service: LearningGoalService = Depends(_service)):
    return [service.build_goal_payload(goal) for goal in service.list_goals()]


@router.get("/{goal_id}", response_model=learning_goal_schema.LearningGoalOut)
def get_learning_goal(goal_id: int, service: LearningGoalService = Depends(_service)):
    try:
        goal = service.get_goal(goal_id)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc
    return service.build_goal_payload(goal)


@router.post("/{goal_id}/accept", response_model=learning_goal_schema.LearningGoalOut)
def accept_learning_goal(goal_id: int, service: LearningGoalService = Depends(_service)):
    try:
        goal = service.accept_goal(goal_id)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc
    return service.build_goal_payload(goal)


@router.post("/{goal_id}/decline", response_model=MessageOut)
def decline_learning_goal(goal_id: int, service: LearningGoalService = Depends(_service)):
    try:
        service.decline_goal(goal_id)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc
    return {"message": "Goal declined"}


@router.delete("/{goal_id}", response_model=MessageOut)
def delete_learning_goal(goal_id: int, service: LearningGoalService = Depends(_service)):
    try:
        service.delete_goal(goal_id)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc
    return {"message": "Goal deleted"}


@router.get("/{goal_id}/quiz/{day}", response_model=learning_goal_schema.DailyQuizOut)
def get_daily_quiz(goal_id: int, day: int, service: LearningGoalService = Depends(_service)):
    try:
        return service.get_daily_quiz(goal_id, day)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc


@router.post("/{goal_id}/quiz/{day}/submit", response_model=learning_goal_schema.QuizSubmitOut)
def submit_daily_quiz(
    goal_id: int,
    day: int,
    payload: learning_goal_schema.QuizSubmitIn,
    service: LearningGoalService = Depends(_service),
):
    try:
        return service.submit_quiz(goal_id, day, payload.answers)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc


@router.get("/{goal_id}/summary", response_model=learning_goal_schema.GoalSummaryOut)
def get_goal_summary(goal_id: int, service: LearningGoalService = Depends(_service)):
    try:
        return service.build_summary(goal_id)
    except LearningGoalError as exc:
        raise _http_error(exc) from exc
