from __future__ import annotations

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from lexify.crud import notification_crud
from lexify.models.learning.learning_goal_model import GoalStatus, LearningGoalDay, SharedLearningGoal
from lexify.models.user.notification_model import Notification, NotificationType
from lexify.models.user.user_model import User
from lexify.schemas.learning.quiz_schema import Difficulty
from lexify.services.learning_goal_errors import (
    GoalAccessError,
    GoalConflictError,
    GoalNotFoundError,
    GoalValidationError,
    QuizGenerationError,
)
from lexify.services.learning_goal_service import LearningGoalService, score_answers
from tests.utils import (
    RecordingGenerator,
    backdate,
    create_active_goal,
    create_pair,
    create_user,
    fixed_generator,
    quiet_notifier,
)


@pytest.fixture()
def users(db_session):
    return create_pair(db_session)


@pytest.fixture()
def make_service(db_session):
    def _make(user, generator=None, **kwargs):
        return LearningGoalService(
            db_session,
            user,
            quiz_generator=generator or fixed_generator(),
            notifier=quiet_notifier(db_session),
            **kwargs,
        )

    return _make


def _notifications(db, user, type_=None):
    query = db.query(Notification).filter(Notification.recipient_id == user.id)
    if type_ is not None:
        query = query.filter(Notification.type == type_)
    return query.all()


# ----------------------------------------------------------------------
# create_goal
# ----------------------------------------------------------------------
def test_create_goal_snapshots_languages_and_invites_partner(db_session, users, make_service):
    alice, bob = users

    goal = make_service(alice).create_goal(partner_id=bob.id, duration=7)

    assert goal.status == GoalStatus.PENDING
    assert goal.duration == 7
    assert goal.started_at is None
    assert goal.days == []
    assert (goal.creator_language, goal.creator_native_language) == ("Spanish", "English")
    assert (goal.partner_language, goal.partner_native_language) == ("English", "Spanish")

    invites = _notifications(db_session, bob, NotificationType.GOAL_INVITE)
    assert len(invites) == 1
    assert invites[0].message == "Alice invited you to a 7-day learning goal!"
    assert invites[0].sender_id == alice.id
    assert invites[0].learning_goal_id == goal.id


def test_create_goal_defaults_missing_languages_to_english(db_session, make_service):
    carol = create_user(db_session, username="carol", email="carol@example.com", native_language=None, learning_language=None)
    dave = create_user(db_session, username="dave", email="dave@example.com")

    goal = make_service(carol).create_goal(partner_id=dave.id, duration=3)

    assert goal.creator_language == "English"
    assert goal.creator_native_language == "English"


@pytest.mark.parametrize(
    "partner_id, duration, message",
    [
        (None, 7, "Partner and duration are required"),
        ("bob", None, "Partner and duration are required"),
        ("bob", 2, "Duration must be between 3 and 30 days"),
        ("bob", 31, "Duration must be between 3 and 30 days"),
        ("bob", 3.5, "Duration must be between 3 and 30 days"),
        ("bob", "seven", "Duration must be between 3 and 30 days"),
        ("alice", 7, "Cannot create a goal with yourself"),
    ],
)
def test_create_goal_rejects_invalid_input(users, make_service, partner_id, duration, message):
    alice, bob = users
    resolved = {"alice": alice.id, "bob": bob.id}.get(partner_id, partner_id)

    with pytest.raises(GoalValidationError) as exc:
        make_service(alice).create_goal(partner_id=resolved, duration=duration)
    assert exc.value.message == message
    assert exc.value.status_code == 400


def test_create_goal_accepts_integral_numeric_strings(users, make_service):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration="10")
    assert goal.duration == 10


def test_create_goal_unknown_partner(users, make_service):
    alice, _ = users
    with pytest.raises(GoalNotFoundError) as exc:
        make_service(alice).create_goal(partner_id=9999, duration=7)
    assert exc.value.status_code == 404


def test_create_goal_rejects_open_goal_in_either_direction(users, make_service):
    alice, bob = users
    make_service(alice).create_goal(partner_id=bob.id, duration=7)

    with pytest.raises(GoalConflictError):
        make_service(alice).create_goal(partner_id=bob.id, duration=5)
    with pytest.raises(GoalConflictError) as exc:
        make_service(bob).create_goal(partner_id=alice.id, duration=5)
    assert exc.value.message == "You already have an active or pending goal with this user"


def test_declined_goal_does_not_block_a_new_invitation(users, make_service):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=7)
    make_service(bob).decline_goal(goal.id)

    again = make_service(alice).create_goal(partner_id=bob.id, duration=7)
    assert again.id != goal.id


# ----------------------------------------------------------------------
# accept / decline / delete
# ----------------------------------------------------------------------
@pytest.mark.parametrize("duration", range(3, 31))
def test_accept_schedules_every_day(db_session, users, make_service, duration):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=duration)

    goal = make_service(bob).accept_goal(goal.id)

    assert goal.status == GoalStatus.ACTIVE
    assert goal.started_at is not None
    assert (goal.end_date - goal.started_at).days == duration
    assert [entry.day for entry in goal.days] == list(range(1, duration + 1))
    for entry in goal.days:
        assert len(entry.creator_quiz) == 5
        assert len(entry.partner_quiz) == 5
        assert entry.creator_completed is False
        assert entry.partner_completed is False


def test_accept_uses_each_learners_languages_and_a_shared_difficulty(users, make_service):
    alice, bob = users
    generator = RecordingGenerator()
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=10)

    make_service(bob, generator).accept_goal(goal.id)

    assert len(generator.calls) == 20
    assert generator.calls[0] == (1, "Spanish", "English", Difficulty.BEGINNER)
    assert generator.calls[1] == (1, "English", "Spanish", Difficulty.BEGINNER)
    by_day = {day: difficulty for day, _, _, difficulty in generator.calls}
    assert by_day[3] == Difficulty.BEGINNER
    assert by_day[4] == Difficulty.INTERMEDIATE
    assert by_day[7] == Difficulty.INTERMEDIATE
    assert by_day[8] == Difficulty.ADVANCED


def test_accept_notifies_creator(db_session, users, make_service):
    alice, bob = users
    create_active_goal(make_service(alice), make_service(bob), bob)

    accepted = _notifications(db_session, alice, NotificationType.GOAL_ACCEPTED)
    assert [n.message for n in accepted] == ["Bob accepted your learning goal invitation!"]


@pytest.mark.parametrize("workers", [1, 4])
def test_failed_generation_leaves_goal_pending(db_session, users, make_service, workers):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=5)

    service = make_service(bob, RecordingGenerator(fail_on_day=3), generation_workers=workers)
    with pytest.raises(QuizGenerationError) as exc:
        service.accept_goal(goal.id)
    assert exc.value.status_code == 500

    db_session.expire_all()
    stored = db_session.get(SharedLearningGoal, goal.id)
    assert stored.status == GoalStatus.PENDING
    assert stored.started_at is None
    assert db_session.query(LearningGoalDay).count() == 0
    assert _notifications(db_session, alice, NotificationType.GOAL_ACCEPTED) == []


def test_parallel_generation_keeps_day_order(users, make_service):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=12)

    goal = make_service(bob, RecordingGenerator(), generation_workers=4).accept_goal(goal.id)

    for entry in goal.days:
        assert entry.creator_quiz[0]["question"].startswith(f"Day {entry.day} ")
        assert entry.partner_quiz[0]["question"].startswith(f"Day {entry.day} ")


def test_only_the_partner_can_accept_or_decline(users, make_service):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=3)

    with pytest.raises(GoalAccessError):
        make_service(alice).accept_goal(goal.id)
    with pytest.raises(GoalAccessError):
        make_service(alice).decline_goal(goal.id)


def test_accept_requires_a_pending_goal(users, make_service):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=3)
    declined = make_service(bob).decline_goal(goal.id)
    assert declined.status == GoalStatus.CANCELLED

    with pytest.raises(GoalConflictError) as exc:
        make_service(bob).accept_goal(goal.id)
    assert exc.value.message == "Goal is not pending"

    with pytest.raises(GoalConflictError):
        make_service(bob).decline_goal(goal.id)


def test_accept_unknown_goal(users, make_service):
    _, bob = users
    with pytest.raises(GoalNotFoundError):
        make_service(bob).accept_goal(12345)


def test_delete_removes_goal_and_days_but_keeps_notifications(db_session, users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob)
    goal_id = goal.id

    make_service(bob).delete_goal(goal_id)

    assert db_session.get(SharedLearningGoal, goal_id) is None
    assert db_session.query(LearningGoalDay).count() == 0
    dangling = db_session.query(Notification).filter(Notification.learning_goal_id == goal_id).all()
    assert len(dangling) == 2


def test_delete_requires_participation(db_session, users, make_service):
    alice, bob = users
    outsider = create_user(db_session, username="eve", email="eve@example.com")
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=3)

    with pytest.raises(GoalAccessError):
        make_service(outsider).delete_goal(goal.id)
    with pytest.raises(GoalAccessError):
        make_service(outsider).get_goal(goal.id)


# ----------------------------------------------------------------------
# reads
# ----------------------------------------------------------------------
def test_list_goals_returns_both_roles_newest_first(db_session, users, make_service):
    alice, bob = users
    carol = create_user(db_session, username="carol", email="carol@example.com")
    first = make_service(alice).create_goal(partner_id=bob.id, duration=3)
    second = make_service(carol).create_goal(partner_id=alice.id, duration=4)
    make_service(carol).create_goal(partner_id=bob.id, duration=5)

    goals = make_service(alice).list_goals()

    assert [goal.id for goal in goals] == [second.id, first.id]


def test_goal_payload_never_exposes_quizzes(users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob, duration=4)

    payload = make_service(alice).build_goal_payload(goal)

    assert payload["current_day"] == 1
    assert payload["creator"]["id"] == alice.id
    assert payload["partner"]["username"] == "bob"
    assert len(payload["progress"]) == 4
    assert payload["progress"][0]["unlocked"] is True
    assert payload["progress"][1]["unlocked"] is False
    assert "quiz" not in repr(payload).lower()
    assert "correct" not in repr(payload).lower()


# ----------------------------------------------------------------------
# daily quiz
# ----------------------------------------------------------------------
def test_daily_quiz_hides_answers_and_serves_the_callers_side(users, make_service):
    alice, bob = users
    generator = RecordingGenerator()
    goal = create_active_goal(make_service(alice), make_service(bob, generator), bob)

    alice_view = make_service(alice, generator).get_daily_quiz(goal.id, 1)
    bob_view = make_service(bob, generator).get_daily_quiz(goal.id, 1)

    assert alice_view["completed"] is False
    assert alice_view["score"] is None
    assert len(alice_view["quiz"]) == 5
    assert all("correct_answer" not in question for question in alice_view["quiz"])
    assert alice_view["quiz"][0]["question"].endswith("(English -> Spanish)")
    assert bob_view["quiz"][0]["question"].endswith("(Spanish -> English)")


def test_days_unlock_one_per_elapsed_day(db_session, users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob, duration=5)
    service = make_service(alice)

    with pytest.raises(GoalConflictError) as exc:
        service.get_daily_quiz(goal.id, 2)
    assert exc.value.message == "This day is not yet unlocked"

    backdate(db_session, goal, days=1)
    assert service.get_daily_quiz(goal.id, 2)["day"] == 2
    with pytest.raises(GoalConflictError):
        service.get_daily_quiz(goal.id, 3)


def test_day_outside_the_schedule_is_not_found(db_session, users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob, duration=3)
    backdate(db_session, goal, days=10)

    with pytest.raises(GoalNotFoundError):
        make_service(alice).get_daily_quiz(goal.id, 4)
    with pytest.raises(GoalNotFoundError):
        make_service(alice).get_daily_quiz(goal.id, 0)


def test_daily_quiz_requires_an_active_goal(users, make_service):
    alice, bob = users
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=3)

    with pytest.raises(GoalConflictError) as exc:
        make_service(alice).get_daily_quiz(goal.id, 1)
    assert exc.value.message == "Goal is not active"


def test_language_drift_regenerates_only_the_viewed_day(db_session, users, make_service):
    alice, bob = users
    generator = RecordingGenerator()
    goal = create_active_goal(make_service(alice), make_service(bob, generator), bob)
    generator.calls.clear()

    bob.learning_language = "French"
    db_session.commit()

    view = make_service(bob, generator).get_daily_quiz(goal.id, 1)

    assert view["quiz"][0]["question"].endswith("(Spanish -> French)")
    assert [call[:3] for call in generator.calls] == [(1, "Spanish", "English"), (1, "French", "Spanish")]

    db_session.refresh(goal)
    assert goal.partner_language == "French"
    day_two = goal.day_progress(2)
    assert day_two.partner_quiz[0]["question"].endswith("(Spanish -> English)")

    # Snapshot matches again: no further regeneration.
    generator.calls.clear()
    make_service(bob, generator).get_daily_quiz(goal.id, 1)
    assert generator.calls == []


# ----------------------------------------------------------------------
# submission
# ----------------------------------------------------------------------
def test_score_answers_ignores_unanswered():
    quiz = RecordingGenerator().generate(1, 3, "Spanish", "English", Difficulty.BEGINNER)
    assert score_answers(quiz, [0, 1, 2, 3, 0]) == 5
    assert score_answers(quiz, [-1, -1, -1, -1, -1]) == 0
    assert score_answers(quiz, [0, -1, 2, 0, 1]) == 2


def test_submit_scores_and_reveals_results(db_session, users, make_service):
    alice, bob = users
    generator = RecordingGenerator()
    goal = create_active_goal(make_service(alice), make_service(bob, generator), bob)

    result = make_service(alice, generator).submit_quiz(goal.id, 1, [0, 1, -1, 0])

    assert result["score"] == 2
    assert result["total_questions"] == 5
    assert result["completed"] is True
    assert result["goal_completed"] is False
    assert [r["was_answered"] for r in result["results"]] == [True, True, False, True, False]
    assert [r["user_answer"] for r in result["results"]] == [0, 1, -1, 0, -1]
    assert [r["correct_answer"] for r in result["results"]] == [0, 1, 2, 3, 0]
    assert [r["is_correct"] for r in result["results"]] == [True, True, False, False, False]

    entry = goal.day_progress(1)
    db_session.refresh(entry)
    assert entry.creator_completed is True
    assert entry.creator_score == 2
    assert entry.creator_answers == [0, 1, -1, 0]
    assert entry.partner_completed is False

    pinged = _notifications(db_session, bob, NotificationType.QUIZ_COMPLETED)
    assert [n.message for n in pinged] == ["Alice completed today's quiz!"]

    view = make_service(alice, generator).get_daily_quiz(goal.id, 1)
    assert view["completed"] is True
    assert view["score"] == 2


def test_submit_twice_is_rejected(users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob)
    make_service(alice).submit_quiz(goal.id, 1, [0, 0, 0, 0, 0])

    with pytest.raises(GoalConflictError) as exc:
        make_service(alice).submit_quiz(goal.id, 1, [0, 0, 0, 0, 0])
    assert exc.value.message == "Quiz already completed for this day"


def test_losing_a_concurrent_submission_keeps_the_stored_score(db_session, session_factory, users, make_service, monkeypatch):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob)
    service = make_service(alice)
    load_day = service._load_active_day

    def load_then_submit_elsewhere(goal_id, day):
        loaded = load_day(goal_id, day)
        other_db = session_factory()
        try:
            other = LearningGoalService(
                other_db,
                other_db.get(User, alice.id),
                quiz_generator=fixed_generator(),
                notifier=quiet_notifier(other_db),
            )
            other.submit_quiz(goal_id, day, [0, 0, 0, 0, 0])
        finally:
            other_db.close()
        return loaded

    monkeypatch.setattr(service, "_load_active_day", load_then_submit_elsewhere)

    with pytest.raises(GoalConflictError) as exc:
        service.submit_quiz(goal.id, 1, [1, 1, 1, 1, 1])
    assert exc.value.message == "Quiz already completed for this day"

    entry = db_session.query(LearningGoalDay).filter_by(goal_id=goal.id, day=1).one()
    db_session.refresh(entry)
    assert entry.creator_completed is True
    assert entry.creator_score == 5
    assert entry.creator_answers == [0, 0, 0, 0, 0]
    assert len(_notifications(db_session, bob, NotificationType.QUIZ_COMPLETED)) == 1


def test_goal_row_is_locked_before_counting_open_days(db_session, users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob)
    statements = []

    def record(state):
        if not state.is_relationship_load and not state.is_column_load:
            statements.append(str(state.statement.compile(dialect=postgresql.dialect())))

    event.listen(db_session, "do_orm_execute", record)
    try:
        make_service(alice).submit_quiz(goal.id, 1, [0, 0, 0, 0, 0])
    finally:
        event.remove(db_session, "do_orm_execute", record)

    lock = next(index for index, sql in enumerate(statements) if "FOR UPDATE" in sql)
    count = next(index for index, sql in enumerate(statements) if "count(learning_goal_days.id)" in sql)
    assert "FROM shared_learning_goals" in statements[lock]
    assert lock < count


@pytest.mark.parametrize("answers", [None, "0,0,0", {"0": 1}, [0, "1"], [True, 0]])
def test_submit_rejects_malformed_answers(users, make_service, answers):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob)

    with pytest.raises(GoalValidationError):
        make_service(alice).submit_quiz(goal.id, 1, answers)


def test_completing_every_day_completes_the_goal_once(db_session, users, make_service):
    alice, bob = users
    goal = create_active_goal(make_service(alice), make_service(bob), bob, duration=3)
    backdate(db_session, goal, days=2)

    results = []
    for day in (1, 2, 3):
        results.append(make_service(alice).submit_quiz(goal.id, day, [0, 0, 0, 0, 0]))
        results.append(make_service(bob).submit_quiz(goal.id, day, [0, 0, 0, 0, 0]))

    assert [r["goal_completed"] for r in results] == [False] * 5 + [True]
    assert all(r["score"] == 5 for r in results)

    db_session.refresh(goal)
    assert goal.status == GoalStatus.COMPLETED

    for user, other in ((alice, "Bob"), (bob, "Alice")):
        completed = _notifications(db_session, user, NotificationType.GOAL_COMPLETED)
        assert [n.message for n in completed] == [f"You and {other} completed your 3-day learning goal!"]
    quiz_pings = db_session.query(Notification).filter(Notification.type == NotificationType.QUIZ_COMPLETED).count()
    assert quiz_pings == 5

    with pytest.raises(GoalConflictError) as exc:
        make_service(alice).get_daily_quiz(goal.id, 1)
    assert exc.value.message == "Goal is not active"


def test_notifier_failure_does_not_undo_the_goal(db_session, users, make_service, monkeypatch):
    alice, bob = users

    def _boom(db, payload):
        raise OperationalError("INSERT INTO notifications", {}, Exception("database is locked"))

    monkeypatch.setattr(notification_crud, "create_notification", _boom)

    goal = make_service(alice).create_goal(partner_id=bob.id, duration=3)
    goal = make_service(bob).accept_goal(goal.id)

    db_session.expire_all()
    stored = db_session.get(SharedLearningGoal, goal.id)
    assert stored.status == GoalStatus.ACTIVE
    assert len(stored.days) == 3
    assert db_session.query(Notification).count() == 0


# ----------------------------------------------------------------------
# summary
# ----------------------------------------------------------------------
def test_summary_totals_and_averages(db_session, users, make_service):
    alice, bob = users
    generator = RecordingGenerator()
    goal = create_active_goal(make_service(alice), make_service(bob, generator), bob, duration=4)
    backdate(db_session, goal, days=1)

    service = make_service(alice, generator)
    service.submit_quiz(goal.id, 1, [0, 1, 2, 3, 0])
    service.submit_quiz(goal.id, 2, [0, 1, -1, -1, -1])

    summary = service.build_summary(goal.id)

    assert summary["total_possible_score"] == 20
    assert summary["goal"]["duration"] == 4
    assert summary["goal"]["status"] == GoalStatus.ACTIVE
    assert summary["creator"]["total_score"] == 7
    assert summary["creator"]["days_completed"] == 2
    assert summary["creator"]["average_score"] == 3.5
    assert summary["partner"]["days_completed"] == 0
    assert summary["partner"]["average_score"] == 0
    assert summary["partner"]["user"]["id"] == bob.id


def test_summary_is_for_participants_only(db_session, users, make_service):
    alice, bob = users
    outsider = create_user(db_session, username="eve", email="eve@example.com")
    goal = make_service(alice).create_goal(partner_id=bob.id, duration=3)

    assert make_service(bob).build_summary(goal.id)["total_possible_score"] == 0
    with pytest.raises(GoalAccessError):
        make_service(outsider).build_summary(goal.id)
