"""Tests for progress89.grading.lifecycle."""

from __future__ import annotations

import datetime
import decimal
import types

import pytest

from progress89.grading import Actor
from progress89.grading import lifecycle
from progress89.grading.errors import AuthorizationError, EvaluationLockedError, IncompleteGradingError, \
    InvalidTransitionError, StaleVersionError
from progress89.model import CriterionID, Evaluation, EvaluationID, EvaluationStatus, ScaleID, UserID, UserRole

D = decimal.Decimal

TEACHER = Actor(UserID(), UserRole.Teacher)
OTHER_TEACHER = Actor(UserID(), UserRole.Teacher)
ADMIN = Actor(UserID(), UserRole.Admin)
STUDENT = Actor(UserID(), UserRole.Student)


def gradable(
    n_criteria: int = 2, n_graded: int = 0, status: EvaluationStatus = EvaluationStatus.Draft
) -> types.SimpleNamespace:
    criteria = [
        types.SimpleNamespace(criterion_id=CriterionID(), associated_skill="A", max_points=D(10))
        for _ in range(n_criteria)
    ]
    grades = [types.SimpleNamespace(criterion_id=c.criterion_id, value=D(7)) for c in criteria[:n_graded]]
    return types.SimpleNamespace(
        status=status,
        teacher_id=TEACHER.user_id,
        scale=types.SimpleNamespace(criteria=criteria),
        grades=grades,
    )


def evaluation(status: EvaluationStatus = EvaluationStatus.Draft, version: int = 1) -> Evaluation:
    now = datetime.datetime.now(datetime.UTC)
    return Evaluation(
        evaluation_id=EvaluationID(),
        title="Midterm",
        date_eval=datetime.date(2026, 3, 15),
        student_id=STUDENT.user_id,
        teacher_id=TEACHER.user_id,
        scale_id=ScaleID(),
        status=status,
        version=version,
        create_time=now,
        update_time=now,
    )


class TestTransitions(object):
    def test_publish_rejected_until_fully_graded(self) -> None:
        with pytest.raises(IncompleteGradingError) as exc_info:
            lifecycle.check_transition(TEACHER, gradable(3, 1), EvaluationStatus.Published)

        assert exc_info.value.remaining == 2
        assert exc_info.value.total == 3
        assert exc_info.value.to_detail()["remaining"] == 2
        assert exc_info.value.message == "Cannot publish: 2 criteria remain ungraded"

    def test_publish_single_remaining_message(self) -> None:
        with pytest.raises(IncompleteGradingError) as exc_info:
            lifecycle.check_transition(TEACHER, gradable(1, 0), EvaluationStatus.Published)

        assert exc_info.value.message == "Cannot publish: 1 criterion remains ungraded"

    def test_publish_rejected_for_empty_scale(self) -> None:
        with pytest.raises(IncompleteGradingError) as exc_info:
            lifecycle.check_transition(TEACHER, gradable(0, 0), EvaluationStatus.Published)

        assert exc_info.value.total == 0

    def test_publish_accepted_when_fully_graded(self) -> None:
        lifecycle.check_transition(TEACHER, gradable(3, 3), EvaluationStatus.Published)

    def test_archive_accepted_regardless_of_grading(self) -> None:
        lifecycle.check_transition(TEACHER, gradable(3, 0, EvaluationStatus.Published), EvaluationStatus.Archived)
        lifecycle.check_transition(ADMIN, gradable(3, 1, EvaluationStatus.Published), EvaluationStatus.Archived)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (EvaluationStatus.Draft, EvaluationStatus.Archived),
            (EvaluationStatus.Draft, EvaluationStatus.Draft),
            (EvaluationStatus.Published, EvaluationStatus.Draft),
            (EvaluationStatus.Published, EvaluationStatus.Published),
            (EvaluationStatus.Archived, EvaluationStatus.Published),
            (EvaluationStatus.Archived, EvaluationStatus.Draft),
        ],
    )
    def test_no_skipping_or_reversing(self, current: EvaluationStatus, target: EvaluationStatus) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.check_transition(ADMIN, gradable(2, 2, current), target)

        assert not isinstance(exc_info.value, IncompleteGradingError)
        assert exc_info.value.extra["status"] == current.value

    def test_archived_is_terminal(self) -> None:
        assert lifecycle.next_status(EvaluationStatus.Archived) is None

    def test_other_teacher_is_refused(self) -> None:
        with pytest.raises(AuthorizationError):
            lifecycle.check_transition(OTHER_TEACHER, gradable(2, 2), EvaluationStatus.Published)

    def test_student_is_refused(self) -> None:
        with pytest.raises(AuthorizationError):
            lifecycle.check_transition(STUDENT, gradable(2, 2), EvaluationStatus.Published)

    def test_admin_may_publish_any(self) -> None:
        lifecycle.check_transition(ADMIN, gradable(2, 2), EvaluationStatus.Published)


class TestGradeEditing(object):
    @pytest.mark.parametrize("status", [EvaluationStatus.Draft, EvaluationStatus.Published])
    def test_editable_before_archive(self, status: EvaluationStatus) -> None:
        lifecycle.ensure_grades_editable(TEACHER, evaluation(status))

    def test_locked_once_archived(self) -> None:
        with pytest.raises(EvaluationLockedError):
            lifecycle.ensure_grades_editable(TEACHER, evaluation(EvaluationStatus.Archived))

    def test_other_teacher_may_not_grade(self) -> None:
        with pytest.raises(AuthorizationError):
            lifecycle.ensure_grades_editable(OTHER_TEACHER, evaluation())

    def test_only_drafts_are_deletable(self) -> None:
        lifecycle.ensure_deletable(TEACHER, evaluation())
        with pytest.raises(EvaluationLockedError):
            lifecycle.ensure_deletable(TEACHER, evaluation(EvaluationStatus.Published))


class TestVisibility(object):
    def test_student_sees_own_published(self) -> None:
        assert lifecycle.can_view(STUDENT, evaluation(EvaluationStatus.Published))
        assert lifecycle.can_view(STUDENT, evaluation(EvaluationStatus.Archived))

    def test_student_does_not_see_drafts(self) -> None:
        assert not lifecycle.can_view(STUDENT, evaluation(EvaluationStatus.Draft))

    def test_other_student_sees_nothing(self) -> None:
        other = Actor(UserID(), UserRole.Student)
        assert not lifecycle.can_view(other, evaluation(EvaluationStatus.Published))

    def test_teachers_see_only_their_own(self) -> None:
        assert lifecycle.can_view(TEACHER, evaluation())
        assert not lifecycle.can_view(OTHER_TEACHER, evaluation())
        assert lifecycle.can_view(ADMIN, evaluation())


class TestVersion(object):
    def test_matching_or_absent_version_passes(self) -> None:
        lifecycle.ensure_version(evaluation(version=3), 3)
        lifecycle.ensure_version(evaluation(version=3), None)

    def test_stale_version_is_a_conflict(self) -> None:
        with pytest.raises(StaleVersionError) as exc_info:
            lifecycle.ensure_version(evaluation(version=4), 3)

        assert exc_info.value.status_code == 409
        assert exc_info.value.extra == {"expected_version": 3, "current_version": 4}
