"""Tests for progress89.storage.evaluation module."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import pytest
from sqlalchemy.orm import Session

from progress89.model import Evaluation, EvaluationID, EvaluationStatus, EvaluationWithDetail, ScaleWithCriteria, \
    User
from progress89.storage import comment as comment_storage
from progress89.storage import evaluation as evaluation_storage
from progress89.storage import grade as grade_storage
from progress89.storage import StaleVersionError


@pytest.fixture
def scale(teacher: User, scale_factory: t.Callable[..., ScaleWithCriteria]) -> ScaleWithCriteria:
    return scale_factory(creator=teacher)


class TestCreate(object):
    def test_starts_as_version_one_draft(
        self, db_session: Session, teacher: User, student: User, scale: ScaleWithCriteria
    ) -> None:
        with db_session.begin():
            evaluation = evaluation_storage.create(
                title="Quiz 1",
                date_eval=datetime.date(2026, 2, 1),
                student_id=student.user_id,
                teacher_id=teacher.user_id,
                scale_id=scale.scale_id,
                session=db_session,
            )

        assert evaluation.status is EvaluationStatus.Draft
        assert evaluation.version == 1
        assert evaluation.date_eval == datetime.date(2026, 2, 1)


class TestGet(object):
    def test_with_detail(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        evaluation = evaluation_factory(teacher, student, scale, grades=[15])
        with db_session.begin():
            comment_storage.create(
                evaluation_id=evaluation.evaluation_id, teacher_id=teacher.user_id, text="Good", session=db_session
            )

        with db_session.begin():
            result = evaluation_storage.get(evaluation.evaluation_id, with_detail=True, session=db_session)

        assert isinstance(result, EvaluationWithDetail)
        assert result.scale is not None
        assert result.scale.scale_id == scale.scale_id
        assert [g.value for g in result.grades] == [decimal.Decimal(15)]
        assert [c.text for c in result.comments] == ["Good"]

    def test_nonexistent_returns_none(self, db_session: Session) -> None:
        with db_session.begin():
            assert evaluation_storage.get(EvaluationID(), session=db_session) is None


class TestFind(object):
    def test_filters(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        user_factory: t.Callable[..., User],
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        other_student = user_factory()
        draft = evaluation_factory(teacher, student, scale)
        published = evaluation_factory(teacher, student, scale, grades=[10], status=EvaluationStatus.Published)
        evaluation_factory(teacher, other_student, scale)

        with db_session.begin():
            by_student = evaluation_storage.find(student_id=student.user_id, session=db_session)
            visible = evaluation_storage.find(
                student_id=student.user_id,
                status=(EvaluationStatus.Published, EvaluationStatus.Archived),
                session=db_session,
            )

        assert {e.evaluation_id for e in by_student} == {draft.evaluation_id, published.evaluation_id}
        assert [e.evaluation_id for e in visible] == [published.evaluation_id]

    def test_most_recent_first(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        older = evaluation_factory(teacher, student, scale, date_eval=datetime.date(2026, 1, 1))
        newer = evaluation_factory(teacher, student, scale, date_eval=datetime.date(2026, 2, 1))

        with db_session.begin():
            result = evaluation_storage.find(teacher_id=teacher.user_id, session=db_session)

        assert [e.evaluation_id for e in result] == [newer.evaluation_id, older.evaluation_id]


class TestUpdate(object):
    def test_every_update_bumps_version(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        evaluation = evaluation_factory(teacher, student, scale)

        with db_session.begin():
            renamed = evaluation_storage.update(evaluation.evaluation_id, title="Final", session=db_session)
            touched = evaluation_storage.update(evaluation.evaluation_id, session=db_session)

        assert renamed.title == "Final"
        assert renamed.version == 2
        assert touched.version == 3

    def test_expected_version_matches(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        evaluation = evaluation_factory(teacher, student, scale)

        with db_session.begin():
            updated = evaluation_storage.update(
                evaluation.evaluation_id, status=EvaluationStatus.Published, expected_version=1, session=db_session
            )

        assert updated.status is EvaluationStatus.Published
        assert updated.version == 2

    def test_stale_version_raises(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        evaluation = evaluation_factory(teacher, student, scale)
        with db_session.begin():
            evaluation_storage.update(evaluation.evaluation_id, title="Changed", session=db_session)

        with db_session.begin():
            with pytest.raises(StaleVersionError) as exc_info:
                evaluation_storage.update(
                    evaluation.evaluation_id, title="Lost update", expected_version=1, session=db_session
                )

        assert (exc_info.value.expected, exc_info.value.actual) == (1, 2)

    def test_update_nonexistent_raises(self, db_session: Session) -> None:
        with db_session.begin():
            with pytest.raises(KeyError):
                evaluation_storage.update(EvaluationID(), title="Missing", session=db_session)


class TestDelete(object):
    def test_removes_grades_and_comments(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale: ScaleWithCriteria,
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        evaluation = evaluation_factory(teacher, student, scale, grades=[5])
        with db_session.begin():
            comment_storage.create(
                evaluation_id=evaluation.evaluation_id, teacher_id=teacher.user_id, text="Note", session=db_session
            )

        with db_session.begin():
            assert evaluation_storage.delete(evaluation.evaluation_id, session=db_session)
            assert grade_storage.find(evaluation_id=evaluation.evaluation_id, session=db_session) == ()
            assert comment_storage.find(evaluation_id=evaluation.evaluation_id, session=db_session) == ()
