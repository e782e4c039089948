"""Tests for progress89.storage.scale and progress89.storage.criterion modules."""

from __future__ import annotations

import decimal
import typing as t

import pytest
from sqlalchemy.orm import Session

from progress89.model import Evaluation, ScaleID, ScaleWithCriteria, User, UserRole
from progress89.storage import criterion as criterion_storage
from progress89.storage import ReferencedError
from progress89.storage import scale as scale_storage
from progress89.storage.scale import CriterionCreateParams

D = decimal.Decimal


class TestCreate(object):
    def test_creates_criteria_in_order(
        self,
        db_session: Session,
        teacher: User,
        criterion_params: t.Callable[..., CriterionCreateParams],
    ) -> None:
        with db_session.begin():
            scale = scale_storage.create(
                title="Essay",
                creator_id=teacher.user_id,
                criteria_params=[
                    criterion_params("Thesis", "Writing", 10, "0.5"),
                    criterion_params("Grammar", "Language", "7.5", "0.25"),
                ],
                session=db_session,
            )

        assert scale.title == "Essay"
        assert scale.creator_id == teacher.user_id
        assert [c.description for c in scale.criteria] == ["Thesis", "Grammar"]
        assert [c.position for c in scale.criteria] == [0, 1]
        assert scale.criteria[1].max_points == D("7.5")
        assert scale.criteria[1].coefficient == D("0.25")


class TestFind(object):
    def test_own_and_shared(
        self,
        db_session: Session,
        teacher: User,
        user_factory: t.Callable[..., User],
        scale_factory: t.Callable[..., ScaleWithCriteria],
    ) -> None:
        other = user_factory(role=UserRole.Teacher)
        own = scale_factory(creator=teacher, title="Own")
        shared = scale_factory(creator=other, title="Shared", is_shared=True)
        scale_factory(creator=other, title="Private")

        with db_session.begin():
            result = scale_storage.find(creator_id=teacher.user_id, include_shared=True, session=db_session)
            only_own = scale_storage.find(creator_id=teacher.user_id, session=db_session)

        assert {s.scale_id for s in result} == {own.scale_id, shared.scale_id}
        assert [s.scale_id for s in only_own] == [own.scale_id]

    def test_with_criteria(
        self, db_session: Session, teacher: User, scale_factory: t.Callable[..., ScaleWithCriteria]
    ) -> None:
        scale_factory(creator=teacher)

        with db_session.begin():
            (result,) = scale_storage.find(with_criteria=True, session=db_session)

        assert len(result.criteria) == 1


class TestUpdate(object):
    def test_update_fields(
        self, db_session: Session, teacher: User, scale_factory: t.Callable[..., ScaleWithCriteria]
    ) -> None:
        scale = scale_factory(creator=teacher)

        with db_session.begin():
            updated = scale_storage.update(scale.scale_id, title="Renamed", is_shared=True, session=db_session)

        assert updated.title == "Renamed"
        assert updated.is_shared

    def test_update_nonexistent_raises(self, db_session: Session) -> None:
        with db_session.begin():
            with pytest.raises(KeyError):
                scale_storage.update(ScaleID(), title="Missing", session=db_session)

    def test_update_criterion(
        self, db_session: Session, teacher: User, scale_factory: t.Callable[..., ScaleWithCriteria]
    ) -> None:
        scale = scale_factory(creator=teacher)

        with db_session.begin():
            updated = criterion_storage.update(
                scale.criteria[0].criterion_id, max_points=D(25), session=db_session
            )

        assert updated.max_points == D(25)
        assert updated.description == scale.criteria[0].description


class TestDelete(object):
    def test_delete_unused_scale(
        self, db_session: Session, teacher: User, scale_factory: t.Callable[..., ScaleWithCriteria]
    ) -> None:
        scale = scale_factory(creator=teacher)

        with db_session.begin():
            assert scale_storage.delete(scale.scale_id, session=db_session)
            assert scale_storage.get(scale.scale_id, session=db_session) is None
            assert criterion_storage.get(scale.criteria[0].criterion_id, session=db_session) is None

    def test_delete_used_scale_is_refused(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale_factory: t.Callable[..., ScaleWithCriteria],
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        scale = scale_factory(creator=teacher)
        evaluation_factory(teacher, student, scale)

        with db_session.begin():
            with pytest.raises(ReferencedError):
                scale_storage.delete(scale.scale_id, session=db_session)

    def test_delete_graded_criterion_is_refused(
        self,
        db_session: Session,
        teacher: User,
        student: User,
        scale_factory: t.Callable[..., ScaleWithCriteria],
        evaluation_factory: t.Callable[..., Evaluation],
    ) -> None:
        scale = scale_factory(creator=teacher)
        evaluation_factory(teacher, student, scale, grades=[12])

        with db_session.begin():
            with pytest.raises(ReferencedError):
                criterion_storage.delete(scale.criteria[0].criterion_id, session=db_session)
