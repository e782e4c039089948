from __future__ import annotations

import decimal
import typing as t

import sqlalchemy as sqla

from progress89.core import di
from progress89.model import CriterionID, EvaluationID, Grade, GradeID

from . import Session
from .table import grades


@t.overload
def get(grade_id: GradeID, *, session: Session = ...) -> Grade | None: ...


@t.overload
def get(*, evaluation_id: EvaluationID, criterion_id: CriterionID, session: Session = ...) -> Grade | None: ...


def get(
    grade_id: GradeID | None = None,
    *,
    evaluation_id: EvaluationID | None = None,
    criterion_id: CriterionID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade | None:
    """Get a grade by ID, or by its (evaluation, criterion) pair."""
    if grade_id is not None:
        stmt = sqla.select(grades.__table__).where(grades.grade_id == grade_id)
    elif evaluation_id is not None and criterion_id is not None:
        stmt = sqla.select(grades.__table__).where(
            grades.evaluation_id == evaluation_id,
            grades.criterion_id == criterion_id,
        )
    else:
        raise ValueError("Either grade_id or both evaluation_id and criterion_id must be provided")

    row = session.execute(stmt).mappings().one_or_none()
    return Grade(**row) if row is not None else None


def find(
    *,
    evaluation_id: EvaluationID | None = None,
    criterion_id: CriterionID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Grade, ...]:
    stmt = sqla.select(grades.__table__)
    if evaluation_id is not None:
        stmt = stmt.where(grades.evaluation_id == evaluation_id)
    if criterion_id is not None:
        stmt = stmt.where(grades.criterion_id == criterion_id)
    stmt = stmt.order_by(grades.create_time)
    return tuple(Grade(**row) for row in session.execute(stmt).mappings())


def create(
    *,
    evaluation_id: EvaluationID,
    criterion_id: CriterionID,
    value: decimal.Decimal,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade:
    grade = grades(
        grade_id=GradeID(),
        evaluation_id=evaluation_id,
        criterion_id=criterion_id,
        value=value,
    )
    session.add(grade)
    session.flush()
    return get(grade.grade_id, session=session)  # type: ignore[return-value]


def update(
    grade_id: GradeID,
    *,
    value: decimal.Decimal,
    session: Session = di.Provide["storage.persistent.session"],
) -> Grade:
    """Update a grade's value.

    Raises:
        KeyError: If grade_id does not correspond to a grade
    """
    result = session.execute(sqla.update(grades).where(grades.grade_id == grade_id).values(value=value))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Grade {grade_id} not found")

    session.flush()
    return get(grade_id, session=session)  # type: ignore[return-value]


def upsert(
    *,
    evaluation_id: EvaluationID,
    criterion_id: CriterionID,
    value: decimal.Decimal,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Grade, bool]:
    """Record the grade for a criterion, updating the existing one if present.

    Returns:
        The grade, and whether it was newly created
    """
    existing = get(evaluation_id=evaluation_id, criterion_id=criterion_id, session=session)
    if existing is not None:
        return update(existing.grade_id, value=value, session=session), False
    return create(evaluation_id=evaluation_id, criterion_id=criterion_id, value=value, session=session), True


def delete(grade_id: GradeID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    result = session.execute(sqla.delete(grades).where(grades.grade_id == grade_id))
    session.flush()
    return result.rowcount > 0  # pyright: ignore[reportAttributeAccessIssue]
