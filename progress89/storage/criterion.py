from __future__ import annotations

import decimal
import typing as t

import sqlalchemy as sqla

from progress89.core import di
from progress89.lib import NotSet
from progress89.model import Criterion, CriterionID, ScaleID

from . import ReferencedError, Session
from .scale import CriterionCreateParams
from .table import criteria, grades


def get(criterion_id: CriterionID, *, session: Session = di.Provide["storage.persistent.session"]) -> Criterion | None:
    stmt = sqla.select(criteria.__table__).where(criteria.criterion_id == criterion_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Criterion(**row) if row is not None else None


def create(
    scale_id: ScaleID,
    params: CriterionCreateParams,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Criterion:
    """Append a criterion to the end of a scale."""
    last = session.execute(
        sqla.select(sqla.func.max(criteria.position)).where(criteria.scale_id == scale_id)
    ).scalar_one_or_none()

    criterion = criteria(
        criterion_id=CriterionID(),
        scale_id=scale_id,
        position=(last + 1) if last is not None else 0,
        description=params.description,
        associated_skill=params.associated_skill,
        max_points=params.max_points,
        coefficient=params.coefficient,
    )
    session.add(criterion)
    session.flush()
    return get(criterion.criterion_id, session=session)  # type: ignore[return-value]


def update(
    criterion_id: CriterionID,
    *,
    description: str | NotSet = NotSet(),
    associated_skill: str | NotSet = NotSet(),
    max_points: decimal.Decimal | NotSet = NotSet(),
    coefficient: decimal.Decimal | NotSet = NotSet(),
    position: int | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Criterion:
    """Update a criterion.

    Raises:
        KeyError: If criterion_id does not correspond to a criterion
    """
    fields = {
        "description": description,
        "associated_skill": associated_skill,
        "max_points": max_points,
        "coefficient": coefficient,
        "position": position,
    }
    values: dict[str, t.Any] = {k: v for k, v in fields.items() if not isinstance(v, NotSet)}
    if not values:
        values["criterion_id"] = criterion_id

    result = session.execute(sqla.update(criteria).where(criteria.criterion_id == criterion_id).values(**values))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Criterion {criterion_id} not found")

    session.flush()
    return get(criterion_id, session=session)  # type: ignore[return-value]


def count_grades(criterion_id: CriterionID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    stmt = sqla.select(sqla.func.count()).select_from(grades).where(grades.criterion_id == criterion_id)
    return session.execute(stmt).scalar_one()


def delete(criterion_id: CriterionID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete a criterion.

    Raises:
        ReferencedError: If any grade was recorded against the criterion

    Returns:
        True if the criterion was deleted, False if it did not exist
    """
    if n := count_grades(criterion_id, session=session):
        raise ReferencedError(f"Criterion {criterion_id} is referenced by {n} grade(s)")

    result = session.execute(sqla.delete(criteria).where(criteria.criterion_id == criterion_id))
    session.flush()
    return result.rowcount > 0  # pyright: ignore[reportAttributeAccessIssue]
