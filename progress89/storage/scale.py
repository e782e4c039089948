from __future__ import annotations

import decimal
import typing as t

import pydantic as p
import sqlalchemy as sqla

from progress89.core import di
from progress89.lib import NotSet
from progress89.model import Criterion, Scale, ScaleID, ScaleWithCriteria, UserID

from . import ReferencedError, Session
from .table import criteria, evaluations, scales


class CriterionCreateParams(p.BaseModel):
    """Parameters for creating a criterion."""

    model_config = p.ConfigDict(frozen=True)

    description: str
    associated_skill: str
    max_points: decimal.Decimal
    coefficient: decimal.Decimal


@t.overload
def get(scale_id: ScaleID, *, with_criteria: t.Literal[False] = ..., session: Session = ...) -> Scale | None: ...


@t.overload
def get(
    scale_id: ScaleID, *, with_criteria: t.Literal[True], session: Session = ...
) -> ScaleWithCriteria | None: ...


def get(
    scale_id: ScaleID,
    *,
    with_criteria: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Scale | ScaleWithCriteria | None:
    """Get a scale by ID, optionally with its criteria in order."""
    row = session.execute(sqla.select(scales.__table__).where(scales.scale_id == scale_id)).mappings().one_or_none()
    if row is None:
        return None
    if not with_criteria:
        return Scale(**row)
    return ScaleWithCriteria(**row, criteria=list(find_criteria(scale_id, session=session)))


def find_criteria(
    scale_id: ScaleID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Criterion, ...]:
    stmt = sqla.select(criteria.__table__).where(criteria.scale_id == scale_id).order_by(criteria.position)
    return tuple(Criterion(**row) for row in session.execute(stmt).mappings())


@t.overload
def find(
    *,
    creator_id: UserID | None = ...,
    include_shared: bool = ...,
    with_criteria: t.Literal[False] = ...,
    session: Session = ...,
) -> tuple[Scale, ...]: ...


@t.overload
def find(
    *,
    creator_id: UserID | None = ...,
    include_shared: bool = ...,
    with_criteria: t.Literal[True],
    session: Session = ...,
) -> tuple[ScaleWithCriteria, ...]: ...


def find(
    *,
    creator_id: UserID | None = None,
    include_shared: bool = False,
    with_criteria: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Scale, ...] | tuple[ScaleWithCriteria, ...]:
    """Find scales, newest first.

    With creator_id, returns that user's scales, plus shared scales of any
    creator when include_shared is set.
    """
    stmt = sqla.select(scales.__table__)
    if creator_id is not None:
        if include_shared:
            stmt = stmt.where(sqla.or_(scales.creator_id == creator_id, scales.is_shared.is_(True)))
        else:
            stmt = stmt.where(scales.creator_id == creator_id)
    stmt = stmt.order_by(scales.create_time.desc(), scales.title)
    rows = session.execute(stmt).mappings().all()

    if not with_criteria:
        return tuple(Scale(**row) for row in rows)
    return tuple(
        ScaleWithCriteria(**row, criteria=list(find_criteria(row["scale_id"], session=session))) for row in rows
    )


def create(
    *,
    title: str,
    creator_id: UserID,
    description: str | None = None,
    is_shared: bool = False,
    criteria_params: t.Sequence[CriterionCreateParams] = (),
    session: Session = di.Provide["storage.persistent.session"],
) -> ScaleWithCriteria:
    """Create a scale together with its criteria, which keep the given order."""
    from . import criterion as criterion_storage

    scale = scales(
        scale_id=ScaleID(),
        title=title,
        creator_id=creator_id,
        description=description,
        is_shared=is_shared,
    )
    session.add(scale)
    session.flush()

    for params in criteria_params:
        criterion_storage.create(scale.scale_id, params, session=session)

    return get(scale.scale_id, with_criteria=True, session=session)  # type: ignore[return-value]


def update(
    scale_id: ScaleID,
    *,
    title: str | NotSet = NotSet(),
    description: str | None | NotSet = NotSet(),
    is_shared: bool | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Scale:
    """Update a scale's own attributes; criteria are managed by the criterion module.

    Raises:
        KeyError: If scale_id does not correspond to a scale
    """
    values: dict[str, t.Any] = {}
    if not isinstance(title, NotSet):
        values["title"] = title
    if not isinstance(description, NotSet):
        values["description"] = description
    if not isinstance(is_shared, NotSet):
        values["is_shared"] = is_shared

    if not values:
        values["scale_id"] = scale_id

    result = session.execute(sqla.update(scales).where(scales.scale_id == scale_id).values(**values))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Scale {scale_id} not found")

    session.flush()
    return get(scale_id, session=session)  # type: ignore[return-value]


def count_evaluations(scale_id: ScaleID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    stmt = sqla.select(sqla.func.count()).select_from(evaluations).where(evaluations.scale_id == scale_id)
    return session.execute(stmt).scalar_one()


def delete(scale_id: ScaleID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete a scale and its criteria.

    Raises:
        ReferencedError: If any evaluation uses the scale

    Returns:
        True if the scale was deleted, False if it did not exist
    """
    if n := count_evaluations(scale_id, session=session):
        raise ReferencedError(f"Scale {scale_id} is used by {n} evaluation(s)")

    session.execute(sqla.delete(criteria).where(criteria.scale_id == scale_id))
    result = session.execute(sqla.delete(scales).where(scales.scale_id == scale_id))
    session.flush()
    return result.rowcount > 0  # pyright: ignore[reportAttributeAccessIssue]
