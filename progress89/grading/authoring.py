"""Scale and criterion authoring.

Scales are validated as a whole on every write: each criterion must be
complete and positive, and the coefficients may not add up to more than 1.
"""

from __future__ import annotations

import logging
import typing as t

from sqlalchemy.orm import Session

from progress89.model import Criterion, CriterionID, ScaleID, ScaleWithCriteria
from progress89.storage import criterion as criterion_storage
from progress89.storage import ReferencedError
from progress89.storage import scale as scale_storage
from progress89.storage.scale import CriterionCreateParams

from . import lifecycle
from .actor import Actor, Capability
from .errors import AuthorizationError, ConflictError, NotFoundError
from .validation import check_coefficient_total, stored_coefficient, stored_points, validate_criterion, \
    validate_scale

logger = logging.getLogger(__name__)

CriterionInUse: t.Final[str] = "criterion is used in existing evaluations"
CriterionGraded: t.Final[str] = "max points and coefficient of a graded criterion cannot change"


class CriterionEdit(t.NamedTuple):
    """A criterion in a full scale edit; no id means a new criterion"""

    criterion_id: CriterionID | None
    params: CriterionCreateParams


class ScaleOutcome(t.NamedTuple):
    scale: ScaleWithCriteria
    warnings: list[str]


class CriterionOutcome(t.NamedTuple):
    criterion: Criterion
    warnings: list[str]


def load_scale(scale_id: ScaleID, *, session: Session) -> ScaleWithCriteria:
    scale = scale_storage.get(scale_id, with_criteria=True, session=session)
    if scale is None:
        raise NotFoundError("Scale not found")
    return scale


def view_scale(actor: Actor, scale_id: ScaleID, *, session: Session) -> ScaleWithCriteria:
    scale = load_scale(scale_id, session=session)
    lifecycle.ensure_can_view_scale(actor, scale)
    return scale


def list_scales(actor: Actor, *, session: Session) -> tuple[ScaleWithCriteria, ...]:
    """Admins see every scale, teachers their own and shared ones."""
    if actor.can(Capability.ManageAllScales):
        return scale_storage.find(with_criteria=True, session=session)
    if actor.can(Capability.AuthorScales):
        return scale_storage.find(creator_id=actor.user_id, include_shared=True, with_criteria=True, session=session)
    raise AuthorizationError("Not authorized to list scales")


def create_scale(
    actor: Actor,
    *,
    title: str,
    description: str | None = None,
    is_shared: bool = False,
    criteria: t.Sequence[CriterionCreateParams],
    session: Session,
) -> ScaleOutcome:
    if not (actor.can(Capability.AuthorScales) or actor.can(Capability.ManageAllScales)):
        raise AuthorizationError("Only teachers and admins may create scales")
    validate_scale(title, criteria)
    criteria = [_as_stored(c) for c in criteria]
    report = check_coefficient_total(c.coefficient for c in criteria)

    scale = scale_storage.create(
        title=title.strip(),
        creator_id=actor.user_id,
        description=description,
        is_shared=is_shared,
        criteria_params=criteria,
        session=session,
    )
    logger.info(
        "created scale",
        extra={"scale_id": scale.scale_id, "criteria": len(criteria), "coefficient_total": report.total},
    )
    return ScaleOutcome(scale, report.warnings)


def _as_stored(params: CriterionCreateParams) -> CriterionCreateParams:
    return params.model_copy(
        update={"max_points": stored_points(params.max_points), "coefficient": stored_coefficient(params.coefficient)}
    )


def _ensure_weighting_unchanged(criterion: Criterion, params: CriterionCreateParams, session: Session) -> None:
    """Recorded grades are bounded by max points, so a graded criterion keeps its points and weight"""
    if criterion.max_points == params.max_points and criterion.coefficient == params.coefficient:
        return
    if criterion_storage.count_grades(criterion.criterion_id, session=session):
        raise ConflictError(CriterionGraded, criterion_id=str(criterion.criterion_id))


def _delete_criterion(criterion_id: CriterionID, session: Session) -> None:
    try:
        criterion_storage.delete(criterion_id, session=session)
    except ReferencedError as e:
        raise ConflictError(CriterionInUse, criterion_id=str(criterion_id)) from e


def edit_scale(
    actor: Actor,
    scale_id: ScaleID,
    *,
    title: str,
    description: str | None = None,
    is_shared: bool = False,
    criteria: t.Sequence[CriterionEdit],
    session: Session,
) -> ScaleOutcome:
    """
    Replace a scale's attributes and its criteria list. Listed criteria with
    an id are updated, those without one are created, and unlisted ones are
    deleted; the list order becomes the criteria order.

    Raises:
        ConflictError: an unlisted criterion has grades, or a graded one
            would change its max points or coefficient
    """
    scale = load_scale(scale_id, session=session)
    lifecycle.ensure_can_edit_scale(actor, scale)
    validate_scale(title, [c.params for c in criteria])
    criteria = [CriterionEdit(c.criterion_id, _as_stored(c.params)) for c in criteria]
    report = check_coefficient_total(c.params.coefficient for c in criteria)

    existing = {c.criterion_id: c for c in scale.criteria}
    kept = {c.criterion_id for c in criteria if c.criterion_id is not None}
    if unknown := kept - existing.keys():
        raise NotFoundError("Criterion does not belong to this scale", criterion_id=str(sorted(unknown)[0]))
    for edit in criteria:
        if edit.criterion_id is not None:
            _ensure_weighting_unchanged(existing[edit.criterion_id], edit.params, session)

    for criterion_id in existing.keys() - kept:
        _delete_criterion(criterion_id, session)

    for position, edit in enumerate(criteria):
        if edit.criterion_id is None:
            created = criterion_storage.create(scale_id, edit.params, session=session)
            criterion_id = created.criterion_id
        else:
            criterion_id = edit.criterion_id
        criterion_storage.update(
            criterion_id,
            description=edit.params.description,
            associated_skill=edit.params.associated_skill,
            max_points=edit.params.max_points,
            coefficient=edit.params.coefficient,
            position=position,
            session=session,
        )

    scale_storage.update(scale_id, title=title.strip(), description=description, is_shared=is_shared, session=session)
    logger.info(
        "edited scale",
        extra={"scale_id": scale_id, "criteria": len(criteria), "removed": len(existing.keys() - kept)},
    )
    return ScaleOutcome(load_scale(scale_id, session=session), report.warnings)


def delete_scale(actor: Actor, scale_id: ScaleID, *, session: Session) -> None:
    scale = load_scale(scale_id, session=session)
    lifecycle.ensure_can_edit_scale(actor, scale)
    try:
        scale_storage.delete(scale_id, session=session)
    except ReferencedError as e:
        raise ConflictError("Scale is used by existing evaluations") from e
    logger.info("deleted scale", extra={"scale_id": scale_id})


def add_criterion(
    actor: Actor, scale_id: ScaleID, params: CriterionCreateParams, *, session: Session
) -> CriterionOutcome:
    scale = load_scale(scale_id, session=session)
    lifecycle.ensure_can_edit_scale(actor, scale)
    validate_criterion(params)
    params = _as_stored(params)
    report = check_coefficient_total([*(c.coefficient for c in scale.criteria), params.coefficient])

    criterion = criterion_storage.create(scale_id, params, session=session)
    return CriterionOutcome(criterion, report.warnings)


def _load_criterion(criterion_id: CriterionID, session: Session) -> tuple[Criterion, ScaleWithCriteria]:
    criterion = criterion_storage.get(criterion_id, session=session)
    if criterion is None:
        raise NotFoundError("Criterion not found")
    return criterion, load_scale(criterion.scale_id, session=session)


def edit_criterion(
    actor: Actor, criterion_id: CriterionID, params: CriterionCreateParams, *, session: Session
) -> CriterionOutcome:
    """
    Raises:
        ConflictError: the criterion has grades and its max points or
            coefficient would change
    """
    current, scale = _load_criterion(criterion_id, session)
    lifecycle.ensure_can_edit_scale(actor, scale)
    validate_criterion(params)
    params = _as_stored(params)
    _ensure_weighting_unchanged(current, params, session)
    others = [c.coefficient for c in scale.criteria if c.criterion_id != criterion_id]
    report = check_coefficient_total([*others, params.coefficient])

    criterion = criterion_storage.update(
        criterion_id,
        description=params.description,
        associated_skill=params.associated_skill,
        max_points=params.max_points,
        coefficient=params.coefficient,
        session=session,
    )
    return CriterionOutcome(criterion, report.warnings)


def remove_criterion(actor: Actor, criterion_id: CriterionID, *, session: Session) -> None:
    """
    Raises:
        ConflictError: grades were recorded against the criterion
    """
    _, scale = _load_criterion(criterion_id, session)
    lifecycle.ensure_can_edit_scale(actor, scale)
    _delete_criterion(criterion_id, session)
    logger.info("deleted criterion", extra={"scale_id": scale.scale_id, "criterion_id": criterion_id})
