"""Scale and criterion authoring routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from progress89.auth import AuthContext, get_current_user
from progress89.core import di
from progress89.grading import authoring
from progress89.model import CriterionID, ScaleID

from ..view.scale import CriterionRequest, CriterionResponse, CriterionWriteResponse, ScaleCreateRequest, \
    ScaleListResponse, ScaleResponse, ScaleUpdateRequest

router = APIRouter(prefix="/api/scales", tags=["scales"])
criterion_router = APIRouter(prefix="/api/criteria", tags=["scales"])


@router.get("", operation_id="list_scales")
@di.inject
def list_scales(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ScaleListResponse:
    with session.begin():
        scales = authoring.list_scales(auth.actor, session=session)
    return ScaleListResponse(scales=[ScaleResponse.from_model(s) for s in scales], total=len(scales))


@router.post("", operation_id="create_scale", status_code=status.HTTP_201_CREATED)
@di.inject
def create_scale(
    request: ScaleCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ScaleResponse:
    """Create a scale and its criteria together."""
    with session.begin():
        outcome = authoring.create_scale(
            auth.actor,
            title=request.title,
            description=request.description,
            is_shared=request.is_shared,
            criteria=[c.to_params() for c in request.criteria],
            session=session,
        )
    return ScaleResponse.from_model(outcome.scale, outcome.warnings)


@router.get("/{scale_id}", operation_id="get_scale")
@di.inject
def get_scale(
    scale_id: ScaleID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ScaleResponse:
    with session.begin():
        scale = authoring.view_scale(auth.actor, scale_id, session=session)
    return ScaleResponse.from_model(scale)


@router.put("/{scale_id}", operation_id="update_scale")
@di.inject
def update_scale(
    scale_id: ScaleID,
    request: ScaleUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ScaleResponse:
    """Replace a scale's attributes and criteria; criteria left out are deleted."""
    with session.begin():
        outcome = authoring.edit_scale(
            auth.actor,
            scale_id,
            title=request.title,
            description=request.description,
            is_shared=request.is_shared,
            criteria=[authoring.CriterionEdit(c.criterion_id, c.to_params()) for c in request.criteria],
            session=session,
        )
    return ScaleResponse.from_model(outcome.scale, outcome.warnings)


@router.delete("/{scale_id}", operation_id="delete_scale", status_code=status.HTTP_204_NO_CONTENT)
@di.inject
def delete_scale(
    scale_id: ScaleID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    with session.begin():
        authoring.delete_scale(auth.actor, scale_id, session=session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{scale_id}/criteria", operation_id="list_criteria")
@di.inject
def list_criteria(
    scale_id: ScaleID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> list[CriterionResponse]:
    with session.begin():
        scale = authoring.view_scale(auth.actor, scale_id, session=session)
    return [CriterionResponse.from_model(c) for c in scale.criteria]


@router.post("/{scale_id}/criteria", operation_id="add_criterion", status_code=status.HTTP_201_CREATED)
@di.inject
def add_criterion(
    scale_id: ScaleID,
    request: CriterionRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> CriterionWriteResponse:
    with session.begin():
        outcome = authoring.add_criterion(auth.actor, scale_id, request.to_params(), session=session)
    return CriterionWriteResponse(criterion=CriterionResponse.from_model(outcome.criterion), warnings=outcome.warnings)


@criterion_router.put("/{criterion_id}", operation_id="update_criterion")
@di.inject
def update_criterion(
    criterion_id: CriterionID,
    request: CriterionRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> CriterionWriteResponse:
    with session.begin():
        outcome = authoring.edit_criterion(auth.actor, criterion_id, request.to_params(), session=session)
    return CriterionWriteResponse(criterion=CriterionResponse.from_model(outcome.criterion), warnings=outcome.warnings)


@criterion_router.delete("/{criterion_id}", operation_id="delete_criterion", status_code=status.HTTP_204_NO_CONTENT)
@di.inject
def delete_criterion(
    criterion_id: CriterionID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    with session.begin():
        authoring.remove_criterion(auth.actor, criterion_id, session=session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
