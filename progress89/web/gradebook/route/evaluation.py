"""Evaluation, grade and comment routes."""

from __future__ import annotations

import typing as t

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from progress89.auth import AuthContext, get_current_user
from progress89.core import di
from progress89.grading import Capability, workflow
from progress89.grading.lifecycle import StudentVisible
from progress89.lib import NotSet
from progress89.model import CommentID, EvaluationID, EvaluationStatus, EvaluationWithDetail, GradeID, ScaleID, \
    User, UserID
from progress89.storage import evaluation as evaluation_storage
from progress89.storage import user as user_storage

from ..view.evaluation import CommentRequest, CommentResponse, EvaluationCreateRequest, EvaluationDetailResponse, \
    EvaluationListResponse, EvaluationResponse, EvaluationSummaryResponse, EvaluationUpdateRequest, \
    GradeBatchRequest, GradeBatchResponse, GradeCreateRequest, GradeResponse, GradeUpdateRequest, \
    GradeWriteResponse, StatusChangeRequest

router = APIRouter(prefix="/api/evaluations", tags=["evaluations"])
comment_router = APIRouter(prefix="/api/comments", tags=["evaluations"])


def _people(evaluations: t.Sequence[EvaluationWithDetail], session: Session) -> dict[UserID, User]:
    ids = {e.student_id for e in evaluations} | {e.teacher_id for e in evaluations}
    return {u.user_id: u for u in user_storage.find(user_ids=ids, session=session)} if ids else {}


def _grade_response(outcome: workflow.GradeOutcome) -> GradeWriteResponse:
    return GradeWriteResponse(
        grade=GradeResponse.from_model(outcome.grade),
        created=outcome.created,
        version=outcome.evaluation.version,
        warning=outcome.warning,
    )


@router.get("", operation_id="list_evaluations")
@di.inject
def list_evaluations(
    evaluation_status: EvaluationStatus | None = Query(None, alias="status"),
    student_id: UserID | None = Query(None),
    scale_id: ScaleID | None = Query(None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationListResponse:
    """Students see their own published results, teachers their own evaluations, admins everything."""
    actor = auth.actor
    teacher_id: UserID | None = None
    statuses: EvaluationStatus | frozenset[EvaluationStatus] | None = evaluation_status
    if actor.can(Capability.ManageAllEvaluations):
        pass
    elif actor.can(Capability.GradeOwnEvaluations):
        teacher_id = actor.user_id
    else:
        student_id = actor.user_id
        if evaluation_status is None:
            statuses = StudentVisible
        elif evaluation_status not in StudentVisible:
            return EvaluationListResponse(evaluations=[], total=0)

    with session.begin():
        found = t.cast(
            tuple[EvaluationWithDetail, ...],
            evaluation_storage.find(
                teacher_id=teacher_id,
                student_id=student_id,
                scale_id=scale_id,
                status=statuses,
                with_detail=True,
                session=session,
            ),
        )
        people = _people(found, session)
    return EvaluationListResponse(
        evaluations=[EvaluationSummaryResponse.from_detail(e, people) for e in found], total=len(found)
    )


@router.post("", operation_id="create_evaluation", status_code=status.HTTP_201_CREATED)
@di.inject
def create_evaluation(
    request: EvaluationCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationDetailResponse:
    """Create a draft evaluation of a student against a scale."""
    with session.begin():
        evaluation = workflow.create_evaluation(
            auth.actor,
            title=request.title,
            date_eval=request.date_eval,
            student_id=request.student_id,
            scale_id=request.scale_id,
            session=session,
        )
        detail = workflow.load_evaluation(evaluation.evaluation_id, session=session)
        people = _people([detail], session)
    return EvaluationDetailResponse.from_detail(detail, people)


@router.get("/{evaluation_id}", operation_id="get_evaluation")
@di.inject
def get_evaluation(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationDetailResponse:
    """The evaluation with its scale, grades, comments and computed scores."""
    with session.begin():
        evaluation = workflow.view_evaluation(auth.actor, evaluation_id, session=session)
        people = _people([evaluation], session)
    return EvaluationDetailResponse.from_detail(evaluation, people)


@router.put("/{evaluation_id}", operation_id="update_evaluation")
@di.inject
def update_evaluation(
    evaluation_id: EvaluationID,
    request: EvaluationUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    with session.begin():
        evaluation = workflow.update_evaluation(
            auth.actor,
            evaluation_id,
            title=request.title if request.title is not None else NotSet(),
            date_eval=request.date_eval if request.date_eval is not None else NotSet(),
            student_id=request.student_id if request.student_id is not None else NotSet(),
            scale_id=request.scale_id if request.scale_id is not None else NotSet(),
            expected_version=request.expected_version,
            session=session,
        )
    return EvaluationResponse.from_model(evaluation)


@router.delete("/{evaluation_id}", operation_id="delete_evaluation", status_code=status.HTTP_204_NO_CONTENT)
@di.inject
def delete_evaluation(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    with session.begin():
        workflow.delete_evaluation(auth.actor, evaluation_id, session=session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{evaluation_id}/status", operation_id="change_evaluation_status")
@di.inject
def change_status(
    evaluation_id: EvaluationID,
    request: StatusChangeRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    """Publish or archive an evaluation. Publishing requires every criterion to be graded."""
    with session.begin():
        evaluation = workflow.change_status(
            auth.actor, evaluation_id, request.status, expected_version=request.expected_version, session=session
        )
    return EvaluationResponse.from_model(evaluation)


@router.get("/{evaluation_id}/grades", operation_id="list_grades")
@di.inject
def list_grades(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> list[GradeResponse]:
    with session.begin():
        evaluation = workflow.view_evaluation(auth.actor, evaluation_id, session=session)
    return [GradeResponse.from_model(g) for g in evaluation.grades]


@router.post("/{evaluation_id}/grades", operation_id="record_grade", status_code=status.HTTP_201_CREATED)
@di.inject
def record_grade(
    evaluation_id: EvaluationID,
    request: GradeCreateRequest,
    response: Response,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeWriteResponse:
    """Grade a criterion. An existing grade for the same criterion is updated instead (200)."""
    with session.begin():
        outcome = workflow.record_grade(
            auth.actor,
            evaluation_id,
            request.criterion_id,
            request.value,
            expected_version=request.expected_version,
            session=session,
        )
    if not outcome.created:
        response.status_code = status.HTTP_200_OK
    return _grade_response(outcome)


@router.put("/{evaluation_id}/grades", operation_id="save_grades")
@di.inject
def save_grades(
    evaluation_id: EvaluationID,
    request: GradeBatchRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeBatchResponse:
    """
    Save several grades in order, one transaction each. On failure the error
    names the criterion which failed and lists those already saved.
    """
    outcome = workflow.save_grades(
        auth.actor,
        evaluation_id,
        [workflow.GradeEntry(g.criterion_id, g.value) for g in request.grades],
        expected_version=request.expected_version,
        session=session,
    )
    return GradeBatchResponse(
        grades=[GradeResponse.from_model(o.grade) for o in outcome.saved],
        version=outcome.evaluation.version,
        warnings=outcome.warnings,
    )


@router.put("/{evaluation_id}/grades/{grade_id}", operation_id="update_grade")
@di.inject
def update_grade(
    evaluation_id: EvaluationID,
    grade_id: GradeID,
    request: GradeUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeWriteResponse:
    with session.begin():
        outcome = workflow.update_grade(
            auth.actor,
            evaluation_id,
            grade_id,
            request.value,
            expected_version=request.expected_version,
            session=session,
        )
    return _grade_response(outcome)


@router.delete("/{evaluation_id}/grades/{grade_id}", operation_id="delete_grade")
@di.inject
def delete_grade(
    evaluation_id: EvaluationID,
    grade_id: GradeID,
    expected_version: int | None = Query(None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    """Return a criterion to ungraded."""
    with session.begin():
        evaluation = workflow.remove_grade(
            auth.actor, evaluation_id, grade_id, expected_version=expected_version, session=session
        )
    return EvaluationResponse.from_model(evaluation)


@router.get("/{evaluation_id}/comments", operation_id="list_comments")
@di.inject
def list_comments(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> list[CommentResponse]:
    with session.begin():
        evaluation = workflow.view_evaluation(auth.actor, evaluation_id, session=session)
    return [CommentResponse.from_model(c) for c in evaluation.comments]


@router.post("/{evaluation_id}/comments", operation_id="add_comment", status_code=status.HTTP_201_CREATED)
@di.inject
def add_comment(
    evaluation_id: EvaluationID,
    request: CommentRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> CommentResponse:
    with session.begin():
        comment = workflow.add_comment(auth.actor, evaluation_id, request.text, session=session)
    return CommentResponse.from_model(comment)


@comment_router.put("/{comment_id}", operation_id="update_comment")
@di.inject
def update_comment(
    comment_id: CommentID,
    request: CommentRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> CommentResponse:
    with session.begin():
        comment = workflow.edit_comment(auth.actor, comment_id, request.text, session=session)
    return CommentResponse.from_model(comment)


@comment_router.delete("/{comment_id}", operation_id="delete_comment", status_code=status.HTTP_204_NO_CONTENT)
@di.inject
def delete_comment(
    comment_id: CommentID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    with session.begin():
        workflow.remove_comment(auth.actor, comment_id, session=session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
