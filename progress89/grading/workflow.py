"""Evaluation workflows: grade writes, status changes and evaluation edits.

Each function checks the actor through `lifecycle` before touching storage.
The caller owns the transaction, except for `save_grades`, which commits
every entry on its own so that a failure leaves earlier entries saved.
"""

from __future__ import annotations

import datetime
import decimal
import logging
import typing as t

from sqlalchemy.orm import Session

from progress89.lib import NotSet
from progress89.model import Comment, CommentID, Criterion, CriterionID, Evaluation, EvaluationID, \
    EvaluationStatus, EvaluationWithDetail, Grade, GradeID, ScaleID, UserID, UserRole
from progress89.storage import comment as comment_storage
from progress89.storage import evaluation as evaluation_storage
from progress89.storage import grade as grade_storage
from progress89.storage import scale as scale_storage
from progress89.storage import StaleVersionError as StorageStaleVersionError
from progress89.storage import user as user_storage

from . import lifecycle
from .actor import Actor, Capability
from .aggregate import Number
from .errors import AuthorizationError, BatchSaveError, GradingError, NotFoundError, StaleVersionError, \
    ValidationError
from .validation import validate_grade_input

logger = logging.getLogger(__name__)


class GradeOutcome(t.NamedTuple):
    grade: Grade
    created: bool
    evaluation: Evaluation
    # set when the value was clamped to the criterion's maximum
    warning: str | None = None


class BatchOutcome(t.NamedTuple):
    saved: list[GradeOutcome]
    evaluation: Evaluation

    @property
    def warnings(self) -> dict[CriterionID, str]:
        return {o.grade.criterion_id: o.warning for o in self.saved if o.warning is not None}


class GradeEntry(t.NamedTuple):
    criterion_id: CriterionID
    value: Number | None


def load_evaluation(evaluation_id: EvaluationID, *, session: Session) -> EvaluationWithDetail:
    evaluation = evaluation_storage.get(evaluation_id, with_detail=True, session=session)
    if evaluation is None:
        raise NotFoundError("Evaluation not found")
    return evaluation


def view_evaluation(actor: Actor, evaluation_id: EvaluationID, *, session: Session) -> EvaluationWithDetail:
    evaluation = load_evaluation(evaluation_id, session=session)
    lifecycle.ensure_can_view(actor, evaluation)
    return evaluation


def _criterion_of(evaluation: EvaluationWithDetail, criterion_id: CriterionID) -> Criterion:
    criteria = evaluation.scale.criteria if evaluation.scale is not None else []
    for c in criteria:
        if c.criterion_id == criterion_id:
            return c
    raise NotFoundError("Criterion does not belong to this evaluation's scale", criterion_id=str(criterion_id))


def _grade_of(evaluation: EvaluationWithDetail, grade_id: GradeID) -> Grade:
    for g in evaluation.grades:
        if g.grade_id == grade_id:
            return g
    raise NotFoundError("Grade not found")


def _touch(evaluation: Evaluation, expected_version: int | None, session: Session) -> Evaluation:
    """Bump the evaluation's version, failing if someone else bumped it first"""
    try:
        return evaluation_storage.update(
            evaluation.evaluation_id,
            expected_version=expected_version if expected_version is not None else evaluation.version,
            session=session,
        )
    except StorageStaleVersionError as e:
        raise StaleVersionError(expected=e.expected, actual=e.actual) from e


def _write_grade(
    actor: Actor,
    evaluation: EvaluationWithDetail,
    criterion_id: CriterionID,
    value: Number | None,
    expected_version: int | None,
    session: Session,
) -> GradeOutcome:
    lifecycle.ensure_grades_editable(actor, evaluation)
    lifecycle.ensure_version(evaluation, expected_version)
    criterion = _criterion_of(evaluation, criterion_id)

    checked = validate_grade_input(value, criterion.max_points)
    if not checked.accepted:
        logger.info(
            "rejected grade",
            extra={"evaluation_id": evaluation.evaluation_id, "criterion_id": criterion_id, "reason": checked.error},
        )
        raise ValidationError(t.cast(str, checked.error), field="value", criterion_id=str(criterion_id))
    if checked.error is not None:
        logger.warning(
            "clamped grade to criterion maximum",
            extra={"evaluation_id": evaluation.evaluation_id, "criterion_id": criterion_id, "value": value},
        )

    grade, created = grade_storage.upsert(
        evaluation_id=evaluation.evaluation_id,
        criterion_id=criterion_id,
        value=t.cast(decimal.Decimal, checked.value),
        session=session,
    )
    touched = _touch(evaluation, expected_version, session)
    return GradeOutcome(grade=grade, created=created, evaluation=touched, warning=checked.error)


def record_grade(
    actor: Actor,
    evaluation_id: EvaluationID,
    criterion_id: CriterionID,
    value: Number | None,
    *,
    expected_version: int | None = None,
    session: Session,
) -> GradeOutcome:
    """Grade a criterion, replacing its previous grade if there is one."""
    evaluation = load_evaluation(evaluation_id, session=session)
    return _write_grade(actor, evaluation, criterion_id, value, expected_version, session)


def update_grade(
    actor: Actor,
    evaluation_id: EvaluationID,
    grade_id: GradeID,
    value: Number | None,
    *,
    expected_version: int | None = None,
    session: Session,
) -> GradeOutcome:
    evaluation = load_evaluation(evaluation_id, session=session)
    grade = _grade_of(evaluation, grade_id)
    return _write_grade(actor, evaluation, grade.criterion_id, value, expected_version, session)


def remove_grade(
    actor: Actor,
    evaluation_id: EvaluationID,
    grade_id: GradeID,
    *,
    expected_version: int | None = None,
    session: Session,
) -> Evaluation:
    """Return a criterion to ungraded."""
    evaluation = load_evaluation(evaluation_id, session=session)
    lifecycle.ensure_grades_editable(actor, evaluation)
    lifecycle.ensure_version(evaluation, expected_version)
    _grade_of(evaluation, grade_id)

    grade_storage.delete(grade_id, session=session)
    return _touch(evaluation, expected_version, session)


def save_grades(
    actor: Actor,
    evaluation_id: EvaluationID,
    entries: t.Sequence[GradeEntry],
    *,
    expected_version: int | None = None,
    session: Session,
) -> BatchOutcome:
    """
    Save grades one criterion at a time, each in its own transaction.

    The first failure stops the loop. Grades saved before it stay committed
    and are named in the raised BatchSaveError.

    Raises:
        NotFoundError: the evaluation does not exist
        AuthorizationError: the actor may not grade it
        EvaluationLockedError: the evaluation is archived
        StaleVersionError: expected_version is outdated
        BatchSaveError: an entry failed after the checks above passed
    """
    with session.begin():
        evaluation = load_evaluation(evaluation_id, session=session)
        lifecycle.ensure_grades_editable(actor, evaluation)
        lifecycle.ensure_version(evaluation, expected_version)

    version = expected_version
    saved: list[GradeOutcome] = []
    for entry in entries:
        try:
            with session.begin():
                evaluation = load_evaluation(evaluation_id, session=session)
                outcome = _write_grade(actor, evaluation, entry.criterion_id, entry.value, version, session)
        except GradingError as e:
            description = str(entry.criterion_id)
            criteria = evaluation.scale.criteria if evaluation.scale is not None else []
            for c in criteria:
                if c.criterion_id == entry.criterion_id:
                    description = c.description
            logger.warning(
                "batch grade save stopped",
                extra={
                    "evaluation_id": evaluation_id,
                    "criterion_id": entry.criterion_id,
                    "saved": len(saved),
                    "remaining": len(entries) - len(saved),
                    "reason": e.message,
                },
            )
            raise BatchSaveError(
                criterion_id=str(entry.criterion_id),
                criterion_description=description,
                cause=e,
                saved=[str(o.grade.criterion_id) for o in saved],
            ) from e

        saved.append(outcome)
        if version is not None:
            version = outcome.evaluation.version

    if saved:
        evaluation = saved[-1].evaluation
    logger.info("saved grades", extra={"evaluation_id": evaluation_id, "count": len(saved)})
    return BatchOutcome(saved=saved, evaluation=evaluation)


def change_status(
    actor: Actor,
    evaluation_id: EvaluationID,
    target: EvaluationStatus,
    *,
    expected_version: int | None = None,
    session: Session,
) -> Evaluation:
    """
    Move an evaluation along draft -> published -> archived.

    Raises:
        InvalidTransitionError: target is not the next status
        IncompleteGradingError: publishing before every criterion is graded
    """
    evaluation = load_evaluation(evaluation_id, session=session)
    lifecycle.ensure_can_manage(actor, evaluation)
    lifecycle.ensure_version(evaluation, expected_version)
    lifecycle.check_transition(actor, evaluation, target)

    try:
        updated = evaluation_storage.update(
            evaluation_id, status=target, expected_version=evaluation.version, session=session
        )
    except StorageStaleVersionError as e:
        raise StaleVersionError(expected=e.expected, actual=e.actual) from e

    logger.info(
        "evaluation status changed",
        extra={
            "evaluation_id": evaluation_id,
            "from": evaluation.status.value,
            "to": target.value,
            "actor": actor.user_id,
        },
    )
    return updated


def _ensure_student(student_id: UserID, session: Session) -> None:
    student = user_storage.get(user_id=student_id, session=session)
    if student is None or student.role is not UserRole.Student:
        raise ValidationError("Student not found", field="student_id")
    if not student.is_active:
        raise ValidationError("Student account is inactive", field="student_id")


def _ensure_usable_scale(actor: Actor, scale_id: ScaleID, session: Session) -> None:
    scale = scale_storage.get(scale_id, session=session)
    if scale is None:
        raise ValidationError("Scale not found", field="scale_id")
    lifecycle.ensure_can_view_scale(actor, scale)


def create_evaluation(
    actor: Actor,
    *,
    title: str,
    date_eval: datetime.date,
    student_id: UserID,
    scale_id: ScaleID,
    session: Session,
) -> Evaluation:
    if not (actor.can(Capability.GradeOwnEvaluations) or actor.can(Capability.ManageAllEvaluations)):
        raise AuthorizationError("Only teachers and admins may create evaluations")
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    _ensure_student(student_id, session)
    _ensure_usable_scale(actor, scale_id, session)

    evaluation = evaluation_storage.create(
        title=title.strip(),
        date_eval=date_eval,
        student_id=student_id,
        teacher_id=actor.user_id,
        scale_id=scale_id,
        session=session,
    )
    logger.info(
        "created evaluation",
        extra={"evaluation_id": evaluation.evaluation_id, "student_id": student_id, "scale_id": scale_id},
    )
    return evaluation


def update_evaluation(
    actor: Actor,
    evaluation_id: EvaluationID,
    *,
    title: str | NotSet = NotSet(),
    date_eval: datetime.date | NotSet = NotSet(),
    student_id: UserID | NotSet = NotSet(),
    scale_id: ScaleID | NotSet = NotSet(),
    expected_version: int | None = None,
    session: Session,
) -> Evaluation:
    """Edit evaluation metadata. The scale may only change on an ungraded draft."""
    evaluation = load_evaluation(evaluation_id, session=session)
    lifecycle.ensure_metadata_editable(actor, evaluation)
    lifecycle.ensure_version(evaluation, expected_version)

    if not isinstance(title, NotSet):
        if not title or not title.strip():
            raise ValidationError("Title is required", field="title")
        title = title.strip()
    if not isinstance(student_id, NotSet) and student_id != evaluation.student_id:
        _ensure_student(student_id, session)
    if not isinstance(scale_id, NotSet) and scale_id != evaluation.scale_id:
        if evaluation.status is not EvaluationStatus.Draft or evaluation.grades:
            raise ValidationError("The scale can only be changed on a draft without grades", field="scale_id")
        _ensure_usable_scale(actor, scale_id, session)

    try:
        return evaluation_storage.update(
            evaluation_id,
            title=title,
            date_eval=date_eval,
            student_id=student_id,
            scale_id=scale_id,
            expected_version=evaluation.version,
            session=session,
        )
    except StorageStaleVersionError as e:
        raise StaleVersionError(expected=e.expected, actual=e.actual) from e


def delete_evaluation(actor: Actor, evaluation_id: EvaluationID, *, session: Session) -> None:
    evaluation = load_evaluation(evaluation_id, session=session)
    lifecycle.ensure_deletable(actor, evaluation)
    evaluation_storage.delete(evaluation_id, session=session)
    logger.info("deleted evaluation", extra={"evaluation_id": evaluation_id, "actor": actor.user_id})


def _comment_text(text: str | None) -> str:
    if text is None or not text.strip():
        raise ValidationError("Comment text is required", field="text")
    return text.strip()


def add_comment(actor: Actor, evaluation_id: EvaluationID, text: str | None, *, session: Session) -> Comment:
    """Comments may be added at any status by the evaluation's teacher or an admin."""
    evaluation = load_evaluation(evaluation_id, session=session)
    lifecycle.ensure_can_manage(actor, evaluation)
    return comment_storage.create(
        evaluation_id=evaluation_id, teacher_id=actor.user_id, text=_comment_text(text), session=session
    )


def _load_comment(comment_id: CommentID, session: Session) -> Comment:
    comment = comment_storage.get(comment_id, session=session)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def edit_comment(actor: Actor, comment_id: CommentID, text: str | None, *, session: Session) -> Comment:
    comment = _load_comment(comment_id, session)
    lifecycle.ensure_can_edit_comment(actor, comment)
    return comment_storage.update(comment_id, text=_comment_text(text), session=session)


def remove_comment(actor: Actor, comment_id: CommentID, *, session: Session) -> None:
    comment = _load_comment(comment_id, session)
    lifecycle.ensure_can_edit_comment(actor, comment)
    comment_storage.delete(comment_id, session=session)
