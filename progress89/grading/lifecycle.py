"""Evaluation lifecycle and the access rules that go with it.

An evaluation moves draft -> published -> archived and never back. Publishing
requires every criterion of the scale to be graded. Archiving is
unconditional. Grades may change while an evaluation is draft or published
and are final once it is archived.

Every permission decision about evaluations, scales and comments is made
here, from the actor's capabilities and ownership.
"""

from __future__ import annotations

import typing as t

from progress89.model import Comment, Evaluation, EvaluationStatus, Scale, UserID

from .actor import Actor, Capability
from .aggregate import compute_grading_progress, Gradable
from .errors import AuthorizationError, EvaluationLockedError, IncompleteGradingError, InvalidTransitionError, \
    StaleVersionError

Transitions: t.Final[dict[EvaluationStatus, EvaluationStatus]] = {
    EvaluationStatus.Draft: EvaluationStatus.Published,
    EvaluationStatus.Published: EvaluationStatus.Archived,
}

StudentVisible: t.Final[frozenset[EvaluationStatus]] = frozenset({
    EvaluationStatus.Published,
    EvaluationStatus.Archived,
})

GradeEditable: t.Final[frozenset[EvaluationStatus]] = frozenset({
    EvaluationStatus.Draft,
    EvaluationStatus.Published,
})


class GradableEvaluation(Gradable, t.Protocol):
    @property
    def status(self) -> EvaluationStatus: ...
    @property
    def teacher_id(self) -> UserID: ...


# evaluations


def owns(actor: Actor, evaluation: Evaluation | GradableEvaluation) -> bool:
    return evaluation.teacher_id == actor.user_id


def can_view(actor: Actor, evaluation: Evaluation) -> bool:
    if actor.can(Capability.ManageAllEvaluations):
        return True
    if actor.can(Capability.GradeOwnEvaluations) and owns(actor, evaluation):
        return True
    return (
        actor.can(Capability.ViewOwnResults)
        and evaluation.student_id == actor.user_id
        and evaluation.status in StudentVisible
    )


def can_manage(actor: Actor, evaluation: Evaluation | GradableEvaluation) -> bool:
    if actor.can(Capability.ManageAllEvaluations):
        return True
    return actor.can(Capability.GradeOwnEvaluations) and owns(actor, evaluation)


def ensure_can_view(actor: Actor, evaluation: Evaluation) -> None:
    if not can_view(actor, evaluation):
        raise AuthorizationError("Not authorized to view this evaluation")


def ensure_can_manage(actor: Actor, evaluation: Evaluation | GradableEvaluation) -> None:
    if not can_manage(actor, evaluation):
        raise AuthorizationError("Only the evaluation's teacher or an admin may modify it")


def ensure_grades_editable(actor: Actor, evaluation: Evaluation | GradableEvaluation) -> None:
    ensure_can_manage(actor, evaluation)
    if evaluation.status not in GradeEditable:
        raise EvaluationLockedError(f"Grades cannot be changed once an evaluation is {evaluation.status.value}")


def ensure_metadata_editable(actor: Actor, evaluation: Evaluation) -> None:
    ensure_can_manage(actor, evaluation)
    if evaluation.status is EvaluationStatus.Archived:
        raise EvaluationLockedError("Archived evaluations cannot be edited")


def ensure_deletable(actor: Actor, evaluation: Evaluation) -> None:
    ensure_can_manage(actor, evaluation)
    if evaluation.status is not EvaluationStatus.Draft:
        raise EvaluationLockedError("Only draft evaluations can be deleted")


def ensure_version(evaluation: Evaluation, expected_version: int | None) -> None:
    """Reject a write made against an outdated copy; None opts out of the check"""
    if expected_version is not None and evaluation.version != expected_version:
        raise StaleVersionError(expected=expected_version, actual=evaluation.version)


def next_status(current: EvaluationStatus) -> EvaluationStatus | None:
    return Transitions.get(current)


def check_transition(actor: Actor, evaluation: GradableEvaluation, target: EvaluationStatus) -> None:
    """
    Raise unless `actor` may move `evaluation` to `target` right now.

    Raises:
        AuthorizationError: actor is neither the owning teacher nor an admin
        InvalidTransitionError: target is not the successor of the current status
        IncompleteGradingError: publishing with ungraded criteria, or with none at all
    """
    ensure_can_manage(actor, evaluation)

    current = evaluation.status
    successor = Transitions.get(current)
    if successor is not target:
        raise InvalidTransitionError(
            f"Cannot change status from {current.value} to {target.value}",
            status=current.value,
            allowed=[successor.value] if successor is not None else [],
        )

    if target is EvaluationStatus.Published:
        progress = compute_grading_progress(evaluation)
        if not progress.is_complete:
            raise IncompleteGradingError(remaining=progress.remaining, total=progress.total)


# scales


def can_view_scale(actor: Actor, scale: Scale) -> bool:
    if actor.can(Capability.ManageAllScales):
        return True
    return actor.can(Capability.AuthorScales) and (scale.creator_id == actor.user_id or scale.is_shared)


def ensure_can_view_scale(actor: Actor, scale: Scale) -> None:
    if not can_view_scale(actor, scale):
        raise AuthorizationError("Not authorized to view this scale")


def ensure_can_edit_scale(actor: Actor, scale: Scale) -> None:
    if actor.can(Capability.ManageAllScales):
        return
    if not (actor.can(Capability.AuthorScales) and scale.creator_id == actor.user_id):
        raise AuthorizationError("Only the scale's creator or an admin may modify it")


# comments


def ensure_can_edit_comment(actor: Actor, comment: Comment) -> None:
    if actor.can(Capability.ManageAllEvaluations):
        return
    if comment.teacher_id != actor.user_id:
        raise AuthorizationError("Only the comment's author or an admin may modify it")
