from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from progress89.core import di
from progress89.lib import NotSet
from progress89.model import Comment, Evaluation, EvaluationID, EvaluationStatus, EvaluationWithDetail, Grade, \
    ScaleID, ScaleWithCriteria, UserID

from . import Session, StaleVersionError
from . import scale as scale_storage
from .table import comments, evaluations, grades


@t.overload
def get(
    evaluation_id: EvaluationID, *, with_detail: t.Literal[False] = ..., session: Session = ...
) -> Evaluation | None: ...


@t.overload
def get(
    evaluation_id: EvaluationID, *, with_detail: t.Literal[True], session: Session = ...
) -> EvaluationWithDetail | None: ...


def get(
    evaluation_id: EvaluationID,
    *,
    with_detail: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation | EvaluationWithDetail | None:
    """Get an evaluation by ID.

    With with_detail, the scale (with criteria), grades and comments are loaded too.
    """
    stmt = sqla.select(evaluations.__table__).where(evaluations.evaluation_id == evaluation_id)
    row = session.execute(stmt).mappings().one_or_none()
    if row is None:
        return None
    evaluation = Evaluation(**row)
    if not with_detail:
        return evaluation
    return _load_detail((evaluation,), session=session)[0]


def find(
    *,
    teacher_id: UserID | None = None,
    student_id: UserID | None = None,
    scale_id: ScaleID | None = None,
    status: EvaluationStatus | t.Collection[EvaluationStatus] | None = None,
    with_detail: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Evaluation, ...] | tuple[EvaluationWithDetail, ...]:
    """Find evaluations matching criteria, most recent evaluation date first."""
    stmt = sqla.select(evaluations.__table__)
    if teacher_id is not None:
        stmt = stmt.where(evaluations.teacher_id == teacher_id)
    if student_id is not None:
        stmt = stmt.where(evaluations.student_id == student_id)
    if scale_id is not None:
        stmt = stmt.where(evaluations.scale_id == scale_id)
    if status is not None:
        statuses = (status,) if isinstance(status, EvaluationStatus) else tuple(status)
        stmt = stmt.where(evaluations.status.in_([s.value for s in statuses]))
    stmt = stmt.order_by(evaluations.date_eval.desc(), evaluations.create_time.desc())

    found = tuple(Evaluation(**row) for row in session.execute(stmt).mappings())
    if not with_detail:
        return found
    return _load_detail(found, session=session)


def _load_detail(found: t.Sequence[Evaluation], *, session: Session) -> tuple[EvaluationWithDetail, ...]:
    if not found:
        return ()
    ids = [e.evaluation_id for e in found]

    grade_rows = session.execute(
        sqla.select(grades.__table__).where(grades.evaluation_id.in_(ids)).order_by(grades.create_time)
    ).mappings()
    grades_by: dict[EvaluationID, list[Grade]] = {}
    for row in grade_rows:
        g = Grade(**row)
        grades_by.setdefault(g.evaluation_id, []).append(g)

    comment_rows = session.execute(
        sqla.select(comments.__table__).where(comments.evaluation_id.in_(ids)).order_by(comments.create_time)
    ).mappings()
    comments_by: dict[EvaluationID, list[Comment]] = {}
    for row in comment_rows:
        c = Comment(**row)
        comments_by.setdefault(c.evaluation_id, []).append(c)

    scales_by: dict[ScaleID, ScaleWithCriteria | None] = {}
    for e in found:
        if e.scale_id not in scales_by:
            scales_by[e.scale_id] = scale_storage.get(e.scale_id, with_criteria=True, session=session)

    return tuple(
        EvaluationWithDetail(
            **e.model_dump(),
            scale=scales_by[e.scale_id],
            grades=grades_by.get(e.evaluation_id, []),
            comments=comments_by.get(e.evaluation_id, []),
        )
        for e in found
    )


def create(
    *,
    title: str,
    date_eval: datetime.date,
    student_id: UserID,
    teacher_id: UserID,
    scale_id: ScaleID,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Create an evaluation in draft status."""
    evaluation = evaluations(
        evaluation_id=EvaluationID(),
        title=title,
        date_eval=date_eval,
        student_id=student_id,
        teacher_id=teacher_id,
        scale_id=scale_id,
        status=EvaluationStatus.Draft.value,
    )
    session.add(evaluation)
    session.flush()
    return get(evaluation.evaluation_id, session=session)  # type: ignore[return-value]


def update(
    evaluation_id: EvaluationID,
    *,
    title: str | NotSet = NotSet(),
    date_eval: datetime.date | NotSet = NotSet(),
    student_id: UserID | NotSet = NotSet(),
    scale_id: ScaleID | NotSet = NotSet(),
    status: EvaluationStatus | NotSet = NotSet(),
    expected_version: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Update an evaluation and bump its version.

    Every call bumps the version, even with no field changes, so that grade
    writes can mark the evaluation as modified.

    Raises:
        KeyError: If evaluation_id does not correspond to an evaluation
        StaleVersionError: If expected_version is given and does not match
    """
    values: dict[str, t.Any] = {"version": evaluations.version + 1}
    if not isinstance(title, NotSet):
        values["title"] = title
    if not isinstance(date_eval, NotSet):
        values["date_eval"] = date_eval
    if not isinstance(student_id, NotSet):
        values["student_id"] = student_id
    if not isinstance(scale_id, NotSet):
        values["scale_id"] = scale_id
    if not isinstance(status, NotSet):
        values["status"] = status.value

    stmt = sqla.update(evaluations).where(evaluations.evaluation_id == evaluation_id)
    if expected_version is not None:
        stmt = stmt.where(evaluations.version == expected_version)

    result = session.execute(stmt.values(**values))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        current = get(evaluation_id, session=session)
        if current is None:
            raise KeyError(f"Evaluation {evaluation_id} not found")
        raise StaleVersionError(expected=t.cast(int, expected_version), actual=current.version)

    session.flush()
    return get(evaluation_id, session=session)  # type: ignore[return-value]


def delete(evaluation_id: EvaluationID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete an evaluation along with its grades and comments.

    Returns:
        True if the evaluation was deleted, False if it did not exist
    """
    session.execute(sqla.delete(grades).where(grades.evaluation_id == evaluation_id))
    session.execute(sqla.delete(comments).where(comments.evaluation_id == evaluation_id))
    result = session.execute(sqla.delete(evaluations).where(evaluations.evaluation_id == evaluation_id))
    session.flush()
    return result.rowcount > 0  # pyright: ignore[reportAttributeAccessIssue]
