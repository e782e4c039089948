from __future__ import annotations

import sqlalchemy as sqla

from progress89.core import di
from progress89.model import Comment, CommentID, EvaluationID, UserID

from . import Session
from .table import comments


def get(comment_id: CommentID, *, session: Session = di.Provide["storage.persistent.session"]) -> Comment | None:
    stmt = sqla.select(comments.__table__).where(comments.comment_id == comment_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Comment(**row) if row is not None else None


def find(
    *,
    evaluation_id: EvaluationID,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Comment, ...]:
    """Comments on an evaluation, oldest first."""
    stmt = (
        sqla.select(comments.__table__)
        .where(comments.evaluation_id == evaluation_id)
        .order_by(comments.create_time, comments.comment_id)
    )
    return tuple(Comment(**row) for row in session.execute(stmt).mappings())


def create(
    *,
    evaluation_id: EvaluationID,
    teacher_id: UserID,
    text: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> Comment:
    comment = comments(comment_id=CommentID(), evaluation_id=evaluation_id, teacher_id=teacher_id, text=text)
    session.add(comment)
    session.flush()
    return get(comment.comment_id, session=session)  # type: ignore[return-value]


def update(
    comment_id: CommentID,
    *,
    text: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> Comment:
    """Replace a comment's text.

    Raises:
        KeyError: If comment_id does not correspond to a comment
    """
    result = session.execute(sqla.update(comments).where(comments.comment_id == comment_id).values(text=text))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Comment {comment_id} not found")

    session.flush()
    return get(comment_id, session=session)  # type: ignore[return-value]


def delete(comment_id: CommentID, *, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    result = session.execute(sqla.delete(comments).where(comments.comment_id == comment_id))
    session.flush()
    return result.rowcount > 0  # pyright: ignore[reportAttributeAccessIssue]
