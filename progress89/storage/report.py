"""Read-only aggregate queries backing the admin reports."""

from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from progress89.core import di
from progress89.model import Scale

from . import Session
from .table import evaluations, scales, users


class TableCounts(t.NamedTuple):
    total: int
    since: int
    by_group: dict[str, int]


def _naive(dt: datetime.datetime) -> datetime.datetime:
    # timestamp columns hold naive UTC
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(datetime.UTC).replace(tzinfo=None)


def _counts(
    table: t.Any,
    group_column: sqla.ColumnElement[t.Any] | None,
    since: datetime.datetime,
    session: Session,
) -> TableCounts:
    total = session.execute(sqla.select(sqla.func.count()).select_from(table)).scalar_one()
    recent = session.execute(
        sqla.select(sqla.func.count()).select_from(table).where(table.create_time >= _naive(since))
    ).scalar_one()
    by_group: dict[str, int] = {}
    if group_column is not None:
        stmt = sqla.select(group_column, sqla.func.count()).select_from(table).group_by(group_column)
        by_group = {str(k): n for k, n in session.execute(stmt).tuples()}
    return TableCounts(total=total, since=recent, by_group=by_group)


def user_counts(
    *,
    since: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[TableCounts, int]:
    """Counts of users overall, created since `since`, and by role; plus the number of active users."""
    counts = _counts(users, users.role, since, session)
    active = session.execute(
        sqla.select(sqla.func.count()).select_from(users).where(users.status == "active")
    ).scalar_one()
    return counts, active


def evaluation_counts(
    *,
    since: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> TableCounts:
    """Counts of evaluations overall, created since `since`, and by status."""
    return _counts(evaluations, evaluations.status, since, session)


def evaluations_per_month(
    *,
    start: datetime.date,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[str, int]:
    """Evaluations per `YYYY-MM` of their evaluation date, from `start` on."""
    stmt = sqla.select(evaluations.date_eval).where(evaluations.date_eval >= start)
    months: dict[str, int] = {}
    for d in session.execute(stmt).scalars():
        key = d.strftime("%Y-%m")
        months[key] = months.get(key, 0) + 1
    return months


def scale_counts(
    *,
    since: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> TableCounts:
    return _counts(scales, None, since, session)


def scale_usage(
    *,
    limit: int = 5,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[tuple[Scale, int]]:
    """Most used scales by number of evaluations, ignoring unused ones."""
    n = sqla.func.count(evaluations.evaluation_id).label("n")
    stmt = (
        sqla.select(scales.__table__, n)
        .join(evaluations, evaluations.scale_id == scales.scale_id)
        .group_by(*scales.__table__.columns)
        .order_by(n.desc(), scales.title)
        .limit(limit)
    )
    usage: list[tuple[Scale, int]] = []
    for row in session.execute(stmt).mappings():
        fields = dict(row)
        count = fields.pop("n")
        usage.append((Scale(**fields), count))
    return usage
