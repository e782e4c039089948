from __future__ import annotations

import datetime
import decimal
import typing as t

from sqlalchemy.orm import Session

from progress89.model import EvaluationStatus, Scale, UserID, UserRole
from progress89.storage import evaluation as evaluation_storage
from progress89.storage import report as report_storage
from progress89.storage import user as user_storage
from progress89.storage.report import TableCounts

from .actor import Actor, Capability
from .aggregate import compute_percentage, recorded_grades, Zero
from .errors import AuthorizationError, NotFoundError
from .lifecycle import StudentVisible
from .performance import PerformanceSummary, summarize_performance

ChartMonths: t.Final = 6


class Overview(t.NamedTuple):
    users: TableCounts
    active_users: int
    evaluations: TableCounts
    evaluations_by_month: list[tuple[str, int]]
    average_percentage: decimal.Decimal
    scales: TableCounts
    top_scales: list[tuple[Scale, int]]


def student_performance(actor: Actor, student_id: UserID, *, session: Session) -> PerformanceSummary:
    """Performance over the student's published and archived evaluations."""
    own = actor.user_id == student_id and actor.can(Capability.ViewOwnResults)
    if not (own or actor.can(Capability.ViewStudentPerformance)):
        raise AuthorizationError("Not authorized to view this student's performance")

    student = user_storage.get(user_id=student_id, session=session)
    if student is None or student.role is not UserRole.Student:
        raise NotFoundError("Student not found")

    evaluations = evaluation_storage.find(
        student_id=student_id, status=StudentVisible, with_detail=True, session=session
    )
    return summarize_performance(evaluations)  # type: ignore[arg-type]


def month_start(now: datetime.datetime) -> datetime.datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def last_months(today: datetime.date, n: int) -> list[str]:
    """`YYYY-MM` keys for the n months ending with today's, oldest first"""
    year, month = today.year, today.month
    keys: list[str] = []
    for _ in range(n):
        keys.append(f"{year:04d}-{month:02d}")
        year, month = (year, month - 1) if month > 1 else (year - 1, 12)
    return keys[::-1]


def overview(actor: Actor, *, now: datetime.datetime, session: Session) -> Overview:
    actor.require(Capability.ViewReports, "Only admins may view reports")

    since = month_start(now)
    months = last_months(now.date(), ChartMonths)
    first = datetime.date.fromisoformat(f"{months[0]}-01")

    users, active = report_storage.user_counts(since=since, session=session)
    per_month = report_storage.evaluations_per_month(start=first, session=session)

    graded = [
        compute_percentage(e)
        for e in evaluation_storage.find(
            status=(EvaluationStatus.Published, EvaluationStatus.Archived), with_detail=True, session=session
        )
        if recorded_grades(e)  # type: ignore[arg-type]
    ]
    average = sum(graded, start=Zero) / len(graded) if graded else Zero

    return Overview(
        users=users,
        active_users=active,
        evaluations=report_storage.evaluation_counts(since=since, session=session),
        evaluations_by_month=[(m, per_month.get(m, 0)) for m in months],
        average_percentage=average,
        scales=report_storage.scale_counts(since=since, session=session),
        top_scales=report_storage.scale_usage(session=session),
    )
