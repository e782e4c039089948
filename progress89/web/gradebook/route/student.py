"""Student performance routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from progress89.auth import AuthContext, get_current_user
from progress89.core import di
from progress89.grading import reporting
from progress89.model import UserID

from ..view.report import PerformanceResponse

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get("/{student_id}/performance", operation_id="get_student_performance")
@di.inject
def get_performance(
    student_id: UserID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> PerformanceResponse:
    """Averages, skills, monthly trend and advice over the student's graded results."""
    with session.begin():
        summary = reporting.student_performance(auth.actor, student_id, session=session)
    return PerformanceResponse.from_summary(student_id, summary)
