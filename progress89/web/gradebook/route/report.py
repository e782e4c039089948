"""Admin report routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from progress89.auth import AuthContext, require_admin
from progress89.core import di, TimestampProvider
from progress89.grading import reporting

from ..view.report import OverviewResponse

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/overview", operation_id="get_overview")
@di.inject
def get_overview(
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> OverviewResponse:
    with session.begin():
        overview = reporting.overview(auth.actor, now=utcnow(), session=session)
    return OverviewResponse.from_overview(overview)
