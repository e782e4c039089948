"""Route aggregation for the gradebook API."""

from fastapi import APIRouter

from . import auth, evaluation, report, scale, student, user

router = APIRouter()
router.include_router(auth.router)
router.include_router(user.router)
router.include_router(scale.router)
router.include_router(scale.criterion_router)
router.include_router(evaluation.router)
router.include_router(evaluation.comment_router)
router.include_router(student.router)
router.include_router(report.router)
