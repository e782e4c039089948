"""Grading rules: aggregation, lifecycle, validation and the workflows built on them."""

__all__ = [
    "Actor",
    "AuthorizationError",
    "BatchSaveError",
    "Capability",
    "ConflictError",
    "EvaluationLockedError",
    "GradingError",
    "GradingProgress",
    "IncompleteGradingError",
    "InvalidTransitionError",
    "NotFoundError",
    "SkillScore",
    "StaleVersionError",
    "ValidationError",
    "compute_grading_progress",
    "compute_max",
    "compute_percentage",
    "compute_skill_breakdown",
    "compute_total",
    "validate_grade_input",
]

from .actor import Actor, Capability
from .aggregate import compute_grading_progress, compute_max, compute_percentage, compute_skill_breakdown, \
    compute_total, GradingProgress, SkillScore
from .errors import AuthorizationError, BatchSaveError, ConflictError, EvaluationLockedError, GradingError, \
    IncompleteGradingError, InvalidTransitionError, NotFoundError, StaleVersionError, ValidationError
from .validation import validate_grade_input
