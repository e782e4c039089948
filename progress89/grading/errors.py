"""Domain error taxonomy.

Every error carries the HTTP status it maps to, so the web layer can render
any of them with a single exception handler.
"""

from __future__ import annotations

import typing as t

from fastapi import status


class GradingError(Exception):
    status_code: t.ClassVar[int] = status.HTTP_400_BAD_REQUEST

    message: str
    extra: dict[str, t.Any]

    def __init__(self, message: str, **extra: t.Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_detail(self) -> dict[str, t.Any]:
        return {"detail": self.message, **self.extra}


class ValidationError(GradingError):
    """Rejected input: an empty required field, an out-of-range number or an exceeded coefficient sum"""

    def __init__(self, message: str, field: str | None = None, **extra: t.Any) -> None:
        if field is not None:
            extra["field"] = field
        super().__init__(message, **extra)
        self.field = field


class InvalidTransitionError(GradingError):
    """The requested status change is not an edge of the lifecycle"""


class IncompleteGradingError(InvalidTransitionError):
    def __init__(self, remaining: int, total: int) -> None:
        if total == 0:
            message = "Cannot publish: the scale has no criteria"
        elif remaining == 1:
            message = "Cannot publish: 1 criterion remains ungraded"
        else:
            message = f"Cannot publish: {remaining} criteria remain ungraded"
        super().__init__(message, remaining=remaining, total=total)
        self.remaining = remaining
        self.total = total


class EvaluationLockedError(GradingError):
    """Grades of an archived evaluation are final"""


class AuthorizationError(GradingError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(GradingError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(GradingError):
    status_code = status.HTTP_409_CONFLICT


class StaleVersionError(ConflictError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            "Evaluation was modified by another request; reload and try again",
            expected_version=expected,
            current_version=actual,
        )


class BatchSaveError(GradingError):
    """
    A sequential grade save stopped at one criterion. Saves which preceded it
    remain committed and are listed in `saved`.
    """

    def __init__(self, criterion_id: str, criterion_description: str, cause: GradingError, saved: list[str]) -> None:
        super().__init__(
            f"Failed to save grade for '{criterion_description}': {cause.message}",
            **{**cause.extra, "criterion_id": criterion_id, "criterion": criterion_description, "saved": saved},
        )
        self.cause = cause
        self.saved = saved

    @property
    def status_code(self) -> int:  # pyright: ignore [reportIncompatibleVariableOverride]
        return self.cause.status_code
