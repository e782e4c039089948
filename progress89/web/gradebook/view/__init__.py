"""View models for the gradebook API."""

__all__ = [
    # Auth views
    "LoginRequest",
    "LoginResponse",
    "RefreshRequest",
    "TokenResponse",
    # User views
    "ChangePasswordRequest",
    "UserCreateRequest",
    "UserListResponse",
    "UserResponse",
    "UserUpdateRequest",
    # Scale views
    "CriterionEditRequest",
    "CriterionRequest",
    "CriterionResponse",
    "CriterionWriteResponse",
    "ScaleCreateRequest",
    "ScaleListResponse",
    "ScaleResponse",
    "ScaleUpdateRequest",
    # Evaluation views
    "CommentRequest",
    "CommentResponse",
    "EvaluationCreateRequest",
    "EvaluationDetailResponse",
    "EvaluationListResponse",
    "EvaluationResponse",
    "EvaluationSummaryResponse",
    "EvaluationUpdateRequest",
    "GradeBatchRequest",
    "GradeBatchResponse",
    "GradeCreateRequest",
    "GradeResponse",
    "GradeUpdateRequest",
    "GradeWriteResponse",
    "StatusChangeRequest",
    # Report views
    "OverviewResponse",
    "PerformanceResponse",
]

from .auth import LoginRequest, LoginResponse, RefreshRequest, TokenResponse
from .evaluation import CommentRequest, CommentResponse, EvaluationCreateRequest, EvaluationDetailResponse, \
    EvaluationListResponse, EvaluationResponse, EvaluationSummaryResponse, EvaluationUpdateRequest, \
    GradeBatchRequest, GradeBatchResponse, GradeCreateRequest, GradeResponse, GradeUpdateRequest, \
    GradeWriteResponse, StatusChangeRequest
from .report import OverviewResponse, PerformanceResponse
from .scale import CriterionEditRequest, CriterionRequest, CriterionResponse, CriterionWriteResponse, \
    ScaleCreateRequest, ScaleListResponse, ScaleResponse, ScaleUpdateRequest
from .user import ChangePasswordRequest, UserCreateRequest, UserListResponse, UserResponse, UserUpdateRequest
