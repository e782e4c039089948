__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "ShortUUIDKey",
    "UserID",
    "ScaleID",
    "CriterionID",
    "EvaluationID",
    "GradeID",
    "CommentID",
    # Users
    "User",
    "UserRole",
    "UserStatus",
    # Scales
    "Criterion",
    "Scale",
    "ScaleWithCriteria",
    # Evaluations
    "Comment",
    "Evaluation",
    "EvaluationStatus",
    "EvaluationWithDetail",
    "Grade",
]

from .base import BaseModel, WithCtime, WithMtime, WithTimestamps
from .enum import DeploymentEnvironment
from .evaluation import Comment, Evaluation, EvaluationStatus, EvaluationWithDetail, Grade
from .id import CommentID, CriterionID, EvaluationID, GradeID, ScaleID, ShortUUIDKey, UserID
from .scale import Criterion, Scale, ScaleWithCriteria
from .user import User, UserRole, UserStatus
