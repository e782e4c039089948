import datetime
import decimal
import enum

from .base import WithTimestamps
from .id import CommentID, CriterionID, EvaluationID, GradeID, ScaleID, UserID
from .scale import ScaleWithCriteria


class EvaluationStatus(enum.Enum):
    Draft = "draft"
    Published = "published"
    Archived = "archived"


class Grade(WithTimestamps):
    grade_id: GradeID
    evaluation_id: EvaluationID
    criterion_id: CriterionID
    value: decimal.Decimal


class Comment(WithTimestamps):
    comment_id: CommentID
    evaluation_id: EvaluationID
    teacher_id: UserID
    text: str


class Evaluation(WithTimestamps):
    evaluation_id: EvaluationID
    title: str
    date_eval: datetime.date
    student_id: UserID
    teacher_id: UserID
    scale_id: ScaleID
    status: EvaluationStatus = EvaluationStatus.Draft
    version: int = 1


class EvaluationWithDetail(Evaluation):
    """An evaluation together with everything needed to score it"""

    scale: ScaleWithCriteria | None = None
    grades: list[Grade] = []
    comments: list[Comment] = []
