"""View models for evaluations, their grades and comments."""

from __future__ import annotations

import datetime
import decimal

import pydantic as p

from progress89.grading.aggregate import compute_grading_progress, compute_max, compute_percentage, \
    compute_skill_breakdown, compute_total
from progress89.model import BaseModel, Comment, CommentID, CriterionID, Evaluation, EvaluationID, \
    EvaluationStatus, EvaluationWithDetail, Grade, GradeID, ScaleID, User, UserID

from .scale import ScaleResponse


class EvaluationCreateRequest(BaseModel):
    title: str = ""
    date_eval: datetime.date
    student_id: UserID
    scale_id: ScaleID


class EvaluationUpdateRequest(BaseModel):
    title: str | None = None
    date_eval: datetime.date | None = None
    student_id: UserID | None = None
    scale_id: ScaleID | None = None
    expected_version: int | None = None


class StatusChangeRequest(BaseModel):
    status: EvaluationStatus
    expected_version: int | None = None


class GradeCreateRequest(BaseModel):
    criterion_id: CriterionID = p.Field(validation_alias=p.AliasChoices("criterion_id", "criteriaId"))
    value: decimal.Decimal | None = None
    expected_version: int | None = None


class GradeUpdateRequest(BaseModel):
    value: decimal.Decimal | None = None
    expected_version: int | None = None


class GradeEntryRequest(BaseModel):
    criterion_id: CriterionID = p.Field(validation_alias=p.AliasChoices("criterion_id", "criteriaId"))
    value: decimal.Decimal | None = None


class GradeBatchRequest(BaseModel):
    grades: list[GradeEntryRequest]
    expected_version: int | None = None


class CommentRequest(BaseModel):
    text: str = ""


class PersonSummary(BaseModel):
    user_id: UserID
    name: str

    @classmethod
    def from_model(cls, user: User) -> PersonSummary:
        return cls(user_id=user.user_id, name=user.name)


class GradeResponse(BaseModel):
    grade_id: GradeID
    evaluation_id: EvaluationID
    criterion_id: CriterionID
    value: float
    create_time: datetime.datetime
    update_time: datetime.datetime

    @classmethod
    def from_model(cls, grade: Grade) -> GradeResponse:
        return cls(
            grade_id=grade.grade_id,
            evaluation_id=grade.evaluation_id,
            criterion_id=grade.criterion_id,
            value=float(grade.value),
            create_time=grade.create_time,
            update_time=grade.update_time,
        )


class GradeWriteResponse(BaseModel):
    grade: GradeResponse
    created: bool
    version: int
    warning: str | None = None


class GradeBatchResponse(BaseModel):
    grades: list[GradeResponse]
    version: int
    warnings: dict[CriterionID, str] = {}


class CommentResponse(BaseModel):
    comment_id: CommentID
    evaluation_id: EvaluationID
    teacher_id: UserID
    text: str
    create_time: datetime.datetime
    update_time: datetime.datetime

    @classmethod
    def from_model(cls, comment: Comment) -> CommentResponse:
        return cls(
            comment_id=comment.comment_id,
            evaluation_id=comment.evaluation_id,
            teacher_id=comment.teacher_id,
            text=comment.text,
            create_time=comment.create_time,
            update_time=comment.update_time,
        )


class ProgressResponse(BaseModel):
    total: int
    graded: int
    percentage: float


class SkillResponse(BaseModel):
    skill: str
    current: float
    max: float
    percentage: float


class EvaluationResponse(BaseModel):
    evaluation_id: EvaluationID
    title: str
    date_eval: datetime.date
    student_id: UserID
    teacher_id: UserID
    scale_id: ScaleID
    status: EvaluationStatus
    version: int
    create_time: datetime.datetime
    update_time: datetime.datetime

    @classmethod
    def from_model(cls, evaluation: Evaluation) -> EvaluationResponse:
        return cls(
            evaluation_id=evaluation.evaluation_id,
            title=evaluation.title,
            date_eval=evaluation.date_eval,
            student_id=evaluation.student_id,
            teacher_id=evaluation.teacher_id,
            scale_id=evaluation.scale_id,
            status=evaluation.status,
            version=evaluation.version,
            create_time=evaluation.create_time,
            update_time=evaluation.update_time,
        )


class EvaluationSummaryResponse(EvaluationResponse):
    """An evaluation with its scores, as listed"""

    student: PersonSummary | None = None
    scale_title: str | None = None
    total: float
    max: float
    percentage: float
    progress: ProgressResponse

    @classmethod
    def from_detail(
        cls, evaluation: EvaluationWithDetail, people: dict[UserID, User] | None = None
    ) -> EvaluationSummaryResponse:
        people = people or {}
        progress = compute_grading_progress(evaluation)
        student = people.get(evaluation.student_id)
        return cls(
            **EvaluationResponse.from_model(evaluation).model_dump(),
            student=PersonSummary.from_model(student) if student is not None else None,
            scale_title=evaluation.scale.title if evaluation.scale is not None else None,
            total=float(compute_total(evaluation)),
            max=float(compute_max(evaluation)),
            percentage=float(compute_percentage(evaluation)),
            progress=ProgressResponse(
                total=progress.total, graded=progress.graded, percentage=float(progress.percentage)
            ),
        )


class EvaluationDetailResponse(EvaluationSummaryResponse):
    teacher: PersonSummary | None = None
    scale: ScaleResponse | None = None
    grades: list[GradeResponse]
    comments: list[CommentResponse]
    skills: list[SkillResponse]

    @classmethod
    def from_detail(
        cls, evaluation: EvaluationWithDetail, people: dict[UserID, User] | None = None
    ) -> EvaluationDetailResponse:
        people = people or {}
        summary = EvaluationSummaryResponse.from_detail(evaluation, people)
        teacher = people.get(evaluation.teacher_id)
        return cls(
            **summary.model_dump(),
            teacher=PersonSummary.from_model(teacher) if teacher is not None else None,
            scale=ScaleResponse.from_model(evaluation.scale) if evaluation.scale is not None else None,
            grades=[GradeResponse.from_model(g) for g in evaluation.grades],
            comments=[CommentResponse.from_model(c) for c in evaluation.comments],
            skills=[
                SkillResponse(
                    skill=s.skill, current=float(s.current), max=float(s.max), percentage=float(s.percentage)
                )
                for s in compute_skill_breakdown(evaluation)
            ],
        )


class EvaluationListResponse(BaseModel):
    evaluations: list[EvaluationSummaryResponse]
    total: int
