"""View models for student performance and admin reports."""

from __future__ import annotations

import datetime

from progress89.grading.performance import Advice, EvaluationScore, PerformanceSummary, SkillAverage
from progress89.grading.reporting import Overview
from progress89.model import BaseModel, EvaluationID, ScaleID, UserID


class ScoredEvaluationResponse(BaseModel):
    evaluation_id: EvaluationID
    title: str
    date_eval: datetime.date
    percentage: float

    @classmethod
    def from_score(cls, score: EvaluationScore) -> ScoredEvaluationResponse:
        return cls(
            evaluation_id=score.evaluation.evaluation_id,
            title=score.evaluation.title,
            date_eval=score.evaluation.date_eval,
            percentage=float(score.percentage),
        )


class SkillAverageResponse(BaseModel):
    skill: str
    current: float
    max: float
    percentage: float

    @classmethod
    def from_average(cls, skill: SkillAverage) -> SkillAverageResponse:
        return cls(
            skill=skill.skill, current=float(skill.current), max=float(skill.max), percentage=float(skill.percentage)
        )


class MonthAverageResponse(BaseModel):
    month: str
    percentage: float
    count: int


class PerformanceResponse(BaseModel):
    student_id: UserID
    evaluation_count: int
    average: float
    evaluations: list[ScoredEvaluationResponse]
    skills: list[SkillAverageResponse]
    months: list[MonthAverageResponse]
    best: ScoredEvaluationResponse | None = None
    worst: ScoredEvaluationResponse | None = None
    strengths: list[SkillAverageResponse]
    weaknesses: list[SkillAverageResponse]
    advice: Advice | None = None

    @classmethod
    def from_summary(cls, student_id: UserID, summary: PerformanceSummary) -> PerformanceResponse:
        return cls(
            student_id=student_id,
            evaluation_count=summary.evaluation_count,
            average=float(summary.average),
            evaluations=[ScoredEvaluationResponse.from_score(s) for s in summary.scores],
            skills=[SkillAverageResponse.from_average(s) for s in summary.skills],
            months=[
                MonthAverageResponse(month=m.month, percentage=float(m.percentage), count=m.count)
                for m in summary.months
            ],
            best=ScoredEvaluationResponse.from_score(summary.best) if summary.best is not None else None,
            worst=ScoredEvaluationResponse.from_score(summary.worst) if summary.worst is not None else None,
            strengths=[SkillAverageResponse.from_average(s) for s in summary.strengths],
            weaknesses=[SkillAverageResponse.from_average(s) for s in summary.weaknesses],
            advice=summary.advice,
        )


class UserReport(BaseModel):
    total: int
    new_this_month: int
    active: int
    by_role: dict[str, int]


class MonthCount(BaseModel):
    month: str
    count: int


class EvaluationReport(BaseModel):
    total: int
    this_month: int
    by_status: dict[str, int]
    by_month: list[MonthCount]
    average_percentage: float


class ScaleUsage(BaseModel):
    scale_id: ScaleID
    title: str
    evaluations: int


class ScaleReport(BaseModel):
    total: int
    new_this_month: int
    most_used: list[ScaleUsage]


class OverviewResponse(BaseModel):
    users: UserReport
    evaluations: EvaluationReport
    scales: ScaleReport

    @classmethod
    def from_overview(cls, overview: Overview) -> OverviewResponse:
        return cls(
            users=UserReport(
                total=overview.users.total,
                new_this_month=overview.users.since,
                active=overview.active_users,
                by_role=overview.users.by_group,
            ),
            evaluations=EvaluationReport(
                total=overview.evaluations.total,
                this_month=overview.evaluations.since,
                by_status=overview.evaluations.by_group,
                by_month=[MonthCount(month=m, count=n) for m, n in overview.evaluations_by_month],
                average_percentage=float(overview.average_percentage),
            ),
            scales=ScaleReport(
                total=overview.scales.total,
                new_this_month=overview.scales.since,
                most_used=[
                    ScaleUsage(scale_id=s.scale_id, title=s.title, evaluations=n) for s, n in overview.top_scales
                ],
            ),
        )
