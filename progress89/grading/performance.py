"""Aggregate a student's results across evaluations."""

from __future__ import annotations

import decimal
import enum
import typing as t

from progress89.model import EvaluationWithDetail

from .aggregate import compute_percentage, compute_skill_breakdown, ratio, recorded_grades, Zero

StrengthThreshold: t.Final = decimal.Decimal(70)
WeaknessThreshold: t.Final = decimal.Decimal(60)
HighlightCount: t.Final = 3


class Advice(enum.Enum):
    Excellent = "excellent"
    Good = "good"
    Average = "average"
    NeedsImprovement = "needs_improvement"


AdviceBands: t.Final[tuple[tuple[decimal.Decimal, Advice], ...]] = (
    (decimal.Decimal(80), Advice.Excellent),
    (decimal.Decimal(60), Advice.Good),
    (decimal.Decimal(40), Advice.Average),
)


class EvaluationScore(t.NamedTuple):
    evaluation: EvaluationWithDetail
    percentage: decimal.Decimal


class SkillAverage(t.NamedTuple):
    skill: str
    current: decimal.Decimal
    max: decimal.Decimal
    percentage: decimal.Decimal


class MonthAverage(t.NamedTuple):
    month: str
    percentage: decimal.Decimal
    count: int


class PerformanceSummary(t.NamedTuple):
    evaluation_count: int
    average: decimal.Decimal
    scores: list[EvaluationScore]
    skills: list[SkillAverage]
    months: list[MonthAverage]
    strengths: list[SkillAverage]
    weaknesses: list[SkillAverage]
    advice: Advice | None

    @property
    def best(self) -> EvaluationScore | None:
        return max(self.scores, key=lambda s: s.percentage, default=None)

    @property
    def worst(self) -> EvaluationScore | None:
        return min(self.scores, key=lambda s: s.percentage, default=None)


def advise(average: decimal.Decimal) -> Advice:
    for floor, advice in AdviceBands:
        if average >= floor:
            return advice
    return Advice.NeedsImprovement


def _mean(values: t.Sequence[decimal.Decimal]) -> decimal.Decimal:
    return sum(values, start=Zero) / len(values) if values else Zero


def summarize_performance(evaluations: t.Iterable[EvaluationWithDetail]) -> PerformanceSummary:
    """
    Evaluations without any recorded grade are ignored, so a freshly published
    but ungraded evaluation cannot drag the averages to zero. Skill averages
    pool points across evaluations rather than averaging percentages, so a
    skill weighed on 40 points counts more than one weighed on 5.
    """
    scored = [
        EvaluationScore(e, compute_percentage(e))
        for e in sorted(evaluations, key=lambda e: (e.date_eval, e.create_time))
        if recorded_grades(e)
    ]

    skill_points: dict[str, tuple[decimal.Decimal, decimal.Decimal]] = {}
    by_month: dict[str, list[decimal.Decimal]] = {}
    for score in scored:
        for skill in compute_skill_breakdown(score.evaluation):
            current, maximum = skill_points.get(skill.skill, (Zero, Zero))
            skill_points[skill.skill] = (current + skill.current, maximum + skill.max)
        by_month.setdefault(score.evaluation.date_eval.strftime("%Y-%m"), []).append(score.percentage)

    skills = sorted(
        (SkillAverage(name, cur, mx, ratio(cur, mx)) for name, (cur, mx) in skill_points.items()),
        key=lambda s: s.percentage,
        reverse=True,
    )
    months = [MonthAverage(month, _mean(ps), len(ps)) for month, ps in sorted(by_month.items())]
    average = _mean([s.percentage for s in scored])

    return PerformanceSummary(
        evaluation_count=len(scored),
        average=average,
        scores=scored,
        skills=skills,
        months=months,
        strengths=[s for s in skills if s.percentage >= StrengthThreshold][:HighlightCount],
        weaknesses=sorted((s for s in skills if s.percentage < WeaknessThreshold), key=lambda s: s.percentage)[
            :HighlightCount
        ],
        advice=advise(average) if scored else None,
    )
