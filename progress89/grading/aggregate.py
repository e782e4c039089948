"""Score aggregation over an evaluation's grades and its scale's criteria.

All functions are pure and tolerate partial data: a missing scale, an empty
criteria list or no grades at all produce zeros rather than errors, so they
can be called on an evaluation at any point of its grading.
"""

from __future__ import annotations

import decimal
import typing as t

from progress89.model import CriterionID

Zero: t.Final = decimal.Decimal(0)
Hundred: t.Final = decimal.Decimal(100)

Number = decimal.Decimal | int | float


class CriterionLike(t.Protocol):
    @property
    def criterion_id(self) -> CriterionID: ...
    @property
    def associated_skill(self) -> str: ...
    @property
    def max_points(self) -> decimal.Decimal: ...


class GradeLike(t.Protocol):
    @property
    def criterion_id(self) -> CriterionID: ...
    @property
    def value(self) -> Number | None: ...


class ScaleLike(t.Protocol):
    @property
    def criteria(self) -> t.Sequence[CriterionLike]: ...


class Gradable(t.Protocol):
    @property
    def scale(self) -> ScaleLike | None: ...
    @property
    def grades(self) -> t.Sequence[GradeLike]: ...


class GradingProgress(t.NamedTuple):
    total: int
    graded: int
    percentage: decimal.Decimal

    @property
    def remaining(self) -> int:
        return self.total - self.graded

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.graded == self.total


class SkillScore(t.NamedTuple):
    skill: str
    current: decimal.Decimal
    max: decimal.Decimal
    percentage: decimal.Decimal
    grades: list[GradeLike]


def as_decimal(value: Number) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    # str() keeps 0.1 from becoming 0.1000000000000000055511151231257827
    return decimal.Decimal(str(value))


def is_recorded(value: Number | None) -> bool:
    """A grade counts only when it holds an actual number"""
    if value is None:
        return False
    if isinstance(value, decimal.Decimal):
        return not value.is_nan()
    return value == value


def ratio(part: decimal.Decimal, whole: decimal.Decimal) -> decimal.Decimal:
    return part / whole * Hundred if whole > 0 else Zero


def criteria_of(evaluation: Gradable) -> t.Sequence[CriterionLike]:
    scale = evaluation.scale
    if scale is None or scale.criteria is None:
        return ()
    return scale.criteria


def grades_of(evaluation: Gradable) -> t.Sequence[GradeLike]:
    return evaluation.grades or ()


def recorded_grades(evaluation: Gradable) -> dict[CriterionID, GradeLike]:
    """Recorded grades keyed by criterion; the last grade wins should there be two"""
    return {g.criterion_id: g for g in grades_of(evaluation) if is_recorded(g.value)}


def compute_total(evaluation: Gradable) -> decimal.Decimal:
    """Sum of recorded grades over the scale's criteria, so a total never exceeds `compute_max`"""
    recorded = recorded_grades(evaluation)
    values = (recorded[c.criterion_id].value for c in criteria_of(evaluation) if c.criterion_id in recorded)
    return sum((as_decimal(t.cast(Number, v)) for v in values), start=Zero)


def compute_max(evaluation: Gradable) -> decimal.Decimal:
    return sum((as_decimal(c.max_points) for c in criteria_of(evaluation)), start=Zero)


def compute_percentage(evaluation: Gradable) -> decimal.Decimal:
    return ratio(compute_total(evaluation), compute_max(evaluation))


def compute_grading_progress(evaluation: Gradable) -> GradingProgress:
    criteria = criteria_of(evaluation)
    recorded = recorded_grades(evaluation)
    total = len(criteria)
    graded = sum(1 for c in criteria if c.criterion_id in recorded)
    return GradingProgress(
        total=total,
        graded=graded,
        percentage=ratio(decimal.Decimal(graded), decimal.Decimal(total)),
    )


def compute_skill_breakdown(evaluation: Gradable) -> list[SkillScore]:
    """
    Group criteria by skill label and score each group. Groups are ordered by
    percentage, best first; groups with equal percentages keep the order in
    which their skill first appears in the scale.
    """
    recorded = recorded_grades(evaluation)
    groups: dict[str, list[CriterionLike]] = {}
    for criterion in criteria_of(evaluation):
        groups.setdefault(criterion.associated_skill, []).append(criterion)

    scores: list[SkillScore] = []
    for skill, criteria in groups.items():
        grades = [recorded[c.criterion_id] for c in criteria if c.criterion_id in recorded]
        current = sum((as_decimal(t.cast(Number, g.value)) for g in grades), start=Zero)
        maximum = sum((as_decimal(c.max_points) for c in criteria), start=Zero)
        scores.append(SkillScore(skill, current, maximum, ratio(current, maximum), grades))

    return sorted(scores, key=lambda s: s.percentage, reverse=True)
