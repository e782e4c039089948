from __future__ import annotations

import decimal
import typing as t

from .aggregate import as_decimal, is_recorded, Number, Zero
from .errors import ValidationError

One: t.Final = decimal.Decimal(1)

# storage precision: points are NUMERIC(8, 2), coefficients NUMERIC(5, 4)
PointsStep: t.Final = decimal.Decimal("0.01")
PointsLimit: t.Final = decimal.Decimal("1000000")
CoefficientStep: t.Final = decimal.Decimal("0.0001")


class GradeInput(t.NamedTuple):
    """
    Outcome of checking a grade against its criterion. `value` is what may be
    stored (None when the input is rejected outright); `error` describes any
    problem, including one which was corrected by clamping.
    """

    value: decimal.Decimal | None
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.value is not None


class CriterionSpec(t.Protocol):
    @property
    def description(self) -> str: ...
    @property
    def associated_skill(self) -> str: ...
    @property
    def max_points(self) -> decimal.Decimal: ...
    @property
    def coefficient(self) -> decimal.Decimal: ...


class CoefficientReport(t.NamedTuple):
    total: decimal.Decimal
    warnings: list[str]


def format_points(value: decimal.Decimal) -> str:
    """Render 20.00 as 20 and 12.50 as 12.5"""
    if value == value.to_integral_value():
        return str(value.quantize(One))
    return format(value.normalize(), "f")


def validate_grade_input(value: Number | None, max_points: Number) -> GradeInput:
    """
    Negative values are rejected. Values above the maximum are clamped to it
    and still reported, so the caller can show the correction.
    """
    if not is_recorded(value):
        return GradeInput(None, "Grade must be a number")

    v = as_decimal(t.cast(Number, value))
    maximum = as_decimal(max_points)
    if v < 0:
        return GradeInput(None, "Grade cannot be negative")
    if v > maximum:
        return GradeInput(maximum, f"Grade cannot exceed {format_points(maximum)} points")
    return GradeInput(v)


def stored_points(value: Number) -> decimal.Decimal:
    return as_decimal(value).quantize(PointsStep)


def stored_coefficient(value: Number) -> decimal.Decimal:
    return as_decimal(value).quantize(CoefficientStep)


def validate_criterion(criterion: CriterionSpec, field: str = "criterion") -> None:
    """
    Points and coefficient are checked as they will be stored, so 0.001 points
    counts as 0.
    """
    if not (criterion.description or "").strip():
        raise ValidationError("Description is required", field=f"{field}.description")
    if not (criterion.associated_skill or "").strip():
        raise ValidationError("Associated skill is required", field=f"{field}.associated_skill")
    if not criterion.max_points.is_finite():
        raise ValidationError("Max points must be a number", field=f"{field}.max_points")
    if not criterion.coefficient.is_finite():
        raise ValidationError("Coefficient must be a number", field=f"{field}.coefficient")

    points = criterion.max_points
    if points <= 0 or (points < PointsLimit and stored_points(points) <= 0):
        raise ValidationError("Max points must be greater than 0", field=f"{field}.max_points")
    if points >= PointsLimit or stored_points(points) >= PointsLimit:
        raise ValidationError(
            f"Max points must be less than {format_points(PointsLimit)}", field=f"{field}.max_points"
        )
    if criterion.coefficient > One:
        raise ValidationError("Coefficient cannot exceed 1", field=f"{field}.coefficient")
    if criterion.coefficient <= 0 or stored_coefficient(criterion.coefficient) <= 0:
        raise ValidationError("Coefficient must be greater than 0", field=f"{field}.coefficient")


def check_coefficient_total(coefficients: t.Iterable[Number]) -> CoefficientReport:
    """
    A total above 1 is an error. A total below 1 is allowed and reported as a
    warning, since the remaining weight may simply not be allocated yet.
    """
    total = sum((as_decimal(c) for c in coefficients), start=Zero)
    if total > One:
        raise ValidationError(f"Total coefficients ({total:.2f}) cannot exceed 1", field="criteria")
    warnings: list[str] = []
    if total < One:
        warnings.append(f"Total coefficients ({total:.2f}) are below 1")
    return CoefficientReport(total, warnings)


def validate_scale(title: str | None, criteria: t.Sequence[CriterionSpec]) -> CoefficientReport:
    if not (title or "").strip():
        raise ValidationError("Title is required", field="title")
    if not criteria:
        raise ValidationError("At least one criterion is required", field="criteria")
    for i, criterion in enumerate(criteria):
        validate_criterion(criterion, field=f"criteria[{i}]")
    return check_coefficient_total(c.coefficient for c in criteria)
