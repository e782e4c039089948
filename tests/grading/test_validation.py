"""Tests for progress89.grading.validation."""

from __future__ import annotations

import decimal
import types

import pytest

from progress89.grading.errors import ValidationError
from progress89.grading.validation import check_coefficient_total, format_points, stored_coefficient, stored_points, \
    validate_criterion, validate_grade_input, validate_scale

D = decimal.Decimal


def make_criterion(
    description: str = "Thesis", skill: str = "Writing", max_points: str = "20", coefficient: str = "0.5"
) -> types.SimpleNamespace:
    return types.SimpleNamespace(
        description=description, associated_skill=skill, max_points=D(max_points), coefficient=D(coefficient)
    )


class TestValidateGradeInput(object):
    def test_accepts_value_in_range(self) -> None:
        result = validate_grade_input(D("12.5"), D(20))

        assert result.accepted
        assert result.value == D("12.5")
        assert result.error is None

    @pytest.mark.parametrize("value", [D(0), D(20)])
    def test_bounds_are_inclusive(self, value: decimal.Decimal) -> None:
        assert validate_grade_input(value, D(20)) == (value, None)

    @pytest.mark.parametrize("value", [D("20.01"), D(25), 100])
    def test_clamps_above_maximum(self, value: decimal.Decimal | int) -> None:
        """The value is corrected to the maximum, and the correction is still reported."""
        result = validate_grade_input(value, D(20))

        assert result.accepted
        assert result.value == D(20)
        assert result.error == "Grade cannot exceed 20 points"

    @pytest.mark.parametrize("value", [D("-0.5"), -1])
    def test_rejects_negative(self, value: decimal.Decimal | int) -> None:
        result = validate_grade_input(value, D(20))

        assert not result.accepted
        assert result.value is None
        assert result.error == "Grade cannot be negative"

    @pytest.mark.parametrize("value", [None, float("nan"), D("NaN")])
    def test_rejects_missing_values(self, value: object) -> None:
        result = validate_grade_input(value, D(20))  # type: ignore[arg-type]

        assert not result.accepted
        assert result.error == "Grade must be a number"

    def test_error_names_fractional_maximum(self) -> None:
        assert validate_grade_input(D(13), D("12.50")).error == "Grade cannot exceed 12.5 points"


class TestFormatPoints(object):
    @pytest.mark.parametrize(("value", "expected"), [(D("20.00"), "20"), (D("12.50"), "12.5"), (D("0.25"), "0.25")])
    def test_format(self, value: decimal.Decimal, expected: str) -> None:
        assert format_points(value) == expected


class TestCoefficients(object):
    def test_rejects_total_above_one(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            check_coefficient_total([D("0.5"), D("0.6")])

        assert exc_info.value.field == "criteria"
        assert "1.10" in exc_info.value.message

    def test_total_below_one_is_a_warning(self) -> None:
        report = check_coefficient_total([D("0.4"), D("0.4")])

        assert report.total == D("0.8")
        assert report.warnings == ["Total coefficients (0.80) are below 1"]

    def test_exactly_one_has_no_warning(self) -> None:
        report = check_coefficient_total([D("0.25"), D("0.75")])

        assert report.total == 1
        assert report.warnings == []

    def test_float_coefficients_sum_exactly(self) -> None:
        assert check_coefficient_total([0.1, 0.2, 0.7]).warnings == []


class TestValidateCriterion(object):
    @pytest.mark.parametrize(
        ("criterion", "field"),
        [
            (make_criterion(description="  "), "criterion.description"),
            (make_criterion(skill=""), "criterion.associated_skill"),
            (make_criterion(max_points="0"), "criterion.max_points"),
            (make_criterion(max_points="-5"), "criterion.max_points"),
            (make_criterion(coefficient="0"), "criterion.coefficient"),
            (make_criterion(max_points="0.004"), "criterion.max_points"),
            (make_criterion(max_points="-1E+30"), "criterion.max_points"),
            (make_criterion(max_points="1000000"), "criterion.max_points"),
            (make_criterion(max_points="999999.995"), "criterion.max_points"),
            (make_criterion(max_points="1E+30"), "criterion.max_points"),
            (make_criterion(coefficient="0.00004"), "criterion.coefficient"),
            (make_criterion(coefficient="1.5"), "criterion.coefficient"),
        ],
    )
    def test_rejects_incomplete_criterion(self, criterion: types.SimpleNamespace, field: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_criterion(criterion)

        assert exc_info.value.field == field

    def test_accepts_complete_criterion(self) -> None:
        validate_criterion(make_criterion())

    @pytest.mark.parametrize(("max_points", "coefficient"), [("0.006", "0.00006"), ("999999.99", "1")])
    def test_accepts_smallest_and_largest_stored_values(self, max_points: str, coefficient: str) -> None:
        validate_criterion(make_criterion(max_points=max_points, coefficient=coefficient))

    def test_stored_precision(self) -> None:
        assert stored_points(D("12.505")) == D("12.50")
        assert stored_points(7) == D("7.00")
        assert stored_coefficient(D("0.33335")) == D("0.3334")


class TestValidateScale(object):
    def test_requires_title(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_scale("   ", [make_criterion()])

        assert exc_info.value.field == "title"

    def test_requires_criteria(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_scale("Essay", [])

        assert exc_info.value.message == "At least one criterion is required"

    def test_names_the_offending_criterion(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_scale("Essay", [make_criterion(), make_criterion(skill="")])

        assert exc_info.value.field == "criteria[1].associated_skill"

    def test_rejects_coefficients_over_one(self) -> None:
        with pytest.raises(ValidationError):
            validate_scale("Essay", [make_criterion(coefficient="0.5"), make_criterion(coefficient="0.6")])

    def test_accepts_incomplete_coefficients(self) -> None:
        report = validate_scale("Essay", [make_criterion(coefficient="0.4"), make_criterion(coefficient="0.4")])

        assert report.total == D("0.8")
        assert len(report.warnings) == 1
