"""Tests for input validators (F1)."""

import math

import pytest

from gradetrack.core.errors import ValidationError
from gradetrack.utils.validators import (
    MAX_LABEL_LENGTH,
    MAX_NAME_LENGTH,
    MAX_YEAR_COUNT,
    validate_credits,
    validate_label,
    validate_name,
    validate_optional_percentage,
    validate_percentage,
    validate_year_count,
)


class TestValidatePercentage:
    """Tests for validate_percentage()."""

    @pytest.mark.parametrize("value", [0, 100, 55.5, "72", " 40.25 "])
    def test_accepts_in_range(self, value):
        assert validate_percentage(value) == float(str(value).strip())

    @pytest.mark.parametrize("value", [-0.01, 100.01, 1000])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValidationError):
            validate_percentage(value)

    @pytest.mark.parametrize("value", ["abc", "", None, True, math.nan, math.inf, [50]])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(ValidationError):
            validate_percentage(value)

    def test_error_names_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_percentage(150, "weight")
        assert exc_info.value.field == "weight"
        assert "weight" in str(exc_info.value)

    def test_optional_allows_none(self):
        assert validate_optional_percentage(None) is None
        assert validate_optional_percentage(65) == 65.0


class TestOtherValidators:
    def test_credits(self):
        assert validate_credits(20) == 20
        assert validate_credits("15") == 15
        assert validate_credits(30.0) == 30

    @pytest.mark.parametrize("value", [0, -5, 2.5, "x"])
    def test_credits_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_credits(value)

    def test_name_trimmed(self):
        assert validate_name("  Algorithms ") == "Algorithms"

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_name_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_name(value)

    def test_year_count(self):
        assert validate_year_count(4) == 4
        with pytest.raises(ValidationError):
            validate_year_count(0)

    def test_year_count_upper_bound(self):
        assert validate_year_count(MAX_YEAR_COUNT) == MAX_YEAR_COUNT
        with pytest.raises(ValidationError):
            validate_year_count(MAX_YEAR_COUNT + 1)

    def test_name_length(self):
        assert validate_name("x" * MAX_NAME_LENGTH) == "x" * MAX_NAME_LENGTH
        with pytest.raises(ValidationError):
            validate_name("x" * (MAX_NAME_LENGTH + 1))
        with pytest.raises(ValidationError):
            validate_name("x" * (MAX_LABEL_LENGTH + 1), "label", MAX_LABEL_LENGTH)

    def test_label(self):
        assert validate_label("  Placement ") == "Placement"
        assert validate_label("") == ""
        assert validate_label(None) == ""
        with pytest.raises(ValidationError):
            validate_label("x" * (MAX_LABEL_LENGTH + 1))
