"""Input validation helpers for the mutation boundary.

Range conventions:
- grade, weight and target values are percentages in [0, 100]
- credits are positive integers
- names are non-empty after trimming and at most MAX_NAME_LENGTH long
- year labels are at most MAX_LABEL_LENGTH long
- a new course has between 1 and MAX_YEAR_COUNT years

Functions:
- validate_percentage(value, field) -> float: Parse and range-check a percentage
- validate_optional_percentage(value, field) -> float | None: Same, None allowed
- validate_credits(value) -> int: Positive integer credit value
- validate_name(value, field, max_length) -> str: Trimmed, non-empty name
- validate_label(value) -> str: Trimmed year label, empty allowed
- validate_year_count(value) -> int: Number of years for a new course
"""

from __future__ import annotations

import math
from typing import Any

from gradetrack.core.errors import ValidationError

MIN_PERCENT = 0.0
MAX_PERCENT = 100.0

MAX_NAME_LENGTH = 200
MAX_LABEL_LENGTH = 100
MAX_YEAR_COUNT = 10


def _to_number(value: Any, field: str) -> float:
    """Convert user input to float, rejecting non-numeric values."""
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(field, "must be a number")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f"must be a number, got {value!r}") from None

    if math.isnan(number) or math.isinf(number):
        raise ValidationError(field, "must be a finite number")

    return number


def validate_percentage(value: Any, field: str = "grade") -> float:
    """Validate a percentage value.

    Args:
        value: Raw input (number or numeric string)
        field: Field name used in the error message

    Returns:
        The value as float

    Raises:
        ValidationError: If not numeric or outside [0, 100]
    """
    number = _to_number(value, field)
    if number < MIN_PERCENT or number > MAX_PERCENT:
        raise ValidationError(field, "must be between 0 and 100")
    return number


def validate_optional_percentage(value: Any, field: str = "target_grade") -> float | None:
    """Validate a percentage that may be cleared with None."""
    if value is None:
        return None
    return validate_percentage(value, field)


def validate_credits(value: Any) -> int:
    """Validate a module credit value (positive integer)."""
    number = _to_number(value, "credits")
    if number != int(number) or number < 1:
        raise ValidationError("credits", "must be a positive whole number")
    return int(number)


def validate_name(value: Any, field: str = "name", max_length: int = MAX_NAME_LENGTH) -> str:
    """Validate a display name. Returns the trimmed value."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(field, f"must be at most {max_length} characters")
    return value


def validate_label(value: Any, field: str = "label") -> str:
    """Validate a year label for a new year. Empty means the default label."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(field, "must be text")
    value = value.strip()
    if len(value) > MAX_LABEL_LENGTH:
        raise ValidationError(field, f"must be at most {MAX_LABEL_LENGTH} characters")
    return value


def validate_year_count(value: Any) -> int:
    """Validate the number of years for a new course."""
    number = _to_number(value, "year_count")
    if number != int(number) or number < 1 or number > MAX_YEAR_COUNT:
        raise ValidationError("year_count", f"must be between 1 and {MAX_YEAR_COUNT}")
    return int(number)
