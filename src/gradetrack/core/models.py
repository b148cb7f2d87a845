"""Course tree data model.

Entities are strictly nested, owned root to leaf:

    Course -> AcademicYear -> Module -> Assessment

Each entity serializes to a snake_case dict (to_dict / from_dict) used by
the local JSON snapshot, the HTTP API and the remote client alike.

Partial updates are expressed with one typed struct per entity
(CourseUpdate, YearUpdate, ModuleUpdate, AssessmentUpdate). Fields left at
UNSET are not touched; None clears an optional field.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from gradetrack.core.errors import ValidationError
from gradetrack.utils.validators import (
    MAX_LABEL_LENGTH,
    validate_credits,
    validate_name,
    validate_optional_percentage,
    validate_percentage,
)

# Schema marker for persisted snapshots
COURSE_SCHEMA = "course_v1"

DEFAULT_CREDITS = 20

# Default year weightings for common degree lengths
DEFAULT_YEAR_WEIGHTS: dict[int, list[float]] = {
    3: [0, 40, 60],
    4: [0, 20, 30, 50],
}


def generate_id() -> str:
    """Generate an opaque unique entity id."""
    return uuid.uuid4().hex


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def default_year_weights(year_count: int) -> list[float]:
    """Default weight schedule for a new course.

    3 and 4 year courses use the standard back-loaded schedules. Any other
    length gives every year an equal (rounded) share; the result is allowed
    to drift from 100 after rounding.
    """
    if year_count in DEFAULT_YEAR_WEIGHTS:
        return list(DEFAULT_YEAR_WEIGHTS[year_count])
    share = round_half_up(100 / year_count)
    return [share] * year_count


def default_year_label(year_number: int) -> str:
    return f"Year {year_number}"


# =============================================================================
# UNSET SENTINEL
# =============================================================================


class Unset(Enum):
    """Marker for an update field that was not provided."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset.UNSET


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass
class Assessment:
    """A single graded piece of work within a module."""

    id: str
    name: str
    weight: float
    grade: float | None = None
    completed: bool = False

    @property
    def counts(self) -> bool:
        """True when the assessment contributes to the module grade."""
        return self.completed and self.grade is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "weight": self.weight,
            "grade": self.grade,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Assessment:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            weight=data.get("weight", 0),
            grade=data.get("grade"),
            completed=bool(data.get("completed", False)),
        )


@dataclass
class Module:
    """A module worth a number of credits within a year."""

    id: str
    name: str
    credits: int = DEFAULT_CREDITS
    target_grade: float | None = None
    assessments: list[Assessment] = field(default_factory=list)

    def find_assessment(self, assessment_id: str) -> Assessment | None:
        for assessment in self.assessments:
            if assessment.id == assessment_id:
                return assessment
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "credits": self.credits,
            "target_grade": self.target_grade,
            "assessments": [a.to_dict() for a in self.assessments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Module:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            credits=data.get("credits", DEFAULT_CREDITS),
            target_grade=data.get("target_grade"),
            assessments=[Assessment.from_dict(a) for a in data.get("assessments", [])],
        )


@dataclass
class AcademicYear:
    """One year of study, weighted into the course aggregate."""

    id: str
    label: str
    year_number: int
    weight: float = 0
    target_grade: float | None = None
    modules: list[Module] = field(default_factory=list)

    def find_module(self, module_id: str) -> Module | None:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "year_number": self.year_number,
            "weight": self.weight,
            "target_grade": self.target_grade,
            "modules": [m.to_dict() for m in self.modules],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AcademicYear:
        year_number = data.get("year_number", 1)
        return cls(
            id=data["id"],
            label=data.get("label") or default_year_label(year_number),
            year_number=year_number,
            weight=data.get("weight", 0),
            target_grade=data.get("target_grade"),
            modules=[Module.from_dict(m) for m in data.get("modules", [])],
        )


@dataclass
class Course:
    """Root of the tree. At most one per user."""

    id: str
    user_id: str
    institution: str
    title: str
    target_grade: float | None = None
    created_at: str = ""
    years: list[AcademicYear] = field(default_factory=list)

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now()

    def find_year(self, year_id: str) -> AcademicYear | None:
        for year in self.years:
            if year.id == year_id:
                return year
        return None

    def iter_modules(self) -> Iterator[Module]:
        for year in self.years:
            yield from year.modules

    def iter_assessments(self) -> Iterator[Assessment]:
        for module in self.iter_modules():
            yield from module.assessments

    def next_year_number(self) -> int:
        return max((y.year_number for y in self.years), default=0) + 1

    def sort_years(self) -> None:
        """Order years by year_number (stable for equal numbers)."""
        self.years.sort(key=lambda y: y.year_number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "institution": self.institution,
            "title": self.title,
            "target_grade": self.target_grade,
            "created_at": self.created_at,
            "years": [y.to_dict() for y in self.years],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Course:
        course = cls(
            id=data["id"],
            user_id=data.get("user_id", ""),
            institution=data.get("institution", ""),
            title=data.get("title", ""),
            target_grade=data.get("target_grade"),
            created_at=data.get("created_at", ""),
            years=[AcademicYear.from_dict(y) for y in data.get("years", [])],
        )
        course.sort_years()
        return course


# =============================================================================
# PARTIAL UPDATES
# =============================================================================


class _Update:
    """Shared behaviour for typed partial-update structs."""

    def _validated(self, name: str, value: Any) -> Any:
        raise NotImplementedError

    def changes(self) -> dict[str, Any]:
        """Return the provided fields, validated.

        Raises:
            ValidationError: If any provided value is out of range
        """
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET:
                continue
            result[f.name] = self._validated(f.name, value)
        return result

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNSET for f in fields(self))


@dataclass
class CourseUpdate(_Update):
    institution: str | Unset = UNSET
    title: str | Unset = UNSET
    target_grade: float | None | Unset = UNSET

    def _validated(self, name: str, value: Any) -> Any:
        if name == "target_grade":
            return validate_optional_percentage(value, name)
        return validate_name(value, name)


@dataclass
class YearUpdate(_Update):
    label: str | Unset = UNSET
    weight: float | Unset = UNSET
    target_grade: float | None | Unset = UNSET

    def _validated(self, name: str, value: Any) -> Any:
        if name == "label":
            return validate_name(value, name, MAX_LABEL_LENGTH)
        if name == "weight":
            return validate_percentage(value, name)
        return validate_optional_percentage(value, name)


@dataclass
class ModuleUpdate(_Update):
    name: str | Unset = UNSET
    credits: int | Unset = UNSET
    target_grade: float | None | Unset = UNSET

    def _validated(self, name: str, value: Any) -> Any:
        if name == "name":
            return validate_name(value, name)
        if name == "credits":
            return validate_credits(value)
        return validate_optional_percentage(value, name)


@dataclass
class AssessmentUpdate(_Update):
    name: str | Unset = UNSET
    weight: float | Unset = UNSET
    grade: float | None | Unset = UNSET
    completed: bool | Unset = UNSET

    def _validated(self, name: str, value: Any) -> Any:
        if name == "name":
            return validate_name(value, name)
        if name == "weight":
            return validate_percentage(value, name)
        if name == "grade":
            return validate_optional_percentage(value, name)
        if not isinstance(value, bool):
            raise ValidationError(name, "must be true or false")
        return value


def apply_changes(entity: Any, changes: dict[str, Any]) -> None:
    """Apply an already-validated change dict to an entity in place."""
    for name, value in changes.items():
        setattr(entity, name, value)
