"""Grade aggregation engine.

Pure functions over a read-only course tree, composed bottom-up:

- module_grade: weight-normalised mean of completed, graded assessments
- year_grade: credit-weighted mean of module grades
- course_grade: year-weight-weighted mean of year grades
- completion_percentage: completed / total assessments

Absence of usable data is None, never an exception. Nothing is rounded
here; rounding belongs to whoever renders the number.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from gradetrack.core.classification import (
    BandScheme,
    Classification,
    UK_HONOURS,
    classify,
)
from gradetrack.core.models import AcademicYear, Course, Module, round_half_up


def _weighted_mean(pairs: Iterable[tuple[float, float]]) -> float | None:
    """Mean of (value, weight) pairs, None if empty or zero total weight."""
    pairs = list(pairs)
    if not pairs:
        return None

    total_weight = sum(weight for _, weight in pairs)
    if total_weight == 0:
        return None

    return sum(value * weight for value, weight in pairs) / total_weight


# =============================================================================
# AGGREGATES
# =============================================================================


def module_grade(module: Module) -> float | None:
    """Weighted grade over the module's counted assessments.

    Weights are normalised by the weight actually graded, so a partly
    assessed module reports its average so far rather than trending to 0.
    """
    counted = [a for a in module.assessments if a.counts]
    if not counted:
        return None

    total_weight = sum(a.weight for a in counted)
    if total_weight == 0:
        return None

    weighted_sum = sum(a.grade * a.weight / 100 for a in counted)
    return (weighted_sum / total_weight) * 100


def year_grade(year: AcademicYear) -> float | None:
    """Credit-weighted mean of the year's graded modules."""
    pairs = []
    for module in year.modules:
        grade = module_grade(module)
        if grade is not None:
            pairs.append((grade, module.credits))
    return _weighted_mean(pairs)


def course_grade(course: Course) -> float | None:
    """Mean of year grades weighted by each year's weight."""
    pairs = []
    for year in course.years:
        grade = year_grade(year)
        if grade is not None:
            pairs.append((grade, year.weight))
    return _weighted_mean(pairs)


def completion_percentage(course: Course) -> int:
    """Share of assessments marked completed, as a whole percentage."""
    total = 0
    completed = 0
    for assessment in course.iter_assessments():
        total += 1
        if assessment.completed:
            completed += 1

    if total == 0:
        return 0
    return round_half_up(completed / total * 100)


def year_credits(year: AcademicYear) -> int:
    """Total credits across all modules in the year."""
    return sum(m.credits for m in year.modules)


# =============================================================================
# TARGET TRACKING
# =============================================================================


@dataclass(frozen=True)
class TargetProgress:
    """Comparison of a computed aggregate against a user target."""

    current: float | None
    target: float | None

    @property
    def on_track(self) -> bool:
        return (
            self.current is not None
            and self.target is not None
            and self.current >= self.target
        )

    @property
    def gap(self) -> float | None:
        """Points still needed to reach the target (negative when ahead)."""
        if self.current is None or self.target is None:
            return None
        return self.target - self.current

    @property
    def fill_ratio(self) -> float:
        """Progress bar fill, capped at 1."""
        if self.current is None:
            return 0.0
        return min(self.current / 100, 1.0)


def target_progress(current: float | None, target: float | None) -> TargetProgress:
    return TargetProgress(current=current, target=target)


def required_average(module: Module, target: float | None = None) -> float | None:
    """Average needed on the remaining assessments to finish on target.

    Remaining assessments are those not yet counted (uncompleted or
    ungraded). The final grade is projected as if every assessment counted.

    Args:
        module: Module to project
        target: Target percentage; defaults to the module's own target

    Returns:
        Required average, or None without a target or remaining weight.
        Below 0 means the target is already secured; above 100 means it
        can no longer be reached.
    """
    if target is None:
        target = module.target_grade
    if target is None:
        return None

    counted = [a for a in module.assessments if a.counts]
    remaining = [a for a in module.assessments if not a.counts]

    remaining_weight = sum(a.weight for a in remaining)
    if remaining_weight == 0:
        return None

    graded_weight = sum(a.weight for a in counted)
    graded_points = sum(a.grade * a.weight for a in counted)

    return (target * (graded_weight + remaining_weight) - graded_points) / remaining_weight


# =============================================================================
# SUMMARY
# =============================================================================


@dataclass(frozen=True)
class CourseSummary:
    """Dashboard figures for a course."""

    overall_grade: float | None
    classification: Classification
    completion: int
    year_count: int
    module_count: int
    assessment_count: int
    completed_count: int
    total_credits: int
    target: TargetProgress


def course_summary(course: Course, scheme: BandScheme = UK_HONOURS) -> CourseSummary:
    """Compute the headline figures for a course."""
    overall = course_grade(course)
    assessments = list(course.iter_assessments())
    return CourseSummary(
        overall_grade=overall,
        classification=classify(overall, scheme),
        completion=completion_percentage(course),
        year_count=len(course.years),
        module_count=sum(len(y.modules) for y in course.years),
        assessment_count=len(assessments),
        completed_count=sum(1 for a in assessments if a.completed),
        total_credits=sum(year_credits(y) for y in course.years),
        target=target_progress(overall, course.target_grade),
    )
