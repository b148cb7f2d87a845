"""Persistence adapter contract.

A CourseAdapter durably stores one course tree per user. Two
implementations exist with identical behaviour:

- LocalCourseAdapter: whole tree as one JSON blob in local storage
- RemoteCourseAdapter: HTTP client for the course API (relational store)

Adapters are synchronous; the tree store runs them off the event loop.
Failures are reported with the gradetrack.core.errors taxonomy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from gradetrack.core.models import AcademicYear, Assessment, Course, Module


class CourseAdapter(ABC):
    """Durable storage for a course tree."""

    @abstractmethod
    def fetch_course(self, user_id: str) -> Course | None:
        """Load the user's full tree, years ordered by year_number."""

    @abstractmethod
    def create_course(
        self,
        user_id: str,
        institution: str,
        title: str,
        year_count: int,
        target_grade: float | None = None,
    ) -> Course:
        """Create a course with default years attached.

        Raises:
            ConflictError: If the user already has a course
        """

    @abstractmethod
    def update_course(self, course_id: str, changes: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_course(self, course_id: str) -> None:
        """Delete the course and every descendant."""

    @abstractmethod
    def add_year(self, course_id: str, label: str, weight: float) -> AcademicYear:
        pass

    @abstractmethod
    def update_year(self, year_id: str, changes: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_year(self, year_id: str) -> None:
        pass

    @abstractmethod
    def add_module(self, year_id: str, name: str, credits: int) -> Module:
        pass

    @abstractmethod
    def update_module(self, module_id: str, changes: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_module(self, module_id: str) -> None:
        pass

    @abstractmethod
    def add_assessment(self, module_id: str, name: str, weight: float) -> Assessment:
        pass

    @abstractmethod
    def update_assessment(self, assessment_id: str, changes: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_assessment(self, assessment_id: str) -> None:
        pass
