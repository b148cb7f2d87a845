"""Local device storage adapter.

The whole course tree is kept as a single JSON blob under one well-known
key (COURSE_KEY). Every mutation loads the tree, changes it and writes the
entire tree back. A missing key means "no course yet".

Storage layout:
- {storage_dir}/{key}.json
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog

from gradetrack.core.errors import ConflictError, NotFoundError, TransientIOError
from gradetrack.core.models import (
    COURSE_SCHEMA,
    AcademicYear,
    Assessment,
    Course,
    Module,
    apply_changes,
    default_year_label,
    default_year_weights,
    generate_id,
)
from gradetrack.persistence.base import CourseAdapter

logger = structlog.get_logger(__name__)

COURSE_KEY = "gradetrack_course"

DEFAULT_STORAGE_DIR = Path("data/state")


class KeyValueStorage:
    """Minimal string key/value storage backed by one file per key."""

    def __init__(self, storage_dir: Path | None = None):
        self.storage_dir = storage_dir or DEFAULT_STORAGE_DIR

    def _path(self, key: str) -> Path:
        return self.storage_dir / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise TransientIOError(f"Could not read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise TransientIOError(f"Could not write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise TransientIOError(f"Could not delete {path}: {e}") from e


class LocalCourseAdapter(CourseAdapter):
    """Course adapter persisting the whole tree on the local device.

    The device holds a single course; the user id is recorded on the
    course but not used to partition storage.
    """

    def __init__(self, storage: KeyValueStorage | None = None, key: str = COURSE_KEY):
        self.storage = storage or KeyValueStorage()
        self.key = key

    # -------------------------------------------------------------------------
    # Snapshot I/O
    # -------------------------------------------------------------------------

    def _load(self) -> Course | None:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("local_course.load_failed", key=self.key, error=str(e))
            return None

        if not isinstance(data, dict) or data.get("$schema") != COURSE_SCHEMA:
            logger.warning(
                "local_course.invalid_schema",
                expected=COURSE_SCHEMA,
                got=data.get("$schema") if isinstance(data, dict) else type(data).__name__,
            )
            return None

        try:
            return Course.from_dict(data["course"])
        except (KeyError, TypeError, AttributeError) as e:
            logger.error("local_course.corrupt", key=self.key, error=repr(e))
            return None

    def _save(self, course: Course) -> None:
        payload = {"$schema": COURSE_SCHEMA, "course": course.to_dict()}
        self.storage.set_item(self.key, json.dumps(payload, indent=2, ensure_ascii=False))
        logger.debug("local_course.saved", key=self.key, course_id=course.id)

    def _require_course(self, course_id: str | None = None) -> Course:
        course = self._load()
        if course is None or (course_id is not None and course.id != course_id):
            raise NotFoundError("course", course_id or "")
        return course

    def _locate_year(self, course: Course, year_id: str) -> AcademicYear:
        year = course.find_year(year_id)
        if year is None:
            raise NotFoundError("year", year_id)
        return year

    def _locate_module(self, course: Course, module_id: str) -> tuple[AcademicYear, Module]:
        for year in course.years:
            module = year.find_module(module_id)
            if module is not None:
                return year, module
        raise NotFoundError("module", module_id)

    def _locate_assessment(self, course: Course, assessment_id: str) -> tuple[Module, Assessment]:
        for module in course.iter_modules():
            assessment = module.find_assessment(assessment_id)
            if assessment is not None:
                return module, assessment
        raise NotFoundError("assessment", assessment_id)

    # -------------------------------------------------------------------------
    # Course
    # -------------------------------------------------------------------------

    def fetch_course(self, user_id: str) -> Course | None:
        return self._load()

    def create_course(
        self,
        user_id: str,
        institution: str,
        title: str,
        year_count: int,
        target_grade: float | None = None,
    ) -> Course:
        if self._load() is not None:
            raise ConflictError("Course already exists. Delete first.")

        weights = default_year_weights(year_count)
        course = Course(
            id=generate_id(),
            user_id=user_id,
            institution=institution,
            title=title,
            target_grade=target_grade,
            years=[
                AcademicYear(
                    id=generate_id(),
                    label=default_year_label(n),
                    year_number=n,
                    weight=weights[n - 1],
                )
                for n in range(1, year_count + 1)
            ],
        )
        self._save(course)
        logger.info("local_course.created", course_id=course.id, years=year_count)
        return course

    def update_course(self, course_id: str, changes: dict[str, Any]) -> None:
        course = self._require_course(course_id)
        apply_changes(course, changes)
        self._save(course)

    def delete_course(self, course_id: str) -> None:
        self.storage.remove_item(self.key)
        logger.info("local_course.deleted", course_id=course_id)

    # -------------------------------------------------------------------------
    # Years
    # -------------------------------------------------------------------------

    def add_year(self, course_id: str, label: str, weight: float) -> AcademicYear:
        course = self._require_course(course_id)
        year_number = course.next_year_number()
        year = AcademicYear(
            id=generate_id(),
            label=label or default_year_label(year_number),
            year_number=year_number,
            weight=weight,
        )
        course.years.append(year)
        self._save(course)
        return year

    def update_year(self, year_id: str, changes: dict[str, Any]) -> None:
        course = self._require_course()
        apply_changes(self._locate_year(course, year_id), changes)
        self._save(course)

    def delete_year(self, year_id: str) -> None:
        course = self._require_course()
        year = self._locate_year(course, year_id)
        course.years.remove(year)
        self._save(course)

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    def add_module(self, year_id: str, name: str, credits: int) -> Module:
        course = self._require_course()
        year = self._locate_year(course, year_id)
        module = Module(id=generate_id(), name=name, credits=credits)
        year.modules.append(module)
        self._save(course)
        return module

    def update_module(self, module_id: str, changes: dict[str, Any]) -> None:
        course = self._require_course()
        _, module = self._locate_module(course, module_id)
        apply_changes(module, changes)
        self._save(course)

    def delete_module(self, module_id: str) -> None:
        course = self._require_course()
        year, module = self._locate_module(course, module_id)
        year.modules.remove(module)
        self._save(course)

    # -------------------------------------------------------------------------
    # Assessments
    # -------------------------------------------------------------------------

    def add_assessment(self, module_id: str, name: str, weight: float) -> Assessment:
        course = self._require_course()
        _, module = self._locate_module(course, module_id)
        assessment = Assessment(id=generate_id(), name=name, weight=weight)
        module.assessments.append(assessment)
        self._save(course)
        return assessment

    def update_assessment(self, assessment_id: str, changes: dict[str, Any]) -> None:
        course = self._require_course()
        _, assessment = self._locate_assessment(course, assessment_id)
        apply_changes(assessment, changes)
        self._save(course)

    def delete_assessment(self, assessment_id: str) -> None:
        course = self._require_course()
        module, assessment = self._locate_assessment(course, assessment_id)
        module.assessments.remove(assessment)
        self._save(course)
