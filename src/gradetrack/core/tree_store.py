"""Course tree store.

Owns the in-memory course tree for one user session and exposes every
structural mutation. One CourseTreeStore is constructed per session and
handed to whatever presents the data; there is no global instance.

Update discipline is pessimistic for every adapter: input is validated,
the adapter persists the change, and only the acknowledged result is
applied to memory. If persistence fails the tree is left exactly as it
was. Operations are serialized with a per-store asyncio.Lock so a slow
response can never land on top of a newer edit.

Lifecycle:

    UNINITIALIZED -> LOADING -> EMPTY | LOADED
    EMPTY  -> LOADED  (create_course)
    LOADED -> EMPTY   (delete_course / reset_course)
"""

from __future__ import annotations

import asyncio
import copy
from enum import Enum, auto
from typing import Any, Callable

import structlog

from gradetrack.core.aggregation import CourseSummary, course_summary
from gradetrack.core.errors import (
    ConflictError,
    GradeTrackError,
    NotFoundError,
    StoreStateError,
)
from gradetrack.core.models import (
    DEFAULT_CREDITS,
    AcademicYear,
    Assessment,
    AssessmentUpdate,
    Course,
    CourseUpdate,
    Module,
    ModuleUpdate,
    YearUpdate,
    apply_changes,
)
from gradetrack.persistence.base import CourseAdapter
from gradetrack.utils.validators import (
    validate_credits,
    validate_label,
    validate_name,
    validate_optional_percentage,
    validate_percentage,
    validate_year_count,
)

logger = structlog.get_logger(__name__)

ChangeListener = Callable[["CourseTreeStore"], None]


class TreeState(Enum):
    """Lifecycle of the store's course tree."""

    UNINITIALIZED = auto()
    LOADING = auto()
    EMPTY = auto()  # Loaded, user has no course
    LOADED = auto()  # Loaded, course present


class CourseTreeStore:
    """In-memory course tree with persisted, serialized mutations.

    Args:
        adapter: Persistence adapter (local or remote)
        user_id: Owner of the tree
    """

    def __init__(self, adapter: CourseAdapter, user_id: str):
        self.adapter = adapter
        self.user_id = user_id
        self.revision = 0
        self._course: Course | None = None
        self._state = TreeState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._listeners: list[ChangeListener] = []

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def state(self) -> TreeState:
        return self._state

    @property
    def course(self) -> Course | None:
        """Snapshot of the current tree (a copy; edits go through the store)."""
        return copy.deepcopy(self._course)

    def summary(self) -> CourseSummary | None:
        if self._course is None:
            return None
        return course_summary(self._course)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback run after every applied change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _touch(self, event: str, **context: Any) -> None:
        """Record an applied change and notify listeners."""
        self.revision += 1
        logger.info(event, revision=self.revision, **context)
        for listener in list(self._listeners):
            listener(self)

    def _require_loaded(self) -> Course:
        if self._state is not TreeState.LOADED or self._course is None:
            raise StoreStateError(f"No course loaded (state: {self._state.name})")
        return self._course

    async def _persist(self, operation: Callable[..., Any], *args: Any) -> Any:
        """Run an adapter call off the event loop.

        On NotFoundError the tree is refreshed from the adapter before the
        error propagates, so stale ids disappear from memory.
        """
        try:
            return await asyncio.to_thread(operation, *args)
        except NotFoundError as e:
            logger.warning("store.entity_missing", kind=e.kind, entity_id=e.entity_id)
            await self._reload_after_missing()
            raise
        except GradeTrackError as e:
            logger.warning(
                "store.mutation_failed",
                operation=getattr(operation, "__name__", str(operation)),
                error=str(e),
            )
            raise

    async def _reload_after_missing(self) -> None:
        try:
            course = await asyncio.to_thread(self.adapter.fetch_course, self.user_id)
        except GradeTrackError as e:
            logger.warning("store.refresh_failed", error=str(e))
            return
        self._set_course(course)
        self._touch("store.refreshed", has_course=course is not None)

    def _set_course(self, course: Course | None) -> None:
        self._course = course
        self._state = TreeState.LOADED if course is not None else TreeState.EMPTY

    async def _find_year(self, year_id: str) -> AcademicYear:
        year = self._require_loaded().find_year(year_id)
        if year is None:
            await self._reload_after_missing()
            raise NotFoundError("year", year_id)
        return year

    async def _find_module(
        self, year_id: str, module_id: str
    ) -> tuple[AcademicYear, Module]:
        year = await self._find_year(year_id)
        module = year.find_module(module_id)
        if module is None:
            await self._reload_after_missing()
            raise NotFoundError("module", module_id)
        return year, module

    async def _find_assessment(
        self, year_id: str, module_id: str, assessment_id: str
    ) -> tuple[Module, Assessment]:
        _, module = await self._find_module(year_id, module_id)
        assessment = module.find_assessment(assessment_id)
        if assessment is None:
            await self._reload_after_missing()
            raise NotFoundError("assessment", assessment_id)
        return module, assessment

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load(self) -> Course | None:
        """Fetch the whole tree from the adapter.

        Returns:
            Snapshot of the loaded course, or None if the user has none
        """
        async with self._lock:
            previous = self._state
            self._state = TreeState.LOADING
            try:
                course = await asyncio.to_thread(self.adapter.fetch_course, self.user_id)
            except GradeTrackError as e:
                self._state = previous
                logger.error("store.load_failed", user_id=self.user_id, error=str(e))
                raise

            self._set_course(course)
            self._touch("store.loaded", user_id=self.user_id, has_course=course is not None)
            return self.course

    async def refresh(self) -> Course | None:
        return await self.load()

    # =========================================================================
    # COURSE
    # =========================================================================

    async def create_course(
        self,
        institution: str,
        title: str,
        year_count: int = 3,
        target_grade: float | None = None,
    ) -> Course:
        """Create the user's course with default years.

        Raises:
            ValidationError: If any field is invalid
            ConflictError: If a course already exists
            StoreStateError: If the tree has not been loaded yet
        """
        institution = validate_name(institution, "institution")
        title = validate_name(title, "title")
        year_count = validate_year_count(year_count)
        target_grade = validate_optional_percentage(target_grade)

        async with self._lock:
            if self._state is TreeState.LOADED:
                raise ConflictError("Course already exists. Delete first.")
            if self._state is not TreeState.EMPTY:
                raise StoreStateError(f"Load the tree first (state: {self._state.name})")

            course = await self._persist(
                self.adapter.create_course,
                self.user_id,
                institution,
                title,
                year_count,
                target_grade,
            )
            self._set_course(course)
            self._touch("course.created", course_id=course.id, years=len(course.years))
            return self.course

    async def update_course_info(self, update: CourseUpdate) -> None:
        """Apply a partial update to the course's own fields."""
        changes = update.changes()
        async with self._lock:
            course = self._require_loaded()
            if not changes:
                return
            await self._persist(self.adapter.update_course, course.id, changes)
            apply_changes(course, changes)
            self._touch("course.updated", course_id=course.id, fields=sorted(changes))

    async def set_course_target(self, target: float | None) -> None:
        await self.update_course_info(CourseUpdate(target_grade=target))

    async def delete_course(self) -> None:
        """Delete the course and every year, module and assessment in it."""
        async with self._lock:
            course = self._require_loaded()
            await self._persist(self.adapter.delete_course, course.id)
            self._set_course(None)
            self._touch("course.deleted", course_id=course.id)

    async def reset_course(self) -> None:
        """Delete the course and drop the cached tree.

        Unlike delete_course this also works from EMPTY, clearing any
        leftover snapshot held by the adapter.
        """
        async with self._lock:
            if self._state not in (TreeState.LOADED, TreeState.EMPTY):
                raise StoreStateError(f"Load the tree first (state: {self._state.name})")
            course_id = self._course.id if self._course is not None else ""
            await self._persist(self.adapter.delete_course, course_id)
            self._set_course(None)
            self._touch("course.reset", course_id=course_id)

    # =========================================================================
    # YEARS
    # =========================================================================

    async def add_year(self, label: str = "", weight: float = 0) -> AcademicYear:
        """Append a year with the next sequential year number.

        An empty label defaults to "Year {n}".
        """
        label = validate_label(label)
        weight = validate_percentage(weight, "weight")

        async with self._lock:
            course = self._require_loaded()
            year = await self._persist(self.adapter.add_year, course.id, label, weight)
            course.years.append(year)
            self._touch("year.added", year_id=year.id, year_number=year.year_number)
            return copy.deepcopy(year)

    async def update_year(self, year_id: str, update: YearUpdate) -> None:
        changes = update.changes()
        async with self._lock:
            year = await self._find_year(year_id)
            if not changes:
                return
            await self._persist(self.adapter.update_year, year_id, changes)
            apply_changes(year, changes)
            self._touch("year.updated", year_id=year_id, fields=sorted(changes))

    async def set_year_target(self, year_id: str, target: float | None) -> None:
        await self.update_year(year_id, YearUpdate(target_grade=target))

    async def remove_year(self, year_id: str) -> None:
        """Remove a year together with its modules and assessments."""
        async with self._lock:
            year = await self._find_year(year_id)
            await self._persist(self.adapter.delete_year, year_id)
            self._require_loaded().years.remove(year)
            self._touch("year.removed", year_id=year_id, modules=len(year.modules))

    # =========================================================================
    # MODULES
    # =========================================================================

    async def add_module(
        self, year_id: str, name: str, credits: int = DEFAULT_CREDITS
    ) -> Module:
        name = validate_name(name)
        credits = validate_credits(credits)

        async with self._lock:
            year = await self._find_year(year_id)
            module = await self._persist(self.adapter.add_module, year_id, name, credits)
            year.modules.append(module)
            self._touch("module.added", year_id=year_id, module_id=module.id)
            return copy.deepcopy(module)

    async def update_module(
        self, year_id: str, module_id: str, update: ModuleUpdate
    ) -> None:
        changes = update.changes()
        async with self._lock:
            _, module = await self._find_module(year_id, module_id)
            if not changes:
                return
            await self._persist(self.adapter.update_module, module_id, changes)
            apply_changes(module, changes)
            self._touch("module.updated", module_id=module_id, fields=sorted(changes))

    async def set_module_target(
        self, year_id: str, module_id: str, target: float | None
    ) -> None:
        await self.update_module(year_id, module_id, ModuleUpdate(target_grade=target))

    async def remove_module(self, year_id: str, module_id: str) -> None:
        """Remove a module together with its assessments."""
        async with self._lock:
            year, module = await self._find_module(year_id, module_id)
            await self._persist(self.adapter.delete_module, module_id)
            year.modules.remove(module)
            self._touch("module.removed", module_id=module_id)

    # =========================================================================
    # ASSESSMENTS
    # =========================================================================

    async def add_assessment(
        self, year_id: str, module_id: str, name: str, weight: float
    ) -> Assessment:
        name = validate_name(name)
        weight = validate_percentage(weight, "weight")

        async with self._lock:
            _, module = await self._find_module(year_id, module_id)
            assessment = await self._persist(
                self.adapter.add_assessment, module_id, name, weight
            )
            module.assessments.append(assessment)
            self._touch("assessment.added", module_id=module_id, assessment_id=assessment.id)
            return copy.deepcopy(assessment)

    async def update_assessment(
        self,
        year_id: str,
        module_id: str,
        assessment_id: str,
        update: AssessmentUpdate,
    ) -> None:
        changes = update.changes()
        async with self._lock:
            _, assessment = await self._find_assessment(year_id, module_id, assessment_id)
            if not changes:
                return
            await self._persist(self.adapter.update_assessment, assessment_id, changes)
            apply_changes(assessment, changes)
            self._touch(
                "assessment.updated", assessment_id=assessment_id, fields=sorted(changes)
            )

    async def record_grade(
        self, year_id: str, module_id: str, assessment_id: str, grade: float
    ) -> None:
        """Grade-entry path: store the grade and mark the assessment completed."""
        await self.update_assessment(
            year_id,
            module_id,
            assessment_id,
            AssessmentUpdate(grade=validate_percentage(grade), completed=True),
        )

    async def remove_assessment(
        self, year_id: str, module_id: str, assessment_id: str
    ) -> None:
        async with self._lock:
            module, assessment = await self._find_assessment(year_id, module_id, assessment_id)
            await self._persist(self.adapter.delete_assessment, assessment_id)
            module.assessments.remove(assessment)
            self._touch("assessment.removed", assessment_id=assessment_id)
