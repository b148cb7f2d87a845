"""Fixtures for persistence and tree store tests (F2)."""

import time

import pytest

from gradetrack.core.errors import TransientIOError
from gradetrack.core.tree_store import CourseTreeStore
from gradetrack.persistence.local import KeyValueStorage, LocalCourseAdapter


class FlakyAdapter(LocalCourseAdapter):
    """Local adapter that can be told to fail or stall its next writes."""

    def __init__(self, storage):
        super().__init__(storage)
        self.fail_next = False
        self.delays: list[float] = []
        self.calls: list[tuple] = []

    def _maybe_fail(self, name, *args):
        self.calls.append((name, *args))
        if self.delays:
            time.sleep(self.delays.pop(0))
        if self.fail_next:
            self.fail_next = False
            raise TransientIOError("storage offline")

    def update_module(self, module_id, changes):
        self._maybe_fail("update_module", module_id, changes)
        super().update_module(module_id, changes)

    def update_assessment(self, assessment_id, changes):
        self._maybe_fail("update_assessment", assessment_id, changes)
        super().update_assessment(assessment_id, changes)

    def delete_year(self, year_id):
        self._maybe_fail("delete_year", year_id)
        super().delete_year(year_id)

    def add_module(self, year_id, name, credits):
        self._maybe_fail("add_module", year_id, name, credits)
        return super().add_module(year_id, name, credits)


@pytest.fixture
def storage(tmp_path):
    return KeyValueStorage(tmp_path / "state")


@pytest.fixture
def adapter(storage):
    return LocalCourseAdapter(storage)


@pytest.fixture
def flaky_adapter(storage):
    return FlakyAdapter(storage)


@pytest.fixture
def store(adapter):
    return CourseTreeStore(adapter, "user-1")

