"""Persistence adapters for the course tree.

Provides:
- CourseAdapter: the synchronization contract
- LocalCourseAdapter: whole-tree JSON blob on the local device
- RemoteCourseAdapter: HTTP client for the course API
"""

from gradetrack.persistence.base import CourseAdapter
from gradetrack.persistence.local import COURSE_KEY, KeyValueStorage, LocalCourseAdapter
from gradetrack.persistence.remote import RemoteCourseAdapter

__all__ = [
    "COURSE_KEY",
    "CourseAdapter",
    "KeyValueStorage",
    "LocalCourseAdapter",
    "RemoteCourseAdapter",
]
