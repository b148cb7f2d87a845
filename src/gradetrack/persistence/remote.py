"""Remote API adapter.

Talks to the course API (see gradetrack.web) over HTTP using requests.
Each mutation is one request; the server is authoritative for ids and
cascading deletes.

Status mapping:
- 404 -> NotFoundError
- 409 -> ConflictError
- 400/422 -> ValidationError
- 5xx and connection failures -> TransientIOError
"""

from __future__ import annotations

from typing import Any

import requests
import structlog

from gradetrack.core.errors import (
    ConflictError,
    GradeTrackError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)
from gradetrack.core.models import AcademicYear, Assessment, Course, Module
from gradetrack.persistence.base import CourseAdapter

logger = structlog.get_logger(__name__)

USER_HEADER = "X-User-Id"
DEFAULT_TIMEOUT = 10


def _error_detail(response: Any) -> str:
    """Extract a readable message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        detail = body.get("detail", body.get("message", ""))
        if isinstance(detail, list) and detail:
            # FastAPI request validation errors
            first = detail[0]
            loc = ".".join(str(p) for p in first.get("loc", [])[1:])
            return f"{loc}: {first.get('msg', '')}".strip(": ")
        return str(detail)
    return str(body)


class RemoteCourseAdapter(CourseAdapter):
    """Course adapter backed by the remote course API.

    Args:
        base_url: API root, e.g. "http://localhost:8000"
        user_id: Caller identity sent with every request
        timeout: Per-request timeout in seconds
        session: requests.Session (or compatible client); created if omitted
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Any | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        user_id: str | None = None,
        kind: str = "course",
        entity_id: str = "",
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {USER_HEADER: user_id or self.user_id}

        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("remote.request_failed", method=method, path=path, error=str(e))
            raise TransientIOError(f"{method} {path} failed: {e}") from e

        status = response.status_code
        if status < 400:
            if status == 204 or not response.content:
                return None
            return response.json()

        detail = _error_detail(response)
        logger.warning("remote.request_rejected", method=method, path=path, status=status)

        if status == 404:
            raise NotFoundError(kind, entity_id)
        if status == 409:
            raise ConflictError(detail)
        if status in (400, 422):
            field, _, message = detail.partition(": ")
            raise ValidationError(field or "request", message or detail)
        if status >= 500:
            raise TransientIOError(f"{method} {path}: server error {status}")
        raise GradeTrackError(f"{method} {path}: HTTP {status} {detail}")

    # -------------------------------------------------------------------------
    # Course
    # -------------------------------------------------------------------------

    def fetch_course(self, user_id: str) -> Course | None:
        data = self._request("GET", "/api/course", user_id=user_id)
        if data is None:
            return None
        return Course.from_dict(data)

    def create_course(
        self,
        user_id: str,
        institution: str,
        title: str,
        year_count: int,
        target_grade: float | None = None,
    ) -> Course:
        data = self._request(
            "POST",
            "/api/course",
            {
                "institution": institution,
                "title": title,
                "year_count": year_count,
                "target_grade": target_grade,
            },
            user_id=user_id,
        )
        return Course.from_dict(data)

    def update_course(self, course_id: str, changes: dict[str, Any]) -> None:
        self._request("PUT", "/api/course", changes, entity_id=course_id)

    def delete_course(self, course_id: str) -> None:
        self._request("DELETE", "/api/course", entity_id=course_id)

    # -------------------------------------------------------------------------
    # Years
    # -------------------------------------------------------------------------

    def add_year(self, course_id: str, label: str, weight: float) -> AcademicYear:
        data = self._request(
            "POST",
            f"/api/courses/{course_id}/years",
            {"label": label, "weight": weight},
            entity_id=course_id,
        )
        return AcademicYear.from_dict(data)

    def update_year(self, year_id: str, changes: dict[str, Any]) -> None:
        self._request("PUT", f"/api/years/{year_id}", changes, kind="year", entity_id=year_id)

    def delete_year(self, year_id: str) -> None:
        self._request("DELETE", f"/api/years/{year_id}", kind="year", entity_id=year_id)

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    def add_module(self, year_id: str, name: str, credits: int) -> Module:
        data = self._request(
            "POST",
            f"/api/years/{year_id}/modules",
            {"name": name, "credits": credits},
            kind="year",
            entity_id=year_id,
        )
        return Module.from_dict(data)

    def update_module(self, module_id: str, changes: dict[str, Any]) -> None:
        self._request(
            "PUT", f"/api/modules/{module_id}", changes, kind="module", entity_id=module_id
        )

    def delete_module(self, module_id: str) -> None:
        self._request("DELETE", f"/api/modules/{module_id}", kind="module", entity_id=module_id)

    # -------------------------------------------------------------------------
    # Assessments
    # -------------------------------------------------------------------------

    def add_assessment(self, module_id: str, name: str, weight: float) -> Assessment:
        data = self._request(
            "POST",
            f"/api/modules/{module_id}/assessments",
            {"name": name, "weight": weight},
            kind="module",
            entity_id=module_id,
        )
        return Assessment.from_dict(data)

    def update_assessment(self, assessment_id: str, changes: dict[str, Any]) -> None:
        self._request(
            "PUT",
            f"/api/assessments/{assessment_id}",
            changes,
            kind="assessment",
            entity_id=assessment_id,
        )

    def delete_assessment(self, assessment_id: str) -> None:
        self._request(
            "DELETE",
            f"/api/assessments/{assessment_id}",
            kind="assessment",
            entity_id=assessment_id,
        )
