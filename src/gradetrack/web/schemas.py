"""Pydantic schemas for the course API.

Request bodies validate ranges at the HTTP boundary (422 on failure).
Update bodies are partial: handlers read them with exclude_unset so an
omitted field is never overwritten, while an explicit null clears an
optional target. An explicit null for any other field is a 422.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gradetrack.core.models import DEFAULT_CREDITS
from gradetrack.utils.validators import MAX_LABEL_LENGTH, MAX_NAME_LENGTH, MAX_YEAR_COUNT


# =============================================================================
# TREE RESPONSES
# =============================================================================


class AssessmentResponse(BaseModel):
    id: str
    name: str
    weight: float
    grade: float | None = None
    completed: bool = False


class ModuleResponse(BaseModel):
    id: str
    name: str
    credits: int
    target_grade: float | None = None
    assessments: list[AssessmentResponse] = Field(default_factory=list)


class YearResponse(BaseModel):
    id: str
    label: str
    year_number: int
    weight: float
    target_grade: float | None = None
    modules: list[ModuleResponse] = Field(default_factory=list)


class CourseResponse(BaseModel):
    """Full course tree."""

    id: str
    user_id: str
    institution: str
    title: str
    target_grade: float | None = None
    created_at: str
    years: list[YearResponse] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


class _RequestBody(BaseModel):
    """Request bodies strip surrounding whitespace before validation."""

    model_config = ConfigDict(str_strip_whitespace=True)


def _reject_null(value: Any) -> Any:
    """Required fields may be omitted from an update but never set to null."""
    if value is None:
        raise ValueError("may not be null")
    return value


# =============================================================================
# COURSE
# =============================================================================


class CourseCreate(_RequestBody):
    """Request body for creating the caller's course."""

    institution: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    title: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    year_count: int = Field(default=3, ge=1, le=MAX_YEAR_COUNT)
    target_grade: float | None = Field(default=None, ge=0, le=100)


class CourseUpdateRequest(_RequestBody):
    institution: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    title: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    target_grade: float | None = Field(default=None, ge=0, le=100)

    @field_validator("institution", "title", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


# =============================================================================
# YEAR
# =============================================================================


class YearCreate(_RequestBody):
    label: str = Field(default="", max_length=MAX_LABEL_LENGTH)
    weight: float = Field(default=0, ge=0, le=100)


class YearUpdateRequest(_RequestBody):
    label: str | None = Field(default=None, min_length=1, max_length=MAX_LABEL_LENGTH)
    weight: float | None = Field(default=None, ge=0, le=100)
    target_grade: float | None = Field(default=None, ge=0, le=100)

    @field_validator("label", "weight", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


# =============================================================================
# MODULE
# =============================================================================


class ModuleCreate(_RequestBody):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    credits: int = Field(default=DEFAULT_CREDITS, ge=1)


class ModuleUpdateRequest(_RequestBody):
    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    credits: int | None = Field(default=None, ge=1)
    target_grade: float | None = Field(default=None, ge=0, le=100)

    @field_validator("name", "credits", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


# =============================================================================
# ASSESSMENT
# =============================================================================


class AssessmentCreate(_RequestBody):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    weight: float = Field(..., ge=0, le=100)


class AssessmentUpdateRequest(_RequestBody):
    name: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    weight: float | None = Field(default=None, ge=0, le=100)
    grade: float | None = Field(default=None, ge=0, le=100)
    completed: bool | None = None

    @field_validator("name", "weight", "completed", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
