"""Course endpoints (one course per caller)."""

from fastapi import APIRouter, Depends, HTTPException, status

from gradetrack.core.errors import ConflictError
from gradetrack.core.models import default_year_weights
from gradetrack.db import course_repository
from gradetrack.web.dependencies import get_user_id, provided_fields, require_owned
from gradetrack.web.schemas import (
    CourseCreate,
    CourseResponse,
    CourseUpdateRequest,
    MessageResponse,
    YearCreate,
    YearResponse,
)

router = APIRouter(prefix="/api", tags=["course"])


@router.get("/course", response_model=CourseResponse | None)
async def get_course(user_id: str = Depends(get_user_id)) -> dict | None:
    """Get the caller's full course tree, or null if none exists."""
    course = course_repository.get_course_tree(user_id)
    if course is None:
        return None
    return course.to_dict()


@router.post("/course", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseCreate,
    user_id: str = Depends(get_user_id),
) -> dict:
    """Create the caller's course with default years."""
    try:
        course = course_repository.insert_course(
            user_id=user_id,
            institution=body.institution,
            title=body.title,
            year_weights=default_year_weights(body.year_count),
            target_grade=body.target_grade,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return course.to_dict()


@router.put("/course", response_model=MessageResponse)
async def update_course(
    body: CourseUpdateRequest,
    user_id: str = Depends(get_user_id),
) -> MessageResponse:
    """Partially update the caller's course."""
    course = course_repository.get_course_tree(user_id)
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )

    course_repository.update_course(course.id, provided_fields(body))
    return MessageResponse(message="Updated")


@router.delete("/course", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(user_id: str = Depends(get_user_id)) -> None:
    """Delete the caller's course and everything in it. Idempotent."""
    course_repository.delete_course_for_user(user_id)


@router.post(
    "/courses/{course_id}/years",
    response_model=YearResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_year(
    course_id: str,
    body: YearCreate,
    user_id: str = Depends(get_user_id),
) -> dict:
    """Append a year with the next sequential year number."""
    require_owned("course", course_id, user_id)
    year = course_repository.insert_year(course_id, body.label, body.weight)
    return year.to_dict()
