"""Academic year endpoints."""

from fastapi import APIRouter, Depends, status

from gradetrack.db import course_repository
from gradetrack.web.dependencies import get_user_id, provided_fields, require_owned
from gradetrack.web.schemas import (
    MessageResponse,
    ModuleCreate,
    ModuleResponse,
    YearUpdateRequest,
)

router = APIRouter(prefix="/api/years", tags=["years"])


@router.put("/{year_id}", response_model=MessageResponse)
async def update_year(
    year_id: str,
    body: YearUpdateRequest,
    user_id: str = Depends(get_user_id),
) -> MessageResponse:
    require_owned("year", year_id, user_id)
    course_repository.update_year(year_id, provided_fields(body))
    return MessageResponse(message="Updated")


@router.delete("/{year_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_year(year_id: str, user_id: str = Depends(get_user_id)) -> None:
    """Delete a year; its modules and assessments cascade."""
    require_owned("year", year_id, user_id)
    course_repository.delete_year(year_id)


@router.post(
    "/{year_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_module(
    year_id: str,
    body: ModuleCreate,
    user_id: str = Depends(get_user_id),
) -> dict:
    require_owned("year", year_id, user_id)
    module = course_repository.insert_module(year_id, body.name, body.credits)
    return module.to_dict()
