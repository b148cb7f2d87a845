"""Module endpoints."""

from fastapi import APIRouter, Depends, status

from gradetrack.db import course_repository
from gradetrack.web.dependencies import get_user_id, provided_fields, require_owned
from gradetrack.web.schemas import (
    AssessmentCreate,
    AssessmentResponse,
    MessageResponse,
    ModuleUpdateRequest,
)

router = APIRouter(prefix="/api/modules", tags=["modules"])


@router.put("/{module_id}", response_model=MessageResponse)
async def update_module(
    module_id: str,
    body: ModuleUpdateRequest,
    user_id: str = Depends(get_user_id),
) -> MessageResponse:
    require_owned("module", module_id, user_id)
    course_repository.update_module(module_id, provided_fields(body))
    return MessageResponse(message="Updated")


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(module_id: str, user_id: str = Depends(get_user_id)) -> None:
    """Delete a module; its assessments cascade."""
    require_owned("module", module_id, user_id)
    course_repository.delete_module(module_id)


@router.post(
    "/{module_id}/assessments",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_assessment(
    module_id: str,
    body: AssessmentCreate,
    user_id: str = Depends(get_user_id),
) -> dict:
    require_owned("module", module_id, user_id)
    assessment = course_repository.insert_assessment(module_id, body.name, body.weight)
    return assessment.to_dict()
