"""Assessment endpoints."""

from fastapi import APIRouter, Depends, status

from gradetrack.db import course_repository
from gradetrack.web.dependencies import get_user_id, provided_fields, require_owned
from gradetrack.web.schemas import AssessmentUpdateRequest, MessageResponse

router = APIRouter(prefix="/api/assessments", tags=["assessments"])


@router.put("/{assessment_id}", response_model=MessageResponse)
async def update_assessment(
    assessment_id: str,
    body: AssessmentUpdateRequest,
    user_id: str = Depends(get_user_id),
) -> MessageResponse:
    """Update name, weight, grade or completion independently."""
    require_owned("assessment", assessment_id, user_id)
    course_repository.update_assessment(assessment_id, provided_fields(body))
    return MessageResponse(message="Updated")


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(
    assessment_id: str,
    user_id: str = Depends(get_user_id),
) -> None:
    require_owned("assessment", assessment_id, user_id)
    course_repository.delete_assessment(assessment_id)
