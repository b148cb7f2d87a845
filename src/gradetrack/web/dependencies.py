"""Request dependencies shared by the course routes."""

from __future__ import annotations

from typing import Any

from fastapi import Header, HTTPException, status
from pydantic import BaseModel

from gradetrack.db import course_repository

USER_HEADER = "X-User-Id"


async def get_user_id(x_user_id: str = Header(..., alias=USER_HEADER)) -> str:
    """Caller identity. Authentication is handled outside this service."""
    if not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user id",
        )
    return x_user_id


def require_owned(kind: str, entity_id: str, user_id: str) -> None:
    """Raise 404 unless the entity exists and belongs to the caller."""
    if course_repository.get_owner(kind, entity_id) != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{kind.capitalize()} '{entity_id}' not found",
        )


def provided_fields(body: BaseModel) -> dict[str, Any]:
    """Fields the client actually sent (partial update semantics)."""
    return body.model_dump(exclude_unset=True)
