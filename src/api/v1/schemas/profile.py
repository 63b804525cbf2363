"""Pydantic schemas for Profile API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from domain.entities.profile import UserRole


class ProfileResponse(BaseModel):
    """Schema for Profile response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Farmer Singh",
                "email": "farmer@example.com",
                "role": "seller",
                "avatar_url": None,
                "created_at": "2026-01-28T10:00:00",
                "updated_at": "2026-01-28T10:00:00",
            }
        },
    )

    id: UUID
    name: str
    email: str
    role: UserRole
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime


class ProfileDetailResponse(BaseModel):
    """Wrapper for single Profile response."""

    data: ProfileResponse
