"""
User Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Union
from parcel_backend.app.models.enums import UserRole

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class UserUpsert(BaseModel):
    """
    Schema for the first sign-in upsert.

    Role is never taken from the client; new users start as USER.
    """
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255, description="User email address")
    name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(default=None, max_length=1024)


class UserUpsertResponse(BaseModel):
    """`insertedId` is False when the email was already registered."""
    message: str
    inserted_id: Union[int, bool] = Field(..., serialization_alias="insertedId")


class UserResponse(BaseModel):
    """Schema for user information response."""
    id: int
    email: str
    name: Optional[str] = None
    role: UserRole
    created_at: datetime = Field(..., serialization_alias="createdAt")

    class Config:
        from_attributes = True


class UserRoleUpdate(BaseModel):
    """Admin role assignment. RIDER is granted only through rider approval."""
    role: UserRole

    @field_validator("role")
    @classmethod
    def assignable_role(cls, v: UserRole):
        if v not in (UserRole.ADMIN, UserRole.USER):
            raise ValueError("role must be 'admin' or 'user'")
        return v


class ActionResponse(BaseModel):
    """Generic success envelope for admin actions."""
    success: bool
    message: str
