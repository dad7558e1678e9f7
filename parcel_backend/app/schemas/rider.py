"""
Rider Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from parcel_backend.app.models.rider_enums import RiderStatus
from parcel_backend.app.schemas.user import EMAIL_PATTERN


class RiderCreate(BaseModel):
    """Schema for a rider application."""
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    region: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    vehicle: Optional[str] = Field(None, max_length=100)


class RiderStatusUpdate(BaseModel):
    """Admin decision on a rider. `email`, when sent, must be the rider's email."""
    status: RiderStatus
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN, max_length=255)


class RiderResponse(BaseModel):
    """Schema for rider response."""
    id: int
    email: str
    name: str
    phone: Optional[str]
    region: Optional[str]
    district: Optional[str]
    vehicle: Optional[str]
    status: RiderStatus
    created_at: datetime = Field(..., serialization_alias="createdAt")

    class Config:
        from_attributes = True


class RiderTransitionResponse(BaseModel):
    """Response for a rider status change."""
    success: bool
    message: str
    rider_modified_count: int = Field(..., serialization_alias="riderModifiedCount")
    user_modified_count: int = Field(..., serialization_alias="userModifiedCount")
