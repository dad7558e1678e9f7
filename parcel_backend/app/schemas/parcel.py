"""
Parcel Pydantic schemas.

Defines request and response models for parcel booking.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from parcel_backend.app.models.parcel_enums import PaymentStatus


class ParcelCreate(BaseModel):
    """Schema for booking a new parcel. The owner comes from the verified identity."""
    title: str = Field(..., min_length=1, max_length=255, description="Parcel title")
    parcel_type: Optional[str] = Field(None, max_length=50, description="document / non-document")
    weight: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    cost: Optional[float] = Field(None, ge=0, description="Quoted delivery cost")
    sender_name: Optional[str] = Field(None, max_length=255)
    receiver_name: Optional[str] = Field(None, max_length=255)
    delivery_address: Optional[str] = Field(None, max_length=500)


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    created_by: str
    title: str
    parcel_type: Optional[str]
    weight: Optional[float]
    cost: Optional[float]
    sender_name: Optional[str]
    receiver_name: Optional[str]
    delivery_address: Optional[str]
    payment_status: PaymentStatus
    transaction_id: Optional[str] = Field(None, serialization_alias="transactionId")
    payment_date: Optional[datetime] = Field(None, serialization_alias="paymentDate")
    created_at: datetime = Field(..., serialization_alias="createdAt")

    class Config:
        from_attributes = True


class ParcelDeletedResponse(BaseModel):
    """Response for a deleted parcel."""
    deleted: int
