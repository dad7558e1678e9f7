"""
Payment Pydantic schemas.

Defines request and response models for settlement and charge intents.
Wire names follow the client application (camelCase where it uses it).
"""

import math
import re
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from parcel_backend.app.models.billing_enums import PaymentRecordStatus
from parcel_backend.app.schemas.user import EMAIL_PATTERN

EMAIL_RE = re.compile(EMAIL_PATTERN)
ENTITY_ID_PATTERN = re.compile(r"^[0-9]+$")


class PaymentCreate(BaseModel):
    """
    Schema for recording a payment against a parcel.

    Fields are validated in declaration order, so the first invalid field
    always names the error: parcelId, transactionId, amount, email.
    """
    parcel_id: int = Field(..., alias="parcelId", description="Parcel being settled")
    transaction_id: str = Field(..., alias="transactionId", description="Gateway transaction reference")
    amount: float = Field(..., description="Charged amount, strictly positive")
    email: str = Field(..., description="Payer email")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod", max_length=100)

    class Config:
        populate_by_name = True

    @field_validator("parcel_id", mode="before")
    @classmethod
    def valid_entity_id(cls, v):
        if isinstance(v, bool):
            raise ValueError("parcelId must be a positive integer id")
        if isinstance(v, str) and ENTITY_ID_PATTERN.match(v.strip()):
            v = int(v.strip())
        if not isinstance(v, int) or v <= 0:
            raise ValueError("parcelId must be a positive integer id")
        return v

    @field_validator("transaction_id", mode="before")
    @classmethod
    def non_empty_transaction(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("transactionId must be a non-empty string")
        # Opaque gateway reference, kept exactly as sent
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def positive_finite_amount(cls, v):
        # JSON booleans and numeric strings are not amounts
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("amount must be a number")
        try:
            amount = float(v)
        except OverflowError:
            raise ValueError("amount must be a finite number greater than zero")
        if not math.isfinite(amount) or amount <= 0:
            raise ValueError("amount must be a finite number greater than zero")
        return amount

    @field_validator("email", mode="before")
    @classmethod
    def valid_email(cls, v):
        if not isinstance(v, str) or not EMAIL_RE.match(v.strip()):
            raise ValueError("email must be a non-empty email address")
        return v.strip()


class PaymentRecordedResponse(BaseModel):
    """Response for a recorded payment."""
    message: str
    inserted_id: int = Field(..., serialization_alias="insertedId")


class PaymentResponse(BaseModel):
    """Schema for displaying a payment ledger entry."""
    id: int
    parcel_id: int = Field(..., serialization_alias="parcelId")
    email: str
    transaction_id: str = Field(..., serialization_alias="transactionId")
    amount: float
    payment_method: Optional[str] = Field(None, serialization_alias="paymentMethod")
    status: PaymentRecordStatus
    paid_at_string: str
    created_at: datetime = Field(..., serialization_alias="createdAt")

    class Config:
        from_attributes = True


class ChargeIntentRequest(BaseModel):
    """Schema for requesting a gateway charge intent."""
    amount_in_cents: int = Field(..., alias="amountInCents", gt=0, strict=True)

    class Config:
        populate_by_name = True


class ChargeIntentResponse(BaseModel):
    """Client-usable payment handle."""
    client_secret: str = Field(..., serialization_alias="clientSecret")
