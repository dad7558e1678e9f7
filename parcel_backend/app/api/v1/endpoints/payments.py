"""
Payment API Endpoints.

Settlement of parcels, payment history and gateway charge intents.
"""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.config import settings
from parcel_backend.app.core.dependencies import get_current_identity
from parcel_backend.app.core.guards import OwnershipGuard
from parcel_backend.app.core.identity import VerifiedIdentity
from parcel_backend.app.db.session import get_db
from parcel_backend.app.domain.payments.reconciler import PaymentReconciler
from parcel_backend.app.schemas.payment import (
    ChargeIntentRequest,
    ChargeIntentResponse,
    PaymentCreate,
    PaymentRecordedResponse,
    PaymentResponse,
)
from parcel_backend.app.services.payment_gateway import PaymentGateway, get_payment_gateway

router = APIRouter(tags=["Payments"])
ownership_guard = OwnershipGuard()


@router.post("/payments", response_model=PaymentRecordedResponse)
async def record_payment(
    submission: PaymentCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Settle a parcel and append the payment to the ledger.

    The payer email must be the caller's verified email.
    A parcel is settled once; later submissions are rejected with 409.
    """
    ownership_guard.enforce(submission.email, identity, "payment")

    payment = await PaymentReconciler.record_payment(db, submission, actor_email=identity.email)

    return PaymentRecordedResponse(
        message="Payment recorded successfully",
        inserted_id=payment.id,
    )


@router.get("/payments", response_model=List[PaymentResponse])
async def list_payments(
    email: str = Query(..., min_length=1, description="Owner email"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    List the caller's payments, newest first.

    The requested email must equal the verified identity.
    """
    ownership_guard.enforce(email, identity, "payment history")

    return await PaymentReconciler.list_payments(db, email)


@router.post("/create-payment-intent", response_model=ChargeIntentResponse)
async def create_payment_intent(
    request: ChargeIntentRequest,
    identity: VerifiedIdentity = Depends(get_current_identity),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Create a gateway charge intent and return its client secret.
    """
    intent = await gateway.create_charge_intent(request.amount_in_cents, settings.payment_currency)

    return ChargeIntentResponse(client_secret=intent.client_handle)
