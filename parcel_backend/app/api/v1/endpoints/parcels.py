"""
Parcel API Endpoints.

Parcel booking and lookup with strict ownership enforcement.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from parcel_backend.app.core.dependencies import get_current_identity
from parcel_backend.app.core.exceptions import ConflictError, InsufficientPermissionsError, ResourceNotFoundError
from parcel_backend.app.core.guards import OwnershipGuard
from parcel_backend.app.core.identity import VerifiedIdentity
from parcel_backend.app.core.reliability import retry_read
from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import PaymentStatus
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.parcel import ParcelCreate, ParcelDeletedResponse, ParcelResponse
from parcel_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parcels", tags=["Parcels"])
ownership_guard = OwnershipGuard()


async def _get_owned_parcel(db: AsyncSession, parcel_id: int, identity: VerifiedIdentity) -> Parcel:
    parcel = await db.get(Parcel, parcel_id)
    if not parcel:
        raise ResourceNotFoundError("Parcel", parcel_id)
    ownership_guard.enforce(parcel.created_by, identity, "parcel")
    return parcel


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Book a parcel for the caller. Parcels start UNPAID.
    """
    new_parcel = Parcel(
        created_by=identity.email,
        title=parcel_data.title,
        parcel_type=parcel_data.parcel_type,
        weight=parcel_data.weight,
        cost=parcel_data.cost,
        sender_name=parcel_data.sender_name,
        receiver_name=parcel_data.receiver_name,
        delivery_address=parcel_data.delivery_address,
        payment_status=PaymentStatus.UNPAID,
    )

    db.add(new_parcel)
    await db.flush()

    await log_event(
        db=db,
        action=AuditAction.PARCEL_CREATED,
        target_type="parcel",
        target_id=new_parcel.id,
        actor_email=identity.email,
        metadata={"title": new_parcel.title, "cost": new_parcel.cost},
    )
    await db.commit()
    await db.refresh(new_parcel)

    logger.info("Parcel %s booked by %s", new_parcel.id, identity.email)
    return ParcelResponse.model_validate(new_parcel)


@router.get("", response_model=List[ParcelResponse])
async def list_parcels(
    email: Optional[str] = Query(None, min_length=1, description="Owner email"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    List parcels newest first.

    With `email`, it must be the caller's own email. Without it, every
    parcel is listed and the caller must be an admin.
    """
    if email is not None:
        ownership_guard.enforce(email, identity, "parcel list")
    else:
        result = await db.execute(select(User.role).where(User.email == identity.email))
        if result.scalar_one_or_none() != UserRole.ADMIN:
            raise InsufficientPermissionsError("Admin access required to list all parcels")

    async def read():
        query = select(Parcel).order_by(desc(Parcel.created_at), desc(Parcel.id))
        if email is not None:
            query = query.where(Parcel.created_by == email)
        result = await db.execute(query)
        return list(result.scalars().all())

    return await retry_read(read, "list parcels", on_retry=db.rollback)


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """Get one of the caller's parcels."""
    return await _get_owned_parcel(db, parcel_id, identity)


@router.delete("/{parcel_id}", response_model=ParcelDeletedResponse)
async def delete_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Cancel an unpaid booking. Paid parcels are kept because the ledger references them.
    """
    parcel = await _get_owned_parcel(db, parcel_id, identity)

    if parcel.payment_status == PaymentStatus.PAID:
        raise ConflictError(f"Parcel {parcel_id} is paid and cannot be deleted")

    await db.delete(parcel)
    await log_event(
        db=db,
        action=AuditAction.PARCEL_DELETED,
        target_type="parcel",
        target_id=parcel_id,
        actor_email=identity.email,
    )
    await db.commit()

    logger.info("Parcel %s deleted by %s", parcel_id, identity.email)
    return ParcelDeletedResponse(deleted=parcel_id)
