"""
Rider API Endpoints.

Rider applications, admin decisions and dashboard listings.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.dependencies import get_current_identity
from parcel_backend.app.core.guards import OwnershipGuard, require_admin
from parcel_backend.app.core.identity import VerifiedIdentity
from parcel_backend.app.db.session import get_db
from parcel_backend.app.domain.riders.lifecycle import RiderLifecycle, TransitionResult
from parcel_backend.app.models.rider_enums import RiderStatus
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.rider import (
    RiderCreate,
    RiderResponse,
    RiderStatusUpdate,
    RiderTransitionResponse,
)

router = APIRouter(prefix="/riders", tags=["Riders"])
ownership_guard = OwnershipGuard()


def _transition_response(result: TransitionResult) -> RiderTransitionResponse:
    return RiderTransitionResponse(
        success=True,
        message=f"Rider {result.status.value} successfully",
        rider_modified_count=result.modified,
        user_modified_count=result.user_modified,
    )


@router.post("", response_model=RiderResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_rider(
    application: RiderCreate,
    identity: VerifiedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a rider application for the caller's own email. Starts PENDING.
    """
    ownership_guard.enforce(application.email, identity, "rider application")

    return await RiderLifecycle.apply(db, application)


@router.get("/pending", response_model=List[RiderResponse])
async def list_pending_riders(db: AsyncSession = Depends(get_db)):
    """Riders awaiting a decision, newest first."""
    return await RiderLifecycle.list_by_status(db, RiderStatus.PENDING)


@router.get("/active", response_model=List[RiderResponse])
async def list_active_riders(db: AsyncSession = Depends(get_db)):
    """Approved riders, newest first."""
    return await RiderLifecycle.list_by_status(db, RiderStatus.ACTIVE)


@router.patch("/{rider_id}/status", response_model=RiderTransitionResponse)
async def update_rider_status(
    update: RiderStatusUpdate,
    rider_id: int = Path(..., description="Rider ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Apply an admin decision to a rider (admin-only).

    Approving (pending -> active) also promotes the rider's user to role `rider`.
    """
    result = await RiderLifecycle.transition(
        db,
        rider_id,
        update.status,
        email=update.email,
        actor_email=admin.email,
    )
    return _transition_response(result)


@router.patch("/deactivate/{rider_id}", response_model=RiderTransitionResponse)
async def deactivate_rider(
    rider_id: int = Path(..., description="Rider ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate an active rider (admin-only). Shorthand for active -> inactive.
    """
    result = await RiderLifecycle.transition(
        db,
        rider_id,
        RiderStatus.INACTIVE,
        actor_email=admin.email,
    )
    return _transition_response(result)
