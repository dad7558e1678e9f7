"""
Rider Lifecycle (Domain Logic).

State machine over Rider.status plus the role promotion that accompanies
approval. The rider write and the promotion share one transaction.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import select, update, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import (
    ConflictError,
    IllegalTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from parcel_backend.app.core.reliability import retry_read
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.rider_enums import RiderStatus
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.rider import RiderCreate
from parcel_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[RiderStatus, FrozenSet[RiderStatus]] = {
    RiderStatus.PENDING: frozenset({RiderStatus.ACTIVE, RiderStatus.REJECTED, RiderStatus.CANCELLED}),
    RiderStatus.ACTIVE: frozenset({RiderStatus.INACTIVE, RiderStatus.CANCELLED}),
    RiderStatus.REJECTED: frozenset(),
    RiderStatus.INACTIVE: frozenset(),
    RiderStatus.CANCELLED: frozenset(),
}

# Applications that still block a new one for the same email
OPEN_STATUSES = (RiderStatus.PENDING, RiderStatus.ACTIVE)


def next_status(current: RiderStatus, requested: RiderStatus) -> RiderStatus:
    """
    Validate a status change.

    Returns:
        The requested status when `current -> requested` is allowed

    Raises:
        IllegalTransitionError: for any other pair, including terminal states
    """
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransitionError(current.value, requested.value)
    return requested


def is_terminal(status: RiderStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a rider transition."""
    rider_id: int
    status: RiderStatus
    matched: int
    modified: int
    user_modified: int


class RiderLifecycle:

    @staticmethod
    async def apply(db: AsyncSession, application: RiderCreate) -> Rider:
        """
        Create a PENDING rider from an application.

        Raises:
            ConflictError: the email already has a pending or active rider
        """
        existing = await db.execute(
            select(Rider.id).where(Rider.email == application.email, Rider.status.in_(OPEN_STATUSES))
        )
        if existing.first():
            raise ConflictError(f"An open rider application already exists for {application.email}")

        rider = Rider(
            email=application.email,
            name=application.name,
            phone=application.phone,
            region=application.region,
            district=application.district,
            vehicle=application.vehicle,
            status=RiderStatus.PENDING,
        )
        db.add(rider)
        try:
            await db.flush()
            await log_event(
                db=db,
                action=AuditAction.RIDER_APPLIED,
                target_type="rider",
                target_id=rider.id,
                actor_email=application.email,
            )
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Rider application for %s rolled back", application.email)
            raise

        await db.refresh(rider)
        logger.info("Rider %s applied (%s)", rider.id, rider.email)
        return rider

    @staticmethod
    async def transition(
        db: AsyncSession,
        rider_id: int,
        target_status: RiderStatus,
        email: Optional[str] = None,
        actor_email: Optional[str] = None,
    ) -> TransitionResult:
        """
        Move a rider to `target_status`.

        Flow:
        1. Load Rider (absent -> 404)
        2. Validate current -> target (else IllegalTransition)
        3. Compare-and-set the status on the current value
        4. On ACTIVE, promote the user sharing the rider's email to RIDER
        5. Audit entry, then a single commit

        Args:
            db: Database session (this method owns the transaction)
            rider_id: Rider to move
            target_status: Requested status
            email: Optional rider email sent by the client; must match the rider
            actor_email: Verified email of the admin

        Returns:
            TransitionResult with rider and user modification counts
        """
        rider = await db.get(Rider, rider_id)
        if not rider:
            raise ResourceNotFoundError("Rider", rider_id)

        if email is not None and email != rider.email:
            raise ValidationError(
                "email does not match the rider",
                details={"rider_id": rider_id, "email": email},
            )

        current = rider.status
        new_status = next_status(current, target_status)

        try:
            result = await db.execute(
                update(Rider)
                .where(Rider.id == rider_id, Rider.status == current)
                .values(status=new_status)
            )
            if result.rowcount == 0:
                # Another request moved the rider since it was loaded
                raise IllegalTransitionError(
                    current.value,
                    new_status.value,
                    message=f"Rider {rider_id} changed status concurrently; retry with its current status",
                )

            user_modified = 0
            if new_status == RiderStatus.ACTIVE:
                promotion = await db.execute(
                    update(User)
                    .where(User.email == rider.email)
                    .values(role=UserRole.RIDER)
                )
                user_modified = promotion.rowcount
                if user_modified == 0:
                    logger.warning(
                        "Rider %s activated but no user is registered as %s; role not promoted",
                        rider_id, rider.email,
                    )

            await log_event(
                db=db,
                action=AuditAction.RIDER_STATUS_CHANGED,
                target_type="rider",
                target_id=rider_id,
                actor_email=actor_email,
                metadata={
                    "from": current.value,
                    "to": new_status.value,
                    "user_promoted": bool(user_modified),
                },
            )

            await db.commit()
        except IllegalTransitionError:
            await db.rollback()
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Transition of rider %s to %s rolled back", rider_id, new_status.value)
            raise

        logger.info("Rider %s moved %s -> %s", rider_id, current.value, new_status.value)
        return TransitionResult(
            rider_id=rider_id,
            status=new_status,
            matched=1,
            modified=1,
            user_modified=user_modified,
        )

    @staticmethod
    async def list_by_status(db: AsyncSession, status: RiderStatus) -> List[Rider]:
        """Riders in `status`, newest first."""
        async def read():
            result = await db.execute(
                select(Rider)
                .where(Rider.status == status)
                .order_by(desc(Rider.created_at), desc(Rider.id))
            )
            return list(result.scalars().all())

        return await retry_read(read, f"list {status.value} riders", on_retry=db.rollback)
