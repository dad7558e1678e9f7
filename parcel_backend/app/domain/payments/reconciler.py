"""
Payment Reconciler (Domain Logic).

Settles a parcel: marks it paid and appends the matching ledger entry.
Both writes form one transaction; the parcel update is a compare-and-set
on `payment_status = unpaid`, so a parcel is settled at most once even
under concurrent submissions.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, update, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import DuplicateSettlementError, ResourceNotFoundError
from parcel_backend.app.core.reliability import retry_read
from parcel_backend.app.db.session import utc_now
from parcel_backend.app.models.billing_enums import PaymentRecordStatus
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import PaymentStatus
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.schemas.payment import PaymentCreate
from parcel_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)


class PaymentReconciler:

    @staticmethod
    async def record_payment(
        db: AsyncSession,
        submission: PaymentCreate,
        actor_email: Optional[str] = None,
    ) -> Payment:
        """
        Record a payment for an unpaid parcel.

        Flow:
        1. Load Parcel (absent -> 404, nothing written)
        2. Conditional update UNPAID -> PAID (no row updated -> duplicate)
        3. Insert Payment ledger entry (unique parcel/transaction pair)
        4. Audit entry, then a single commit

        The submission is already validated by PaymentCreate. This write is
        never retried; any failure rolls back both the parcel and the ledger.

        Args:
            db: Database session (this method owns the transaction)
            submission: Validated payment submission
            actor_email: Verified email of the caller

        Returns:
            The inserted Payment

        Raises:
            ResourceNotFoundError: parcel does not exist
            DuplicateSettlementError: parcel already settled
            SQLAlchemyError: store fault (after rollback)
        """
        parcel = await db.get(Parcel, submission.parcel_id)
        if not parcel:
            raise ResourceNotFoundError("Parcel", submission.parcel_id)

        now = utc_now()

        try:
            result = await db.execute(
                update(Parcel)
                .where(
                    Parcel.id == submission.parcel_id,
                    Parcel.payment_status == PaymentStatus.UNPAID,
                )
                .values(
                    payment_status=PaymentStatus.PAID,
                    payment_date=now,
                    transaction_id=submission.transaction_id,
                )
            )
            if result.rowcount == 0:
                raise DuplicateSettlementError(submission.parcel_id, submission.transaction_id)

            payment = Payment(
                parcel_id=submission.parcel_id,
                email=submission.email,
                transaction_id=submission.transaction_id,
                amount=submission.amount,
                payment_method=submission.payment_method,
                status=PaymentRecordStatus.SUCCEEDED,
                paid_at_string=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
                created_at=now,
            )
            db.add(payment)
            await db.flush()

            await log_event(
                db=db,
                action=AuditAction.PAYMENT_RECORDED,
                target_type="parcel",
                target_id=submission.parcel_id,
                actor_email=actor_email,
                metadata={
                    "payment_id": payment.id,
                    "transaction_id": submission.transaction_id,
                    "amount": submission.amount,
                },
            )

            await db.commit()
        except DuplicateSettlementError:
            await db.rollback()
            logger.warning(
                "Rejected duplicate settlement for parcel %s (transaction %s)",
                submission.parcel_id, submission.transaction_id,
            )
            raise
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "Ledger already holds parcel %s / transaction %s",
                submission.parcel_id, submission.transaction_id,
            )
            raise DuplicateSettlementError(submission.parcel_id, submission.transaction_id)
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Settlement of parcel %s rolled back", submission.parcel_id)
            raise

        logger.info(
            "Payment %s recorded for parcel %s (transaction %s, amount %s)",
            payment.id, submission.parcel_id, submission.transaction_id, submission.amount,
        )
        return payment

    @staticmethod
    async def list_payments(db: AsyncSession, email: str) -> List[Payment]:
        """Payments made by `email`, newest first."""
        async def read():
            result = await db.execute(
                select(Payment)
                .where(Payment.email == email)
                .order_by(desc(Payment.created_at), desc(Payment.id))
            )
            return list(result.scalars().all())

        return await retry_read(read, "list payments", on_retry=db.rollback)
