"""
Payment reconciler tests.

Settlement marks the parcel paid and appends exactly one ledger entry,
or writes nothing at all.
"""

import pytest
from sqlalchemy import select, func
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError

from parcel_backend.app.core.exceptions import DuplicateSettlementError, ResourceNotFoundError
from parcel_backend.app.domain.payments.reconciler import PaymentReconciler
from parcel_backend.app.models.audit_log import AuditLog
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import PaymentStatus
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.schemas.payment import PaymentCreate
from parcel_backend.app.services.audit import AuditAction


def submission(parcel_id: int, transaction_id: str = "tx1", amount: float = 500, email: str = "a@x.com"):
    return PaymentCreate(
        parcel_id=parcel_id,
        transaction_id=transaction_id,
        amount=amount,
        email=email,
        payment_method="card",
    )


async def count_payments(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count(Payment.id)))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_record_payment_settles_parcel(db_session, session_factory, make_parcel):
    parcel = await make_parcel("a@x.com")

    payment = await PaymentReconciler.record_payment(db_session, submission(parcel.id), actor_email="a@x.com")

    assert payment.id is not None
    assert payment.transaction_id == "tx1"
    assert payment.amount == 500.0
    assert payment.paid_at_string.endswith("Z")

    async with session_factory() as session:
        stored = await session.get(Parcel, parcel.id)
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.transaction_id == "tx1"
        assert stored.payment_date is not None

        audit = await session.execute(select(AuditLog).where(AuditLog.action == AuditAction.PAYMENT_RECORDED))
        entry = audit.scalar_one()
        assert entry.target_id == parcel.id
        assert entry.meta_data["payment_id"] == payment.id

    assert await count_payments(session_factory) == 1


@pytest.mark.asyncio
async def test_record_payment_unknown_parcel_writes_nothing(db_session, session_factory):
    with pytest.raises(ResourceNotFoundError):
        await PaymentReconciler.record_payment(db_session, submission(9999))

    assert await count_payments(session_factory) == 0


@pytest.mark.asyncio
async def test_duplicate_settlement_same_identifiers_rejected(db_session, session_factory, make_parcel):
    parcel = await make_parcel("a@x.com")
    await PaymentReconciler.record_payment(db_session, submission(parcel.id))

    with pytest.raises(DuplicateSettlementError) as exc_info:
        await PaymentReconciler.record_payment(db_session, submission(parcel.id))

    assert exc_info.value.status_code == 409
    assert await count_payments(session_factory) == 1


@pytest.mark.asyncio
async def test_paid_parcel_rejects_new_transaction(db_session, session_factory, make_parcel):
    parcel = await make_parcel("a@x.com")
    await PaymentReconciler.record_payment(db_session, submission(parcel.id, transaction_id="tx1"))

    with pytest.raises(DuplicateSettlementError):
        await PaymentReconciler.record_payment(db_session, submission(parcel.id, transaction_id="tx2"))

    async with session_factory() as session:
        stored = await session.get(Parcel, parcel.id)
        assert stored.transaction_id == "tx1"
    assert await count_payments(session_factory) == 1


@pytest.mark.asyncio
async def test_failed_ledger_write_rolls_back_parcel(db_session, session_factory, make_parcel, mocker):
    """If anything after the parcel update fails, the parcel stays unpaid."""
    parcel = await make_parcel("a@x.com")
    mocker.patch(
        "parcel_backend.app.domain.payments.reconciler.log_event",
        side_effect=OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error")),
    )

    with pytest.raises(OperationalError):
        await PaymentReconciler.record_payment(db_session, submission(parcel.id))

    async with session_factory() as session:
        stored = await session.get(Parcel, parcel.id)
        assert stored.payment_status == PaymentStatus.UNPAID
        assert stored.transaction_id is None
    assert await count_payments(session_factory) == 0


@pytest.mark.asyncio
async def test_list_payments_filters_by_email_newest_first(db_session, make_parcel):
    first = await make_parcel("a@x.com")
    second = await make_parcel("a@x.com")
    other = await make_parcel("b@x.com")

    await PaymentReconciler.record_payment(db_session, submission(first.id, transaction_id="tx1"))
    await PaymentReconciler.record_payment(db_session, submission(other.id, transaction_id="tx-b", email="b@x.com"))
    await PaymentReconciler.record_payment(db_session, submission(second.id, transaction_id="tx2"))

    payments = await PaymentReconciler.list_payments(db_session, "a@x.com")

    assert [p.transaction_id for p in payments] == ["tx2", "tx1"]
    assert all(p.email == "a@x.com" for p in payments)


@pytest.mark.asyncio
async def test_list_payments_is_case_sensitive(db_session, make_parcel):
    parcel = await make_parcel("a@x.com")
    await PaymentReconciler.record_payment(db_session, submission(parcel.id))

    assert await PaymentReconciler.list_payments(db_session, "A@X.COM") == []


@pytest.mark.asyncio
async def test_transaction_id_kept_exactly_as_sent(db_session, session_factory, make_parcel):
    parcel = await make_parcel("a@x.com")

    payment = await PaymentReconciler.record_payment(db_session, submission(parcel.id, transaction_id=" pi_3Nx \t"))

    assert payment.transaction_id == " pi_3Nx \t"
    async with session_factory() as session:
        stored = await session.get(Parcel, parcel.id)
        assert stored.transaction_id == " pi_3Nx \t"


def test_blank_transaction_id_rejected():
    with pytest.raises(PydanticValidationError):
        submission(1, transaction_id=" \t ")


def test_amount_too_large_for_float_rejected():
    with pytest.raises(PydanticValidationError) as exc_info:
        submission(1, amount=10 ** 400)

    assert exc_info.value.errors()[0]["loc"] == ("amount",)
