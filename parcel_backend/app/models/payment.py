"""
Payment ledger database model.

Immutable record of a settled parcel payment.
"""

from sqlalchemy import Column, Integer, Float, DateTime, Enum, String, UniqueConstraint
from parcel_backend.app.db.session import Base, utc_now
from parcel_backend.app.models.enums import enum_values
from parcel_backend.app.models.billing_enums import PaymentRecordStatus


class Payment(Base):
    """
    Payment model.

    Append-only ledger entry. NO updates or deletions allowed.
    `parcel_id` references a parcel without owning it (no foreign key).
    """
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("parcel_id", "transaction_id", name="uq_payments_parcel_transaction"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Linkage
    parcel_id = Column(Integer, nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    transaction_id = Column(String(255), nullable=False)

    # Financials
    amount = Column(Float, nullable=False)
    payment_method = Column(String(100), nullable=True)
    status = Column(
        Enum(PaymentRecordStatus, name="payment_record_status", values_callable=enum_values),
        default=PaymentRecordStatus.SUCCEEDED,
        nullable=False,
    )

    # Timestamps (Immutable - no updated_at)
    paid_at_string = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<Payment(id={self.id}, parcel_id={self.parcel_id}, amount={self.amount})>"
