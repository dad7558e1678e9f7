"""
Parcel database model.

A parcel is a shipment booked by a user. It starts unpaid and is settled
exactly once by the payment reconciler.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from parcel_backend.app.db.session import Base, utc_now
from parcel_backend.app.models.enums import enum_values
from parcel_backend.app.models.parcel_enums import PaymentStatus


class Parcel(Base):
    """Parcel model for the delivery marketplace."""
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - email of the booking user
    created_by = Column(String(255), nullable=False, index=True)

    # Shipment details
    title = Column(String(255), nullable=False)
    parcel_type = Column(String(50), nullable=True)
    weight = Column(Float, nullable=True)
    cost = Column(Float, nullable=True)
    sender_name = Column(String(255), nullable=True)
    receiver_name = Column(String(255), nullable=True)
    delivery_address = Column(String(500), nullable=True)

    # Settlement
    payment_status = Column(
        Enum(PaymentStatus, name="parcel_payment_status", values_callable=enum_values),
        default=PaymentStatus.UNPAID,
        nullable=False,
        index=True,
    )
    transaction_id = Column(String(255), nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<Parcel(id={self.id}, created_by='{self.created_by}', payment_status='{self.payment_status.value}')>"
