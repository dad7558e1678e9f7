"""
Rider database model.

A rider is a courier application that an admin approves or rejects.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from parcel_backend.app.db.session import Base, utc_now
from parcel_backend.app.models.enums import enum_values
from parcel_backend.app.models.rider_enums import RiderStatus


class Rider(Base):
    """Rider model. Status changes only through the rider lifecycle service."""
    __tablename__ = "riders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    region = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    vehicle = Column(String(100), nullable=True)

    status = Column(
        Enum(RiderStatus, name="rider_status", values_callable=enum_values),
        default=RiderStatus.PENDING,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status.value}')>"
