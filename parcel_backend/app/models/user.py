"""
User database model.

Users are created on first sign-in (upsert by email) and never deleted here.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from parcel_backend.app.db.session import Base, utc_now
from parcel_backend.app.models.enums import UserRole, enum_values


class User(Base):
    """
    User model.

    `email` is the identity key shared with the identity provider and is
    compared case-sensitively, exactly as stored.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    photo_url = Column(String(1024), nullable=True)

    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    last_log_in = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
