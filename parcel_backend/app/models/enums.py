"""
User roles enumeration.

Defines the role types for the parcel marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Default role assigned on first sign-in
        ADMIN: Approves riders and manages roles
        RIDER: Courier account, granted when a rider application is approved
    """
    USER = "user"
    ADMIN = "admin"
    RIDER = "rider"


def enum_values(enum_cls):
    """Persist enum values (lowercase wire form) rather than member names."""
    return [member.value for member in enum_cls]
