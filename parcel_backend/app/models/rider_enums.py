"""
Rider status enumeration.
"""

import enum


class RiderStatus(str, enum.Enum):
    """
    Rider status enumeration.

    Status flow:
        PENDING -> ACTIVE | REJECTED | CANCELLED
        ACTIVE -> INACTIVE | CANCELLED
        REJECTED, INACTIVE and CANCELLED are terminal.
    """
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
