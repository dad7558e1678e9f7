"""
Parcel payment status enumeration.
"""

import enum


class PaymentStatus(str, enum.Enum):
    """
    Parcel payment status.

    Status flow:
        UNPAID -> PAID (exactly once, via the payment reconciler)
    """
    UNPAID = "unpaid"
    PAID = "paid"
