"""
Payment ledger enumerations.
"""

import enum


class PaymentRecordStatus(str, enum.Enum):
    """Payment ledger entry status. Only successful charges are recorded."""
    SUCCEEDED = "succeeded"
