"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An invalid status or kind
is caught at the database level, not just in Python validation.
"""

import enum


class AccountType(str, enum.Enum):
    """Kinds of linked accounts."""
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT = "CREDIT"
    DIGITAL = "DIGITAL"


class TransactionKind(str, enum.Enum):
    SEND = "SEND"
    RECEIVE = "RECEIVE"
    REQUEST = "REQUEST"
    LOCK = "LOCK"
    PENALTY = "PENALTY"
    FEE = "FEE"


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    RETURNED = "RETURNED"
    LOCKED = "LOCKED"
    DECLINED = "DECLINED"


class SavingStatus(str, enum.Enum):
    PENDING = "PENDING"
    LOCKED = "LOCKED"
    WITHDRAWN = "WITHDRAWN"
    FAILED = "FAILED"
