"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from money_buddy.models.base import Base
from money_buddy.models.enums import (
    AccountType,
    TransactionKind,
    TransactionStatus,
    SavingStatus,
)
from money_buddy.models.audit_log import AuditLog
from money_buddy.models.account import Account
from money_buddy.models.locked_saving import LockedSaving
from money_buddy.models.transaction import Transaction

__all__ = [
    "Base",
    "AccountType",
    "TransactionKind",
    "TransactionStatus",
    "SavingStatus",
    "AuditLog",
    "Account",
    "LockedSaving",
    "Transaction",
]
