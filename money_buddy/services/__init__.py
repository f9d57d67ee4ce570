"""Business logic services."""

from money_buddy.services.account_service import AccountService
from money_buddy.services.transaction_service import TransactionService
from money_buddy.services.escrow_service import EscrowService
from money_buddy.services.savings_service import SavingsService
from money_buddy.services.notification_service import NotificationService

__all__ = [
    "AccountService",
    "TransactionService",
    "EscrowService",
    "SavingsService",
    "NotificationService",
]
