"""
Account service: the account store.

This is the only code that writes Account.balance. Debit and
credit are single conditional UPDATE statements: the balance
check and the write happen in one statement, so two callers
racing on the same account cannot both pass the check and
drive the balance negative.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from money_buddy.errors import (
    AccountNotFound,
    ActiveLockedSavingsExist,
    InsufficientFunds,
    InvalidState,
)
from money_buddy.models.account import Account
from money_buddy.models.base import utcnow
from money_buddy.models.enums import TransactionKind, TransactionStatus
from money_buddy.models.transaction import Transaction
from money_buddy.schemas.account import AccountCreate
from money_buddy.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def create_account(self, request: AccountCreate) -> Account:
        """Register a linked account with its opening balance."""
        account = Account(
            owner=request.owner,
            name=request.name,
            provider=request.provider,
            account_type=request.account_type,
            balance=request.balance,
            currency=request.currency,
        )
        self.db.add(account)
        self.db.flush()

        self.audit.record(
            "ACCOUNT_CREATED", "account", account.id,
            owner=account.owner, balance=account.balance,
        )
        logger.info("Account %s created for %s", account.id, account.owner)
        return account

    def get_account(self, account_id: int) -> Account:
        """
        Get an active account by ID.

        populate_existing refreshes a copy already in the session,
        which may be stale after a debit or credit.
        """
        account = self.db.get(Account, account_id, populate_existing=True)
        if not account or not account.is_active:
            raise AccountNotFound(account_id)
        return account

    def list_accounts(self, owner: str) -> list[Account]:
        """Get all active accounts of an owner."""
        accounts = self.db.execute(
            select(Account)
            .where(Account.owner == owner, Account.is_active.is_(True))
            .order_by(Account.id)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return list(accounts)

    def total_balance(self, owner: str) -> Decimal:
        return sum(
            (a.balance for a in self.list_accounts(owner)), Decimal("0")
        )

    def debit(self, account_id: int, amount: Decimal) -> Account:
        """
        Take amount out of an account.

        Raises InsufficientFunds if balance < amount; never
        debits partially.
        """
        if amount <= 0:
            raise ValueError("Debit amount must be positive")

        result = self.db.execute(
            update(Account)
            .where(
                Account.id == account_id,
                Account.is_active.is_(True),
                Account.balance >= amount,
            )
            .values(balance=Account.balance - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Either the account is gone or the balance is short
            account = self.get_account(account_id)
            logger.warning(
                "Debit of %s rejected on account %s (balance %s)",
                amount, account_id, account.balance,
            )
            raise InsufficientFunds(account_id, account.balance, amount)

        return self.get_account(account_id)

    def credit(self, account_id: int, amount: Decimal) -> Account:
        """Add amount to an active account."""
        if amount <= 0:
            raise ValueError("Credit amount must be positive")

        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id, Account.is_active.is_(True))
            .values(balance=Account.balance + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AccountNotFound(account_id)

        return self.get_account(account_id)

    def remove_account(self, account_id: int) -> Account:
        """
        Remove (deactivate) an account.

        Refused while any locked saving on the account is not
        withdrawn, or while the account is the payer of an
        escrowed payment that may still need a refund.
        """
        from money_buddy.services.savings_service import SavingsService

        account = self.get_account(account_id)

        active = SavingsService(self.db).count_active_savings(account_id)
        if active:
            logger.warning(
                "Removal of account %s refused: %s active locked saving(s)",
                account_id, active,
            )
            raise ActiveLockedSavingsExist(account_id, active)

        escrowed = self.db.execute(
            select(Transaction.id).where(
                Transaction.account_id == account_id,
                Transaction.kind == TransactionKind.SEND,
                Transaction.status == TransactionStatus.PENDING,
            ).limit(1)
        ).scalar_one_or_none()
        if escrowed is not None:
            raise InvalidState(
                f"Account {account_id} has pending conditional payments"
            )

        account.is_active = False
        account.removed_at = utcnow()
        self.db.flush()

        self.audit.record("ACCOUNT_REMOVED", "account", account.id)
        logger.info("Account %s removed", account_id)
        return account
