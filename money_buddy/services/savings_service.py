"""
Savings service: locked savings (term deposits).

Locking moves the principal out of the account for a number of
calendar months. Withdrawing returns it; before the end date a
penalty is kept back. A saving is withdrawn exactly once.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from money_buddy.config import get_settings
from money_buddy.errors import AlreadyWithdrawn, InvalidState, SavingNotFound
from money_buddy.models.account import Account
from money_buddy.models.base import utcnow
from money_buddy.models.enums import (
    SavingStatus,
    TransactionKind,
    TransactionStatus,
)
from money_buddy.models.locked_saving import LockedSaving
from money_buddy.schemas.saving import LockSavingsRequest
from money_buddy.services.transaction_service import TransactionService, to_cents

logger = logging.getLogger(__name__)

VAULT_IDENTITY = "Locked Savings Vault"
PENALTY_IDENTITY = "System Penalty"


def maturity_date(start: datetime, period_months: int) -> datetime:
    """
    Add calendar months to start.

    Days past the end of the target month are clamped, so
    31 Aug + 6 months is 28/29 Feb.
    """
    return start + relativedelta(months=period_months)


class SavingsService:

    def __init__(
        self,
        db: Session,
        penalty_rate: Decimal | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.penalty_rate = (
            penalty_rate if penalty_rate is not None
            else get_settings().EARLY_WITHDRAWAL_PENALTY_RATE
        )
        self.clock = clock
        self.ledger = TransactionService(db, clock=clock)
        self.accounts = self.ledger.account_service
        self.audit = self.ledger.audit

    def lock(self, request: LockSavingsRequest) -> LockedSaving:
        """
        Lock amount from an account for period_months.

        Raises InsufficientFunds if the account cannot cover it.
        """
        account = self.accounts.get_account(request.account_id)
        self.accounts.debit(account.id, request.amount)

        start = self.clock()
        saving = LockedSaving(
            account_id=account.id,
            amount=request.amount,
            lock_period_months=request.period_months,
            start_date=start,
            end_date=maturity_date(start, request.period_months),
            status=SavingStatus.LOCKED,
            created_at=start,
        )
        self.db.add(saving)
        self.db.flush()

        self.ledger.record(
            kind=TransactionKind.LOCK,
            status=TransactionStatus.LOCKED,
            amount=request.amount,
            from_details=account.owner,
            to_details=VAULT_IDENTITY,
            description=(
                f"Locked {request.amount} for {request.period_months} months"
            ),
            account_id=account.id,
            locked_saving_id=saving.id,
            created_at=start,
        )
        self.audit.record(
            "SAVINGS_LOCKED", "locked_saving", saving.id,
            account_id=account.id, amount=saving.amount,
            end_date=saving.end_date,
        )
        logger.info(
            "Locked %s from account %s until %s (saving %s)",
            saving.amount, account.id, saving.end_date, saving.id,
        )
        return saving

    def compute_penalty(self, saving: LockedSaving, now: datetime) -> Decimal:
        """Penalty owed if the saving were withdrawn at now."""
        if not saving.is_matured(now):
            return to_cents(saving.amount * self.penalty_rate)
        return Decimal("0")

    def withdraw(self, saving_id: int) -> LockedSaving:
        """
        Return the principal, minus the penalty when early.

        A second withdrawal raises AlreadyWithdrawn and changes
        nothing.
        """
        saving = self.get_saving(saving_id)
        if saving.status == SavingStatus.WITHDRAWN:
            raise AlreadyWithdrawn(saving_id)
        if saving.status != SavingStatus.LOCKED:
            raise InvalidState(
                f"Locked saving {saving_id} is {saving.status.value}"
            )

        account = self.accounts.get_account(saving.account_id)
        now = self.clock()
        penalty = self.compute_penalty(saving, now)
        amount_returned = saving.amount - penalty

        result = self.db.execute(
            update(LockedSaving)
            .where(
                LockedSaving.id == saving.id,
                LockedSaving.status == SavingStatus.LOCKED,
            )
            .values(
                status=SavingStatus.WITHDRAWN,
                penalty=penalty,
                amount_returned=amount_returned,
                withdrawn_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Another withdrawal got there first
            raise AlreadyWithdrawn(saving_id)
        self.db.refresh(saving)

        if amount_returned > 0:
            self.accounts.credit(account.id, amount_returned)
            self.ledger.record(
                kind=TransactionKind.RECEIVE,
                status=TransactionStatus.COMPLETED,
                amount=amount_returned,
                from_details=VAULT_IDENTITY,
                to_details=account.owner,
                description="Withdrawal from locked savings",
                account_id=account.id,
                locked_saving_id=saving.id,
                created_at=now,
                completed_at=now,
            )

        if penalty > 0:
            self.ledger.record(
                kind=TransactionKind.PENALTY,
                status=TransactionStatus.COMPLETED,
                amount=penalty,
                from_details=account.owner,
                to_details=PENALTY_IDENTITY,
                description="Early withdrawal penalty",
                account_id=account.id,
                locked_saving_id=saving.id,
                created_at=now,
                completed_at=now,
            )

        self.audit.record(
            "SAVINGS_WITHDRAWN", "locked_saving", saving.id,
            amount_returned=amount_returned, penalty=penalty,
        )
        logger.info(
            "Saving %s withdrawn: %s returned to account %s, penalty %s",
            saving.id, amount_returned, account.id, penalty,
        )
        return saving

    def get_saving(self, saving_id: int) -> LockedSaving:
        saving = self.db.get(LockedSaving, saving_id, populate_existing=True)
        if not saving:
            raise SavingNotFound(saving_id)
        return saving

    def list_savings(self, account_id: int) -> list[LockedSaving]:
        """All savings of an account, newest first."""
        savings = self.db.execute(
            select(LockedSaving)
            .where(LockedSaving.account_id == account_id)
            .order_by(LockedSaving.start_date.desc(), LockedSaving.id.desc())
        ).scalars().all()
        return list(savings)

    def count_active_savings(self, account_id: int) -> int:
        """Savings on the account that have not been withdrawn."""
        return self.db.execute(
            select(func.count(LockedSaving.id)).where(
                LockedSaving.account_id == account_id,
                LockedSaving.status != SavingStatus.WITHDRAWN,
            )
        ).scalar_one()

    def matured_savings(self, owner: str, now: datetime | None = None) -> list[LockedSaving]:
        """Locked savings of owner that can be withdrawn without penalty."""
        now = now or self.clock()
        savings = self.db.execute(
            select(LockedSaving)
            .join(Account, LockedSaving.account_id == Account.id)
            .where(
                Account.owner == owner,
                Account.is_active.is_(True),
                LockedSaving.status == SavingStatus.LOCKED,
                LockedSaving.end_date <= now,
            )
            .order_by(LockedSaving.end_date)
        ).scalars().all()
        return list(savings)
