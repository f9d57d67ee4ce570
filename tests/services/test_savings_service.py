"""
Tests for the SavingsService: locking, maturity dates, and
early-withdrawal penalties.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from money_buddy.errors import (
    AlreadyWithdrawn,
    InsufficientFunds,
    SavingNotFound,
)
from money_buddy.models.enums import (
    SavingStatus,
    TransactionKind,
    TransactionStatus,
)
from money_buddy.models.transaction import Transaction
from money_buddy.schemas.saving import LockSavingsRequest
from money_buddy.services.account_service import AccountService
from money_buddy.services.audit_service import AuditService
from money_buddy.services.savings_service import (
    PENALTY_IDENTITY,
    VAULT_IDENTITY,
    SavingsService,
    maturity_date,
)


@pytest.fixture
def savings(db_session, clock):
    return SavingsService(db_session, penalty_rate=Decimal("0.05"), clock=clock)


@pytest.fixture
def account(make_account):
    return make_account(balance="2000.00", name="Main")


def lock(savings, account, amount="1000", months=6):
    return savings.lock(LockSavingsRequest(
        account_id=account.id, amount=Decimal(amount), period_months=months,
    ))


def saving_records(db_session, saving, kind):
    return db_session.execute(
        select(Transaction).where(
            Transaction.locked_saving_id == saving.id,
            Transaction.kind == kind,
        )
    ).scalars().all()


class TestMaturityDate:

    def test_adds_calendar_months(self):
        assert maturity_date(datetime(2026, 1, 15, 12, 0), 6) == datetime(2026, 7, 15, 12, 0)

    def test_clamps_to_end_of_month(self):
        assert maturity_date(datetime(2026, 8, 31), 6) == datetime(2027, 2, 28)

    def test_clamps_to_leap_day(self):
        assert maturity_date(datetime(2027, 8, 31), 6) == datetime(2028, 2, 29)

    def test_crosses_year(self):
        assert maturity_date(datetime(2026, 11, 1), 14) == datetime(2028, 1, 1)


class TestLock:

    def test_lock_moves_money_out(self, db_session, clock, savings, account):
        saving = lock(savings, account)
        db_session.commit()

        assert saving.status == SavingStatus.LOCKED
        assert saving.amount == Decimal("1000")
        assert saving.start_date == clock()
        assert saving.end_date == datetime(2026, 7, 15, 12, 0)
        assert AccountService(db_session).get_account(account.id).balance == Decimal("1000.00")

    def test_matures_exactly_at_end_date(self, savings, account):
        saving = lock(savings, account)

        assert not saving.is_matured(saving.end_date - timedelta(seconds=1))
        assert saving.is_matured(saving.end_date)

    def test_lock_records_lock_transaction(self, db_session, savings, account):
        saving = lock(savings, account)

        locks = saving_records(db_session, saving, TransactionKind.LOCK)
        assert len(locks) == 1
        assert locks[0].status == TransactionStatus.LOCKED
        assert locks[0].to_details == VAULT_IDENTITY
        assert locks[0].fee == Decimal("0")

    def test_lock_more_than_balance_rejected(self, db_session, savings, account):
        with pytest.raises(InsufficientFunds):
            lock(savings, account, amount="2000.01")
        db_session.rollback()

        assert savings.list_savings(account.id) == []
        assert AccountService(db_session).get_account(account.id).balance == Decimal("2000.00")

    def test_lock_entire_balance(self, db_session, savings, account):
        lock(savings, account, amount="2000")
        assert AccountService(db_session).get_account(account.id).balance == Decimal("0")


class TestWithdraw:

    def test_early_withdrawal_charges_penalty(self, db_session, clock, savings, account):
        saving = lock(savings, account)
        db_session.commit()
        clock.advance(days=10)

        withdrawn = savings.withdraw(saving.id)
        db_session.commit()

        assert withdrawn.status == SavingStatus.WITHDRAWN
        assert withdrawn.penalty == Decimal("50.00")
        assert withdrawn.amount_returned == Decimal("950.00")
        assert withdrawn.withdrawn_at == clock()
        assert AccountService(db_session).get_account(account.id).balance == Decimal("1950.00")

        penalties = saving_records(db_session, saving, TransactionKind.PENALTY)
        assert len(penalties) == 1
        assert penalties[0].amount == Decimal("50.00")
        assert penalties[0].to_details == PENALTY_IDENTITY
        receipts = saving_records(db_session, saving, TransactionKind.RECEIVE)
        assert [r.amount for r in receipts] == [Decimal("950.00")]

    def test_matured_withdrawal_has_no_penalty(self, db_session, clock, savings, account):
        saving = lock(savings, account)
        db_session.commit()
        clock.now = saving.end_date

        withdrawn = savings.withdraw(saving.id)
        db_session.commit()

        assert withdrawn.penalty == Decimal("0")
        assert withdrawn.amount_returned == Decimal("1000")
        assert AccountService(db_session).get_account(account.id).balance == Decimal("2000.00")
        assert saving_records(db_session, saving, TransactionKind.PENALTY) == []

    def test_one_second_before_maturity_is_early(self, db_session, clock, savings, account):
        saving = lock(savings, account)
        clock.now = saving.end_date - timedelta(seconds=1)

        assert savings.compute_penalty(saving, clock()) == Decimal("50.00")

    def test_second_withdrawal_rejected(self, db_session, clock, savings, account):
        saving = lock(savings, account)
        savings.withdraw(saving.id)
        db_session.commit()

        with pytest.raises(AlreadyWithdrawn):
            savings.withdraw(saving.id)
        assert AccountService(db_session).get_account(account.id).balance == Decimal("1950.00")

    def test_withdraw_unknown_saving(self, savings):
        with pytest.raises(SavingNotFound):
            savings.withdraw(31337)

    def test_withdrawal_is_audited(self, db_session, savings, account):
        saving = lock(savings, account)
        savings.withdraw(saving.id)

        events = AuditService(db_session).get_events("locked_saving", saving.id)
        assert [e.event_type for e in events] == ["SAVINGS_LOCKED", "SAVINGS_WITHDRAWN"]


class TestQueries:

    def test_list_savings_newest_first(self, db_session, clock, savings, account):
        first = lock(savings, account, amount="100", months=3)
        clock.advance(days=1)
        second = lock(savings, account, amount="200", months=12)
        db_session.commit()

        assert [s.id for s in savings.list_savings(account.id)] == [second.id, first.id]

    def test_count_active_ignores_withdrawn(self, db_session, savings, account):
        first = lock(savings, account, amount="100")
        lock(savings, account, amount="200")
        savings.withdraw(first.id)
        db_session.commit()

        assert savings.count_active_savings(account.id) == 1

    def test_matured_savings(self, db_session, clock, savings, account):
        short = lock(savings, account, amount="100", months=1)
        lock(savings, account, amount="200", months=12)
        db_session.commit()

        assert savings.matured_savings("alice@example.com") == []

        clock.advance(days=40)
        matured = savings.matured_savings("alice@example.com")
        assert [s.id for s in matured] == [short.id]
        assert savings.matured_savings("bob@example.com") == []

    def test_withdrawn_saving_is_not_matured(self, db_session, clock, savings, account):
        saving = lock(savings, account, amount="100", months=1)
        clock.advance(days=40)
        savings.withdraw(saving.id)
        db_session.commit()

        assert savings.matured_savings("alice@example.com") == []
