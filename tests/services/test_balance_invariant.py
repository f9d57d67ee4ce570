"""
Property-based tests for the balance invariant.

Random sequences of sends, locks, withdrawals and claims are
replayed against a fresh database and against a plain Decimal
model of the account. The balance never goes negative, and a
rejected operation leaves the balance exactly where it was.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from money_buddy.errors import LedgerError
from money_buddy.models import Base
from money_buddy.models.enums import AccountType, SavingStatus
from money_buddy.schemas.account import AccountCreate
from money_buddy.schemas.saving import LockSavingsRequest
from money_buddy.schemas.transaction import (
    ClaimRequest,
    SendMoneyRequest,
    TimeRestriction,
)
from money_buddy.services.account_service import AccountService
from money_buddy.services.escrow_service import EscrowService
from money_buddy.services.savings_service import SavingsService
from money_buddy.services.transaction_service import TransactionService, to_cents

FEE_RATE = Decimal("0.03")
PENALTY_RATE = Decimal("0.05")
START = datetime(2026, 1, 15, 12, 0, 0)

amounts = st.decimals(
    min_value=Decimal("0.01"), max_value=Decimal("500"), places=2,
)

operations = st.lists(
    st.one_of(
        st.tuples(st.just("send"), amounts),
        st.tuples(st.just("escrow"), amounts),
        st.tuples(st.just("lock"), amounts, st.integers(min_value=1, max_value=3)),
        st.tuples(st.just("withdraw"), st.integers(min_value=0, max_value=5)),
        st.tuples(st.just("wait"), st.integers(min_value=1, max_value=60)),
        st.tuples(st.just("expire")),
    ),
    max_size=25,
)


def fresh_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)()


@settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(
    opening=st.decimals(min_value=Decimal("0"), max_value=Decimal("1000"), places=2),
    ops=operations,
)
def test_balance_never_negative(opening, ops):
    db = fresh_session()
    now = [START]

    def clock():
        return now[0]

    accounts = AccountService(db)
    ledger = TransactionService(db, fee_rate=FEE_RATE, clock=clock)
    escrow = EscrowService(db, clock=clock)
    savings = SavingsService(db, penalty_rate=PENALTY_RATE, clock=clock)

    account = accounts.create_account(AccountCreate(
        owner="alice@example.com",
        name="Checking",
        provider="Test Bank",
        account_type=AccountType.CHECKING,
        balance=opening,
    ))
    db.commit()

    expected = opening
    # [saving_id, amount, end_date, withdrawn]
    locked = []
    # [transaction_id, amount, expires_at, settled]
    escrowed = []

    try:
        for op in ops:
            before = accounts.get_account(account.id).balance
            try:
                if op[0] == "send":
                    ledger.send_money(SendMoneyRequest(
                        from_account_id=account.id, to="bob@example.com",
                        amount=op[1],
                    ))
                    delta = -(op[1] + to_cents(op[1] * FEE_RATE))
                elif op[0] == "escrow":
                    expires_at = now[0] + timedelta(days=7)
                    txn = ledger.send_money(SendMoneyRequest(
                        from_account_id=account.id, to="bob@example.com",
                        amount=op[1],
                        time_restriction=TimeRestriction(expires_at=expires_at),
                    ))
                    escrowed.append([txn.id, op[1], expires_at, False])
                    delta = -(op[1] + to_cents(op[1] * FEE_RATE))
                elif op[0] == "lock":
                    saving = savings.lock(LockSavingsRequest(
                        account_id=account.id, amount=op[1], period_months=op[2],
                    ))
                    locked.append([saving.id, op[1], saving.end_date, False])
                    delta = -op[1]
                elif op[0] == "withdraw":
                    if not locked:
                        continue
                    entry = locked[op[1] % len(locked)]
                    saving = savings.withdraw(entry[0])
                    assert not entry[3]
                    entry[3] = True
                    penalty = (
                        to_cents(entry[1] * PENALTY_RATE)
                        if now[0] < entry[2] else Decimal("0")
                    )
                    assert saving.status == SavingStatus.WITHDRAWN
                    delta = entry[1] - penalty
                elif op[0] == "wait":
                    now[0] += timedelta(days=op[1])
                    continue
                else:
                    due = [e for e in escrowed if not e[3] and e[2] < now[0]]
                    expired = escrow.expire_overdue()
                    assert {t.id for t in expired} == {e[0] for e in due}
                    delta = Decimal("0")
                    for entry in due:
                        entry[3] = True
                        delta += entry[1]
                db.commit()
                expected += delta
            except LedgerError:
                db.rollback()
                assert accounts.get_account(account.id).balance == before

            balance = accounts.get_account(account.id).balance
            assert balance >= 0
            assert balance == expected

        # Claims after the sweep never release a refunded payment
        for txn_id, _, _, settled in escrowed:
            if settled:
                result = escrow.claim(txn_id, ClaimRequest(account_id=account.id))
                assert result.failure_reason == "expired"
    finally:
        db.close()
