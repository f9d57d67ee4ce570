"""
Transaction service: the transaction ledger.

Sending money:
1. Validates the accounts (exist, active, same currency)
2. Computes the platform fee
3. Debits amount + fee from the sender through AccountService
4. Appends the SEND record, its FEE companion, and for
   unconditional sends the RECEIVE leg

Conditional sends stay PENDING: the money has already left the
sender and sits in escrow until EscrowService releases or
refunds it.

Status changes go through transition(), a compare-and-set on
the current status. Only the caller whose update wins performs
the balance mutation that goes with it. The caller controls
the commit.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from sqlalchemy import select, update, or_
from sqlalchemy.orm import Session

from money_buddy.config import get_settings
from money_buddy.errors import InvalidState, TransactionNotFound
from money_buddy.models.base import utcnow
from money_buddy.models.enums import TransactionKind, TransactionStatus
from money_buddy.models.transaction import Transaction
from money_buddy.schemas.transaction import (
    GeoFence,
    MoneyRequestCreate,
    SendMoneyRequest,
    TimeRestriction,
)
from money_buddy.services.account_service import AccountService
from money_buddy.services.audit_service import AuditService

logger = logging.getLogger(__name__)

# Counterparty name on fee records
PLATFORM_FEE_IDENTITY = "Platform Fee"

CENTS = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """Round a derived money amount (fee, penalty) to whole cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class TransactionService:

    def __init__(
        self,
        db: Session,
        fee_rate: Decimal | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.fee_rate = (
            fee_rate if fee_rate is not None
            else get_settings().TRANSACTION_FEE_RATE
        )
        self.clock = clock
        self.account_service = AccountService(db)
        self.audit = AuditService(db)

    def compute_fee(self, amount: Decimal) -> Decimal:
        return to_cents(amount * self.fee_rate)

    def record(self, **fields) -> Transaction:
        """Append a transaction record."""
        txn = Transaction(**fields)
        self.db.add(txn)
        self.db.flush()
        return txn

    def transition(
        self, txn: Transaction, new_status: TransactionStatus, **changes
    ) -> bool:
        """
        Move txn from its current status to new_status.

        Returns False without changing anything if another caller
        moved it first; txn is refreshed either way.
        """
        if not txn.can_transition_to(new_status):
            raise InvalidState(
                f"Cannot transition transaction {txn.id} from "
                f"{txn.status.value} to {new_status.value}"
            )

        result = self.db.execute(
            update(Transaction)
            .where(Transaction.id == txn.id, Transaction.status == txn.status)
            .values(status=new_status, **changes)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(txn)
        return result.rowcount == 1

    def send_money(self, request: SendMoneyRequest) -> Transaction:
        """
        Pay amount to request.to, charging the platform fee.

        Without conditions the payment completes at once. With a
        geofence and/or time restriction it is held PENDING until
        claimed. The fee is never returned.
        """
        conditional = (
            request.geo_fence is not None
            or request.time_restriction is not None
        )
        now = self.clock()

        if request.time_restriction and request.time_restriction.expires_at <= now:
            raise InvalidState("Time restriction has already expired")

        source = self.account_service.get_account(request.from_account_id)

        recipient = None
        if request.to_account_id is not None:
            if conditional:
                raise InvalidState(
                    "Conditional payments are credited to the account "
                    "named when they are claimed"
                )
            if request.to_account_id == source.id:
                raise InvalidState("Cannot send to the same account")
            recipient = self.account_service.get_account(request.to_account_id)
            if recipient.owner != request.to:
                raise InvalidState(
                    f"Account {recipient.id} does not belong to {request.to}"
                )
            if recipient.currency != source.currency:
                raise InvalidState(
                    f"Account {recipient.id} currency is {recipient.currency}, "
                    f"sender currency is {source.currency}"
                )

        fee = self.compute_fee(request.amount)
        self.account_service.debit(source.id, request.amount + fee)

        geo = request.geo_fence
        txn = self.record(
            kind=TransactionKind.SEND,
            status=(
                TransactionStatus.PENDING if conditional
                else TransactionStatus.COMPLETED
            ),
            amount=request.amount,
            fee=fee,
            from_details=source.owner,
            to_details=request.to,
            description=request.description,
            account_id=source.id,
            geofence_latitude=geo.latitude if geo else None,
            geofence_longitude=geo.longitude if geo else None,
            geofence_radius_km=geo.radius_km if geo else None,
            geofence_label=geo.label if geo else None,
            expires_at=(
                request.time_restriction.expires_at
                if request.time_restriction else None
            ),
            created_at=now,
            completed_at=None if conditional else now,
        )

        if fee > 0:
            self.record(
                kind=TransactionKind.FEE,
                status=TransactionStatus.COMPLETED,
                amount=fee,
                from_details=source.owner,
                to_details=PLATFORM_FEE_IDENTITY,
                description=f"Fee for payment {txn.id}",
                account_id=source.id,
                reference_transaction_id=txn.id,
                created_at=now,
                completed_at=now,
            )

        if not conditional:
            if recipient is not None:
                self.account_service.credit(recipient.id, request.amount)
            # External recipients get a ledger record but no balance change
            self.record(
                kind=TransactionKind.RECEIVE,
                status=TransactionStatus.COMPLETED,
                amount=request.amount,
                from_details=source.owner,
                to_details=request.to,
                description=request.description,
                account_id=recipient.id if recipient else None,
                reference_transaction_id=txn.id,
                created_at=now,
                completed_at=now,
            )

        self.audit.record(
            "PAYMENT_SENT", "transaction", txn.id,
            amount=txn.amount, fee=fee, status=txn.status.value,
        )
        logger.info(
            "Payment %s of %s (+%s fee) from account %s to %s: %s",
            txn.id, txn.amount, fee, source.id, request.to, txn.status.value,
        )
        return txn

    def request_money(self, request: MoneyRequestCreate) -> Transaction:
        """Ask request.payer for money. No balance changes until approved."""
        if request.requester == request.payer:
            raise InvalidState("Cannot request money from yourself")

        txn = self.record(
            kind=TransactionKind.REQUEST,
            status=TransactionStatus.PENDING,
            amount=request.amount,
            from_details=request.requester,
            to_details=request.payer,
            description=request.description,
            created_at=self.clock(),
        )
        self.audit.record(
            "MONEY_REQUESTED", "transaction", txn.id, amount=txn.amount,
        )
        logger.info(
            "Request %s: %s asks %s for %s",
            txn.id, request.requester, request.payer, request.amount,
        )
        return txn

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get a transaction by ID, reloaded from the database."""
        txn = self.db.get(Transaction, transaction_id, populate_existing=True)
        if not txn:
            raise TransactionNotFound(transaction_id)
        return txn

    def list_transactions(self, identity: str) -> list[Transaction]:
        """History of everything sent by or to identity, newest first."""
        txns = self.db.execute(
            select(Transaction)
            .where(or_(
                Transaction.from_details == identity,
                Transaction.to_details == identity,
            ))
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        ).scalars().all()
        return list(txns)

    def pending_requests_for(self, identity: str) -> list[Transaction]:
        """Requests waiting for identity to approve or decline."""
        txns = self.db.execute(
            select(Transaction)
            .where(
                Transaction.kind == TransactionKind.REQUEST,
                Transaction.status == TransactionStatus.PENDING,
                Transaction.to_details == identity,
            )
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        ).scalars().all()
        return list(txns)

    @staticmethod
    def conditions_of(
        txn: Transaction,
    ) -> tuple[GeoFence | None, TimeRestriction | None]:
        geo = None
        if txn.has_geofence:
            geo = GeoFence(
                latitude=txn.geofence_latitude,
                longitude=txn.geofence_longitude,
                radius_km=txn.geofence_radius_km,
                label=txn.geofence_label,
            )
        window = None
        if txn.expires_at is not None:
            window = TimeRestriction(expires_at=txn.expires_at)
        return geo, window
