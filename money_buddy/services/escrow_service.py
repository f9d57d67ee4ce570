"""
Escrow service: the release state machine.

    PENDING -> COMPLETED   claim with conditions satisfied, or
                           request approved
    PENDING -> FAILED      claim after the time restriction expired;
                           the sender gets the principal back
    PENDING -> DECLINED    request declined

Every operation is idempotent per transaction: replaying it on
a transaction already in the resulting terminal status returns
the transaction unchanged and moves no money.
"""

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from money_buddy.errors import InsufficientFunds, InvalidState
from money_buddy.models.base import utcnow
from money_buddy.models.enums import TransactionKind, TransactionStatus
from money_buddy.models.transaction import Transaction
from money_buddy.schemas.transaction import ApproveRequest, ClaimRequest
from money_buddy.services.conditions import ConditionResult, evaluate
from money_buddy.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


class EscrowService:

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.clock = clock
        self.ledger = TransactionService(db, clock=clock)
        self.accounts = self.ledger.account_service
        self.audit = self.ledger.audit

    # --- Conditional payments ---

    def claim(self, transaction_id: int, request: ClaimRequest) -> Transaction:
        """
        Try to release an escrowed payment to the claimant's account.

        Conditions are evaluated once, at a single instant, before
        anything is written. A claim that is still outside the fence
        leaves the payment PENDING and can be retried.
        """
        txn = self.ledger.get_transaction(transaction_id)
        if txn.kind != TransactionKind.SEND:
            raise InvalidState(
                f"Transaction {txn.id} is a {txn.kind.value}, not a payment"
            )
        if txn.is_terminal:
            return txn

        recipient = self.accounts.get_account(request.account_id)
        if recipient.owner != txn.to_details:
            raise InvalidState(
                f"Payment {txn.id} is not addressed to the owner "
                f"of account {recipient.id}"
            )

        now = self.clock()
        geo, window = self.ledger.conditions_of(txn)
        result = evaluate(geo, window, now, request.location)

        if result == ConditionResult.EXPIRED:
            self._expire(txn, now)
            return txn

        if result == ConditionResult.PENDING:
            logger.info("Claim on payment %s: claimant outside geofence", txn.id)
            return txn

        if not self.ledger.transition(
            txn, TransactionStatus.COMPLETED, completed_at=now
        ):
            return txn

        self.accounts.credit(recipient.id, txn.amount)
        self.ledger.record(
            kind=TransactionKind.RECEIVE,
            status=TransactionStatus.COMPLETED,
            amount=txn.amount,
            from_details=txn.from_details,
            to_details=txn.to_details,
            description=txn.description,
            account_id=recipient.id,
            reference_transaction_id=txn.id,
            created_at=now,
            completed_at=now,
        )
        self.audit.record(
            "PAYMENT_CLAIMED", "transaction", txn.id,
            account_id=recipient.id, amount=txn.amount,
        )
        logger.info(
            "Payment %s released: %s credited to account %s",
            txn.id, txn.amount, recipient.id,
        )
        return txn

    def expire_overdue(self) -> list[Transaction]:
        """Fail and refund every escrowed payment whose claim window has passed."""
        now = self.clock()
        overdue = self.db.execute(
            select(Transaction)
            .where(
                Transaction.kind == TransactionKind.SEND,
                Transaction.status == TransactionStatus.PENDING,
                Transaction.expires_at.is_not(None),
                Transaction.expires_at < now,
            )
            .order_by(Transaction.id)
            .execution_options(populate_existing=True)
        ).scalars().all()

        expired = [txn for txn in overdue if self._expire(txn, now)]
        if expired:
            logger.info("Expired %s escrowed payment(s)", len(expired))
        return expired

    def _expire(self, txn: Transaction, now: datetime) -> bool:
        """
        PENDING -> FAILED, then refund the principal to the sender.

        The fee was charged when the payment was sent and stays
        with the platform.
        """
        if not self.ledger.transition(
            txn, TransactionStatus.FAILED, failure_reason="expired"
        ):
            return False

        self.accounts.credit(txn.account_id, txn.amount)
        refund = self.ledger.record(
            kind=TransactionKind.RECEIVE,
            status=TransactionStatus.RETURNED,
            amount=txn.amount,
            from_details=txn.to_details,
            to_details=txn.from_details,
            description=f"Refund of expired payment {txn.id}",
            account_id=txn.account_id,
            reference_transaction_id=txn.id,
            created_at=now,
            completed_at=now,
        )
        self.audit.record(
            "PAYMENT_EXPIRED", "transaction", txn.id,
            refund_transaction_id=refund.id, amount=txn.amount,
        )
        logger.warning(
            "Payment %s expired; %s returned to account %s",
            txn.id, txn.amount, txn.account_id,
        )
        return True

    # --- Requests ---

    def approve(self, transaction_id: int, request: ApproveRequest) -> Transaction:
        """
        Pay a pending request from the approver's account.

        The requester is credited only when the caller names the
        requester's account; otherwise the requester reconciles
        through their own records.
        """
        txn = self._get_request(transaction_id)
        if txn.status == TransactionStatus.COMPLETED:
            return txn
        if txn.status != TransactionStatus.PENDING:
            raise InvalidState(
                f"Request {txn.id} is {txn.status.value} and cannot be approved"
            )

        payer = self.accounts.get_account(request.account_id)
        if payer.owner != txn.to_details:
            raise InvalidState(
                f"Request {txn.id} is not addressed to the owner "
                f"of account {payer.id}"
            )

        requester_account = None
        if request.requester_account_id is not None:
            requester_account = self.accounts.get_account(
                request.requester_account_id
            )
            if requester_account.owner != txn.from_details:
                raise InvalidState(
                    f"Account {requester_account.id} does not belong "
                    f"to requester {txn.from_details}"
                )

        # Fail early without writing anything; debit() re-checks atomically
        if payer.balance < txn.amount:
            logger.warning(
                "Approval of request %s rejected: insufficient funds", txn.id
            )
            raise InsufficientFunds(payer.id, payer.balance, txn.amount)

        now = self.clock()
        if not self.ledger.transition(
            txn, TransactionStatus.COMPLETED, completed_at=now
        ):
            if txn.status == TransactionStatus.COMPLETED:
                return txn
            raise InvalidState(
                f"Request {txn.id} is {txn.status.value} and cannot be approved"
            )

        self.accounts.debit(payer.id, txn.amount)
        self.ledger.record(
            kind=TransactionKind.SEND,
            status=TransactionStatus.COMPLETED,
            amount=txn.amount,
            from_details=payer.owner,
            to_details=txn.from_details,
            description=f"Payment for request: {txn.description}",
            account_id=payer.id,
            reference_transaction_id=txn.id,
            created_at=now,
            completed_at=now,
        )

        if requester_account is not None:
            self.accounts.credit(requester_account.id, txn.amount)
            self.ledger.record(
                kind=TransactionKind.RECEIVE,
                status=TransactionStatus.COMPLETED,
                amount=txn.amount,
                from_details=payer.owner,
                to_details=txn.from_details,
                description=f"Payment for request: {txn.description}",
                account_id=requester_account.id,
                reference_transaction_id=txn.id,
                created_at=now,
                completed_at=now,
            )

        self.audit.record(
            "REQUEST_APPROVED", "transaction", txn.id,
            payer_account_id=payer.id, amount=txn.amount,
            requester_credited=requester_account is not None,
        )
        logger.info(
            "Request %s approved: %s paid from account %s",
            txn.id, txn.amount, payer.id,
        )
        return txn

    def decline(self, transaction_id: int) -> Transaction:
        """Decline a pending request. No money moves."""
        txn = self._get_request(transaction_id)
        if txn.status == TransactionStatus.DECLINED:
            return txn
        if txn.status != TransactionStatus.PENDING:
            raise InvalidState(
                f"Request {txn.id} is {txn.status.value} and cannot be declined"
            )

        if not self.ledger.transition(txn, TransactionStatus.DECLINED):
            if txn.status == TransactionStatus.DECLINED:
                return txn
            raise InvalidState(
                f"Request {txn.id} is {txn.status.value} and cannot be declined"
            )

        self.audit.record("REQUEST_DECLINED", "transaction", txn.id)
        logger.info("Request %s declined", txn.id)
        return txn

    def _get_request(self, transaction_id: int) -> Transaction:
        txn = self.ledger.get_transaction(transaction_id)
        if txn.kind != TransactionKind.REQUEST:
            raise InvalidState(
                f"Transaction {txn.id} is a {txn.kind.value}, not a request"
            )
        return txn
