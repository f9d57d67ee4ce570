"""Pending actions for a user: requests to answer and matured savings."""

from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from money_buddy.models.base import utcnow
from money_buddy.schemas.notification import PendingActionsResponse
from money_buddy.schemas.saving import LockedSavingResponse
from money_buddy.schemas.transaction import TransactionResponse
from money_buddy.services.savings_service import SavingsService
from money_buddy.services.transaction_service import TransactionService


class NotificationService:

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.ledger = TransactionService(db, clock=clock)
        self.savings = SavingsService(db, clock=clock)
        self.clock = clock

    def pending_actions(self, identity: str) -> PendingActionsResponse:
        requests = self.ledger.pending_requests_for(identity)
        matured = self.savings.matured_savings(identity, self.clock())
        return PendingActionsResponse(
            identity=identity,
            requests_to_approve=[
                TransactionResponse.model_validate(t) for t in requests
            ],
            matured_savings=[
                LockedSavingResponse.model_validate(s) for s in matured
            ],
            count=len(requests) + len(matured),
        )
