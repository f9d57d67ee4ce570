"""
Per-user views: accounts with total balance, history,
and pending actions.

The identity is resolved upstream (authentication is not
part of this service).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from money_buddy.models.base import get_db
from money_buddy.services.account_service import AccountService
from money_buddy.services.notification_service import NotificationService
from money_buddy.services.transaction_service import TransactionService
from money_buddy.schemas.account import AccountResponse, AccountSummaryResponse
from money_buddy.schemas.notification import PendingActionsResponse
from money_buddy.schemas.transaction import TransactionResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/{identity}/accounts", response_model=AccountSummaryResponse)
def list_accounts(
    identity: str,
    db: Session = Depends(get_db),
):
    """Active accounts and their combined balance."""
    service = AccountService(db)
    accounts = service.list_accounts(identity)
    return AccountSummaryResponse(
        owner=identity,
        accounts=[AccountResponse.model_validate(a) for a in accounts],
        total_balance=service.total_balance(identity),
    )


@router.get("/{identity}/transactions", response_model=list[TransactionResponse])
def list_transactions(
    identity: str,
    db: Session = Depends(get_db),
):
    """Transaction history, newest first."""
    return TransactionService(db).list_transactions(identity)


@router.get("/{identity}/pending-actions", response_model=PendingActionsResponse)
def pending_actions(
    identity: str,
    db: Session = Depends(get_db),
):
    """Requests waiting for an answer and savings that have matured."""
    return NotificationService(db).pending_actions(identity)
