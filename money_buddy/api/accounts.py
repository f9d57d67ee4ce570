"""
Account API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from money_buddy.errors import NotFoundError
from money_buddy.models.base import get_db
from money_buddy.services.account_service import AccountService
from money_buddy.services.savings_service import SavingsService
from money_buddy.schemas.account import AccountCreate, AccountResponse
from money_buddy.schemas.saving import LockedSavingResponse

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """Register a linked account with its opening balance."""
    service = AccountService(db)
    try:
        account = service.create_account(request)
        db.commit()
        return account
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Get account details."""
    service = AccountService(db)
    try:
        return service.get_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{account_id}", response_model=AccountResponse)
def remove_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """
    Remove an account.

    Refused while the account still has locked savings that
    have not been withdrawn.
    """
    service = AccountService(db)
    try:
        account = service.remove_account(account_id)
        db.commit()
        return account
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{account_id}/savings", response_model=list[LockedSavingResponse])
def list_account_savings(
    account_id: int,
    db: Session = Depends(get_db),
):
    """All locked savings of an account, newest first."""
    try:
        AccountService(db).get_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SavingsService(db).list_savings(account_id)
