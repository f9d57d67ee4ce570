"""
Locked savings API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from money_buddy.errors import NotFoundError
from money_buddy.models.base import get_db
from money_buddy.services.savings_service import SavingsService
from money_buddy.schemas.saving import LockSavingsRequest, LockedSavingResponse

router = APIRouter(prefix="/savings", tags=["Savings"])


@router.post("", response_model=LockedSavingResponse, status_code=201)
def lock_savings(
    request: LockSavingsRequest,
    db: Session = Depends(get_db),
):
    """Lock money from an account for a number of months."""
    service = SavingsService(db)
    try:
        saving = service.lock(request)
        db.commit()
        return saving
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{saving_id}/withdraw", response_model=LockedSavingResponse)
def withdraw_savings(
    saving_id: int,
    db: Session = Depends(get_db),
):
    """
    Withdraw a locked saving.

    Before the end date the early-withdrawal penalty is kept;
    the response carries penalty and amount_returned.
    """
    service = SavingsService(db)
    try:
        saving = service.withdraw(saving_id)
        db.commit()
        return saving
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{saving_id}", response_model=LockedSavingResponse)
def get_saving(
    saving_id: int,
    db: Session = Depends(get_db),
):
    service = SavingsService(db)
    try:
        return service.get_saving(saving_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
