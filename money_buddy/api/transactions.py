"""
Transaction API endpoints: payments, requests, claims.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from money_buddy.errors import NotFoundError
from money_buddy.models.base import get_db
from money_buddy.services.escrow_service import EscrowService
from money_buddy.services.transaction_service import TransactionService
from money_buddy.schemas.transaction import (
    ApproveRequest,
    ClaimRequest,
    MoneyRequestCreate,
    SendMoneyRequest,
    TransactionResponse,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("/send", response_model=TransactionResponse, status_code=201)
def send_money(
    request: SendMoneyRequest,
    db: Session = Depends(get_db),
):
    """
    Send money, optionally held until a geofence and/or
    time restriction is satisfied.
    """
    service = TransactionService(db)
    try:
        txn = service.send_money(request)
        db.commit()
        return txn
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/request", response_model=TransactionResponse, status_code=201)
def request_money(
    request: MoneyRequestCreate,
    db: Session = Depends(get_db),
):
    """Ask someone for money."""
    service = TransactionService(db)
    try:
        txn = service.request_money(request)
        db.commit()
        return txn
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/expire", response_model=list[TransactionResponse])
def expire_overdue(db: Session = Depends(get_db)):
    """Fail and refund every escrowed payment past its time restriction."""
    service = EscrowService(db)
    try:
        expired = service.expire_overdue()
        db.commit()
        return expired
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{transaction_id}/claim", response_model=TransactionResponse)
def claim_transaction(
    transaction_id: int,
    request: ClaimRequest,
    db: Session = Depends(get_db),
):
    """
    Claim an escrowed payment.

    The response status tells the outcome: COMPLETED (released),
    PENDING (outside the geofence, retry later) or FAILED
    (expired, refunded to the sender).
    """
    service = EscrowService(db)
    try:
        txn = service.claim(transaction_id, request)
        db.commit()
        return txn
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{transaction_id}/approve", response_model=TransactionResponse)
def approve_request(
    transaction_id: int,
    request: ApproveRequest,
    db: Session = Depends(get_db),
):
    """Pay a pending request."""
    service = EscrowService(db)
    try:
        txn = service.approve(transaction_id, request)
        db.commit()
        return txn
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{transaction_id}/decline", response_model=TransactionResponse)
def decline_request(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    """Decline a pending request."""
    service = EscrowService(db)
    try:
        txn = service.decline(transaction_id)
        db.commit()
        return txn
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    """Get transaction details."""
    service = TransactionService(db)
    try:
        return service.get_transaction(transaction_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
