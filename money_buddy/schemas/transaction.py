"""
Pydantic schemas for payments, requests and claims.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from money_buddy.models.enums import TransactionKind, TransactionStatus


# --- Conditions ---

class GeoFence(BaseModel):
    """Circular release region: the claimant must be inside it."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_km: float = Field(gt=0)
    label: str | None = Field(default=None, max_length=255)

    model_config = {"frozen": True}


class TimeRestriction(BaseModel):
    """Claims after expires_at fail and refund the sender."""
    expires_at: datetime

    model_config = {"frozen": True}

    @field_validator("expires_at")
    @classmethod
    def to_naive_utc(cls, v: datetime) -> datetime:
        # Stored timestamps are naive UTC
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class LocationSignal(BaseModel):
    """Claimant position as resolved by the device."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = {"frozen": True}


# --- Request Schemas ---

class SendMoneyRequest(BaseModel):
    """
    Pay someone from one of your accounts.

    to_account_id is only set when the caller has already
    resolved the recipient identity to an account in this
    ledger; it is used for unconditional sends.
    """
    from_account_id: int
    to: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, decimal_places=4)
    description: str = Field(default="", max_length=255)
    geo_fence: GeoFence | None = None
    time_restriction: TimeRestriction | None = None
    to_account_id: int | None = None


class ClaimRequest(BaseModel):
    """Recipient attempt to release an escrowed payment."""
    account_id: int
    location: LocationSignal | None = None


class MoneyRequestCreate(BaseModel):
    requester: str = Field(min_length=1, max_length=255)
    payer: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, decimal_places=4)
    description: str = Field(default="", max_length=255)


class ApproveRequest(BaseModel):
    """
    Pay a pending request.

    requester_account_id credits the requester as well; leave
    it out when the requester is not resolved to an account.
    """
    account_id: int
    requester_account_id: int | None = None


# --- Response Schemas ---

class TransactionResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    kind: TransactionKind
    status: TransactionStatus
    amount: Decimal
    fee: Decimal
    from_details: str
    to_details: str
    description: str
    account_id: int | None
    reference_transaction_id: int | None
    locked_saving_id: int | None
    geofence_latitude: float | None
    geofence_longitude: float | None
    geofence_radius_km: float | None
    geofence_label: str | None
    expires_at: datetime | None
    failure_reason: str | None
    created_at: datetime
    completed_at: datetime | None

    model_config = {"from_attributes": True}
