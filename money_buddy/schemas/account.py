"""
Pydantic schemas for account operations.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from money_buddy.models.enums import AccountType


class AccountCreate(BaseModel):
    """
    Request to register a linked account.

    The opening balance is whatever the provider reported
    at link time.
    """
    owner: str = Field(min_length=1, max_length=255)
    name: str = Field(min_length=1, max_length=100)
    provider: str = Field(min_length=1, max_length=100)
    account_type: AccountType
    balance: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    currency: str = Field(default="USD", min_length=3, max_length=3)


class AccountResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    owner: str
    name: str
    provider: str
    account_type: AccountType
    balance: Decimal
    currency: str
    is_active: bool
    created_at: datetime
    removed_at: datetime | None

    model_config = {"from_attributes": True}


class AccountSummaryResponse(BaseModel):
    """All active accounts of one owner and their combined balance."""
    owner: str
    accounts: list[AccountResponse]
    total_balance: Decimal
