"""
Pydantic schemas for locked savings.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from money_buddy.models.enums import SavingStatus


class LockSavingsRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0, decimal_places=4)
    period_months: int = Field(ge=1, le=120)


class LockedSavingResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    account_id: int
    amount: Decimal
    lock_period_months: int
    start_date: datetime
    end_date: datetime
    status: SavingStatus
    penalty: Decimal | None
    amount_returned: Decimal | None
    withdrawn_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
