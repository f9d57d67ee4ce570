"""
Pydantic schemas for the pending-actions feed.
"""

from pydantic import BaseModel

from money_buddy.schemas.saving import LockedSavingResponse
from money_buddy.schemas.transaction import TransactionResponse


class PendingActionsResponse(BaseModel):
    """Items waiting on the user; how they are shown is up to the client."""
    identity: str
    requests_to_approve: list[TransactionResponse]
    matured_savings: list[LockedSavingResponse]
    count: int
