"""
Locked saving model (term deposit).

The principal leaves the owning account when the saving is
created and comes back, minus any early-withdrawal penalty,
when it is withdrawn. A saving is withdrawn at most once.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Integer, DateTime, ForeignKey, CheckConstraint,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from money_buddy.models.base import Base, Money, utcnow
from money_buddy.models.enums import SavingStatus


class LockedSaving(Base):
    __tablename__ = "locked_savings"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_locked_savings_amount_positive"),
        CheckConstraint(
            "lock_period_months >= 1", name="ck_locked_savings_period_positive"
        ),
        CheckConstraint(
            "end_date > start_date", name="ck_locked_savings_end_after_start"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False
    )
    lock_period_months: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[SavingStatus] = mapped_column(
        SAEnum(
            SavingStatus,
            name="saving_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=SavingStatus.PENDING,
        index=True,
    )
    penalty: Mapped[Decimal | None] = mapped_column(
        Money, nullable=True
    )
    amount_returned: Mapped[Decimal | None] = mapped_column(
        Money, nullable=True
    )
    withdrawn_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    account: Mapped["Account"] = relationship(back_populates="locked_savings")

    def is_matured(self, now: datetime) -> bool:
        return now >= self.end_date

    def __repr__(self) -> str:
        return (
            f"<LockedSaving {self.amount} for {self.lock_period_months}m "
            f"({self.status.value})>"
        )
