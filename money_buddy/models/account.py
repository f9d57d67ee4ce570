"""
Linked account model.

Each account is a single running balance reported by the
provider it was linked from. The balance column is only
ever written by AccountService.debit / AccountService.credit.

Accounts are never physically deleted: transactions and
locked savings keep pointing at them. Removal deactivates
the row instead.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, CheckConstraint,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from money_buddy.models.base import Base, Money, utcnow
from money_buddy.models.enums import AccountType


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_accounts_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    owner: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    provider: Mapped[str] = mapped_column(String(100), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(
            AccountType,
            name="account_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0")
    )
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="USD"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
    removed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None
    )

    locked_savings: Mapped[list["LockedSaving"]] = relationship(
        back_populates="account"
    )

    def __repr__(self) -> str:
        return (
            f"<Account {self.external_id} "
            f"{self.account_type.value} {self.balance} {self.currency}>"
        )
