"""
Transaction model.

Every balance-affecting event is recorded here: sends,
their fee and receive legs, requests, locks, withdrawals
and penalties. Records are never deleted; the table is the
audit trail of the ledger.

Conditional sends carry an optional geofence and/or expiry.
Status moves along VALID_TRANSITIONS and never leaves a
terminal status.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Float, ForeignKey, CheckConstraint,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from money_buddy.models.base import Base, Money, utcnow
from money_buddy.models.enums import TransactionKind, TransactionStatus


# Valid state transitions, the source of truth for the state machine
VALID_TRANSITIONS: dict[TransactionStatus, set[TransactionStatus]] = {
    TransactionStatus.PENDING: {
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
        TransactionStatus.DECLINED,
    },
    TransactionStatus.COMPLETED: set(),
    TransactionStatus.FAILED: set(),
    TransactionStatus.DECLINED: set(),
    TransactionStatus.RETURNED: set(),
    TransactionStatus.LOCKED: set(),
}


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint("fee >= 0", name="ck_transactions_fee_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    kind: Mapped[TransactionKind] = mapped_column(
        SAEnum(
            TransactionKind,
            name="transaction_kind_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(
            TransactionStatus,
            name="transaction_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False
    )
    fee: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0")
    )
    from_details: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    to_details: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    # The account whose balance this record describes, if any.
    # External recipients have no account.
    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    reference_transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True, index=True
    )
    locked_saving_id: Mapped[int | None] = mapped_column(
        ForeignKey("locked_savings.id"), nullable=True, index=True
    )

    # Geofence condition
    geofence_latitude: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    geofence_longitude: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    geofence_radius_km: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    geofence_label: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Time condition
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, index=True
    )

    failure_reason: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    # Relationships
    account: Mapped["Account | None"] = relationship(
        foreign_keys=[account_id]
    )
    reference_transaction: Mapped["Transaction | None"] = relationship(
        remote_side=[id]
    )

    @property
    def has_geofence(self) -> bool:
        return self.geofence_latitude is not None

    @property
    def is_conditional(self) -> bool:
        return self.has_geofence or self.expires_at is not None

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS.get(self.status, set())

    def can_transition_to(self, new_status: TransactionStatus) -> bool:
        """Check if a state transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.kind.value} "
            f"{self.amount} ({self.status.value})>"
        )
