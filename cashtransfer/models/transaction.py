"""
Transaction model — a priced transfer from a sender country to a receiver country.

- GIC-XXXXXXXX reference format
- Validated status transitions
- Fee breakdown persisted verbatim as the audit trail
- Typed admin notes stored as a JSON list
"""

import enum
import random
import string
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Enum as SAEnum,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashtransfer.core.errors import InvalidTransitionError
from cashtransfer.database import Base
from cashtransfer.schemas.admin_notes import AdminNote, dump_notes, parse_notes

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    APPROVED = "approved"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Status transition map
# ---------------------------------------------------------------------------

VALID_TRANSITIONS: dict[TransactionStatus, set[TransactionStatus]] = {
    TransactionStatus.PENDING: {
        TransactionStatus.PAID,
        TransactionStatus.FAILED,
        TransactionStatus.CANCELLED,
    },
    TransactionStatus.PAID: {
        TransactionStatus.APPROVED,
        TransactionStatus.FAILED,
    },
    TransactionStatus.APPROVED: {
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
    },
    TransactionStatus.COMPLETED: set(),
    TransactionStatus.FAILED: set(),
    TransactionStatus.CANCELLED: set(),
}


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    reference: Mapped[str] = mapped_column(
        String(16), unique=True, index=True, nullable=False,
    )

    # Corridor
    sender_country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id"), nullable=False,
    )
    receiver_country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id"), nullable=False,
    )
    payment_method_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("payment_methods.id"), nullable=False,
    )

    # Amounts
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False,
    )
    sender_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    receiver_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    total_fees: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False,
    )
    amount_after_fees: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False,
    )
    applied_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=6), nullable=False,
    )
    received_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False,
    )

    # Audit
    fee_breakdown: Mapped[dict] = mapped_column(JSON, nullable=False)
    admin_notes: Mapped[list] = mapped_column(JSON, default=list)

    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(
            TransactionStatus, name="transactionstatus",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=TransactionStatus.PENDING,
    )

    # Lifecycle timestamps
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    sender_country = relationship("Country", foreign_keys=[sender_country_id])
    receiver_country = relationship("Country", foreign_keys=[receiver_country_id])
    payment_method = relationship("PaymentMethod")

    # ------------------------------------------------------------------
    # Reference generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_reference() -> str:
        """Generate a GIC-XXXXXXXX reference (8 uppercase alphanumeric chars)."""
        chars = string.ascii_uppercase + string.digits
        suffix = "".join(random.choices(chars, k=8))
        return f"GIC-{suffix}"

    # ------------------------------------------------------------------
    # Admin notes
    # ------------------------------------------------------------------

    @property
    def notes(self) -> list[AdminNote]:
        """Typed view of ``admin_notes``."""
        return parse_notes(self.admin_notes)

    def add_note(self, note: AdminNote) -> None:
        """Append a typed note. Reassigns the column so the change is flushed."""
        self.admin_notes = dump_notes([*self.notes, note])

    # ------------------------------------------------------------------
    # Status transition validation
    # ------------------------------------------------------------------

    @staticmethod
    def is_valid_transition(from_status: TransactionStatus, to_status: TransactionStatus) -> bool:
        """Check whether a status transition is allowed."""
        allowed = VALID_TRANSITIONS.get(from_status, set())
        return to_status in allowed

    def transition_to(self, new_status: TransactionStatus) -> None:
        """
        Transition to *new_status* if the move is valid.

        Raises InvalidTransitionError if the transition is not allowed.
        Also auto-sets lifecycle timestamps where applicable.
        """
        if not self.is_valid_transition(self.status, new_status):
            raise InvalidTransitionError(
                f"Invalid transition: {self.status.value} -> {new_status.value}"
            )
        self.status = new_status

        now = datetime.now(timezone.utc)
        if new_status == TransactionStatus.PAID:
            self.paid_at = now
        elif new_status == TransactionStatus.COMPLETED:
            self.completed_at = now

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.reference} "
            f"{self.amount} {self.sender_currency} "
            f"status={self.status.value if self.status else 'N/A'}>"
        )


# ---------------------------------------------------------------------------
# Auto-set Python-side defaults on construction
# ---------------------------------------------------------------------------


@event.listens_for(Transaction, "init")
def _set_transaction_defaults(target, args, kwargs):
    if "reference" not in kwargs:
        target.reference = Transaction.generate_reference()
    if "status" not in kwargs:
        target.status = TransactionStatus.PENDING
    if "admin_notes" not in kwargs:
        target.admin_notes = []
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
    if "updated_at" not in kwargs:
        target.updated_at = datetime.now(timezone.utc)
