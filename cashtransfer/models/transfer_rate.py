"""
Transfer rate model — tiered fee and exchange-margin configuration.

One table holds all three tiers, distinguished by ``scope``:

- ``global``   — platform-wide schedule; one record carries ``is_default``
- ``country``  — schedule for a single (sending) country
- ``corridor`` — schedule for an ordered sender → receiver country pair

Base fees are charged as stored, in the sending country's currency,
whatever the tier.
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Enum as SAEnum,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from cashtransfer.core.errors import InvalidInputError
from cashtransfer.database import Base


class RateScope(str, enum.Enum):
    GLOBAL = "global"
    COUNTRY = "country"
    CORRIDOR = "corridor"


# Columns an update may change but never clear
NOT_NULL_RATE_FIELDS = (
    "base_fee",
    "percentage_fee",
    "min_amount",
    "exchange_rate_margin",
    "active",
    "is_default",
)

# Display / audit priority of each tier (1 = most specific)
SCOPE_PRIORITY: dict[RateScope, int] = {
    RateScope.CORRIDOR: 1,
    RateScope.COUNTRY: 2,
    RateScope.GLOBAL: 3,
}


class TransferRate(Base):
    __tablename__ = "transfer_rates"
    __table_args__ = (
        CheckConstraint("base_fee >= 0", name="ck_transfer_rates_base_fee"),
        CheckConstraint("percentage_fee >= 0", name="ck_transfer_rates_percentage_fee"),
        CheckConstraint("exchange_rate_margin >= 0", name="ck_transfer_rates_margin"),
        CheckConstraint(
            "max_amount IS NULL OR max_amount >= min_amount",
            name="ck_transfer_rates_bounds",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[RateScope] = mapped_column(
        SAEnum(RateScope, name="ratescope", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    # Scope keys
    country_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("countries.id"), index=True, nullable=True,
    )
    sender_country_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("countries.id"), nullable=True,
    )
    receiver_country_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("countries.id"), nullable=True,
    )

    name: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)

    # Fee schedule
    base_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0"),
    )
    percentage_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2), default=Decimal("0"),
    )
    min_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0"),
    )
    max_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=18, scale=2), nullable=True,
    )
    exchange_rate_margin: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2), default=Decimal("0"),
    )

    active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # ------------------------------------------------------------------
    # Scope validation
    # ------------------------------------------------------------------

    def validate_scope(self) -> None:
        """
        Check that exactly the key columns required by ``scope`` are set.

        Raises InvalidInputError otherwise.
        """
        has_country = self.country_id is not None
        has_corridor = (
            self.sender_country_id is not None,
            self.receiver_country_id is not None,
        )

        if self.scope == RateScope.GLOBAL:
            ok = not has_country and not any(has_corridor)
        elif self.scope == RateScope.COUNTRY:
            ok = has_country and not any(has_corridor)
        else:
            ok = not has_country and all(has_corridor)

        if not ok:
            raise InvalidInputError(
                f"Scope key columns do not match scope '{self.scope.value}'"
            )
        if self.is_default and self.scope != RateScope.GLOBAL:
            raise InvalidInputError("Only global rates can be the default")
        if self.max_amount is not None and self.max_amount < self.min_amount:
            raise InvalidInputError("max_amount must be greater than or equal to min_amount")

    @property
    def priority(self) -> int:
        return SCOPE_PRIORITY[self.scope]

    def __repr__(self) -> str:
        return (
            f"<TransferRate {self.scope.value if self.scope else 'N/A'} "
            f"base={self.base_fee} pct={self.percentage_fee} "
            f"active={self.active}>"
        )


@event.listens_for(TransferRate, "init")
def _set_transfer_rate_defaults(target, args, kwargs):
    if "base_fee" not in kwargs:
        target.base_fee = Decimal("0")
    if "percentage_fee" not in kwargs:
        target.percentage_fee = Decimal("0")
    if "min_amount" not in kwargs:
        target.min_amount = Decimal("0")
    if "exchange_rate_margin" not in kwargs:
        target.exchange_rate_margin = Decimal("0")
    if "active" not in kwargs:
        target.active = True
    if "is_default" not in kwargs:
        target.is_default = False
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
    if "updated_at" not in kwargs:
        target.updated_at = target.created_at
