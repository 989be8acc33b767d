"""
Payment method models.

``PaymentMethod`` is the catalogue entry (Flutterwave, CinetPay, bank
transfer, ...). ``CountryPaymentMethod`` enables a method for one country
with amount bounds specific to that pairing; sub-wallets hang off it.
"""

import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Enum as SAEnum,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashtransfer.database import Base


class PaymentMethodType(str, enum.Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_MONEY = "MOBILE_MONEY"
    FLUTTERWAVE = "FLUTTERWAVE"
    CINETPAY = "CINETPAY"
    CASH = "CASH"


# Methods whose payouts go through a gateway without operator action
AUTOMATED_TYPES = frozenset({PaymentMethodType.FLUTTERWAVE, PaymentMethodType.CINETPAY})


class PaymentMethod(Base):
    __tablename__ = "payment_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[PaymentMethodType] = mapped_column(
        SAEnum(
            PaymentMethodType, name="paymentmethodtype",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<PaymentMethod {self.name} ({self.type.value if self.type else 'N/A'})>"


class CountryPaymentMethod(Base):
    __tablename__ = "country_payment_methods"
    __table_args__ = (
        UniqueConstraint("country_id", "payment_method_id", name="uq_country_payment_method"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id"), index=True, nullable=False,
    )
    payment_method_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("payment_methods.id"), nullable=False,
    )
    min_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0"),
    )
    max_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=18, scale=2), nullable=True,
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relationships
    country = relationship("Country", back_populates="payment_methods")
    payment_method = relationship("PaymentMethod")

    def __repr__(self) -> str:
        return (
            f"<CountryPaymentMethod country={self.country_id} "
            f"method={self.payment_method_id} active={self.active}>"
        )


@event.listens_for(PaymentMethod, "init")
def _set_payment_method_defaults(target, args, kwargs):
    if "active" not in kwargs:
        target.active = True


@event.listens_for(CountryPaymentMethod, "init")
def _set_country_payment_method_defaults(target, args, kwargs):
    if "min_amount" not in kwargs:
        target.min_amount = Decimal("0")
    if "active" not in kwargs:
        target.active = True
