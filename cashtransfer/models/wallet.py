"""
Wallet models — per-country liquidity pools.

A ``Wallet`` holds the aggregate balance for one country and owns one
``SubWallet`` per enabled payment method. The aggregate must equal the
sum of its sub-wallets; only ``services.ledger`` mutates either.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashtransfer.database import Base


class Wallet(Base):
    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id"), unique=True, nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0"),
    )

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
    country = relationship("Country", back_populates="wallet")
    sub_wallets = relationship(
        "SubWallet", back_populates="wallet", order_by="SubWallet.id",
    )

    def __repr__(self) -> str:
        return f"<Wallet country={self.country_id} balance={self.balance}>"


class SubWallet(Base):
    __tablename__ = "sub_wallets"
    __table_args__ = (
        UniqueConstraint(
            "wallet_id", "country_payment_method_id", name="uq_sub_wallet_method",
        ),
        CheckConstraint("balance >= 0", name="ck_sub_wallets_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wallet_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("wallets.id"), index=True, nullable=False,
    )
    country_payment_method_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("country_payment_methods.id"), nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0"),
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    # Balances mirrored from a gateway account cannot be adjusted by hand
    read_only: Mapped[bool] = mapped_column(Boolean, default=False)

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
    wallet = relationship("Wallet", back_populates="sub_wallets")
    country_payment_method = relationship("CountryPaymentMethod")

    def __repr__(self) -> str:
        return (
            f"<SubWallet wallet={self.wallet_id} "
            f"method={self.country_payment_method_id} balance={self.balance}>"
        )


@event.listens_for(Wallet, "init")
def _set_wallet_defaults(target, args, kwargs):
    if "balance" not in kwargs:
        target.balance = Decimal("0")


@event.listens_for(SubWallet, "init")
def _set_sub_wallet_defaults(target, args, kwargs):
    if "balance" not in kwargs:
        target.balance = Decimal("0")
    if "active" not in kwargs:
        target.active = True
    if "read_only" not in kwargs:
        target.read_only = False
