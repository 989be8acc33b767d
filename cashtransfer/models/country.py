"""
Country model — a sending or receiving market with its own currency.

Each country owns at most one Wallet holding the liquidity available for
payouts in that country.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashtransfer.database import Base


class Country(Base):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(2), unique=True, index=True, nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    wallet = relationship("Wallet", back_populates="country", uselist=False)
    payment_methods = relationship("CountryPaymentMethod", back_populates="country")

    def __repr__(self) -> str:
        return f"<Country {self.code} {self.currency_code}>"


@event.listens_for(Country, "init")
def _set_country_defaults(target, args, kwargs):
    if "active" not in kwargs:
        target.active = True
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
