"""
Pydantic schemas for wallet views and operator balance operations.
"""

from decimal import Decimal
from typing import Literal

from pydantic import Field

from cashtransfer.schemas.fees import CamelModel


class SubWalletOut(CamelModel):
    id: int
    country_payment_method_id: int
    payment_method_id: int
    payment_method_name: str
    payment_method_type: str
    balance: Decimal
    active: bool
    read_only: bool


class CountryWalletOut(CamelModel):
    """A country's wallet; ``wallet_id`` is None when none was created yet."""
    country_id: int
    country_name: str
    country_code: str
    currency_code: str
    wallet_id: int | None = None
    balance: Decimal = Decimal("0")
    sub_wallets: list[SubWalletOut] = []


class SubWalletAdjustment(CamelModel):
    amount: Decimal = Field(..., gt=0)
    operation: Literal["credit", "debit"]


class SettlementRequest(CamelModel):
    sender_country_id: int = Field(..., gt=0)
    receiver_country_id: int = Field(..., gt=0)
    payment_method_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0)


class SettlementOut(CamelModel):
    """Balances after a settlement, both in the transferred amount's units."""
    amount: Decimal
    receiver_sub_wallet_id: int
    receiver_balance: Decimal
    sender_sub_wallet_id: int
    sender_balance: Decimal
