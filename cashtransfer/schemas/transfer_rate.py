"""
Pydantic schemas for transfer rate administration.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field, field_validator

from cashtransfer.models.transfer_rate import NOT_NULL_RATE_FIELDS, RateScope
from cashtransfer.schemas.fees import CamelModel


class TransferRateCreate(CamelModel):
    """Body for POST /admin/transfer-rates. Scope keys must match ``scope``."""
    scope: RateScope
    country_id: int | None = Field(None, gt=0)
    sender_country_id: int | None = Field(None, gt=0)
    receiver_country_id: int | None = Field(None, gt=0)
    name: str | None = Field(None, max_length=200)
    description: str | None = None
    base_fee: Decimal = Field(Decimal("0"), ge=0)
    percentage_fee: Decimal = Field(Decimal("0"), ge=0, le=100)
    min_amount: Decimal = Field(Decimal("0"), ge=0)
    max_amount: Decimal | None = Field(None, gt=0)
    exchange_rate_margin: Decimal = Field(Decimal("0"), ge=0, lt=100)
    active: bool = True
    is_default: bool = False


class TransferRateUpdate(CamelModel):
    """Partial update; only the fields sent are changed."""
    name: str | None = Field(None, max_length=200)
    description: str | None = None
    base_fee: Decimal | None = Field(None, ge=0)
    percentage_fee: Decimal | None = Field(None, ge=0, le=100)
    min_amount: Decimal | None = Field(None, ge=0)
    max_amount: Decimal | None = Field(None, gt=0)
    exchange_rate_margin: Decimal | None = Field(None, ge=0, lt=100)
    active: bool | None = None
    is_default: bool | None = None

    @field_validator(*NOT_NULL_RATE_FIELDS)
    @classmethod
    def _reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class TransferRateOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    scope: RateScope
    priority: int
    country_id: int | None = None
    sender_country_id: int | None = None
    receiver_country_id: int | None = None
    name: str | None = None
    description: str | None = None
    base_fee: Decimal
    percentage_fee: Decimal
    min_amount: Decimal
    max_amount: Decimal | None = None
    exchange_rate_margin: Decimal
    active: bool
    is_default: bool
    created_at: datetime
    updated_at: datetime
