"""
Pydantic schemas for the fee & exchange breakdown.

The breakdown is returned to clients and stored on every transaction as
its audit trail, so the serialised (camelCase) keys must stay stable.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeeLines(CamelModel):
    base_fee: Decimal
    percentage_fee: Decimal
    percentage_rate: Decimal
    total: Decimal


class ExchangeLines(CamelModel):
    market_rate: Decimal
    applied_rate: Decimal
    margin: Decimal
    margin_amount: Decimal


class FeeSummary(CamelModel):
    amount_sent: Decimal
    total_to_pay: Decimal
    amount_after_fees: Decimal
    amount_received: Decimal
    total_revenue: Decimal


class RateInfo(CamelModel):
    type: str
    name: str
    priority: int


class FeeBreakdown(CamelModel):
    """Full charge breakdown for one transfer request."""
    amount: Decimal
    sender_currency: str
    receiver_currency: str
    fees: FeeLines
    exchange: ExchangeLines
    summary: FeeSummary
    rate_info: RateInfo
    quote_id: str | None = None
    valid_until: datetime | None = None

    def audit_dict(self) -> dict:
        """JSON-compatible dict with the public camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
