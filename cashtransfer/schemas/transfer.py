"""
Pydantic schemas for transfer creation, tracking and admin actions.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field

from cashtransfer.models.transaction import TransactionStatus
from cashtransfer.schemas.fees import CamelModel


class TransferCreate(CamelModel):
    """Request body for POST /transfers."""
    sender_country_id: int = Field(..., gt=0)
    receiver_country_id: int = Field(..., gt=0)
    payment_method_id: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, examples=[1000])
    quote_id: str | None = Field(None, description="Quote returned by calculate-fees")


class TransferOut(CamelModel):
    """A transfer as shown to its sender and to operators."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference: str
    status: TransactionStatus
    sender_country_id: int
    receiver_country_id: int
    payment_method_id: int
    amount: Decimal
    sender_currency: str
    receiver_currency: str
    total_fees: Decimal
    amount_after_fees: Decimal
    applied_rate: Decimal
    received_amount: Decimal
    fee_breakdown: dict
    admin_notes: list[dict] = []
    paid_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime


class ConfirmPaymentRequest(CamelModel):
    provider_reference: str = Field(..., min_length=1)


class CompleteTransferRequest(CamelModel):
    payout_reference: str | None = None


class FailTransferRequest(CamelModel):
    reason: str = Field(..., min_length=1)
    provider_status: str | None = None
    cancelled: bool = False
