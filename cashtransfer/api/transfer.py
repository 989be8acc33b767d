"""
Public pricing endpoints.

Fee previews and the list of payment methods a sender can use. Every
preview is stored in Redis as a quote (``quote:{quoteId}``) so the
transfer can later be created at the same market rate.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cashtransfer.api.deps import http_error
from cashtransfer.core.errors import CashTransferError
from cashtransfer.database import get_db
from cashtransfer.redis_client import get_redis
from cashtransfer.schemas.availability import PaymentMethodAvailability
from cashtransfer.schemas.fees import FeeBreakdown
from cashtransfer.services.availability import get_available_payment_methods
from cashtransfer.services.fee_service import FeeService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/calculate-fees", response_model=FeeBreakdown)
async def calculate_fees(
    sender_country_id: int = Query(..., alias="senderCountryId", gt=0),
    receiver_country_id: int = Query(..., alias="receiverCountryId", gt=0),
    amount: Decimal = Query(..., gt=0, description="Amount in sender currency", examples=[1000]),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """
    Price a transfer: fees, applied exchange rate and amount received.

    Fees are deducted from the amount before conversion. The response
    carries a ``quoteId`` valid for ``QUOTE_TTL_SECONDS``.
    """
    svc = FeeService(db, redis=redis)
    try:
        return await svc.calculate(sender_country_id, receiver_country_id, amount)
    except CashTransferError as exc:
        raise http_error(exc)


@router.get("/payment-methods", response_model=list[PaymentMethodAvailability])
async def list_payment_methods(
    sender_country_id: int = Query(..., alias="senderCountryId"),
    receiver_country_id: int = Query(..., alias="receiverCountryId"),
    amount: Decimal = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """
    Sender payment methods for this amount, flagged by receiver liquidity.

    Available methods come first. Invalid input yields an empty list.
    """
    return await get_available_payment_methods(
        db, sender_country_id, receiver_country_id, amount,
    )
