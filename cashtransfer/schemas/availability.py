"""
Schemas for the payment-method availability listing.
"""

from decimal import Decimal

from cashtransfer.schemas.fees import CamelModel


class PaymentMethodAvailability(CamelModel):
    """One sender payment method, checked against receiver liquidity."""
    payment_method_id: int
    name: str
    type: str
    available: bool
    balance: Decimal
    min_amount: Decimal
    max_amount: Decimal | None = None
    country_id: int
    country_name: str
    currency_code: str
