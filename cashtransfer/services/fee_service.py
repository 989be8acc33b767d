"""
Fee & exchange calculator.

``compute_breakdown`` is the one formula used for previews, quotes and
transfer creation. Fees are deducted from the principal before
conversion: the sender pays exactly ``amount`` and the receiver gets
``(amount - fees) * applied_rate``.

``FeeService`` wires the formula to the rate resolver and the market rate
provider, and keeps each result in Redis as a short-lived quote.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from cashtransfer.config import settings
from cashtransfer.core.errors import ExchangeRateUnavailableError, InvalidInputError
from cashtransfer.schemas.fees import (
    ExchangeLines,
    FeeBreakdown,
    FeeLines,
    FeeSummary,
    RateInfo,
)
from cashtransfer.services.exchange_rate_service import (
    ExchangeRateProvider,
    get_rate_provider,
)
from cashtransfer.services.rate_repository import RateRepository
from cashtransfer.services.rate_resolver import resolve_rate

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ONE = Decimal("1")

QUOTE_KEY_PREFIX = "quote:"


# ---------------------------------------------------------------------------
# Pure computation
# ---------------------------------------------------------------------------


def compute_breakdown(
    *,
    amount: Decimal,
    sender_currency: str,
    receiver_currency: str,
    base_fee: Decimal,
    percentage_fee: Decimal,
    exchange_rate_margin: Decimal,
    market_rate: Decimal,
    rate_info: dict,
) -> FeeBreakdown:
    """
    Compute the full charge breakdown. No I/O, no rounding.

    Steps (order matters for reproducibility):
        percentage   = amount * percentage_fee / 100
        total_fees   = base_fee + percentage
        after_fees   = amount - total_fees
        applied_rate = 1 if same currency else market * (1 - margin / 100)
        received     = after_fees * applied_rate
        margin_rev   = after_fees * (market - applied_rate)
        revenue      = total_fees + margin_rev

    Raises InvalidInputError when the amount does not cover the fees.
    """
    if amount <= 0:
        raise InvalidInputError("Amount must be a positive number")

    percentage_amount = amount * percentage_fee / HUNDRED
    total_fees = base_fee + percentage_amount
    amount_after_fees = amount - total_fees
    if amount_after_fees <= 0:
        raise InvalidInputError(
            f"Amount {amount} {sender_currency} does not cover fees of {total_fees}"
        )

    if sender_currency.upper() == receiver_currency.upper():
        market_rate = ONE
        applied_rate = ONE
        margin = Decimal("0")
    else:
        margin = exchange_rate_margin
        applied_rate = market_rate * (ONE - margin / HUNDRED)

    received_amount = amount_after_fees * applied_rate
    margin_revenue = amount_after_fees * (market_rate - applied_rate)

    return FeeBreakdown(
        amount=amount,
        sender_currency=sender_currency,
        receiver_currency=receiver_currency,
        fees=FeeLines(
            base_fee=base_fee,
            percentage_fee=percentage_amount,
            percentage_rate=percentage_fee,
            total=total_fees,
        ),
        exchange=ExchangeLines(
            market_rate=market_rate,
            applied_rate=applied_rate,
            margin=margin,
            margin_amount=margin_revenue,
        ),
        summary=FeeSummary(
            amount_sent=amount,
            total_to_pay=amount,
            amount_after_fees=amount_after_fees,
            amount_received=received_amount,
            total_revenue=total_fees + margin_revenue,
        ),
        rate_info=RateInfo(**rate_info),
    )


# ---------------------------------------------------------------------------
# FeeService
# ---------------------------------------------------------------------------


class FeeService:
    """Prices transfer requests and stores the result as a quote."""

    def __init__(
        self,
        session: AsyncSession,
        redis=None,
        provider: ExchangeRateProvider | None = None,
    ):
        self.session = session
        self.redis = redis
        self._provider = provider

    @property
    def provider(self) -> ExchangeRateProvider:
        if self._provider is not None:
            return self._provider
        return get_rate_provider()

    async def calculate(
        self,
        sender_country_id: int,
        receiver_country_id: int,
        amount: Decimal,
        market_rate: Decimal | None = None,
        store_quote: bool = True,
    ) -> FeeBreakdown:
        """
        Resolve the rate, fetch the market rate and compute the breakdown.

        *market_rate* may be supplied from an earlier quote; otherwise it is
        fetched fresh. Same-currency pairs never reach the provider.
        Raises InvalidInputError, RateResolutionError or
        ExchangeRateUnavailableError.
        """
        resolved = await resolve_rate(
            RateRepository(self.session), sender_country_id, receiver_country_id, amount,
        )
        sender_ccy = resolved.sender_country.currency_code
        receiver_ccy = resolved.receiver_country.currency_code

        if sender_ccy == receiver_ccy:
            market_rate = ONE
        elif market_rate is None:
            market_rate = await self._fetch_rate(sender_ccy, receiver_ccy)

        breakdown = compute_breakdown(
            amount=amount,
            sender_currency=sender_ccy,
            receiver_currency=receiver_ccy,
            base_fee=resolved.rate.base_fee,
            percentage_fee=resolved.rate.percentage_fee,
            exchange_rate_margin=resolved.rate.exchange_rate_margin,
            market_rate=market_rate,
            rate_info=resolved.info(),
        )

        if store_quote and self.redis is not None:
            await self._store_quote(breakdown, sender_country_id, receiver_country_id)

        return breakdown

    async def calculate_from_quote(
        self,
        quote_id: str,
        sender_country_id: int,
        receiver_country_id: int,
        amount: Decimal,
    ) -> FeeBreakdown:
        """
        Re-price a request with the market rate locked in *quote_id*.

        Raises InvalidInputError if the quote expired or was issued for a
        different corridor or amount.
        """
        quote = await self.get_quote(quote_id)
        if quote is None:
            raise InvalidInputError(f"Quote {quote_id} expired or unknown")

        if (
            quote["sender_country_id"] != sender_country_id
            or quote["receiver_country_id"] != receiver_country_id
            or Decimal(quote["amount"]) != amount
        ):
            raise InvalidInputError(f"Quote {quote_id} does not match this transfer")

        breakdown = await self.calculate(
            sender_country_id,
            receiver_country_id,
            amount,
            market_rate=Decimal(quote["market_rate"]),
            store_quote=False,
        )
        breakdown.quote_id = quote_id
        return breakdown

    async def get_quote(self, quote_id: str) -> dict | None:
        if self.redis is None:
            return None
        raw = await self.redis.get(f"{QUOTE_KEY_PREFIX}{quote_id}")
        if raw is None:
            return None
        return json.loads(raw)

    # --- internals ---

    async def _fetch_rate(self, from_currency: str, to_currency: str) -> Decimal:
        try:
            rate = await self.provider.get_rate(from_currency, to_currency)
        except ExchangeRateUnavailableError:
            raise
        except Exception as exc:
            logger.exception("Exchange rate provider failed for %s/%s", from_currency, to_currency)
            raise ExchangeRateUnavailableError(
                f"Exchange rate {from_currency}/{to_currency} unavailable"
            ) from exc

        if rate is None or rate <= 0:
            raise ExchangeRateUnavailableError(
                f"Provider returned an invalid rate for {from_currency}/{to_currency}"
            )
        return rate

    async def _store_quote(
        self,
        breakdown: FeeBreakdown,
        sender_country_id: int,
        receiver_country_id: int,
    ) -> None:
        quote_id = f"QT-{uuid.uuid4().hex[:12].upper()}"
        valid_until = datetime.now(timezone.utc) + timedelta(seconds=settings.QUOTE_TTL_SECONDS)
        breakdown.quote_id = quote_id
        breakdown.valid_until = valid_until

        payload = {
            "sender_country_id": sender_country_id,
            "receiver_country_id": receiver_country_id,
            "amount": str(breakdown.amount),
            "market_rate": str(breakdown.exchange.market_rate),
            "breakdown": breakdown.audit_dict(),
        }
        await self.redis.setex(
            f"{QUOTE_KEY_PREFIX}{quote_id}",
            settings.QUOTE_TTL_SECONDS,
            json.dumps(payload),
        )
