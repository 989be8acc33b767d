"""
Market exchange-rate providers.

Rates are fetched fresh for every calculation; nothing is cached here.
A provider failure surfaces as ``ExchangeRateUnavailableError`` so the
caller can refuse to price the transfer.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Protocol

import httpx

from cashtransfer.config import settings
from cashtransfer.core.errors import ExchangeRateUnavailableError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Approximate units per 1 USD, deterministic for dev/testing
MOCK_RATES_PER_USD: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "NGN": Decimal("800"),
    "XOF": Decimal("600"),
    "XAF": Decimal("600"),
    "GHS": Decimal("12"),
    "KES": Decimal("150"),
    "UGX": Decimal("3700"),
    "TZS": Decimal("2500"),
    "RWF": Decimal("1300"),
    "ZAR": Decimal("18"),
    "EGP": Decimal("31"),
    "MAD": Decimal("10"),
}


# ---------------------------------------------------------------------------
# Rate provider protocol
# ---------------------------------------------------------------------------


class ExchangeRateProvider(Protocol):
    async def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Units of *to_currency* for one unit of *from_currency*."""
        ...


class MockExchangeRateProvider:
    """Cross rates through USD from a fixed table."""

    def __init__(self, rates_per_usd: dict[str, Decimal] | None = None):
        self.rates_per_usd = rates_per_usd or MOCK_RATES_PER_USD

    async def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        source = from_currency.upper()
        target = to_currency.upper()
        if source == target:
            return Decimal("1")
        try:
            return self.rates_per_usd[target] / self.rates_per_usd[source]
        except KeyError as exc:
            raise ExchangeRateUnavailableError(
                f"No mock rate for {source}/{target}"
            ) from exc


class ExchangeRateAPIProvider:
    """Fetch live rates from exchangerate-api.com (open access endpoint)."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.FX_RATE_API_URL).rstrip("/")
        self.timeout = timeout or settings.FX_RATE_TIMEOUT_SECONDS
        self.transport = transport

    async def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        source = from_currency.upper()
        target = to_currency.upper()
        if source == target:
            return Decimal("1")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(f"{self.base_url}/{source}")
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Rate API request failed for %s/%s: %s", source, target, exc)
            raise ExchangeRateUnavailableError(
                f"Exchange rate {source}/{target} unavailable"
            ) from exc

        if data.get("result") != "success":
            raise ExchangeRateUnavailableError(f"Rate API error: {data.get('error-type', data)}")

        raw = data.get("rates", {}).get(target)
        if raw is None:
            raise ExchangeRateUnavailableError(f"Rate API has no rate for {source}/{target}")

        try:
            rate = Decimal(str(raw))
        except InvalidOperation as exc:
            raise ExchangeRateUnavailableError(f"Malformed rate for {source}/{target}") from exc
        if rate <= 0:
            raise ExchangeRateUnavailableError(f"Non-positive rate for {source}/{target}")
        return rate


# Module-level provider override (for tests)
_provider: ExchangeRateProvider | None = None


def get_rate_provider() -> ExchangeRateProvider:
    """Return the configured rate provider."""
    if _provider is not None:
        return _provider
    if settings.FX_RATE_MOCK:
        return MockExchangeRateProvider()
    return ExchangeRateAPIProvider()


def set_rate_provider(provider: ExchangeRateProvider | None) -> None:
    """Override the rate provider (for testing)."""
    global _provider
    _provider = provider
