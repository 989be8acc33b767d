"""Tests for the market exchange-rate providers."""

from decimal import Decimal

import httpx
import pytest

from cashtransfer.core.errors import ExchangeRateUnavailableError
from cashtransfer.services.exchange_rate_service import (
    ExchangeRateAPIProvider,
    MockExchangeRateProvider,
    get_rate_provider,
    set_rate_provider,
)


class TestMockProvider:

    @pytest.mark.asyncio
    async def test_crosses_through_usd(self):
        provider = MockExchangeRateProvider()
        assert await provider.get_rate("USD", "XOF") == Decimal("600")
        assert await provider.get_rate("EUR", "XOF") == Decimal("600") / Decimal("0.85")
        assert await provider.get_rate("xof", "XOF") == Decimal("1")

    @pytest.mark.asyncio
    async def test_unknown_currency(self):
        with pytest.raises(ExchangeRateUnavailableError):
            await MockExchangeRateProvider().get_rate("USD", "JPY")


def _provider(handler) -> ExchangeRateAPIProvider:
    return ExchangeRateAPIProvider(
        base_url="https://rates.test/v6/latest",
        transport=httpx.MockTransport(handler),
    )


class TestAPIProvider:

    @pytest.mark.asyncio
    async def test_reads_target_rate(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"result": "success", "rates": {"XOF": 655.957}})

        rate = await _provider(handler).get_rate("eur", "xof")

        assert rate == Decimal("655.957")
        assert seen == ["/v6/latest/EUR"]

    @pytest.mark.asyncio
    async def test_http_error(self):
        provider = _provider(lambda request: httpx.Response(502))
        with pytest.raises(ExchangeRateUnavailableError):
            await provider.get_rate("EUR", "XOF")

    @pytest.mark.asyncio
    async def test_api_error_result(self):
        provider = _provider(
            lambda request: httpx.Response(200, json={"result": "error", "error-type": "unsupported-code"})
        )
        with pytest.raises(ExchangeRateUnavailableError, match="unsupported-code"):
            await provider.get_rate("EUR", "XOF")

    @pytest.mark.asyncio
    async def test_missing_target(self):
        provider = _provider(
            lambda request: httpx.Response(200, json={"result": "success", "rates": {"USD": 1.08}})
        )
        with pytest.raises(ExchangeRateUnavailableError):
            await provider.get_rate("EUR", "XOF")

    @pytest.mark.asyncio
    async def test_same_currency_makes_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await _provider(handler).get_rate("XOF", "XOF") == Decimal("1")


def test_override_takes_precedence():
    sentinel = MockExchangeRateProvider({"USD": Decimal("1")})
    set_rate_provider(sentinel)
    try:
        assert get_rate_provider() is sentinel
    finally:
        set_rate_provider(None)
    assert get_rate_provider() is not sentinel
