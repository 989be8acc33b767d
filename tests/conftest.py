"""
Shared test fixtures for GIC CashTransfer.

Provides a throwaway SQLite database per test, a seeding helper, Redis
and exchange-rate doubles, and an async test client wired to them.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cashtransfer.core.security import configure_fernet
from cashtransfer.database import Base, get_db, get_session_factory
from cashtransfer.models import (
    Configuration,
    ConfigType,
    Country,
    CountryPaymentMethod,
    PaymentMethod,
    PaymentMethodType,
    RateScope,
    SubWallet,
    TransferRate,
    Wallet,
)
from cashtransfer.redis_client import get_redis
from cashtransfer.services.config_service import ConfigService, get_config_service
from cashtransfer.services.exchange_rate_service import set_rate_provider


# --- Fernet Key Fixture ---


@pytest.fixture(scope="session")
def test_fernet_key():
    """Generate a Fernet key for tests."""
    return Fernet.generate_key()


@pytest.fixture(autouse=True)
def setup_fernet(test_fernet_key):
    """Encrypt configuration secrets with the test key."""
    configure_fernet(test_fernet_key)


# --- Mock Redis ---


@pytest.fixture
def mock_redis():
    """AsyncMock Redis client backed by a dict so stored quotes can be read back."""
    store: dict[str, str] = {}
    redis = AsyncMock()
    redis.store = store
    redis.setex = AsyncMock(side_effect=lambda key, ttl, value: store.__setitem__(key, value))
    redis.get = AsyncMock(side_effect=lambda key: store.get(key))
    redis.delete = AsyncMock(side_effect=lambda key: store.pop(key, None))
    return redis


# --- Exchange rate provider ---


@pytest.fixture
def fx_provider():
    """
    Provider double: ``fx_provider.rates[(from, to)] = Decimal(...)``.

    Unknown pairs raise, like a provider outage.
    """
    rates: dict[tuple[str, str], Decimal] = {}

    async def _get_rate(from_currency, to_currency):
        if from_currency == to_currency:
            return Decimal("1")
        return rates[(from_currency, to_currency)]

    provider = AsyncMock()
    provider.rates = rates
    provider.get_rate = AsyncMock(side_effect=_get_rate)
    set_rate_provider(provider)
    yield provider
    set_rate_provider(None)


# --- Database ---


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/cashtransfer.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


class Seeder:
    """Inserts reference rows, committing each so other sessions see them."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def _save(self, obj):
        async with self.session_factory() as session:
            session.add(obj)
            await session.commit()
        return obj

    async def country(self, code: str, currency: str, name: str | None = None) -> Country:
        return await self._save(Country(name=name or code, code=code, currency_code=currency))

    async def method(
        self, name: str, type: PaymentMethodType = PaymentMethodType.FLUTTERWAVE, active: bool = True,
    ) -> PaymentMethod:
        return await self._save(PaymentMethod(name=name, type=type, active=active))

    async def enable(
        self,
        country: Country,
        method: PaymentMethod,
        min_amount: str = "0",
        max_amount: str | None = None,
        active: bool = True,
    ) -> CountryPaymentMethod:
        return await self._save(CountryPaymentMethod(
            country_id=country.id,
            payment_method_id=method.id,
            min_amount=Decimal(min_amount),
            max_amount=Decimal(max_amount) if max_amount is not None else None,
            active=active,
        ))

    async def wallet(self, country: Country, balance: str = "0") -> Wallet:
        return await self._save(Wallet(country_id=country.id, balance=Decimal(balance)))

    async def sub_wallet(
        self,
        wallet: Wallet,
        cpm: CountryPaymentMethod,
        balance: str = "0",
        active: bool = True,
        read_only: bool = False,
    ) -> SubWallet:
        return await self._save(SubWallet(
            wallet_id=wallet.id,
            country_payment_method_id=cpm.id,
            balance=Decimal(balance),
            active=active,
            read_only=read_only,
        ))

    async def rate(self, scope: RateScope, **fields) -> TransferRate:
        for key in ("base_fee", "percentage_fee", "min_amount", "max_amount", "exchange_rate_margin"):
            if isinstance(fields.get(key), (str, int)):
                fields[key] = Decimal(str(fields[key]))
        return await self._save(TransferRate(scope=scope, **fields))

    async def config(self, key: str, value: str | None, **fields) -> Configuration:
        fields.setdefault("type", ConfigType.STRING)
        return await self._save(Configuration(key=key, value=value, **fields))

    async def get(self, model, pk):
        async with self.session_factory() as session:
            return await session.get(model, pk)


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest_asyncio.fixture
async def corridor(seed):
    """
    US (USD) -> SN (XOF) with three sender methods and receiver liquidity.

    Receiver balances: Flutterwave 200, Mobile Money 50, Bank transfer 0.
    """
    us = await seed.country("US", "USD", "United States")
    sn = await seed.country("SN", "XOF", "Sénégal")
    flutterwave = await seed.method("Flutterwave", PaymentMethodType.FLUTTERWAVE)
    momo = await seed.method("Mobile Money", PaymentMethodType.MOBILE_MONEY)
    bank = await seed.method("Virement bancaire", PaymentMethodType.BANK_TRANSFER)

    for method in (flutterwave, momo, bank):
        await seed.enable(us, method)

    wallet = await seed.wallet(sn, balance="250")
    receiver_subs = {}
    for method, balance in ((flutterwave, "200"), (momo, "50"), (bank, "0")):
        cpm = await seed.enable(sn, method)
        receiver_subs[method.name] = await seed.sub_wallet(wallet, cpm, balance=balance)

    return {
        "sender": us,
        "receiver": sn,
        "flutterwave": flutterwave,
        "momo": momo,
        "bank": bank,
        "receiver_wallet": wallet,
        "receiver_subs": receiver_subs,
    }


# --- Dependency Override Helpers ---


@pytest_asyncio.fixture
async def client(session_factory, mock_redis, fx_provider):
    """
    Async HTTP test client with database, Redis and configuration
    dependencies overridden to use the test doubles.
    """
    from cashtransfer.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis():
        return mock_redis

    config_service = ConfigService(session_factory)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_config_service] = lambda: config_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
