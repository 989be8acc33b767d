"""
Reference data seeder — populates the database for development.

Usage:
    python scripts/seed_data.py

Creates:
  - 8 countries with their currencies
  - 5 payment methods, enabled per country with amount bounds
  - a wallet per country with one funded sub-wallet per enabled method
  - the global default transfer rate and 4 corridor rates
  - runtime configuration keys (gateway secrets encrypted)

Idempotent: existing countries, methods and rates are left untouched.
"""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from cashtransfer.core.security import encrypt_value
from cashtransfer.database import async_session
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

# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

COUNTRIES: list[dict] = [
    {"name": "France", "code": "FR", "currency_code": "EUR"},
    {"name": "Sénégal", "code": "SN", "currency_code": "XOF"},
    {"name": "Côte d'Ivoire", "code": "CI", "currency_code": "XOF"},
    {"name": "Cameroun", "code": "CM", "currency_code": "XAF"},
    {"name": "Nigeria", "code": "NG", "currency_code": "NGN"},
    {"name": "Ghana", "code": "GH", "currency_code": "GHS"},
    {"name": "United States", "code": "US", "currency_code": "USD"},
    {"name": "United Kingdom", "code": "GB", "currency_code": "GBP"},
]

PAYMENT_METHODS: list[dict] = [
    {"name": "Flutterwave", "type": PaymentMethodType.FLUTTERWAVE},
    {"name": "CinetPay", "type": PaymentMethodType.CINETPAY},
    {"name": "Mobile Money", "type": PaymentMethodType.MOBILE_MONEY},
    {"name": "Virement bancaire", "type": PaymentMethodType.BANK_TRANSFER},
    {"name": "Espèces", "type": PaymentMethodType.CASH},
]

# (min, max) per method type; max None = unbounded
METHOD_BOUNDS: dict[PaymentMethodType, tuple[Decimal, Decimal | None]] = {
    PaymentMethodType.FLUTTERWAVE: (Decimal("1"), Decimal("10000")),
    PaymentMethodType.CINETPAY: (Decimal("1"), Decimal("5000")),
    PaymentMethodType.MOBILE_MONEY: (Decimal("1"), Decimal("2000")),
    PaymentMethodType.BANK_TRANSFER: (Decimal("10"), None),
    PaymentMethodType.CASH: (Decimal("5"), Decimal("1000")),
}

# CinetPay only operates in the franc zone
CINETPAY_COUNTRIES = {"SN", "CI", "CM"}

OPENING_BALANCE = Decimal("1000000")

GLOBAL_RATE = {
    "name": "Taux Global Standard",
    "description": "Taux de transfert par défaut pour tous les pays",
    "base_fee": Decimal("5.00"),
    "percentage_fee": Decimal("2.5"),
    "min_amount": Decimal("1"),
    "max_amount": Decimal("10000"),
    "exchange_rate_margin": Decimal("2.0"),
}

CORRIDORS: list[dict] = [
    {"sender": "FR", "receiver": "CI", "base_fee": Decimal("3.00"),
     "percentage_fee": Decimal("1.5"), "exchange_rate_margin": Decimal("1.5")},
    {"sender": "FR", "receiver": "SN", "base_fee": Decimal("3.00"),
     "percentage_fee": Decimal("1.5"), "exchange_rate_margin": Decimal("1.5")},
    {"sender": "US", "receiver": "NG", "base_fee": Decimal("4.00"),
     "percentage_fee": Decimal("2.0"), "exchange_rate_margin": Decimal("1.8")},
    {"sender": "GB", "receiver": "GH", "base_fee": Decimal("4.00"),
     "percentage_fee": Decimal("2.0"), "exchange_rate_margin": Decimal("1.8")},
]

CONFIGURATIONS: list[dict] = [
    {"key": "APP_NAME", "value": "GIC CashTransfer", "category": "general"},
    {"key": "APP_URL", "value": "http://localhost:3000", "category": "general"},
    {"key": "MAINTENANCE_MODE", "value": "false", "type": ConfigType.BOOLEAN, "category": "general"},
    {"key": "FLUTTERWAVE_PUBLIC_KEY", "value": "", "category": "flutterwave"},
    {"key": "FLUTTERWAVE_SECRET_KEY", "value": "", "encrypted": True, "category": "flutterwave"},
    {"key": "FLUTTERWAVE_ENCRYPTION_KEY", "value": "", "encrypted": True, "category": "flutterwave"},
    {"key": "FLUTTERWAVE_WEBHOOK_HASH", "value": "", "encrypted": True, "category": "flutterwave"},
    {"key": "CINETPAY_API_KEY", "value": "", "encrypted": True, "category": "cinetpay"},
    {"key": "CINETPAY_SITE_ID", "value": "", "category": "cinetpay"},
    {"key": "CINETPAY_SECRET_KEY", "value": "", "encrypted": True, "category": "cinetpay"},
    {"key": "CINETPAY_NOTIFY_URL", "value": "", "category": "cinetpay"},
]


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------


async def seed() -> None:
    async with async_session() as session:
        # 1. Countries
        countries: dict[str, Country] = {}
        for data in COUNTRIES:
            country = (
                await session.execute(select(Country).where(Country.code == data["code"]))
            ).scalar_one_or_none()
            if country is None:
                country = Country(**data)
                session.add(country)
            countries[data["code"]] = country
        await session.flush()
        print(f"  Countries: {len(countries)}")

        # 2. Payment methods
        methods: dict[PaymentMethodType, PaymentMethod] = {}
        for data in PAYMENT_METHODS:
            method = (
                await session.execute(
                    select(PaymentMethod).where(PaymentMethod.type == data["type"])
                )
            ).scalar_one_or_none()
            if method is None:
                method = PaymentMethod(**data)
                session.add(method)
            methods[data["type"]] = method
        await session.flush()
        print(f"  Payment methods: {len(methods)}")

        # 3. Country methods, wallets and sub-wallets
        sub_wallets = 0
        for code, country in countries.items():
            wallet = (
                await session.execute(select(Wallet).where(Wallet.country_id == country.id))
            ).scalar_one_or_none()
            if wallet is None:
                wallet = Wallet(country_id=country.id)
                session.add(wallet)
                await session.flush()

            for method_type, method in methods.items():
                if method_type == PaymentMethodType.CINETPAY and code not in CINETPAY_COUNTRIES:
                    continue
                cpm = (
                    await session.execute(
                        select(CountryPaymentMethod).where(
                            CountryPaymentMethod.country_id == country.id,
                            CountryPaymentMethod.payment_method_id == method.id,
                        )
                    )
                ).scalar_one_or_none()
                if cpm is not None:
                    continue

                min_amount, max_amount = METHOD_BOUNDS[method_type]
                cpm = CountryPaymentMethod(
                    country_id=country.id,
                    payment_method_id=method.id,
                    min_amount=min_amount,
                    max_amount=max_amount,
                )
                session.add(cpm)
                await session.flush()

                session.add(SubWallet(
                    wallet_id=wallet.id,
                    country_payment_method_id=cpm.id,
                    balance=OPENING_BALANCE,
                    # Gateway balances are mirrored, not edited
                    read_only=method_type in (PaymentMethodType.FLUTTERWAVE, PaymentMethodType.CINETPAY),
                ))
                wallet.balance = wallet.balance + OPENING_BALANCE
                sub_wallets += 1
        await session.flush()
        print(f"  Sub-wallets: {sub_wallets} new")

        # 4. Transfer rates
        rates = 0
        has_default = (
            await session.execute(
                select(TransferRate.id).where(
                    TransferRate.scope == RateScope.GLOBAL,
                    TransferRate.is_default.is_(True),
                )
            )
        ).first()
        if has_default is None:
            session.add(TransferRate(scope=RateScope.GLOBAL, is_default=True, **GLOBAL_RATE))
            rates += 1

        for corridor in CORRIDORS:
            sender = countries[corridor["sender"]]
            receiver = countries[corridor["receiver"]]
            exists = (
                await session.execute(
                    select(TransferRate.id).where(
                        TransferRate.scope == RateScope.CORRIDOR,
                        TransferRate.sender_country_id == sender.id,
                        TransferRate.receiver_country_id == receiver.id,
                    )
                )
            ).first()
            if exists is not None:
                continue
            session.add(TransferRate(
                scope=RateScope.CORRIDOR,
                sender_country_id=sender.id,
                receiver_country_id=receiver.id,
                name=f"{sender.name} → {receiver.name}",
                base_fee=corridor["base_fee"],
                percentage_fee=corridor["percentage_fee"],
                exchange_rate_margin=corridor["exchange_rate_margin"],
            ))
            rates += 1
        await session.flush()
        print(f"  Transfer rates: {rates} new")

        # 5. Runtime configuration
        configs = 0
        for data in CONFIGURATIONS:
            exists = (
                await session.execute(
                    select(Configuration.id).where(Configuration.key == data["key"])
                )
            ).first()
            if exists is not None:
                continue
            value = data["value"]
            if data.get("encrypted") and value:
                value = encrypt_value(value)
            session.add(Configuration(**{**data, "value": value}))
            configs += 1
        print(f"  Configuration keys: {configs} new")

        await session.commit()


if __name__ == "__main__":
    print("Seeding GIC CashTransfer reference data...")
    asyncio.run(seed())
    print("Done.")
