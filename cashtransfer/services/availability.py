"""
Payment-method availability matcher.

Lists the payment methods a sender can use for an amount, flagging each
one by whether the receiver country's sub-wallet for the same method holds
enough liquidity to pay the transfer out.
"""

import logging
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cashtransfer.models.payment_method import CountryPaymentMethod, PaymentMethod
from cashtransfer.models.wallet import SubWallet, Wallet
from cashtransfer.schemas.availability import PaymentMethodAvailability

logger = logging.getLogger(__name__)


def _valid_request(*ids, amount) -> bool:
    if any(not isinstance(i, int) or i <= 0 for i in ids):
        return False
    if amount is None:
        return False
    amount = Decimal(amount)
    return amount.is_finite() and amount > 0


async def _sender_methods(
    session: AsyncSession, country_id: int, amount: Decimal,
) -> list[CountryPaymentMethod]:
    """Active methods of *country_id* whose bounds contain *amount*."""
    result = await session.execute(
        select(CountryPaymentMethod)
        .join(PaymentMethod, CountryPaymentMethod.payment_method_id == PaymentMethod.id)
        .where(
            CountryPaymentMethod.country_id == country_id,
            CountryPaymentMethod.active.is_(True),
            PaymentMethod.active.is_(True),
            CountryPaymentMethod.min_amount <= amount,
            or_(
                CountryPaymentMethod.max_amount.is_(None),
                CountryPaymentMethod.max_amount >= amount,
            ),
        )
        .options(
            selectinload(CountryPaymentMethod.payment_method),
            selectinload(CountryPaymentMethod.country),
        )
        .order_by(CountryPaymentMethod.id)
    )
    return list(result.scalars().all())


async def _receiver_balances(session: AsyncSession, country_id: int) -> dict[int, Decimal] | None:
    """
    Map payment_method_id -> balance for the receiver's usable sub-wallets.

    Returns None when the receiver country has no wallet at all.
    """
    wallet_id = (
        await session.execute(select(Wallet.id).where(Wallet.country_id == country_id))
    ).scalar_one_or_none()
    if wallet_id is None:
        return None

    result = await session.execute(
        select(CountryPaymentMethod.payment_method_id, SubWallet.balance)
        .join(CountryPaymentMethod, SubWallet.country_payment_method_id == CountryPaymentMethod.id)
        .join(PaymentMethod, CountryPaymentMethod.payment_method_id == PaymentMethod.id)
        .where(
            SubWallet.wallet_id == wallet_id,
            SubWallet.active.is_(True),
            PaymentMethod.active.is_(True),
        )
    )
    return {method_id: balance for method_id, balance in result.all()}


async def get_available_payment_methods(
    session: AsyncSession,
    sender_country_id: int,
    receiver_country_id: int,
    amount: Decimal,
) -> list[PaymentMethodAvailability]:
    """
    Sender payment methods usable for *amount*, available ones first.

    Invalid input or a receiver country without a wallet yields an empty
    list. Available methods come first, then by receiver balance
    descending; equal keys keep the sender's configuration order.
    """
    if not _valid_request(sender_country_id, receiver_country_id, amount=amount):
        return []
    amount = Decimal(amount)

    methods = await _sender_methods(session, sender_country_id, amount)
    if not methods:
        return []

    balances = await _receiver_balances(session, receiver_country_id)
    if balances is None:
        logger.warning("No wallet for receiver country %s", receiver_country_id)
        return []

    records = []
    for cpm in methods:
        balance = balances.get(cpm.payment_method_id)
        records.append(PaymentMethodAvailability(
            payment_method_id=cpm.payment_method_id,
            name=cpm.payment_method.name,
            type=cpm.payment_method.type.value,
            available=balance is not None and balance >= amount,
            balance=balance if balance is not None else Decimal("0"),
            min_amount=cpm.min_amount,
            max_amount=cpm.max_amount,
            country_id=cpm.country_id,
            country_name=cpm.country.name,
            currency_code=cpm.country.currency_code,
        ))

    records.sort(key=lambda r: (not r.available, -r.balance))
    return records


async def check_wallet_balance(
    session: AsyncSession,
    country_id: int,
    payment_method_id: int,
    amount: Decimal,
) -> bool:
    """True when *country_id*'s active sub-wallet for the method covers *amount*."""
    if not _valid_request(country_id, payment_method_id, amount=amount):
        return False

    result = await session.execute(
        select(SubWallet.balance)
        .join(Wallet, SubWallet.wallet_id == Wallet.id)
        .join(CountryPaymentMethod, SubWallet.country_payment_method_id == CountryPaymentMethod.id)
        .where(
            Wallet.country_id == country_id,
            CountryPaymentMethod.payment_method_id == payment_method_id,
            SubWallet.active.is_(True),
        )
    )
    balance = result.scalar_one_or_none()
    return balance is not None and balance >= Decimal(amount)
