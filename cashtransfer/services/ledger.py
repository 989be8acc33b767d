"""
Wallet/sub-wallet ledger — the only code that moves liquidity.

Settling a transfer debits the receiver country's sub-wallet for the
payment method (that liquidity pays the receiver out) and credits the
sender country's sub-wallet for the same method (the sender's payment
lands there). Both legs and both wallet aggregates are written in one
database transaction under row locks, so concurrent settlements on the
same sub-wallet serialise and can never overdraw it.
"""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from cashtransfer.core.errors import (
    CashTransferError,
    InsufficientBalanceError,
    InvalidInputError,
    LedgerTransactionError,
    NotFoundError,
)
from cashtransfer.models.country import Country
from cashtransfer.models.payment_method import CountryPaymentMethod
from cashtransfer.models.wallet import SubWallet, Wallet
from cashtransfer.schemas.wallet import CountryWalletOut, SettlementOut, SubWalletOut

logger = logging.getLogger(__name__)


class WalletLedger:
    """Atomic balance operations over wallets and sub-wallets."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def settle_transfer(
        self,
        sender_country_id: int,
        receiver_country_id: int,
        payment_method_id: int,
        amount: Decimal,
    ) -> SettlementOut:
        """
        Move *amount* from the receiver's sub-wallet to the sender's, atomically.

        Raises InsufficientBalanceError or LedgerTransactionError; in both
        cases nothing was written.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await self.apply_settlement(
                        session, sender_country_id, receiver_country_id,
                        payment_method_id, amount,
                    )
        except CashTransferError:
            raise
        except Exception as exc:
            logger.exception(
                "Settlement %s -> %s (method %s, %s) aborted",
                receiver_country_id, sender_country_id, payment_method_id, amount,
            )
            raise LedgerTransactionError("database error") from exc

    async def apply_settlement(
        self,
        session: AsyncSession,
        sender_country_id: int,
        receiver_country_id: int,
        payment_method_id: int,
        amount: Decimal,
    ) -> SettlementOut:
        """
        Settlement steps inside a transaction owned by the caller.

        The caller must roll back on any exception.
        """
        if amount is None or not amount.is_finite() or amount <= 0:
            raise InvalidInputError("Settlement amount must be a positive number")

        # Every settlement locks wallets by country id, then sub-wallets by id
        wallets = await self._lock_wallets(session, {sender_country_id, receiver_country_id})
        receiver_wallet = wallets.get(receiver_country_id)
        if receiver_wallet is None:
            raise LedgerTransactionError(
                f"Receiver country {receiver_country_id} has no wallet"
            )
        sender_wallet = wallets.get(sender_country_id)
        if sender_wallet is None:
            sender_wallet = Wallet(country_id=sender_country_id)
            session.add(sender_wallet)
            await session.flush()
            logger.info("Created wallet %s for country %s", sender_wallet.id, sender_country_id)

        subs = await self._lock_sub_wallets(
            session, {receiver_wallet.id, sender_wallet.id}, payment_method_id,
        )

        # Debit receiver
        receiver_sub = subs.get(receiver_wallet.id)
        if receiver_sub is None or not receiver_sub.active:
            raise LedgerTransactionError(
                f"Receiver wallet {receiver_wallet.id} has no active sub-wallet for "
                f"payment method {payment_method_id}"
            )
        if receiver_sub.balance < amount:
            logger.warning(
                "Refused settlement: sub-wallet %s holds %s, needs %s",
                receiver_sub.id, receiver_sub.balance, amount,
            )
            raise InsufficientBalanceError(
                f"Sub-wallet {receiver_sub.id} balance {receiver_sub.balance} "
                f"is below {amount}",
                available=receiver_sub.balance,
                requested=amount,
            )
        receiver_sub.balance = receiver_sub.balance - amount
        receiver_wallet.balance = receiver_wallet.balance - amount
        await session.flush()

        # Credit sender
        sender_sub = subs.get(sender_wallet.id)
        if sender_sub is None:
            sender_sub = await self._open_sub_wallet(
                session, sender_wallet, sender_country_id, payment_method_id,
            )
        await self._credit(session, sender_wallet, sender_sub, amount)

        logger.info(
            "Settled %s for method %s: sub-wallet %s -> sub-wallet %s",
            amount, payment_method_id, receiver_sub.id, sender_sub.id,
        )
        return SettlementOut(
            amount=amount,
            receiver_sub_wallet_id=receiver_sub.id,
            receiver_balance=receiver_sub.balance,
            sender_sub_wallet_id=sender_sub.id,
            sender_balance=sender_sub.balance,
        )

    # ------------------------------------------------------------------
    # Operator adjustments
    # ------------------------------------------------------------------

    async def adjust_sub_wallet(
        self,
        sub_wallet_id: int,
        amount: Decimal,
        operation: str,
    ) -> SubWalletOut:
        """
        Credit or debit one sub-wallet by hand and refresh its wallet total.

        Read-only sub-wallets mirror a gateway balance and are refused.
        """
        if operation not in ("credit", "debit"):
            raise InvalidInputError(f"Unknown operation {operation!r}")
        if amount is None or not amount.is_finite() or amount <= 0:
            raise InvalidInputError("Adjustment amount must be a positive number")

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(SubWallet)
                    .where(SubWallet.id == sub_wallet_id)
                    .options(
                        selectinload(SubWallet.country_payment_method)
                        .selectinload(CountryPaymentMethod.payment_method)
                    )
                    .with_for_update()
                )
                sub = result.scalar_one_or_none()
                if sub is None:
                    raise NotFoundError(f"Sub-wallet {sub_wallet_id} not found")
                if sub.read_only:
                    raise InvalidInputError(
                        f"Sub-wallet {sub_wallet_id} is read-only and cannot be adjusted"
                    )

                if operation == "credit":
                    sub.balance = sub.balance + amount
                else:
                    if sub.balance < amount:
                        raise InsufficientBalanceError(
                            f"Sub-wallet {sub_wallet_id} balance {sub.balance} is below {amount}",
                            available=sub.balance,
                            requested=amount,
                        )
                    sub.balance = sub.balance - amount
                await session.flush()

                wallet = (
                    await session.execute(
                        select(Wallet).where(Wallet.id == sub.wallet_id).with_for_update()
                    )
                ).scalar_one()
                await self.recompute_wallet_balance(session, wallet)
                view = _sub_wallet_view(sub)

        logger.info("Sub-wallet %s %s %s by operator", sub_wallet_id, operation, amount)
        return view

    async def recompute_wallet_balance(self, session: AsyncSession, wallet: Wallet) -> Decimal:
        """Set the wallet aggregate to the sum of its sub-wallets."""
        total = (
            await session.execute(
                select(func.coalesce(func.sum(SubWallet.balance), 0))
                .where(SubWallet.wallet_id == wallet.id)
            )
        ).scalar_one()
        wallet.balance = Decimal(str(total))
        await session.flush()
        return wallet.balance

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_wallets(self) -> list[CountryWalletOut]:
        """Every active country with its wallet; wallet-less countries show empty."""
        async with self.session_factory() as session:
            countries = (
                await session.execute(
                    select(Country)
                    .where(Country.active.is_(True))
                    .options(
                        selectinload(Country.wallet)
                        .selectinload(Wallet.sub_wallets)
                        .selectinload(SubWallet.country_payment_method)
                        .selectinload(CountryPaymentMethod.payment_method)
                    )
                    .order_by(Country.name)
                )
            ).scalars().all()

            views = []
            for country in countries:
                view = CountryWalletOut(
                    country_id=country.id,
                    country_name=country.name,
                    country_code=country.code,
                    currency_code=country.currency_code,
                )
                if country.wallet is not None:
                    view.wallet_id = country.wallet.id
                    view.balance = country.wallet.balance
                    view.sub_wallets = [_sub_wallet_view(sub) for sub in country.wallet.sub_wallets]
                views.append(view)
            return views

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _lock_wallets(self, session: AsyncSession, country_ids: set[int]) -> dict[int, Wallet]:
        """Lock the wallets of *country_ids* in ascending country order."""
        result = await session.execute(
            select(Wallet)
            .where(Wallet.country_id.in_(sorted(country_ids)))
            .order_by(Wallet.country_id)
            .with_for_update()
        )
        return {wallet.country_id: wallet for wallet in result.scalars().all()}

    async def _lock_sub_wallets(
        self, session: AsyncSession, wallet_ids: set[int], payment_method_id: int,
    ) -> dict[int, SubWallet]:
        """Lock each wallet's sub-wallet for the method, in ascending id order."""
        result = await session.execute(
            select(SubWallet)
            .join(CountryPaymentMethod, SubWallet.country_payment_method_id == CountryPaymentMethod.id)
            .where(
                SubWallet.wallet_id.in_(sorted(wallet_ids)),
                CountryPaymentMethod.payment_method_id == payment_method_id,
            )
            .order_by(SubWallet.id)
            .with_for_update(of=SubWallet)
        )
        return {sub.wallet_id: sub for sub in result.scalars().all()}

    async def _open_sub_wallet(
        self, session: AsyncSession, wallet: Wallet, country_id: int, payment_method_id: int,
    ) -> SubWallet:
        """Create the sender's sub-wallet, enabling the method for the country if needed."""
        cpm = (
            await session.execute(
                select(CountryPaymentMethod).where(
                    CountryPaymentMethod.country_id == country_id,
                    CountryPaymentMethod.payment_method_id == payment_method_id,
                )
            )
        ).scalar_one_or_none()
        if cpm is None:
            cpm = CountryPaymentMethod(
                country_id=country_id, payment_method_id=payment_method_id,
            )
            session.add(cpm)
            await session.flush()

        sub = SubWallet(wallet_id=wallet.id, country_payment_method_id=cpm.id)
        session.add(sub)
        await session.flush()
        logger.info("Created sub-wallet %s for country %s method %s", sub.id, country_id, payment_method_id)
        return sub

    async def _credit(
        self, session: AsyncSession, wallet: Wallet, sub: SubWallet, amount: Decimal,
    ) -> None:
        sub.balance = sub.balance + amount
        wallet.balance = wallet.balance + amount
        await session.flush()


def _sub_wallet_view(sub: SubWallet) -> SubWalletOut:
    method = sub.country_payment_method.payment_method
    return SubWalletOut(
        id=sub.id,
        country_payment_method_id=sub.country_payment_method_id,
        payment_method_id=method.id,
        payment_method_name=method.name,
        payment_method_type=method.type.value,
        balance=sub.balance,
        active=sub.active,
        read_only=sub.read_only,
    )
