"""
Transfer lifecycle — create, pay, approve, complete or fail a transfer.

Status flow::

    pending ──► paid ──► approved ──► completed
       │          │          │
       ├──────────┴──────────┴──► failed
       └──► cancelled

Confirming payment settles the wallets in the same database transaction
as the status change. If settlement fails the transfer is marked failed
in a separate transaction and the error is re-raised.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cashtransfer.core.errors import (
    CashTransferError,
    InsufficientBalanceError,
    InvalidInputError,
    LedgerTransactionError,
    NotFoundError,
)
from cashtransfer.models.payment_method import AUTOMATED_TYPES, PaymentMethodType
from cashtransfer.models.transaction import Transaction, TransactionStatus
from cashtransfer.schemas.admin_notes import (
    FailureInfo,
    ManualProcessingRequired,
    PaymentVerified,
    TransferCompleted,
)
from cashtransfer.services.availability import get_available_payment_methods
from cashtransfer.services.exchange_rate_service import ExchangeRateProvider
from cashtransfer.services.fee_service import FeeService
from cashtransfer.services.ledger import WalletLedger

logger = logging.getLogger(__name__)


class TransferService:
    """Owns its database transactions; one instance per request is fine."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        redis=None,
        provider: ExchangeRateProvider | None = None,
        ledger: WalletLedger | None = None,
    ):
        self.session_factory = session_factory
        self.redis = redis
        self.provider = provider
        self.ledger = ledger or WalletLedger(session_factory)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_transfer(
        self,
        sender_country_id: int,
        receiver_country_id: int,
        payment_method_id: int,
        amount: Decimal,
        quote_id: str | None = None,
    ) -> Transaction:
        """
        Price and record a pending transfer.

        The payment method must be offered to the sender for this amount and
        the receiver's sub-wallet for it must currently cover the amount.
        """
        async with self.session_factory() as session:
            async with session.begin():
                methods = await get_available_payment_methods(
                    session, sender_country_id, receiver_country_id, amount,
                )
                method = next(
                    (m for m in methods if m.payment_method_id == payment_method_id), None,
                )
                if method is None:
                    raise InvalidInputError(
                        f"Payment method {payment_method_id} is not offered for this transfer"
                    )
                if not method.available:
                    raise InsufficientBalanceError(
                        f"Payment method {method.name} has insufficient liquidity",
                        available=method.balance,
                        requested=amount,
                    )

                fees = FeeService(session, redis=self.redis, provider=self.provider)
                if quote_id:
                    breakdown = await fees.calculate_from_quote(
                        quote_id, sender_country_id, receiver_country_id, amount,
                    )
                else:
                    breakdown = await fees.calculate(
                        sender_country_id, receiver_country_id, amount, store_quote=False,
                    )

                txn = Transaction(
                    sender_country_id=sender_country_id,
                    receiver_country_id=receiver_country_id,
                    payment_method_id=payment_method_id,
                    amount=amount,
                    sender_currency=breakdown.sender_currency,
                    receiver_currency=breakdown.receiver_currency,
                    total_fees=breakdown.fees.total,
                    amount_after_fees=breakdown.summary.amount_after_fees,
                    applied_rate=breakdown.exchange.applied_rate,
                    received_amount=breakdown.summary.amount_received,
                    fee_breakdown=breakdown.audit_dict(),
                )

                method_type = PaymentMethodType(method.type)
                if method_type not in AUTOMATED_TYPES:
                    txn.add_note(ManualProcessingRequired(
                        payment_method_type=method_type.value,
                        reason=f"{method.name} payouts are processed by an operator",
                    ))

                session.add(txn)
                await session.flush()

        logger.info(
            "Created transfer %s: %s %s -> %s (method %s)",
            txn.reference, amount, txn.sender_currency, txn.receiver_currency,
            payment_method_id,
        )
        return txn

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def confirm_payment(self, transaction_id: int, provider_reference: str) -> Transaction:
        """pending -> paid, then settle the wallets in the same transaction."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    txn = await self._lock(session, transaction_id)
                    txn.transition_to(TransactionStatus.PAID)
                    txn.add_note(PaymentVerified(
                        provider_reference=provider_reference, amount=txn.amount,
                    ))
                    await self.ledger.apply_settlement(
                        session,
                        txn.sender_country_id,
                        txn.receiver_country_id,
                        txn.payment_method_id,
                        txn.amount,
                    )
        except (NotFoundError, InvalidInputError):
            raise
        except CashTransferError as exc:
            await self._mark_settlement_failure(transaction_id, exc)
            raise
        except Exception as exc:
            logger.exception("Settlement for transaction %s aborted", transaction_id)
            await self._mark_settlement_failure(transaction_id, exc)
            raise LedgerTransactionError("database error") from exc

        logger.info("Transaction %s paid and settled", txn.reference)
        return txn

    async def approve(self, transaction_id: int) -> Transaction:
        """paid -> approved."""
        async with self.session_factory() as session:
            async with session.begin():
                txn = await self._lock(session, transaction_id)
                txn.transition_to(TransactionStatus.APPROVED)
        logger.info("Transaction %s approved", txn.reference)
        return txn

    async def complete(self, transaction_id: int, payout_reference: str | None = None) -> Transaction:
        """approved -> completed, recording the payout."""
        async with self.session_factory() as session:
            async with session.begin():
                txn = await self._lock(session, transaction_id)
                txn.transition_to(TransactionStatus.COMPLETED)
                txn.add_note(TransferCompleted(
                    payout_reference=payout_reference,
                    received_amount=txn.received_amount,
                    currency=txn.receiver_currency,
                ))
        logger.info("Transaction %s completed", txn.reference)
        return txn

    async def fail(
        self,
        transaction_id: int,
        reason: str,
        provider_status: str | None = None,
        cancelled: bool = False,
    ) -> Transaction:
        """Move to failed (or cancelled) with the reason recorded."""
        new_status = TransactionStatus.CANCELLED if cancelled else TransactionStatus.FAILED
        async with self.session_factory() as session:
            async with session.begin():
                txn = await self._lock(session, transaction_id)
                stage = "payment" if txn.status == TransactionStatus.PENDING else "payout"
                txn.transition_to(new_status)
                txn.add_note(FailureInfo(
                    stage=stage, reason=reason, provider_status=provider_status,
                ))
        logger.info("Transaction %s %s: %s", txn.reference, new_status.value, reason)
        return txn

    async def get(self, transaction_id: int) -> Transaction:
        async with self.session_factory() as session:
            return await self._load(session, Transaction.id == transaction_id, str(transaction_id))

    async def get_by_reference(self, reference: str) -> Transaction:
        async with self.session_factory() as session:
            return await self._load(session, Transaction.reference == reference.upper(), reference)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self, session: AsyncSession, clause, label: str) -> Transaction:
        txn = (await session.execute(select(Transaction).where(clause))).scalar_one_or_none()
        if txn is None:
            raise NotFoundError(f"Transaction {label} not found")
        return txn

    async def _lock(self, session: AsyncSession, transaction_id: int) -> Transaction:
        result = await session.execute(
            select(Transaction).where(Transaction.id == transaction_id).with_for_update()
        )
        txn = result.scalar_one_or_none()
        if txn is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    async def _mark_settlement_failure(self, transaction_id: int, exc: Exception) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                txn = await self._lock(session, transaction_id)
                if not txn.is_valid_transition(txn.status, TransactionStatus.FAILED):
                    return
                txn.transition_to(TransactionStatus.FAILED)
                txn.add_note(FailureInfo(
                    stage="settlement",
                    reason="Wallet settlement failed",
                    error=str(exc),
                ))
        logger.warning("Transaction %s failed during settlement: %s", transaction_id, exc)
