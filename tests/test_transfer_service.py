"""Tests for the transfer lifecycle — creation, payment, settlement, completion."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from cashtransfer.core.errors import (
    InsufficientBalanceError,
    InvalidInputError,
    InvalidTransitionError,
    LedgerTransactionError,
    NotFoundError,
)
from cashtransfer.models import SubWallet, TransactionStatus
from cashtransfer.models.transfer_rate import RateScope
from cashtransfer.schemas.admin_notes import (
    FailureInfo,
    ManualProcessingRequired,
    PaymentVerified,
    TransferCompleted,
)
from cashtransfer.services.fee_service import FeeService
from cashtransfer.services.ledger import WalletLedger
from cashtransfer.services.transfer_service import TransferService


@pytest_asyncio.fixture
async def priced_corridor(seed, corridor, fx_provider):
    await seed.rate(RateScope.GLOBAL, is_default=True, base_fee="5", percentage_fee="2",
                    exchange_rate_margin="1")
    fx_provider.rates[("USD", "XOF")] = Decimal("655")
    return corridor


@pytest.fixture
def service(session_factory, mock_redis):
    return TransferService(session_factory, redis=mock_redis)


async def _create(service, corridor, method="flutterwave", amount="100", **kwargs):
    return await service.create_transfer(
        corridor["sender"].id,
        corridor["receiver"].id,
        corridor[method].id,
        Decimal(amount),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateTransfer:

    @pytest.mark.asyncio
    async def test_creates_pending_transfer_with_breakdown(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)

        assert txn.reference.startswith("GIC-")
        assert txn.status == TransactionStatus.PENDING
        assert txn.total_fees == Decimal("7")
        assert txn.amount_after_fees == Decimal("93")
        assert txn.applied_rate == Decimal("648.45")
        assert txn.received_amount == Decimal("93") * Decimal("648.45")
        assert txn.fee_breakdown["rateInfo"]["type"] == "global"
        assert txn.notes == []

    @pytest.mark.asyncio
    async def test_manual_method_gets_processing_note(self, service, priced_corridor):
        bank_sub = priced_corridor["receiver_subs"]["Virement bancaire"]
        await service.ledger.adjust_sub_wallet(bank_sub.id, Decimal("500"), "credit")

        txn = await _create(service, priced_corridor, method="bank")

        [note] = txn.notes
        assert isinstance(note, ManualProcessingRequired)
        assert note.payment_method_type == "BANK_TRANSFER"

    @pytest.mark.asyncio
    async def test_unavailable_method_rejected(self, service, priced_corridor):
        with pytest.raises(InsufficientBalanceError):
            await _create(service, priced_corridor, method="momo", amount="60")

    @pytest.mark.asyncio
    async def test_method_not_offered(self, seed, service, priced_corridor):
        other = await seed.method("Western Union")
        with pytest.raises(InvalidInputError):
            await service.create_transfer(
                priced_corridor["sender"].id, priced_corridor["receiver"].id, other.id, Decimal("10"),
            )

    @pytest.mark.asyncio
    async def test_quote_reuse_keeps_quoted_rate(
        self, session_factory, service, priced_corridor, fx_provider, mock_redis,
    ):
        async with session_factory() as session:
            quote = await FeeService(session, redis=mock_redis).calculate(
                priced_corridor["sender"].id, priced_corridor["receiver"].id, Decimal("100"),
            )

        fx_provider.rates[("USD", "XOF")] = Decimal("700")
        txn = await _create(service, priced_corridor, quote_id=quote.quote_id)

        assert txn.applied_rate == Decimal("648.45")
        assert txn.fee_breakdown["quoteId"] == quote.quote_id


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_confirm_payment_settles_wallets(self, seed, service, priced_corridor):
        txn = await _create(service, priced_corridor)

        paid = await service.confirm_payment(txn.id, "FLW-123")

        assert paid.status == TransactionStatus.PAID
        assert paid.paid_at is not None
        [note] = paid.notes
        assert isinstance(note, PaymentVerified)
        assert note.provider_reference == "FLW-123"
        sub = await seed.get(SubWallet, priced_corridor["receiver_subs"]["Flutterwave"].id)
        assert sub.balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_settlement_failure_marks_transfer_failed(self, seed, service, priced_corridor):
        txn = await _create(service, priced_corridor)
        # Liquidity drained between creation and payment
        sub_id = priced_corridor["receiver_subs"]["Flutterwave"].id
        await service.ledger.adjust_sub_wallet(sub_id, Decimal("150"), "debit")

        with pytest.raises(InsufficientBalanceError):
            await service.confirm_payment(txn.id, "FLW-123")

        failed = await service.get(txn.id)
        assert failed.status == TransactionStatus.FAILED
        [note] = failed.notes
        assert isinstance(note, FailureInfo)
        assert note.stage == "settlement"
        assert (await seed.get(SubWallet, sub_id)).balance == Decimal("50")

    @pytest.mark.asyncio
    async def test_unexpected_settlement_error_becomes_ledger_error(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)

        with patch.object(WalletLedger, "_credit", AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(LedgerTransactionError):
                await service.confirm_payment(txn.id, "FLW-123")

        assert (await service.get(txn.id)).status == TransactionStatus.FAILED

    @pytest.mark.asyncio
    async def test_full_happy_path(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)
        await service.confirm_payment(txn.id, "FLW-123")
        await service.approve(txn.id)

        done = await service.complete(txn.id, payout_reference="PAYOUT-9")

        assert done.status == TransactionStatus.COMPLETED
        assert done.completed_at is not None
        note = done.notes[-1]
        assert isinstance(note, TransferCompleted)
        assert note.currency == "XOF"
        assert note.payout_reference == "PAYOUT-9"

    @pytest.mark.asyncio
    async def test_cannot_complete_unpaid_transfer(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)
        with pytest.raises(InvalidTransitionError):
            await service.complete(txn.id)

    @pytest.mark.asyncio
    async def test_confirm_twice_rejected_without_second_settlement(self, seed, service, priced_corridor):
        txn = await _create(service, priced_corridor)
        await service.confirm_payment(txn.id, "FLW-123")

        with pytest.raises(InvalidTransitionError):
            await service.confirm_payment(txn.id, "FLW-123")

        sub = await seed.get(SubWallet, priced_corridor["receiver_subs"]["Flutterwave"].id)
        assert sub.balance == Decimal("100")
        assert (await service.get(txn.id)).status == TransactionStatus.PAID

    @pytest.mark.asyncio
    async def test_cancel_pending(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)

        cancelled = await service.fail(txn.id, "Customer request", cancelled=True)

        assert cancelled.status == TransactionStatus.CANCELLED
        assert cancelled.notes[-1].stage == "payment"

    @pytest.mark.asyncio
    async def test_fail_after_payment_records_payout_stage(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)
        await service.confirm_payment(txn.id, "FLW-123")

        failed = await service.fail(txn.id, "Payout rejected", provider_status="REJECTED")

        assert failed.status == TransactionStatus.FAILED
        assert failed.notes[-1].stage == "payout"
        assert failed.notes[-1].provider_status == "REJECTED"

    @pytest.mark.asyncio
    async def test_get_by_reference(self, service, priced_corridor):
        txn = await _create(service, priced_corridor)

        found = await service.get_by_reference(txn.reference.lower())
        assert found.id == txn.id

        with pytest.raises(NotFoundError):
            await service.get_by_reference("GIC-NOPE0000")

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, service):
        with pytest.raises(NotFoundError):
            await service.approve(404)
