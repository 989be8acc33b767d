"""
Wallet administration: balances per country, operator adjustments and
manual settlement.
"""

import logging

from fastapi import APIRouter, Depends

from cashtransfer.api.deps import get_ledger, http_error
from cashtransfer.core.errors import CashTransferError
from cashtransfer.schemas.wallet import (
    CountryWalletOut,
    SettlementOut,
    SettlementRequest,
    SubWalletAdjustment,
    SubWalletOut,
)
from cashtransfer.services.ledger import WalletLedger

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[CountryWalletOut])
async def list_wallets(ledger: WalletLedger = Depends(get_ledger)):
    """Every active country with its wallet and sub-wallets."""
    return await ledger.list_wallets()


@router.patch("/sub-wallets/{sub_wallet_id}", response_model=SubWalletOut)
async def adjust_sub_wallet(
    sub_wallet_id: int,
    body: SubWalletAdjustment,
    ledger: WalletLedger = Depends(get_ledger),
):
    """Credit or debit a sub-wallet. Read-only sub-wallets are refused."""
    try:
        return await ledger.adjust_sub_wallet(sub_wallet_id, body.amount, body.operation)
    except CashTransferError as exc:
        raise http_error(exc)


@router.post("/settle", response_model=SettlementOut)
async def settle(body: SettlementRequest, ledger: WalletLedger = Depends(get_ledger)):
    """Move liquidity from the receiver's sub-wallet to the sender's."""
    try:
        return await ledger.settle_transfer(
            body.sender_country_id,
            body.receiver_country_id,
            body.payment_method_id,
            body.amount,
        )
    except CashTransferError as exc:
        logger.warning("Manual settlement refused: %s", exc)
        raise http_error(exc)
