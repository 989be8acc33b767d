"""
Transaction administration — drive a transfer through its lifecycle.

confirm-payment also settles the wallets; if settlement fails the
transaction ends up failed and the error is returned.
"""

from fastapi import APIRouter, Depends

from cashtransfer.api.deps import get_transfer_service, http_error
from cashtransfer.core.errors import CashTransferError
from cashtransfer.schemas.transfer import (
    CompleteTransferRequest,
    ConfirmPaymentRequest,
    FailTransferRequest,
    TransferOut,
)
from cashtransfer.services.transfer_service import TransferService

router = APIRouter()


@router.get("/{transaction_id}", response_model=TransferOut)
async def get_transaction(
    transaction_id: int,
    svc: TransferService = Depends(get_transfer_service),
):
    try:
        return await svc.get(transaction_id)
    except CashTransferError as exc:
        raise http_error(exc)


@router.post("/{transaction_id}/confirm-payment", response_model=TransferOut)
async def confirm_payment(
    transaction_id: int,
    body: ConfirmPaymentRequest,
    svc: TransferService = Depends(get_transfer_service),
):
    try:
        return await svc.confirm_payment(transaction_id, body.provider_reference)
    except CashTransferError as exc:
        raise http_error(exc)


@router.post("/{transaction_id}/approve", response_model=TransferOut)
async def approve(
    transaction_id: int,
    svc: TransferService = Depends(get_transfer_service),
):
    try:
        return await svc.approve(transaction_id)
    except CashTransferError as exc:
        raise http_error(exc)


@router.post("/{transaction_id}/complete", response_model=TransferOut)
async def complete(
    transaction_id: int,
    body: CompleteTransferRequest,
    svc: TransferService = Depends(get_transfer_service),
):
    try:
        return await svc.complete(transaction_id, body.payout_reference)
    except CashTransferError as exc:
        raise http_error(exc)


@router.post("/{transaction_id}/fail", response_model=TransferOut)
async def fail(
    transaction_id: int,
    body: FailTransferRequest,
    svc: TransferService = Depends(get_transfer_service),
):
    try:
        return await svc.fail(
            transaction_id,
            body.reason,
            provider_status=body.provider_status,
            cancelled=body.cancelled,
        )
    except CashTransferError as exc:
        raise http_error(exc)
