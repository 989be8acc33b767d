"""
Transfer creation and tracking endpoints.
"""

from fastapi import APIRouter, Depends, status

from cashtransfer.api.deps import get_transfer_service, http_error
from cashtransfer.core.errors import CashTransferError
from cashtransfer.schemas.transfer import TransferCreate, TransferOut
from cashtransfer.services.transfer_service import TransferService

router = APIRouter()


@router.post("", response_model=TransferOut, status_code=status.HTTP_201_CREATED)
async def create_transfer(
    body: TransferCreate,
    svc: TransferService = Depends(get_transfer_service),
):
    """
    Create a pending transfer.

    Pass the ``quoteId`` from calculate-fees to lock the quoted market rate.
    """
    try:
        return await svc.create_transfer(
            body.sender_country_id,
            body.receiver_country_id,
            body.payment_method_id,
            body.amount,
            quote_id=body.quote_id,
        )
    except CashTransferError as exc:
        raise http_error(exc)


@router.get("/{reference}", response_model=TransferOut)
async def track_transfer(
    reference: str,
    svc: TransferService = Depends(get_transfer_service),
):
    """Look up a transfer by its GIC-XXXXXXXX reference."""
    try:
        return await svc.get_by_reference(reference)
    except CashTransferError as exc:
        raise http_error(exc)
