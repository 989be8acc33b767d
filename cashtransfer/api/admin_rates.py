"""
Transfer rate administration.

Global, country and corridor rates share one table. Deleting a rate only
deactivates it so past fee breakdowns keep a valid reference.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cashtransfer.api.deps import http_error
from cashtransfer.core.errors import CashTransferError
from cashtransfer.database import get_db
from cashtransfer.models.transfer_rate import RateScope
from cashtransfer.schemas.transfer_rate import (
    TransferRateCreate,
    TransferRateOut,
    TransferRateUpdate,
)
from cashtransfer.services.rate_repository import RateRepository

router = APIRouter()


@router.get("", response_model=list[TransferRateOut])
async def list_rates(
    scope: RateScope | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await RateRepository(db).list_rates(scope)


@router.post("", response_model=TransferRateOut, status_code=status.HTTP_201_CREATED)
async def create_rate(body: TransferRateCreate, db: AsyncSession = Depends(get_db)):
    """Create a rate. A new global default replaces the previous one."""
    try:
        return await RateRepository(db).create_rate(**body.model_dump())
    except CashTransferError as exc:
        raise http_error(exc)


@router.patch("/{rate_id}", response_model=TransferRateOut)
async def update_rate(
    rate_id: int,
    body: TransferRateUpdate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await RateRepository(db).update_rate(rate_id, **body.model_dump(exclude_unset=True))
    except CashTransferError as exc:
        raise http_error(exc)


@router.delete("/{rate_id}", response_model=TransferRateOut)
async def deactivate_rate(rate_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await RateRepository(db).deactivate_rate(rate_id)
    except CashTransferError as exc:
        raise http_error(exc)
