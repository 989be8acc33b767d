"""
Runtime configuration administration.

Secrets are masked in listings unless ``reveal=true``. Updates are
written in one transaction and clear the configuration cache.
"""

from fastapi import APIRouter, Depends, Query

from cashtransfer.api.deps import http_error
from cashtransfer.core.errors import CashTransferError
from cashtransfer.schemas.config import ConfigEntryOut, ConfigUpdateRequest
from cashtransfer.services.config_service import ConfigService, get_config_service

router = APIRouter()


@router.get("", response_model=list[ConfigEntryOut])
async def list_config(
    reveal: bool = Query(False, description="Return decrypted secret values"),
    svc: ConfigService = Depends(get_config_service),
):
    try:
        return await svc.get_all(reveal_secrets=reveal)
    except CashTransferError as exc:
        raise http_error(exc)


@router.put("", response_model=list[ConfigEntryOut])
async def update_config(
    body: ConfigUpdateRequest,
    svc: ConfigService = Depends(get_config_service),
):
    try:
        await svc.update_many({u.key: u.value for u in body.updates})
        return await svc.get_all()
    except CashTransferError as exc:
        raise http_error(exc)
