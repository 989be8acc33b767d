"""
Reusable FastAPI dependencies and the domain-error to HTTP mapping.

Dependencies:
  - get_ledger            — WalletLedger bound to the session factory
  - get_transfer_service  — TransferService with Redis for quote reuse
"""

from fastapi import Depends, HTTPException, status

from cashtransfer.core.errors import (
    CashTransferError,
    ConfigurationError,
    ExchangeRateUnavailableError,
    InsufficientBalanceError,
    InvalidInputError,
    InvalidTransitionError,
    LedgerTransactionError,
    NotFoundError,
    RateResolutionError,
)
from cashtransfer.database import get_session_factory
from cashtransfer.redis_client import get_redis
from cashtransfer.services.ledger import WalletLedger
from cashtransfer.services.transfer_service import TransferService

# First match wins, so subclasses come before their parents
_ERROR_STATUS: list[tuple[type[CashTransferError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientBalanceError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (RateResolutionError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ExchangeRateUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (LedgerTransactionError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def http_error(exc: CashTransferError) -> HTTPException:
    """Translate a domain error into the HTTPException a route should raise."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def get_ledger(session_factory=Depends(get_session_factory)) -> WalletLedger:
    return WalletLedger(session_factory)


def get_transfer_service(
    session_factory=Depends(get_session_factory),
    redis=Depends(get_redis),
) -> TransferService:
    return TransferService(session_factory, redis=redis)
