"""
Domain exceptions raised by the pricing, matching and ledger services.

Route handlers translate these into HTTP responses; services never
swallow them.
"""


class CashTransferError(Exception):
    """Base class for domain errors."""


class InvalidInputError(CashTransferError):
    """Raised for non-positive amounts, unknown countries or malformed requests."""


class InvalidTransitionError(InvalidInputError):
    """Raised when a transaction status change is not allowed."""


class NotFoundError(CashTransferError):
    """Raised when a referenced transaction, rate or sub-wallet does not exist."""


class RateResolutionError(CashTransferError):
    """Raised when no transfer rate applies at any tier."""


class ExchangeRateUnavailableError(CashTransferError):
    """Raised when the market rate provider fails for differing currencies."""


class InsufficientBalanceError(CashTransferError):
    """Raised when a sub-wallet cannot cover a debit."""

    def __init__(self, message: str, available=None, requested=None):
        super().__init__(message)
        self.available = available
        self.requested = requested


class LedgerTransactionError(CashTransferError):
    """Raised when a balance transfer fails or is aborted; nothing was written."""


class ConfigurationError(CashTransferError):
    """Raised when a stored configuration value cannot be decrypted or converted."""
