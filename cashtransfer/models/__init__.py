"""SQLAlchemy ORM models for GIC CashTransfer."""

from cashtransfer.models.country import Country
from cashtransfer.models.payment_method import (
    AUTOMATED_TYPES,
    CountryPaymentMethod,
    PaymentMethod,
    PaymentMethodType,
)
from cashtransfer.models.wallet import Wallet, SubWallet
from cashtransfer.models.transfer_rate import RateScope, SCOPE_PRIORITY, TransferRate
from cashtransfer.models.transaction import Transaction, TransactionStatus
from cashtransfer.models.configuration import Configuration, ConfigType

__all__ = [
    "Country",
    "PaymentMethod", "PaymentMethodType", "CountryPaymentMethod", "AUTOMATED_TYPES",
    "Wallet", "SubWallet",
    "TransferRate", "RateScope", "SCOPE_PRIORITY",
    "Transaction", "TransactionStatus",
    "Configuration", "ConfigType",
]
