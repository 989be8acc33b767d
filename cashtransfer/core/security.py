"""
Core security module — Fernet encryption for stored secrets.

Gateway credentials kept in the ``configurations`` table are encrypted at
rest with the key from ``settings.FERNET_KEY``.
"""

import logging

from cryptography.fernet import Fernet, InvalidToken

from cashtransfer.config import settings
from cashtransfer.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fernet cipher, lazily initialised from settings
# ---------------------------------------------------------------------------

_fernet: Fernet | None = None


def _get_fernet() -> Fernet:
    global _fernet
    if _fernet is None:
        _fernet = Fernet(settings.FERNET_KEY.encode())
    return _fernet


def configure_fernet(key: str | bytes) -> None:
    """Override the Fernet key at runtime (used in tests)."""
    global _fernet
    if isinstance(key, str):
        key = key.encode()
    _fernet = Fernet(key)


def encrypt_value(plaintext: str) -> str:
    return _get_fernet().encrypt(plaintext.encode()).decode()


def decrypt_value(ciphertext: str) -> str:
    """Decrypt a stored value; a wrong key or corrupted token is an error."""
    try:
        return _get_fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken as exc:
        logger.error("Stored secret could not be decrypted (wrong FERNET_KEY?)")
        raise ConfigurationError("Encrypted value could not be decrypted") from exc
