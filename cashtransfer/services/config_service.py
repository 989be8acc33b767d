"""
Runtime configuration service.

Reads typed values from the ``configurations`` table, decrypting secrets,
and keeps each key in a TTL cache so hot paths do not hit the database.
One instance lives for the whole process; it is created and torn down
from the application lifespan.
"""

import json
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from cashtransfer.config import settings
from cashtransfer.core.errors import ConfigurationError, InvalidInputError, NotFoundError
from cashtransfer.core.security import decrypt_value, encrypt_value
from cashtransfer.database import async_session
from cashtransfer.models.configuration import Configuration, ConfigType
from cashtransfer.schemas.config import ConfigEntryOut

logger = logging.getLogger(__name__)

MASK = "********"

_MISSING = object()


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class TTLCache:
    """Per-key expiring cache. The clock is injectable for tests."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str, default: Any = _MISSING) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self.clock() + self.ttl_seconds, value)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or everything when *key* is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------


def decode_value(raw: str | None, config_type: ConfigType) -> Any:
    """Stored text -> typed Python value."""
    if raw is None or raw == "":
        return None
    if config_type == ConfigType.NUMBER:
        try:
            return Decimal(raw)
        except InvalidOperation as exc:
            raise ConfigurationError(f"Stored number {raw!r} is malformed") from exc
    if config_type == ConfigType.BOOLEAN:
        return raw.strip().lower() == "true"
    if config_type == ConfigType.JSON:
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError("Stored JSON value is malformed") from exc
    return raw


def encode_value(value: Any, config_type: ConfigType) -> str:
    """Typed Python value -> stored text. Rejects values of the wrong type."""
    if config_type == ConfigType.NUMBER:
        try:
            number = Decimal(str(value))
        except InvalidOperation as exc:
            raise InvalidInputError(f"{value!r} is not a number") from exc
        if not number.is_finite():
            raise InvalidInputError(f"{value!r} is not a finite number")
        return str(number)
    if config_type == ConfigType.BOOLEAN:
        if isinstance(value, str):
            value = value.strip().lower()
            if value not in ("true", "false"):
                raise InvalidInputError(f"{value!r} is not a boolean")
            return value
        return "true" if bool(value) else "false"
    if config_type == ConfigType.JSON:
        return json.dumps(value)
    return str(value)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ConfigService:
    def __init__(self, session_factory: async_sessionmaker, cache: TTLCache | None = None):
        self.session_factory = session_factory
        self.cache = cache or TTLCache(settings.CONFIG_CACHE_TTL_SECONDS)

    async def get(self, key: str, default: Any = None) -> Any:
        """Typed value for *key*; *default* when the key is unset or empty."""
        cached = self.cache.get(key)
        if cached is not _MISSING:
            return default if cached is None else cached

        async with self.session_factory() as session:
            entry = (
                await session.execute(select(Configuration).where(Configuration.key == key))
            ).scalar_one_or_none()

        if entry is None:
            return default

        raw = entry.value
        if entry.encrypted and raw:
            raw = decrypt_value(raw)
        value = decode_value(raw, entry.type)

        self.cache.set(key, value)
        return default if value is None else value

    async def set(self, key: str, value: Any) -> None:
        """Update an existing key. Unknown keys are an error."""
        async with self.session_factory() as session:
            async with session.begin():
                self._apply(await self._entry(session, key), value)
        self.cache.invalidate(key)
        logger.info("Configuration %s updated", key)

    async def update_many(self, updates: dict[str, Any]) -> None:
        """Apply several updates in one transaction, then clear the cache."""
        async with self.session_factory() as session:
            async with session.begin():
                for key, value in updates.items():
                    self._apply(await self._entry(session, key), value)
        self.cache.invalidate()
        logger.info("Configuration updated: %s", sorted(updates))

    async def get_all(self, reveal_secrets: bool = False) -> list[ConfigEntryOut]:
        """Every entry, grouped by category. Secrets are masked unless revealed."""
        async with self.session_factory() as session:
            entries = (
                await session.execute(
                    select(Configuration).order_by(Configuration.category, Configuration.key)
                )
            ).scalars().all()

        out = []
        for entry in entries:
            raw = entry.value
            if entry.encrypted and raw:
                value = decode_value(decrypt_value(raw), entry.type) if reveal_secrets else MASK
            else:
                value = decode_value(raw, entry.type)
            out.append(ConfigEntryOut(
                key=entry.key,
                value=value,
                type=entry.type,
                encrypted=entry.encrypted,
                category=entry.category,
                description=entry.description,
            ))
        return out

    def invalidate(self, key: str | None = None) -> None:
        self.cache.invalidate(key)

    # Helpers for common keys

    async def get_app_name(self) -> str:
        return await self.get("APP_NAME", settings.APP_NAME)

    async def get_cinetpay_config(self) -> dict:
        return {
            "api_key": await self.get("CINETPAY_API_KEY"),
            "site_id": await self.get("CINETPAY_SITE_ID"),
            "secret_key": await self.get("CINETPAY_SECRET_KEY"),
            "notify_url": await self.get("CINETPAY_NOTIFY_URL"),
        }

    async def get_flutterwave_config(self) -> dict:
        return {
            "public_key": await self.get("FLUTTERWAVE_PUBLIC_KEY"),
            "secret_key": await self.get("FLUTTERWAVE_SECRET_KEY"),
            "encryption_key": await self.get("FLUTTERWAVE_ENCRYPTION_KEY"),
            "webhook_hash": await self.get("FLUTTERWAVE_WEBHOOK_HASH"),
        }

    # --- internals ---

    async def _entry(self, session, key: str) -> Configuration:
        entry = (
            await session.execute(select(Configuration).where(Configuration.key == key))
        ).scalar_one_or_none()
        if entry is None:
            raise NotFoundError(f"Configuration key {key} not found")
        return entry

    @staticmethod
    def _apply(entry: Configuration, value: Any) -> None:
        text = encode_value(value, entry.type)
        entry.value = encrypt_value(text) if entry.encrypted else text


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_config_service: ConfigService | None = None


def init_config_service(session_factory: async_sessionmaker | None = None) -> ConfigService:
    """Create the process-wide service (called from the app lifespan)."""
    global _config_service
    _config_service = ConfigService(session_factory or async_session)
    return _config_service


def get_config_service() -> ConfigService:
    """FastAPI dependency for the process-wide service."""
    if _config_service is None:
        raise RuntimeError("ConfigService not initialised; call init_config_service() first")
    return _config_service


def shutdown_config_service() -> None:
    global _config_service
    if _config_service is not None:
        _config_service.invalidate()
    _config_service = None
