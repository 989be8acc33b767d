"""
Async SQLAlchemy setup for the PostgreSQL ledger store.

Request handlers get a session per request through ``get_db``. Services
that need their own atomic unit (settlement, transfer lifecycle,
configuration updates) take the session factory instead and open
``session.begin()`` blocks themselves.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from cashtransfer.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_size=settings.DATABASE_POOL_SIZE,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

# Loaded attributes stay readable after commit; services return ORM rows
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base shared by every CashTransfer table."""
    pass


async def get_db() -> AsyncSession:
    """Request-scoped session, committed when the handler returns cleanly."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """FastAPI dependency for services that open their own transactions."""
    return async_session
