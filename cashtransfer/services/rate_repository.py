"""
Transfer rate repository — reads and admin writes for the three rate tiers.

Every ``find_*`` lookup returns active records whose
``[min_amount, max_amount]`` interval contains the amount (a null
``max_amount`` is unbounded), most recently updated first. That order is
the tie-break when several records of one tier overlap.
"""

import logging
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cashtransfer.core.errors import InvalidInputError, NotFoundError
from cashtransfer.models.country import Country
from cashtransfer.models.transfer_rate import NOT_NULL_RATE_FIELDS, RateScope, TransferRate

logger = logging.getLogger(__name__)

# Columns an operator may change after creation (scope keys are fixed)
UPDATABLE_FIELDS = frozenset({
    "name",
    "description",
    "base_fee",
    "percentage_fee",
    "min_amount",
    "max_amount",
    "exchange_rate_margin",
    "active",
    "is_default",
})

_NEWEST_FIRST = (TransferRate.updated_at.desc(), TransferRate.id.desc())


def _covers(amount: Decimal):
    """WHERE clause: min_amount <= amount <= max_amount (max null = unbounded)."""
    return (
        TransferRate.min_amount <= amount,
        or_(TransferRate.max_amount.is_(None), TransferRate.max_amount >= amount),
    )


class RateRepository:
    """Transfer-rate storage bound to one database session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── lookups ─────────────────────────────────────────────────────────

    async def get_country(self, country_id: int) -> Country | None:
        result = await self.session.execute(
            select(Country).where(Country.id == country_id)
        )
        return result.scalar_one_or_none()

    async def find_global_default(self) -> list[TransferRate]:
        """Active global rates flagged as default (not bounds-filtered)."""
        result = await self.session.execute(
            select(TransferRate)
            .where(
                TransferRate.scope == RateScope.GLOBAL,
                TransferRate.is_default.is_(True),
                TransferRate.active.is_(True),
            )
            .order_by(*_NEWEST_FIRST)
        )
        return list(result.scalars().all())

    async def find_country_rate(self, country_id: int, amount: Decimal) -> list[TransferRate]:
        result = await self.session.execute(
            select(TransferRate)
            .where(
                TransferRate.scope == RateScope.COUNTRY,
                TransferRate.country_id == country_id,
                TransferRate.active.is_(True),
                *_covers(amount),
            )
            .order_by(*_NEWEST_FIRST)
        )
        return list(result.scalars().all())

    async def find_corridor_rate(
        self,
        sender_country_id: int,
        receiver_country_id: int,
        amount: Decimal,
    ) -> list[TransferRate]:
        result = await self.session.execute(
            select(TransferRate)
            .where(
                TransferRate.scope == RateScope.CORRIDOR,
                TransferRate.sender_country_id == sender_country_id,
                TransferRate.receiver_country_id == receiver_country_id,
                TransferRate.active.is_(True),
                *_covers(amount),
            )
            .order_by(*_NEWEST_FIRST)
        )
        return list(result.scalars().all())

    # ── admin ───────────────────────────────────────────────────────────

    async def list_rates(self, scope: RateScope | None = None) -> list[TransferRate]:
        stmt = select(TransferRate).order_by(TransferRate.scope, *_NEWEST_FIRST)
        if scope is not None:
            stmt = stmt.where(TransferRate.scope == scope)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_rate(self, rate_id: int) -> TransferRate:
        result = await self.session.execute(
            select(TransferRate).where(TransferRate.id == rate_id)
        )
        rate = result.scalar_one_or_none()
        if rate is None:
            raise NotFoundError(f"Transfer rate {rate_id} not found")
        return rate

    async def create_rate(self, **fields) -> TransferRate:
        """Validate and insert a rate; a new default demotes the previous one."""
        rate = TransferRate(**fields)
        rate.validate_scope()
        self.session.add(rate)
        await self.session.flush()

        if rate.is_default:
            await self._clear_other_defaults(rate.id)

        logger.info("Created %s transfer rate %s", rate.scope.value, rate.id)
        return rate

    async def update_rate(self, rate_id: int, **changes) -> TransferRate:
        cleared = sorted(f for f, v in changes.items() if v is None and f in NOT_NULL_RATE_FIELDS)
        if cleared:
            raise InvalidInputError(f"Cannot clear required field(s): {', '.join(cleared)}")

        rate = await self.get_rate(rate_id)
        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS:
                continue
            setattr(rate, field, value)
        rate.validate_scope()
        await self.session.flush()

        if rate.is_default:
            await self._clear_other_defaults(rate.id)
        await self.session.refresh(rate)

        logger.info("Updated transfer rate %s: %s", rate_id, sorted(changes))
        return rate

    async def deactivate_rate(self, rate_id: int) -> TransferRate:
        rate = await self.get_rate(rate_id)
        rate.active = False
        await self.session.flush()
        await self.session.refresh(rate)
        logger.info("Deactivated transfer rate %s", rate_id)
        return rate

    async def _clear_other_defaults(self, keep_id: int) -> None:
        await self.session.execute(
            update(TransferRate)
            .where(
                TransferRate.scope == RateScope.GLOBAL,
                TransferRate.is_default.is_(True),
                TransferRate.id != keep_id,
            )
            .values(is_default=False)
            .execution_options(synchronize_session="fetch")
        )
