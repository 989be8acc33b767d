"""
Rate resolver — pick the single transfer rate that prices a request.

Precedence, most specific first:

1. corridor rate for (sender, receiver)
2. country rate for the **sender** country (fees are charged in the
   sender's currency, so the sending side owns the country tier)
3. the active global default

A tier is skipped when it has no active record whose bounds contain the
amount. Within a tier the most recently updated record wins.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from cashtransfer.core.errors import InvalidInputError, RateResolutionError
from cashtransfer.models.country import Country
from cashtransfer.models.transfer_rate import RateScope, TransferRate
from cashtransfer.services.rate_repository import RateRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRate:
    """The chosen rate plus the metadata shown to users and kept for audit."""
    rate: TransferRate
    type: RateScope
    priority: int
    name: str
    sender_country: Country
    receiver_country: Country

    def info(self) -> dict:
        return {"type": self.type.value, "name": self.name, "priority": self.priority}


async def resolve_rate(
    repo: RateRepository,
    sender_country_id: int,
    receiver_country_id: int,
    amount: Decimal,
) -> ResolvedRate:
    """
    Resolve the applicable rate for a transfer request.

    Raises InvalidInputError for a non-positive amount or unknown countries,
    RateResolutionError when no tier yields a usable record.
    """
    if amount is None or not amount.is_finite() or amount <= 0:
        raise InvalidInputError("Amount must be a positive number")

    sender = await repo.get_country(sender_country_id)
    receiver = await repo.get_country(receiver_country_id)
    if sender is None or receiver is None:
        raise InvalidInputError(
            f"Unknown country id(s): sender={sender_country_id}, receiver={receiver_country_id}"
        )

    corridor = await repo.find_corridor_rate(sender.id, receiver.id, amount)
    if corridor:
        rate = corridor[0]
        name = rate.name or f"{sender.name} → {receiver.name}"
        return _resolved(rate, name, sender, receiver)

    country = await repo.find_country_rate(sender.id, amount)
    if country:
        rate = country[0]
        name = rate.name or f"{sender.name} rate"
        return _resolved(rate, name, sender, receiver)

    defaults = await repo.find_global_default()
    if defaults:
        rate = defaults[0]
        if len(defaults) > 1:
            logger.warning(
                "%d active default global rates; using most recent id=%s",
                len(defaults), rate.id,
            )
        return _resolved(rate, rate.name or "Global rate", sender, receiver)

    raise RateResolutionError(
        f"No transfer rate configured for {sender.code} → {receiver.code} "
        f"and amount {amount}"
    )


def _resolved(
    rate: TransferRate,
    name: str,
    sender: Country,
    receiver: Country,
) -> ResolvedRate:
    logger.debug("Resolved %s rate id=%s for %s → %s", rate.scope.value, rate.id, sender.code, receiver.code)
    return ResolvedRate(
        rate=rate,
        type=rate.scope,
        priority=rate.priority,
        name=name,
        sender_country=sender,
        receiver_country=receiver,
    )
