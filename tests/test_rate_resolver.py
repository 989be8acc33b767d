"""Tests for rate lookup and resolution — tier precedence, bounds, tie-break."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from cashtransfer.core.errors import InvalidInputError, NotFoundError, RateResolutionError
from cashtransfer.models.transfer_rate import RateScope, TransferRate
from cashtransfer.services.rate_repository import RateRepository
from cashtransfer.services.rate_resolver import resolve_rate


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def countries(seed):
    fr = await seed.country("FR", "EUR", "France")
    ci = await seed.country("CI", "XOF", "Côte d'Ivoire")
    sn = await seed.country("SN", "XOF", "Sénégal")
    return fr, ci, sn


@pytest.fixture
def repo(db_session):
    return RateRepository(db_session)


# ---------------------------------------------------------------------------
# Tier precedence
# ---------------------------------------------------------------------------


class TestPrecedence:

    @pytest.mark.asyncio
    async def test_corridor_wins_regardless_of_creation_order(self, seed, repo, countries):
        """Corridor is created first, yet still beats newer country/global rates."""
        fr, ci, _ = countries
        await seed.rate(RateScope.CORRIDOR, sender_country_id=fr.id, receiver_country_id=ci.id,
                        base_fee="3", percentage_fee="1.5")
        await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="4")
        await seed.rate(RateScope.GLOBAL, is_default=True, base_fee="5")

        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("100"))

        assert resolved.type == RateScope.CORRIDOR
        assert resolved.priority == 1
        assert resolved.rate.base_fee == Decimal("3")
        assert resolved.name == "France → Côte d'Ivoire"

    @pytest.mark.asyncio
    async def test_deactivated_corridor_falls_through_to_country_then_global(
        self, seed, repo, db_session, countries,
    ):
        fr, ci, _ = countries
        corridor = await seed.rate(RateScope.CORRIDOR, sender_country_id=fr.id,
                                   receiver_country_id=ci.id, base_fee="3")
        country = await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="4")
        await seed.rate(RateScope.GLOBAL, is_default=True, base_fee="5")

        await repo.deactivate_rate(corridor.id)
        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("100"))
        assert resolved.type == RateScope.COUNTRY
        assert resolved.priority == 2
        assert resolved.name == "France rate"

        await repo.deactivate_rate(country.id)
        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("100"))
        assert resolved.type == RateScope.GLOBAL
        assert resolved.priority == 3
        assert resolved.name == "Global rate"

    @pytest.mark.asyncio
    async def test_out_of_bounds_amount_skips_tier(self, seed, repo, countries):
        fr, ci, _ = countries
        await seed.rate(RateScope.CORRIDOR, sender_country_id=fr.id, receiver_country_id=ci.id,
                        min_amount="10", max_amount="1000", base_fee="3")
        await seed.rate(RateScope.COUNTRY, country_id=fr.id, max_amount="500", base_fee="4")
        await seed.rate(RateScope.GLOBAL, is_default=True, base_fee="5")

        assert (await resolve_rate(repo, fr.id, ci.id, Decimal("1000"))).type == RateScope.CORRIDOR
        assert (await resolve_rate(repo, fr.id, ci.id, Decimal("5"))).type == RateScope.COUNTRY
        assert (await resolve_rate(repo, fr.id, ci.id, Decimal("5000"))).type == RateScope.GLOBAL

    @pytest.mark.asyncio
    async def test_global_default_ignores_its_bounds(self, seed, repo, countries):
        fr, ci, _ = countries
        await seed.rate(RateScope.GLOBAL, is_default=True, min_amount="1", max_amount="10000")

        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("50000"))
        assert resolved.type == RateScope.GLOBAL

    @pytest.mark.asyncio
    async def test_country_tier_binds_sender_country(self, seed, repo, countries):
        """A receiver-country rate must not price the transfer."""
        fr, ci, _ = countries
        await seed.rate(RateScope.COUNTRY, country_id=ci.id, base_fee="1")
        await seed.rate(RateScope.GLOBAL, is_default=True, base_fee="5")

        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("100"))
        assert resolved.type == RateScope.GLOBAL

        resolved = await resolve_rate(repo, ci.id, fr.id, Decimal("100"))
        assert resolved.type == RateScope.COUNTRY

    @pytest.mark.asyncio
    async def test_corridor_is_directional(self, seed, repo, countries):
        fr, ci, _ = countries
        await seed.rate(RateScope.CORRIDOR, sender_country_id=fr.id, receiver_country_id=ci.id)
        await seed.rate(RateScope.GLOBAL, is_default=True)

        resolved = await resolve_rate(repo, ci.id, fr.id, Decimal("100"))
        assert resolved.type == RateScope.GLOBAL


# ---------------------------------------------------------------------------
# Tie-break and failures
# ---------------------------------------------------------------------------


class TestTieBreak:

    @pytest.mark.asyncio
    async def test_most_recently_updated_wins(self, seed, repo, countries):
        fr, ci, _ = countries
        now = datetime.now(timezone.utc)
        await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="7",
                        updated_at=now - timedelta(days=1))
        await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="2", updated_at=now)
        await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="9",
                        updated_at=now - timedelta(days=3))

        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("100"))
        assert resolved.rate.base_fee == Decimal("2")

    @pytest.mark.asyncio
    async def test_equal_update_time_prefers_highest_id(self, seed, repo, countries):
        fr, ci, _ = countries
        stamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="7", updated_at=stamp)
        second = await seed.rate(RateScope.COUNTRY, country_id=fr.id, base_fee="2", updated_at=stamp)

        resolved = await resolve_rate(repo, fr.id, ci.id, Decimal("100"))
        assert resolved.rate.id == second.id


class TestResolutionErrors:

    @pytest.mark.asyncio
    async def test_no_rate_anywhere_raises(self, repo, countries):
        fr, ci, _ = countries
        with pytest.raises(RateResolutionError):
            await resolve_rate(repo, fr.id, ci.id, Decimal("100"))

    @pytest.mark.asyncio
    async def test_inactive_default_is_not_used(self, seed, repo, countries):
        fr, ci, _ = countries
        await seed.rate(RateScope.GLOBAL, is_default=True, active=False)
        with pytest.raises(RateResolutionError):
            await resolve_rate(repo, fr.id, ci.id, Decimal("100"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("NaN")])
    async def test_invalid_amount(self, repo, countries, amount):
        fr, ci, _ = countries
        with pytest.raises(InvalidInputError):
            await resolve_rate(repo, fr.id, ci.id, amount)

    @pytest.mark.asyncio
    async def test_unknown_country(self, seed, repo, countries):
        fr, _, _ = countries
        await seed.rate(RateScope.GLOBAL, is_default=True)
        with pytest.raises(InvalidInputError):
            await resolve_rate(repo, fr.id, 9999, Decimal("100"))


# ---------------------------------------------------------------------------
# Repository admin operations
# ---------------------------------------------------------------------------


class TestRepositoryAdmin:

    @pytest.mark.asyncio
    async def test_new_default_demotes_previous(self, repo, db_session):
        first = await repo.create_rate(scope=RateScope.GLOBAL, is_default=True, base_fee=Decimal("5"))
        second = await repo.create_rate(scope=RateScope.GLOBAL, is_default=True, base_fee=Decimal("6"))
        await db_session.commit()

        defaults = await repo.find_global_default()
        assert [r.id for r in defaults] == [second.id]
        assert (await repo.get_rate(first.id)).is_default is False

    @pytest.mark.asyncio
    async def test_create_rejects_mismatched_scope_keys(self, repo, countries):
        fr, _, _ = countries
        with pytest.raises(InvalidInputError):
            await repo.create_rate(scope=RateScope.CORRIDOR, sender_country_id=fr.id)
        with pytest.raises(InvalidInputError):
            await repo.create_rate(scope=RateScope.COUNTRY, country_id=fr.id, is_default=True)

    @pytest.mark.asyncio
    async def test_update_ignores_scope_keys_and_validates_bounds(self, repo, countries):
        fr, ci, _ = countries
        rate = await repo.create_rate(scope=RateScope.COUNTRY, country_id=fr.id)

        updated = await repo.update_rate(rate.id, base_fee=Decimal("2.5"), country_id=ci.id)
        assert updated.base_fee == Decimal("2.5")
        assert updated.country_id == fr.id

        with pytest.raises(InvalidInputError):
            await repo.update_rate(rate.id, min_amount=Decimal("100"), max_amount=Decimal("10"))

    @pytest.mark.asyncio
    async def test_update_refuses_to_clear_required_fields(self, repo, countries):
        fr, _, _ = countries
        rate = await repo.create_rate(scope=RateScope.COUNTRY, country_id=fr.id, max_amount=Decimal("1000"))

        with pytest.raises(InvalidInputError, match="min_amount"):
            await repo.update_rate(rate.id, min_amount=None)
        with pytest.raises(InvalidInputError):
            await repo.update_rate(rate.id, base_fee=None, active=None)
        assert rate.min_amount == Decimal("0")
        assert rate.active is True

        cleared = await repo.update_rate(rate.id, max_amount=None, description=None)
        assert cleared.max_amount is None

    @pytest.mark.asyncio
    async def test_get_unknown_rate(self, repo):
        with pytest.raises(NotFoundError):
            await repo.get_rate(42)

    @pytest.mark.asyncio
    async def test_list_by_scope(self, seed, repo, countries):
        fr, _, _ = countries
        await seed.rate(RateScope.GLOBAL, is_default=True)
        await seed.rate(RateScope.COUNTRY, country_id=fr.id)

        assert len(await repo.list_rates()) == 2
        only_country = await repo.list_rates(RateScope.COUNTRY)
        assert [r.scope for r in only_country] == [RateScope.COUNTRY]


def test_priority_follows_scope():
    assert TransferRate(scope=RateScope.CORRIDOR).priority == 1
    assert TransferRate(scope=RateScope.COUNTRY).priority == 2
    assert TransferRate(scope=RateScope.GLOBAL).priority == 3
