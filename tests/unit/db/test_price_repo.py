from decimal import Decimal

from tokenoracle.db.repos.price_repo import PriceRepo

TOKEN = "0x" + "ab" * 20
OTHER_TOKEN = "0x" + "cd" * 20


class TestUpsert:
    async def test_insert_then_get_exact(self, session):
        repo = PriceRepo(session)
        await repo.upsert(TOKEN, "ethereum", 1000, Decimal("1.25"))
        await session.commit()

        sample = await repo.get_exact(TOKEN, "ethereum", 1000)
        assert sample is not None
        assert sample.token == TOKEN
        assert sample.network == "ethereum"
        assert sample.timestamp == 1000
        assert sample.price == Decimal("1.25")

    async def test_upsert_is_idempotent(self, session):
        repo = PriceRepo(session)
        await repo.upsert(TOKEN, "ethereum", 1000, Decimal("1.25"))
        await repo.upsert(TOKEN, "ethereum", 1000, Decimal("1.25"))
        await session.commit()

        samples = await repo.range(TOKEN, "ethereum", 0, 10_000)
        assert len(samples) == 1

    async def test_upsert_overwrites_price(self, session):
        repo = PriceRepo(session)
        await repo.upsert(TOKEN, "ethereum", 1000, Decimal("1.25"))
        await session.commit()
        await repo.upsert(TOKEN, "ethereum", 1000, Decimal("3.5"), source="backfill")
        await session.commit()

        sample = await repo.get_exact(TOKEN, "ethereum", 1000)
        assert sample.price == Decimal("3.5")

    async def test_key_includes_network(self, session):
        repo = PriceRepo(session)
        await repo.upsert(TOKEN, "ethereum", 1000, Decimal("1"))
        await repo.upsert(TOKEN, "polygon", 1000, Decimal("2"))
        await session.commit()

        assert (await repo.get_exact(TOKEN, "ethereum", 1000)).price == Decimal("1")
        assert (await repo.get_exact(TOKEN, "polygon", 1000)).price == Decimal("2")

    async def test_get_exact_missing(self, session):
        repo = PriceRepo(session)
        assert await repo.get_exact(TOKEN, "ethereum", 1000) is None


class TestGetNearest:
    async def _seed(self, session):
        repo = PriceRepo(session)
        for ts, price in [(1000, "1"), (2000, "2"), (3000, "3")]:
            await repo.upsert(TOKEN, "ethereum", ts, Decimal(price))
        await repo.upsert(OTHER_TOKEN, "ethereum", 2400, Decimal("99"))
        await session.commit()
        return repo

    async def test_brackets_target(self, session):
        repo = await self._seed(session)
        nearest = await repo.get_nearest(TOKEN, "ethereum", 2500)

        assert nearest.before.timestamp == 2000
        assert nearest.after.timestamp == 3000

    async def test_exact_match_is_after_side(self, session):
        repo = await self._seed(session)
        nearest = await repo.get_nearest(TOKEN, "ethereum", 2000)

        assert nearest.before.timestamp == 1000
        assert nearest.after.timestamp == 2000

    async def test_missing_sides_are_none(self, session):
        repo = await self._seed(session)

        early = await repo.get_nearest(TOKEN, "ethereum", 500)
        assert early.before is None
        assert early.after.timestamp == 1000

        late = await repo.get_nearest(TOKEN, "ethereum", 5000)
        assert late.before.timestamp == 3000
        assert late.after is None

    async def test_empty_store(self, session):
        nearest = await PriceRepo(session).get_nearest(TOKEN, "ethereum", 1000)
        assert nearest.before is None
        assert nearest.after is None


class TestRange:
    async def test_inclusive_and_ascending(self, session):
        repo = PriceRepo(session)
        for ts in (3000, 1000, 4000, 2000):
            await repo.upsert(TOKEN, "ethereum", ts, Decimal(ts))
        await session.commit()

        samples = await repo.range(TOKEN, "ethereum", 1000, 3000)
        assert [s.timestamp for s in samples] == [1000, 2000, 3000]
