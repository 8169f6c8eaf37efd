"""PriceResolver — cache → store → live source → interpolation fallback chain."""

import asyncio
import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.db.repos.price_repo import PriceRepo
from tokenoracle.domain.enums import Network, PriceSourceTag
from tokenoracle.domain.models.price import SECONDS_PER_DAY, PriceQuery, PriceResult, PriceSample
from tokenoracle.exceptions import ExternalServiceError, PriceUnavailableError
from tokenoracle.infra.cache.price_cache import PriceCache
from tokenoracle.infra.price.base import PriceSource
from tokenoracle.pricing.interpolation import interpolate

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300


class PriceResolver:
    """Stateless orchestrator over the cache, the store and the upstream source.

    Tiers run strictly in order and stop at the first success. Every fresh
    value is written through to the store and the cache before returning.
    Store errors propagate; cache errors are misses; source errors move on to
    the next tier.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: PriceCache,
        source: PriceSource,
        cache_ttl: int = DEFAULT_CACHE_TTL,
    ) -> None:
        self._session = session
        self._repo = PriceRepo(session)
        self._cache = cache
        self._source = source
        self._cache_ttl = cache_ttl

    async def resolve(self, token: str, network: Network | str, timestamp: int) -> PriceResult:
        query = PriceQuery.build(token, network, timestamp)

        # 1. Cache
        cached = await self._cache.get(query.cache_key)
        if cached is not None:
            return PriceResult(price=Decimal(cached), source=PriceSourceTag.CACHE)

        # 2. Store (exact)
        stored = await self._repo.get_exact(query.token, query.network, query.timestamp)
        if stored is not None:
            await self._cache_price(query, stored.price)
            return PriceResult(price=stored.price, source=PriceSourceTag.STORE)

        # 3. Live source
        try:
            live_price = await self._source.fetch_price(query.token, query.network, query.timestamp)
        except ExternalServiceError as exc:
            logger.info(
                "Exact price unavailable for %s@%s on %s (%s), falling back to interpolation",
                query.token, query.timestamp, query.network, exc,
            )
        else:
            await self._persist(query, query.timestamp, live_price, source="live")
            await self._cache_price(query, live_price)
            return PriceResult(price=live_price, source=PriceSourceTag.LIVE)

        # 4. Interpolation
        before, after = await self._bracket(query)
        price = interpolate(query.timestamp, before, after)
        await self._cache_price(query, price)
        return PriceResult(price=price, source=PriceSourceTag.INTERPOLATED)

    async def _bracket(self, query: PriceQuery) -> tuple[PriceSample, PriceSample]:
        """Nearest stored samples around the target; missing sides are fetched one day out."""
        nearest = await self._repo.get_nearest(query.token, query.network, query.timestamp)
        before, after = nearest.before, nearest.after

        missing = []
        if before is None:
            missing.append(query.timestamp - SECONDS_PER_DAY)
        if after is None:
            missing.append(query.timestamp + SECONDS_PER_DAY)

        if missing:
            fetched = await asyncio.gather(
                *(self._source.fetch_price(query.token, query.network, ts) for ts in missing),
                return_exceptions=True,
            )
            failure: ExternalServiceError | None = None
            for ts, result in zip(missing, fetched):
                if isinstance(result, ExternalServiceError):
                    logger.warning(
                        "Bracket fetch failed for %s@%s on %s: %s", query.token, ts, query.network, result,
                    )
                    failure = result
                    continue
                if isinstance(result, BaseException):
                    raise result

                await self._persist(query, ts, result, source="bracket")
                sample = PriceSample(token=query.token, network=query.network, timestamp=ts, price=result)
                if ts < query.timestamp:
                    before = sample
                else:
                    after = sample

            if failure is not None:
                raise PriceUnavailableError(
                    f"No bracket price for {query.token} around {query.timestamp}",
                    context={"token": query.token, "network": query.network, "timestamp": query.timestamp},
                ) from failure

        return before, after

    async def _persist(self, query: PriceQuery, timestamp: int, price: Decimal, source: str) -> None:
        await self._repo.upsert(query.token, query.network, timestamp, price, source=source)
        await self._session.commit()

    async def _cache_price(self, query: PriceQuery, price: Decimal) -> None:
        await self._cache.set(query.cache_key, str(price), self._cache_ttl)
