from typing import AsyncGenerator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.container import Container
from tokenoracle.infra.cache.price_cache import PriceCache
from tokenoracle.infra.price.base import PriceSource
from tokenoracle.pricing.resolver import PriceResolver


@inject
async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(Provide[Container.session_factory]),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@inject
def get_cache(cache: PriceCache = Depends(Provide[Container.cache])) -> PriceCache:
    return cache


@inject
def get_price_source(source: PriceSource = Depends(Provide[Container.price_source])) -> PriceSource:
    return source


def get_resolver(
    db: AsyncSession = Depends(get_db),
    cache: PriceCache = Depends(get_cache),
    source: PriceSource = Depends(get_price_source),
) -> PriceResolver:
    """PriceResolver bound to the request's session."""
    from tokenoracle.config import settings

    return PriceResolver(db, cache, source, cache_ttl=settings.cache_ttl_seconds)
