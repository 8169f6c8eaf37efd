from dependency_injector import containers, providers
from redis.asyncio import Redis

from tokenoracle.config import Settings
from tokenoracle.db.session import build_engine, build_session_factory
from tokenoracle.infra.cache.price_cache import InMemoryPriceCache, RedisPriceCache
from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
from tokenoracle.infra.http.retry import RetryPolicy
from tokenoracle.infra.price.alchemy import AlchemyPriceSource


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["tokenoracle.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    redis_client = providers.Singleton(
        Redis.from_url,
        settings.provided.redis_url,
        decode_responses=True,
    )

    cache = providers.Selector(
        settings.provided.cache_backend,
        redis=providers.Singleton(RedisPriceCache, client=redis_client),
        memory=providers.Singleton(InMemoryPriceCache, max_entries=settings.provided.cache_max_entries),
    )

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.alchemy_rate_per_second,
        timeout=settings.provided.http_timeout_seconds,
    )

    retry_policy = providers.Singleton(RetryPolicy.from_settings, settings)

    price_source = providers.Singleton(
        AlchemyPriceSource,
        http_client=http_client,
        api_key=settings.provided.alchemy_api_key,
        retry_policy=retry_policy,
    )
