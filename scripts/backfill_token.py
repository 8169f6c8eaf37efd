"""Backfill daily prices for one token inline, without the Celery broker.

Usage:
    PYTHONPATH=src python scripts/backfill_token.py 0xTOKEN ethereum
"""

import asyncio
import logging
import sys
import time

from tokenoracle.log import configure_logging

configure_logging(logging.INFO)
logger = logging.getLogger("backfill_token")


async def main(token: str, network: str) -> None:
    from tokenoracle.config import settings
    from tokenoracle.db.session import build_engine, build_session_factory
    from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
    from tokenoracle.infra.http.retry import RetryPolicy
    from tokenoracle.infra.price.alchemy import AlchemyPriceSource
    from tokenoracle.workers.backfill import BackfillRunner, SessionPriceWriter

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)

    async def on_progress(progress: int) -> None:
        print(f"  progress: {progress}%")

    try:
        retry_policy = RetryPolicy.from_settings(settings)
        async with RateLimitedClient(
            rate_per_second=settings.alchemy_rate_per_second, timeout=settings.http_timeout_seconds,
        ) as http:
            source = AlchemyPriceSource(http, api_key=settings.alchemy_api_key, retry_policy=retry_policy)
            runner = BackfillRunner(
                source,
                SessionPriceWriter(session_factory),
                batch_size=settings.backfill_batch_size,
                batch_delay=settings.backfill_batch_delay_seconds,
                on_progress=on_progress,
            )
            t0 = time.time()
            result = await runner.run(token, network)
            print(
                f"\n{result.token} on {result.network}: {result.succeeded}/{result.total} saved,"
                f" {result.failed} failed  ({time.time() - t0:.1f}s)"
            )
            if result.failed_timestamps:
                print(f"  failed timestamps: {result.failed_timestamps}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2]))
