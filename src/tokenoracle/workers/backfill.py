"""BackfillRunner — walks a token's history day by day in rate-limited batches."""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Awaitable, Callable, Iterator, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.db.repos.price_repo import PriceRepo
from tokenoracle.domain.models.price import (
    SECONDS_PER_DAY,
    BackfillResult,
    BatchResult,
    FetchOutcome,
    normalize_network,
    normalize_token,
)
from tokenoracle.infra.price.base import PriceSource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], Awaitable[None]]


class PriceWriter(Protocol):
    async def __call__(self, token: str, network: str, timestamp: int, price: Decimal) -> None: ...


class SessionPriceWriter:
    """Persists each sample in its own session so batch items can write concurrently."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(self, token: str, network: str, timestamp: int, price: Decimal) -> None:
        async with self._session_factory() as session:
            await PriceRepo(session).upsert(token, network, timestamp, price, source="backfill")
            await session.commit()


def daily_timestamps(start: int, end: int) -> list[int]:
    """Every day from ``start`` to ``end`` inclusive, stepping 86400 seconds."""
    return list(range(start, end + 1, SECONDS_PER_DAY))


def batched(items: list[int], size: int) -> Iterator[list[int]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def compute_progress(completed: int, total: int) -> int:
    if total <= 0:
        return 100
    return (completed * 100) // total


class BackfillRunner:
    """Fetch and persist one price per day from the token's first activity to now.

    Items within a batch run concurrently; one batch is in flight at a time.
    A failed item is recorded as a failed FetchOutcome and never aborts the
    run. Only failing to determine the start timestamp fails the whole run.
    """

    def __init__(
        self,
        source: PriceSource,
        writer: PriceWriter,
        batch_size: int = 5,
        batch_delay: float = 1.0,
        on_progress: ProgressCallback | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._source = source
        self._writer = writer
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._on_progress = on_progress
        self._clock = clock
        self._sleep = sleep

        self._completed = 0
        self._total = 0
        self._reported = -1
        self._progress_lock = asyncio.Lock()

    async def run(self, token: str, network: str) -> BackfillResult:
        token = normalize_token(token)
        network = normalize_network(network)

        start = await self._source.fetch_earliest_activity(token, network)
        timestamps = daily_timestamps(start, int(self._clock()))
        self._completed = 0
        self._total = len(timestamps)
        self._reported = -1

        logger.info("Processing %d daily prices for %s on %s", self._total, token, network)

        outcomes: list[FetchOutcome] = []
        batches = list(batched(timestamps, self._batch_size))
        for index, batch in enumerate(batches):
            result = await self._run_batch(token, network, batch)
            outcomes.extend(result.outcomes)
            if result.failed_timestamps:
                logger.warning(
                    "Batch %d/%d for %s: %d of %d timestamps failed",
                    index + 1, len(batches), token, len(result.failed_timestamps), len(batch),
                )
            if index < len(batches) - 1:
                await self._sleep(self._batch_delay)

        if not timestamps:
            await self._report(100)

        succeeded = sum(1 for o in outcomes if o.ok)
        failed = [o.timestamp for o in outcomes if not o.ok]
        logger.info(
            "Completed history fetch for %s on %s: %d/%d saved, %d failed",
            token, network, succeeded, self._total, len(failed),
        )
        return BackfillResult(
            token=token,
            network=network,
            total=self._total,
            succeeded=succeeded,
            failed_timestamps=failed,
            progress=max(self._reported, 0),
        )

    async def _run_batch(self, token: str, network: str, batch: list[int]) -> BatchResult:
        outcomes = await asyncio.gather(*(self._process(token, network, ts) for ts in batch))
        return BatchResult(outcomes=list(outcomes))

    async def _process(self, token: str, network: str, timestamp: int) -> FetchOutcome:
        try:
            price = await self._source.fetch_price(token, network, timestamp)
            await self._writer(token, network, timestamp, price)
            outcome = FetchOutcome.success(timestamp, price)
        except Exception as exc:
            logger.error("Failed to fetch price for %s at %d: %s", token, timestamp, exc)
            outcome = FetchOutcome.failure(timestamp, exc)

        self._completed += 1
        await self._report(compute_progress(self._completed, self._total))
        return outcome

    async def _report(self, progress: int) -> None:
        """Forward progress to the callback, serialized and strictly increasing."""
        async with self._progress_lock:
            if progress <= self._reported:
                return
            self._reported = progress
            if self._on_progress is not None:
                await self._on_progress(progress)
