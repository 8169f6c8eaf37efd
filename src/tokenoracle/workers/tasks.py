"""Celery tasks for history backfill and job housekeeping."""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.config import Settings, settings
from tokenoracle.db.repos.backfill_job_repo import BackfillJobRepo
from tokenoracle.exceptions import JobNotFoundError, NoActivityError, TokenOracleError
from tokenoracle.infra.price.base import PriceSource
from tokenoracle.workers.backfill import BackfillRunner, SessionPriceWriter
from tokenoracle.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="backfill_token", max_retries=settings.backfill_max_attempts - 1)
def backfill_token_task(self, job_id: str) -> dict:
    """Backfill daily prices for the job's token.

    Bridges to async code via asyncio.run() — each invocation builds its own
    engine, http client and session factory. Infrastructure failures are
    retried with exponential countdown; a token without history is not.
    """
    attempt = self.request.retries + 1
    final_attempt = attempt >= settings.backfill_max_attempts

    def report(progress: int) -> None:
        if self.request.id:
            self.update_state(state="PROGRESS", meta={"job_id": job_id, "progress": progress})

    try:
        return asyncio.run(_backfill_async(job_id, attempt, final_attempt, report))
    except JobNotFoundError as exc:
        logger.error("%s", exc)
        return {"status": "failed", "job_id": job_id, "reason": exc.reason}
    except Exception as exc:
        if final_attempt:
            logger.error("Backfill job %s failed after %d attempts", job_id, attempt)
            raise
        countdown = settings.backfill_retry_backoff_seconds * 2 ** self.request.retries
        logger.warning("Backfill job %s attempt %d failed, retrying in %ds: %s", job_id, attempt, countdown, exc)
        raise self.retry(exc=exc, countdown=countdown)


@celery_app.task(name="purge_expired_jobs")
def purge_expired_jobs_task() -> dict:
    """Delete finished job records older than the retention window."""
    return asyncio.run(_purge_async())


async def _backfill_async(
    job_id: str, attempt: int, final_attempt: bool, report: Callable[[int], None]
) -> dict:
    from tokenoracle.db.session import build_engine, build_session_factory
    from tokenoracle.infra.http.rate_limited_client import RateLimitedClient
    from tokenoracle.infra.http.retry import RetryPolicy
    from tokenoracle.infra.price.alchemy import AlchemyPriceSource

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)
    retry_policy = RetryPolicy.from_settings(settings)
    try:
        async with RateLimitedClient(
            rate_per_second=settings.alchemy_rate_per_second, timeout=settings.http_timeout_seconds,
        ) as http_client:
            source = AlchemyPriceSource(http_client, api_key=settings.alchemy_api_key, retry_policy=retry_policy)
            return await execute_backfill_job(
                uuid.UUID(job_id),
                session_factory,
                source,
                settings,
                attempt=attempt,
                final_attempt=final_attempt,
                report=report,
            )
    finally:
        await engine.dispose()


async def execute_backfill_job(
    job_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession],
    source: PriceSource,
    config: Settings,
    attempt: int = 1,
    final_attempt: bool = True,
    report: Callable[[int], None] | None = None,
) -> dict:
    """Run one attempt of a backfill job and record its outcome on the job record.

    Returns a summary dict for completed jobs and for terminal NoActivityError
    failures. Any other error is recorded (FAILED on the final attempt,
    QUEUED otherwise) and re-raised so the task can retry.
    """
    async with session_factory() as session:
        repo = BackfillJobRepo(session)
        job = await repo.get_by_id(job_id)
        if job is None:
            raise JobNotFoundError(f"Backfill job {job_id} not found", context={"job_id": str(job_id)})

        await repo.mark_running(job, attempt)
        await session.commit()
        logger.info("Backfill job %s started for %s on %s (attempt %d)", job_id, job.token, job.network, attempt)

        async def on_progress(progress: int) -> None:
            await repo.update_progress(job, progress)
            await session.commit()
            logger.info("Job %s progress: %d%%", job_id, progress)
            if report is not None:
                report(progress)

        runner = BackfillRunner(
            source,
            SessionPriceWriter(session_factory),
            batch_size=config.backfill_batch_size,
            batch_delay=config.backfill_batch_delay_seconds,
            on_progress=on_progress,
        )

        try:
            result = await runner.run(job.token, job.network)
        except NoActivityError as exc:
            await repo.mark_failed(job, exc.reason, str(exc))
            await session.commit()
            logger.error("Backfill job %s failed: %s", job_id, exc)
            return {"status": "failed", "job_id": str(job_id), "reason": exc.reason}
        except Exception as exc:
            reason = exc.reason if isinstance(exc, TokenOracleError) else "internal_error"
            await session.rollback()
            if final_attempt:
                await repo.mark_failed(job, reason, str(exc))
            else:
                await repo.mark_retrying(job, reason, str(exc))
            await session.commit()
            logger.exception("Backfill job %s attempt %d failed", job_id, attempt)
            raise

        await repo.mark_completed(job, result)
        await session.commit()
        logger.info("Job %s completed successfully: %d/%d saved", job_id, result.succeeded, result.total)
        return {
            "status": "completed",
            "job_id": str(job_id),
            "processed": result.succeeded,
            "failed": result.failed,
            "total": result.total,
        }


async def _purge_async() -> dict:
    from tokenoracle.db.session import build_engine, build_session_factory

    engine = build_engine(settings.database_url, echo=False)
    session_factory = build_session_factory(engine)
    try:
        return {"purged": await purge_expired_jobs(session_factory, settings.job_retention_hours)}
    finally:
        await engine.dispose()


async def purge_expired_jobs(session_factory: async_sessionmaker[AsyncSession], retention_hours: int) -> int:
    cutoff = datetime.now(timezone.utc) - timedelta(hours=retention_hours)
    async with session_factory() as session:
        purged = await BackfillJobRepo(session).purge_finished_before(cutoff)
        await session.commit()
    logger.info("Purged %d backfill jobs finished before %s", purged, cutoff.isoformat())
    return purged
