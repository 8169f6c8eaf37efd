import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.db.models.backfill_job import BackfillJobRecord
from tokenoracle.db.repos.backfill_job_repo import BackfillJobRepo
from tokenoracle.domain.enums import Network
from tokenoracle.domain.models.price import normalize_network, normalize_token
from tokenoracle.exceptions import QueueUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 1


async def schedule_backfill(
    session: AsyncSession, token: str, network: Network | str, priority: int = DEFAULT_PRIORITY
) -> BackfillJobRecord:
    """Persist a QUEUED job record and enqueue the Celery task for it.

    If the broker rejects the task the record is marked FAILED, so retention
    purges it, and QueueUnavailableError is raised.
    """
    from tokenoracle.workers.tasks import backfill_token_task

    repo = BackfillJobRepo(session)
    job = await repo.create(normalize_token(token), normalize_network(network), priority=priority)
    await session.commit()

    # apply_async is a blocking broker round-trip
    try:
        async_result = await asyncio.to_thread(
            backfill_token_task.apply_async, args=[str(job.id)], priority=priority,
        )
    except Exception as exc:
        await repo.mark_failed(job, QueueUnavailableError.reason, str(exc))
        await session.commit()
        logger.error("Failed to enqueue history fetch job %s for %s: %s", job.id, job.token, exc)
        raise QueueUnavailableError(
            f"Could not enqueue backfill job {job.id}", context={"job_id": str(job.id)},
        ) from exc

    await repo.set_task_id(job, async_result.id)
    await session.commit()

    logger.info("Scheduled history fetch job %s for %s on %s", job.id, job.token, job.network)
    return job
