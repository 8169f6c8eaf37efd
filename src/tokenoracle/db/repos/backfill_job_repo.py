import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.db.models.backfill_job import BackfillJobRecord
from tokenoracle.domain.enums import FINISHED_JOB_STATUSES, JobStatus
from tokenoracle.domain.models.price import BackfillResult

MAX_ERROR_MESSAGE = 500


class BackfillJobRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, token: str, network: str, priority: int = 1) -> BackfillJobRecord:
        job = BackfillJobRecord(token=token, network=network, priority=priority)
        self._session.add(job)
        await self._session.flush()
        return job

    async def get_by_id(self, job_id: uuid.UUID) -> Optional[BackfillJobRecord]:
        result = await self._session.execute(
            select(BackfillJobRecord).where(BackfillJobRecord.id == job_id)
        )
        return result.scalar_one_or_none()

    async def set_task_id(self, job: BackfillJobRecord, task_id: str) -> BackfillJobRecord:
        job.task_id = task_id
        await self._session.flush()
        return job

    async def mark_running(self, job: BackfillJobRecord, attempt: int) -> BackfillJobRecord:
        """Start a new run. Progress restarts at 0 for every attempt."""
        job.status = JobStatus.RUNNING.value
        job.attempts = attempt
        job.progress = 0
        job.error_reason = None
        job.error_message = None
        job.started_at = datetime.now(timezone.utc)
        await self._session.flush()
        return job

    async def update_progress(self, job: BackfillJobRecord, progress: int) -> BackfillJobRecord:
        """Raise progress; never lowers it within a run."""
        if progress > job.progress:
            job.progress = min(progress, 100)
            await self._session.flush()
        return job

    async def mark_completed(self, job: BackfillJobRecord, result: BackfillResult) -> BackfillJobRecord:
        job.status = JobStatus.COMPLETED.value
        job.progress = max(job.progress, result.progress)
        job.total_count = result.total
        job.processed_count = result.succeeded
        job.failed_count = result.failed
        job.finished_at = datetime.now(timezone.utc)
        await self._session.flush()
        return job

    async def mark_failed(self, job: BackfillJobRecord, reason: str, message: str) -> BackfillJobRecord:
        job.status = JobStatus.FAILED.value
        job.error_reason = reason
        job.error_message = message[:MAX_ERROR_MESSAGE]
        job.finished_at = datetime.now(timezone.utc)
        await self._session.flush()
        return job

    async def mark_retrying(self, job: BackfillJobRecord, reason: str, message: str) -> BackfillJobRecord:
        """Back to QUEUED after a failed attempt that will be retried."""
        job.status = JobStatus.QUEUED.value
        job.error_reason = reason
        job.error_message = message[:MAX_ERROR_MESSAGE]
        await self._session.flush()
        return job

    async def purge_finished_before(self, cutoff: datetime) -> int:
        """Delete completed/failed jobs that finished before ``cutoff``. Returns rows deleted."""
        result = await self._session.execute(
            delete(BackfillJobRecord)
            .where(
                BackfillJobRecord.status.in_([s.value for s in FINISHED_JOB_STATUSES]),
                BackfillJobRecord.finished_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
