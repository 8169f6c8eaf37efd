import uuid
from datetime import datetime, timedelta, timezone

from tokenoracle.db.repos.backfill_job_repo import BackfillJobRepo
from tokenoracle.domain.enums import JobStatus
from tokenoracle.domain.models.price import BackfillResult

TOKEN = "0x" + "ab" * 20


class TestBackfillJobRepo:
    async def test_create_job(self, session):
        repo = BackfillJobRepo(session)
        job = await repo.create(TOKEN, "ethereum", priority=3)
        await session.commit()

        assert job.id is not None
        assert job.status == JobStatus.QUEUED.value
        assert job.priority == 3
        assert job.progress == 0
        assert job.attempts == 0

        fetched = await repo.get_by_id(job.id)
        assert fetched.id == job.id

    async def test_mark_running_resets_progress(self, session):
        repo = BackfillJobRepo(session)
        job = await repo.create(TOKEN, "ethereum")
        await repo.update_progress(job, 40)
        await repo.mark_retrying(job, "upstream_error", "boom")

        await repo.mark_running(job, attempt=2)

        assert job.status == JobStatus.RUNNING.value
        assert job.attempts == 2
        assert job.progress == 0
        assert job.error_reason is None
        assert job.started_at is not None

    async def test_progress_never_decreases(self, session):
        repo = BackfillJobRepo(session)
        job = await repo.create(TOKEN, "ethereum")

        await repo.update_progress(job, 30)
        await repo.update_progress(job, 20)
        assert job.progress == 30

        await repo.update_progress(job, 150)
        assert job.progress == 100

    async def test_mark_completed_records_counts(self, session):
        repo = BackfillJobRepo(session)
        job = await repo.create(TOKEN, "ethereum")
        result = BackfillResult(
            token=TOKEN, network="ethereum", total=10, succeeded=9, failed_timestamps=[86400], progress=100,
        )

        await repo.mark_completed(job, result)
        await session.commit()

        assert job.status == JobStatus.COMPLETED.value
        assert job.progress == 100
        assert job.total_count == 10
        assert job.processed_count == 9
        assert job.failed_count == 1
        assert job.finished_at is not None

    async def test_mark_failed_truncates_message(self, session):
        repo = BackfillJobRepo(session)
        job = await repo.create(TOKEN, "ethereum")

        await repo.mark_failed(job, "no_activity", "x" * 2000)

        assert job.status == JobStatus.FAILED.value
        assert job.error_reason == "no_activity"
        assert len(job.error_message) == 500
        assert job.finished_at is not None

    async def test_get_by_id_missing(self, session):
        assert await BackfillJobRepo(session).get_by_id(uuid.uuid4()) is None


class TestPurge:
    async def test_purges_only_old_finished_jobs(self, session):
        repo = BackfillJobRepo(session)
        now = datetime.now(timezone.utc)

        old_done = await repo.create(TOKEN, "ethereum")
        await repo.mark_failed(old_done, "no_activity", "none")
        old_done.finished_at = now - timedelta(hours=30)

        recent_done = await repo.create(TOKEN, "ethereum")
        await repo.mark_failed(recent_done, "no_activity", "none")

        running = await repo.create(TOKEN, "polygon")
        await repo.mark_running(running, attempt=1)
        await session.commit()
        old_id, recent_id, running_id = old_done.id, recent_done.id, running.id

        purged = await repo.purge_finished_before(now - timedelta(hours=24))
        await session.commit()

        assert purged == 1
        session.expunge_all()
        assert await repo.get_by_id(old_id) is None
        assert await repo.get_by_id(recent_id) is not None
        assert await repo.get_by_id(running_id) is not None
