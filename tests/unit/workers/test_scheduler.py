from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from tokenoracle.db.models.backfill_job import BackfillJobRecord
from tokenoracle.domain.enums import JobStatus
from tokenoracle.exceptions import QueueUnavailableError
from tokenoracle.workers.scheduler import schedule_backfill

TOKEN = "0x" + "ab" * 20


@pytest.fixture()
def mock_task():
    task = MagicMock()
    task.apply_async.return_value = MagicMock(id="celery-task-1")
    with patch("tokenoracle.workers.tasks.backfill_token_task", task):
        yield task


class TestScheduleBackfill:
    async def test_persists_and_enqueues(self, session, mock_task):
        job = await schedule_backfill(session, TOKEN.upper().replace("0X", "0x"), "polygon", priority=4)

        assert job.token == TOKEN
        assert job.network == "polygon"
        assert job.status == JobStatus.QUEUED.value
        assert job.task_id == "celery-task-1"
        mock_task.apply_async.assert_called_once_with(args=[str(job.id)], priority=4)

    async def test_broker_failure_marks_job_failed(self, session, mock_task):
        mock_task.apply_async.side_effect = ConnectionError("broker down")

        with pytest.raises(QueueUnavailableError) as exc_info:
            await schedule_backfill(session, TOKEN, "ethereum")

        assert exc_info.value.reason == "enqueue_failed"
        rows = (await session.execute(select(BackfillJobRecord))).scalars().all()
        assert len(rows) == 1
        assert rows[0].status == JobStatus.FAILED.value
        assert rows[0].error_reason == "enqueue_failed"
        assert rows[0].task_id is None
        assert rows[0].finished_at is not None
