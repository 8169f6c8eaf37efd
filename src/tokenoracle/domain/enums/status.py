from enum import Enum


class JobStatus(str, Enum):
    """Backfill job lifecycle."""

    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


FINISHED_JOB_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)
