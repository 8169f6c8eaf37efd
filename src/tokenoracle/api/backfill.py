import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.api.deps import get_db
from tokenoracle.api.schemas.backfill import JobResponse, ScheduleRequest, ScheduleResponse
from tokenoracle.db.repos.backfill_job_repo import BackfillJobRepo
from tokenoracle.exceptions import JobNotFoundError

router = APIRouter(prefix="/api", tags=["backfill"])

DbDep = Annotated[AsyncSession, Depends(get_db)]


@router.post("/schedule", response_model=ScheduleResponse, status_code=status.HTTP_202_ACCEPTED)
async def schedule_history_fetch(body: ScheduleRequest, db: DbDep) -> ScheduleResponse:
    """Enqueue a Celery job that backfills daily prices from the token's first activity."""
    from tokenoracle.workers.scheduler import schedule_backfill

    job = await schedule_backfill(db, body.token, body.network, priority=body.priority)
    return ScheduleResponse(
        message="History fetch scheduled successfully",
        job_id=job.id,
        token=job.token,
        network=job.network,
        status=job.status,
    )


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: uuid.UUID, db: DbDep) -> JobResponse:
    job = await BackfillJobRepo(db).get_by_id(job_id)
    if job is None:
        raise JobNotFoundError(f"Backfill job {job_id} not found", context={"job_id": str(job_id)})
    return JobResponse.model_validate(job)
