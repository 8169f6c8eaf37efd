import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tokenoracle.api.schemas.prices import ADDRESS_PATTERN
from tokenoracle.domain.enums import Network


class ScheduleRequest(BaseModel):
    token: str = Field(pattern=ADDRESS_PATTERN)
    network: Network
    priority: int = Field(1, ge=1, le=10)

    @field_validator("token")
    @classmethod
    def normalize_token(cls, v: str) -> str:
        return v.lower()


class ScheduleResponse(BaseModel):
    message: str
    job_id: uuid.UUID
    token: str
    network: str
    status: str


class JobResponse(BaseModel):
    id: uuid.UUID
    token: str
    network: str
    status: str
    priority: int
    attempts: int
    progress: int
    total_count: int
    processed_count: int
    failed_count: int
    error_reason: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
