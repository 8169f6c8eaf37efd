"""Backfill job tracking state."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tokenoracle.db.session import Base, TimestampMixin, UUIDPrimaryKey
from tokenoracle.domain.enums import JobStatus


class BackfillJobRecord(UUIDPrimaryKey, TimestampMixin, Base):
    """One scheduled history backfill. ``created_at`` is the enqueue time."""

    __tablename__ = "backfill_jobs"

    token: Mapped[str] = mapped_column(String(42), index=True)
    network: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(20), default=JobStatus.QUEUED.value, index=True)
    priority: Mapped[int] = mapped_column(Integer, default=1)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    progress: Mapped[int] = mapped_column(Integer, default=0)  # 0-100
    total_count: Mapped[int] = mapped_column(Integer, default=0)
    processed_count: Mapped[int] = mapped_column(Integer, default=0)  # successfully persisted
    failed_count: Mapped[int] = mapped_column(Integer, default=0)
    task_id: Mapped[Optional[str]] = mapped_column(String(64), default=None)
    error_reason: Mapped[Optional[str]] = mapped_column(String(50), default=None)
    error_message: Mapped[Optional[str]] = mapped_column(String(500), default=None)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None, index=True)
