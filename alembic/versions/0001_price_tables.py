"""price samples and backfill jobs

Revision ID: 0001_price_tables
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_price_tables"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "price_samples",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("token", sa.String(42), nullable=False),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("price", sa.Numeric(38, 18), nullable=False),
        sa.Column("source", sa.String(20), nullable=False, server_default="live"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_price_samples")),
        sa.UniqueConstraint("token", "network", "timestamp", name="uq_price_samples_token_network_timestamp"),
    )
    op.create_index("ix_price_samples_timestamp", "price_samples", ["timestamp"])

    op.create_table(
        "backfill_jobs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("token", sa.String(42), nullable=False),
        sa.Column("network", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="QUEUED"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failed_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("task_id", sa.String(64), nullable=True),
        sa.Column("error_reason", sa.String(50), nullable=True),
        sa.Column("error_message", sa.String(500), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_backfill_jobs")),
    )
    op.create_index("ix_backfill_jobs_token", "backfill_jobs", ["token"])
    op.create_index("ix_backfill_jobs_status", "backfill_jobs", ["status"])
    op.create_index("ix_backfill_jobs_finished_at", "backfill_jobs", ["finished_at"])


def downgrade() -> None:
    op.drop_index("ix_backfill_jobs_finished_at", table_name="backfill_jobs")
    op.drop_index("ix_backfill_jobs_status", table_name="backfill_jobs")
    op.drop_index("ix_backfill_jobs_token", table_name="backfill_jobs")
    op.drop_table("backfill_jobs")
    op.drop_index("ix_price_samples_timestamp", table_name="price_samples")
    op.drop_table("price_samples")
