"""Data export jobs table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:01:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "data_export_jobs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("resource", sa.String(length=100), nullable=False),
        sa.Column("format", sa.String(length=10), nullable=False, server_default="csv"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("filters", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("columns", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("options", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("total_records", sa.Integer(), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("storage_provider", sa.String(length=50), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("requested_by", sa.UUID(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_data_export_jobs_resource_created_at",
        "data_export_jobs",
        ["resource", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_data_export_jobs_requested_by", "data_export_jobs", ["requested_by"], unique=False
    )
    op.create_index("ix_data_export_jobs_status", "data_export_jobs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_data_export_jobs_status", table_name="data_export_jobs")
    op.drop_index("ix_data_export_jobs_requested_by", table_name="data_export_jobs")
    op.drop_index("ix_data_export_jobs_resource_created_at", table_name="data_export_jobs")
    op.drop_table("data_export_jobs")
