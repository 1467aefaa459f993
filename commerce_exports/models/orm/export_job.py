"""
Export job ORM model.

Represents one data export request and its outcome.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from commerce_exports.models.enums import ExportFormat, ExportStatus
from commerce_exports.models.orm.base import Base


class ExportJob(Base):
    """Export job table for tracking data export requests."""

    __tablename__ = "data_export_jobs"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    resource: Mapped[str] = mapped_column(String(100), nullable=False)
    format: Mapped[ExportFormat] = mapped_column(String(10), default=ExportFormat.CSV)
    status: Mapped[ExportStatus] = mapped_column(String(20), default=ExportStatus.PENDING)
    filters: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    columns: Mapped[list[dict[str, Any]] | None] = mapped_column(nullable=True)
    options: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    total_records: Mapped[int | None] = mapped_column(Integer, nullable=True)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    storage_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_by: Mapped[UUID | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=text("NOW()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=text("NOW()"),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("ix_data_export_jobs_resource_created_at", "resource", "created_at"),
        Index("ix_data_export_jobs_requested_by", "requested_by"),
        Index("ix_data_export_jobs_status", "status"),
    )
