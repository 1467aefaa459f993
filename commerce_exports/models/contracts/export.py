"""
Export contracts (API request/response schemas and queue payloads).

Queue payloads and stored job options use camelCase keys
(``jobId``, ``pageSize``...) so they stay readable by the rest of the
platform; request bodies accept either spelling.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from commerce_exports.models.enums import (
    ExecutionMode,
    ExportFormat,
    ExportStatus,
    RunOutcome,
)

if TYPE_CHECKING:
    from commerce_exports.models.orm.export_job import ExportJob

EXPORT_MESSAGE_TYPE = "export:generate"


class ExportColumnDefinition(BaseModel):
    """One output column of an export file."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    label: str
    path: str | None = Field(
        default=None, description="Dotted path into the record when it differs from key"
    )
    formatter: str | None = None


class ExportOptions(BaseModel):
    """Free-form export options; pageSize and fileName are understood by every handler."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    page_size: int | None = Field(default=None, alias="pageSize")
    file_name: str | None = Field(default=None, alias="fileName", max_length=255)


class ExportJobCreate(BaseModel):
    """Data needed to persist a new export job."""

    resource: str = Field(..., min_length=1, max_length=100)
    format: ExportFormat = ExportFormat.CSV
    filters: dict[str, Any] | None = None
    columns: list[ExportColumnDefinition] | None = None
    options: ExportOptions | None = None
    requested_by: UUID | None = None


class ExportJobPayload(BaseModel):
    """Body of an export message, shared by direct and queued execution."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: UUID = Field(..., alias="jobId")
    resource: str
    format: ExportFormat = ExportFormat.CSV
    filters: dict[str, Any] | None = None
    columns: list[ExportColumnDefinition] | None = None
    options: ExportOptions | None = None
    requested_by: UUID | None = Field(default=None, alias="requestedBy")

    @classmethod
    def from_job(cls, job: "ExportJob") -> "ExportJobPayload":
        """Build the payload for a persisted job."""
        return cls(
            job_id=job.id,
            resource=job.resource,
            format=job.format,
            filters=job.filters,
            columns=job.columns,
            options=job.options,
            requested_by=job.requested_by,
        )

    def to_message(self) -> dict[str, Any]:
        """Serialize into the tagged queue message body."""
        return {
            "type": EXPORT_MESSAGE_TYPE,
            "payload": self.model_dump(mode="json", by_alias=True, exclude_none=True),
        }


class ExportResult(BaseModel):
    """Metadata recorded on a completed job."""

    total_records: int = Field(..., ge=0)
    file_url: str
    file_name: str
    file_size: int | None = None
    storage_provider: str | None = None


class ExportJobPublic(BaseModel):
    """Export job response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    resource: str
    format: ExportFormat
    status: ExportStatus
    filters: dict[str, Any] | None = None
    columns: list[ExportColumnDefinition] | None = None
    options: dict[str, Any] | None = None
    total_records: int | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    storage_provider: str | None = None
    error: str | None = None
    requested_by: UUID | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ExportJobList(BaseModel):
    """Paginated export job listing."""

    items: list[ExportJobPublic]
    total: int = Field(..., description="Total number of jobs matching the query")
    page: int = Field(..., description="Current page (1-indexed)")
    limit: int = Field(..., description="Maximum jobs per page")
    total_pages: int = Field(..., description="Number of pages, 0 when there are no jobs")


class CreateExportRequest(BaseModel):
    """Request to export one resource."""

    model_config = ConfigDict(populate_by_name=True)

    format: ExportFormat = ExportFormat.CSV
    filters: dict[str, Any] | None = None
    columns: list[ExportColumnDefinition] | None = None
    options: ExportOptions | None = None
    requested_by: UUID | None = Field(default=None, alias="requestedBy")
    mode: ExecutionMode | None = Field(
        default=None, description="Override the configured execution mode"
    )


class CreateExportResponse(BaseModel):
    """Created job and what the runner did with it."""

    job: ExportJobPublic
    outcome: RunOutcome


class ExportEstimateRequest(BaseModel):
    """Request to count the records an export would contain."""

    filters: dict[str, Any] | None = None


class ExportEstimateResponse(BaseModel):
    """Number of records matching the filters."""

    total: int


class DownloadUrlResponse(BaseModel):
    """Response containing the export file download URL."""

    download_url: str
    expires_in_seconds: int | None = None
