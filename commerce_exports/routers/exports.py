"""
Exports Router

Provides endpoints for data export operations:
- List exportable resources
- Create an export job (run inline or queued)
- Estimate the size of an export
- List a resource's export jobs
- Get a job and its download URL
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from commerce_exports.core.database import DbSession
from commerce_exports.models.contracts.export import (
    CreateExportRequest,
    CreateExportResponse,
    DownloadUrlResponse,
    ExportEstimateRequest,
    ExportEstimateResponse,
    ExportJobCreate,
    ExportJobList,
    ExportJobPayload,
    ExportJobPublic,
)
from commerce_exports.models.enums import ExportStatus
from commerce_exports.services.exports import (
    DataExportService,
    ExportHandlerRegistry,
    ExportJobRunner,
)
from commerce_exports.services.file_storage import (
    S3_PROVIDER,
    FileStorageService,
    get_file_storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/exports", tags=["exports"])


# =============================================================================
# Dependencies
# =============================================================================


def get_export_registry(request: Request) -> ExportHandlerRegistry:
    """Registry built during application startup."""
    return request.app.state.export_registry


def get_export_runner(request: Request) -> ExportJobRunner:
    """Runner built during application startup."""
    return request.app.state.export_runner


def get_data_export_service(db: DbSession) -> DataExportService:
    """Export job service bound to the request session."""
    return DataExportService(db)


Registry = Annotated[ExportHandlerRegistry, Depends(get_export_registry)]
Runner = Annotated[ExportJobRunner, Depends(get_export_runner)]
Jobs = Annotated[DataExportService, Depends(get_data_export_service)]
Storage = Annotated[FileStorageService, Depends(get_file_storage_service)]


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/resources", response_model=list[str])
async def list_export_resources(registry: Registry) -> list[str]:
    """Resources that have an export handler."""
    return registry.list()


@router.get("/jobs/{job_id}", response_model=ExportJobPublic)
async def get_export_job(job_id: UUID, jobs: Jobs) -> ExportJobPublic:
    """
    Get an export job by ID.

    Raises:
        ExportJobNotFoundError: Mapped to 404
    """
    job = await jobs.require_job(job_id)
    return ExportJobPublic.model_validate(job)


@router.get("/jobs/{job_id}/download", response_model=DownloadUrlResponse)
async def get_export_download_url(
    job_id: UUID,
    jobs: Jobs,
    storage: Storage,
) -> DownloadUrlResponse:
    """
    Get a download URL for a completed export.

    S3 files get a presigned URL; local files return the stored URL as is.

    Raises:
        HTTPException: 409 if the export has not completed
    """
    job = await jobs.require_job(job_id)

    if job.status != ExportStatus.COMPLETED or not job.file_url:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Export is {ExportStatus(job.status).value}, not completed",
        )

    if job.storage_provider == S3_PROVIDER:
        key = storage.key_from_url(job.file_url)
        if key is not None:
            expires_in = storage.settings.s3_download_url_expiry
            download_url = await storage.generate_download_url(
                key, filename=job.file_name, expires_in=expires_in
            )
            return DownloadUrlResponse(download_url=download_url, expires_in_seconds=expires_in)

    return DownloadUrlResponse(download_url=job.file_url)


@router.post(
    "/{resource}",
    response_model=CreateExportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_export(
    resource: str,
    request: CreateExportRequest,
    jobs: Jobs,
    runner: Runner,
    db: DbSession,
) -> CreateExportResponse:
    """
    Create an export job and run it.

    The job is persisted first, then published to the queue or processed
    inline depending on the configured mode (or ``mode`` in the request).

    Raises:
        UnknownExportResourceError: Mapped to 404
        ExportPreconditionError: Mapped to 422
    """
    runner.validate(resource, request.format)

    job = await jobs.request_export_job(
        ExportJobCreate(
            resource=resource,
            format=request.format,
            filters=request.filters,
            columns=request.columns,
            options=request.options,
            requested_by=request.requested_by,
        )
    )

    outcome = await runner.run(ExportJobPayload.from_job(job), request.mode)

    # Direct mode updated the job in another session
    await db.refresh(job)
    return CreateExportResponse(job=ExportJobPublic.model_validate(job), outcome=outcome)


@router.post("/{resource}/estimate", response_model=ExportEstimateResponse)
async def estimate_export(
    resource: str,
    registry: Registry,
    request: ExportEstimateRequest | None = None,
) -> ExportEstimateResponse:
    """Count the records an export with these filters would contain."""
    handler = registry.require(resource)
    total = await handler.estimate(request.filters if request else None)
    return ExportEstimateResponse(total=total)


@router.get("/{resource}/jobs", response_model=ExportJobList)
async def list_export_jobs(
    resource: str,
    jobs: Jobs,
    limit: Annotated[int, Query()] = 10,
    page: Annotated[int, Query()] = 1,
    requested_by: Annotated[UUID | None, Query(alias="requestedBy")] = None,
) -> ExportJobList:
    """
    List a resource's export jobs, newest first.

    ``limit`` is clamped to 1..100 and ``page`` to at least 1.
    """
    result = await jobs.list_jobs(resource, limit=limit, page=page, requested_by=requested_by)
    return ExportJobList(
        items=[ExportJobPublic.model_validate(job) for job in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )
