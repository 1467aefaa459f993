"""
Data Export Service

Persistence of export jobs: creation, listing and the status state machine

    pending -> processing -> completed | failed

Every status change is committed immediately so other processes (the API
polling a queued job, the worker picking it up) see it right away.
"""

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from commerce_exports.models.contracts.export import ExportJobCreate, ExportResult
from commerce_exports.models.enums import ExportStatus
from commerce_exports.models.orm.export_job import ExportJob
from commerce_exports.repositories.export_job import ExportJobRepository
from commerce_exports.services.exports.exceptions import (
    ExportJobNotFoundError,
    InvalidExportTransitionError,
)

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100

# Allowed status changes; terminal states have no outgoing edges
_TRANSITIONS: dict[ExportStatus, frozenset[ExportStatus]] = {
    ExportStatus.PENDING: frozenset({ExportStatus.PROCESSING}),
    ExportStatus.PROCESSING: frozenset({ExportStatus.COMPLETED, ExportStatus.FAILED}),
    ExportStatus.COMPLETED: frozenset(),
    ExportStatus.FAILED: frozenset(),
}


@dataclass
class ExportJobPage:
    """One page of export jobs."""

    items: list[ExportJob]
    total: int
    page: int
    limit: int
    total_pages: int


class DataExportService:
    """Service for export job records."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ExportJobRepository(session)

    async def request_export_job(self, data: ExportJobCreate) -> ExportJob:
        """
        Persist a new job in the pending state.

        Args:
            data: Resource, format, filters, columns, options and requester

        Returns:
            The committed job
        """
        job = ExportJob(
            resource=data.resource,
            format=data.format,
            status=ExportStatus.PENDING,
            filters=data.filters,
            columns=(
                [column.model_dump(exclude_none=True) for column in data.columns]
                if data.columns
                else None
            ),
            options=(
                data.options.model_dump(by_alias=True, exclude_none=True)
                if data.options
                else None
            ),
            requested_by=data.requested_by,
        )
        job = await self.repo.create(job)
        await self.session.commit()

        logger.info(
            f"Created export job {job.id} for {job.resource}",
            extra={"job_id": str(job.id), "resource": job.resource, "format": job.format},
        )
        return job

    async def get_job(self, job_id: UUID) -> ExportJob | None:
        """Job by id, or None."""
        return await self.repo.get_by_id(job_id)

    async def require_job(self, job_id: UUID) -> ExportJob:
        """
        Job by id.

        Raises:
            ExportJobNotFoundError: If the job does not exist
        """
        job = await self.repo.get_by_id(job_id)
        if job is None:
            raise ExportJobNotFoundError(job_id)
        return job

    async def list_jobs(
        self,
        resource: str,
        *,
        limit: int = 10,
        page: int = 1,
        requested_by: UUID | None = None,
    ) -> ExportJobPage:
        """
        Jobs for a resource, newest first.

        Args:
            resource: Resource key
            limit: Page size, clamped to 1..100
            page: Page number (1-indexed), at least 1
            requested_by: Only jobs of this requester, if set

        Returns:
            ExportJobPage (total_pages is 0 when there are no jobs)
        """
        limit = min(max(limit, 1), MAX_LIST_LIMIT)
        page = max(page, 1)

        items, total = await self.repo.list_for_resource(
            resource,
            requested_by=requested_by,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return ExportJobPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    async def rollback(self) -> None:
        """Discard pending changes, e.g. after a failed write in the same session."""
        await self.session.rollback()

    async def _transition(
        self, job_id: UUID, target: ExportStatus, **changes: Any
    ) -> ExportJob:
        """
        Move a job to ``target`` and apply ``changes``, then commit.

        The transition is checked before the row is touched. If the write
        fails, the job's attributes are restored and the session is rolled
        back, so the job can still be moved to another state afterwards.
        """
        job = await self.require_job(job_id)
        current = ExportStatus(job.status)
        if target not in _TRANSITIONS[current]:
            raise InvalidExportTransitionError(job_id, current.value, target.value)

        changes["status"] = target
        previous = {name: getattr(job, name) for name in changes}
        try:
            for name, value in changes.items():
                setattr(job, name, value)
            job = await self.repo.update(job)
            await self.session.commit()
        except Exception:
            for name, value in previous.items():
                setattr(job, name, value)
            await self.session.rollback()
            raise
        return job

    async def mark_processing(self, job_id: UUID) -> ExportJob:
        """Move a pending job to processing."""
        job = await self._transition(job_id, ExportStatus.PROCESSING, error=None)
        logger.info(f"Export job {job_id} processing", extra={"job_id": str(job_id)})
        return job

    async def mark_completed(self, job_id: UUID, result: ExportResult) -> ExportJob:
        """
        Record a successful export.

        Args:
            job_id: Job being completed
            result: Record count and stored file metadata

        Returns:
            The completed job
        """
        job = await self._transition(
            job_id,
            ExportStatus.COMPLETED,
            total_records=result.total_records,
            file_url=result.file_url,
            file_name=result.file_name,
            file_size=result.file_size,
            storage_provider=result.storage_provider,
            error=None,
            completed_at=datetime.now(UTC),
        )

        logger.info(
            f"Export job {job_id} completed: {result.total_records} records",
            extra={"job_id": str(job_id), "total_records": result.total_records},
        )
        return job

    async def mark_failed(self, job_id: UUID, error: str) -> ExportJob:
        """Record a failed export with the error text as given."""
        job = await self._transition(
            job_id, ExportStatus.FAILED, error=error, completed_at=datetime.now(UTC)
        )

        logger.warning(
            f"Export job {job_id} failed: {error}",
            extra={"job_id": str(job_id), "error": error},
        )
        return job
