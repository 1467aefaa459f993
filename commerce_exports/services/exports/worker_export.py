"""
Worker Export Service

Processes one export job end to end:
- Marks the job processing
- Pages through the resource and writes the file
- Stores the file
- Marks the job completed (or failed) and notifies the requester

The same code path serves direct mode (inside the API) and queue mode
(inside the arq worker).
"""

import logging
from dataclasses import dataclass

from commerce_exports.config import Settings, get_settings
from commerce_exports.core.database import get_db_context
from commerce_exports.core.pubsub import (
    publish_export_completed,
    publish_export_failed,
    publish_export_progress,
    publish_user_notification,
)
from commerce_exports.models.contracts.export import ExportJobPayload, ExportResult
from commerce_exports.models.enums import ExportFormat
from commerce_exports.models.orm.export_job import ExportJob
from commerce_exports.services.exports.base import BaseExportHandler, PageRequest
from commerce_exports.services.exports.data_export_service import DataExportService
from commerce_exports.services.exports.exceptions import UnsupportedExportFormatError
from commerce_exports.services.exports.registry import ExportHandlerRegistry
from commerce_exports.services.exports.serializers import (
    ExportFileBuilder,
    build_cdn_rewriter,
    ensure_extension,
)
from commerce_exports.services.file_storage import FileStorageService, get_file_storage_service

logger = logging.getLogger(__name__)


@dataclass
class GeneratedExportFile:
    """An export file rendered in memory."""

    content: bytes
    file_name: str
    content_type: str
    total_records: int


class WorkerExportService:
    """Generates, stores and records one export job."""

    def __init__(
        self,
        data_export_service: DataExportService,
        registry: ExportHandlerRegistry,
        file_storage: FileStorageService | None = None,
        settings: Settings | None = None,
    ):
        self.data_export_service = data_export_service
        self.registry = registry
        self.settings = settings or get_settings()
        self.file_storage = file_storage or get_file_storage_service()

    async def process_export(self, payload: ExportJobPayload) -> ExportJob:
        """
        Process an export job.

        The job is marked processing before anything else, so a job whose
        resource has no handler still ends up failed. Any error after that
        point marks the job failed with the error text and is re-raised.

        Args:
            payload: Export message body

        Returns:
            The completed job

        Raises:
            ExportJobNotFoundError: If the job does not exist
            Exception: Whatever made the export fail
        """
        job_id = payload.job_id
        await self.data_export_service.mark_processing(job_id)

        try:
            handler = self.registry.require(payload.resource)
            if not handler.supports_format(payload.format):
                raise UnsupportedExportFormatError(payload.resource, ExportFormat(payload.format).value)

            generated = await self.generate_file(handler, payload)
            upload = await self.file_storage.store_export(
                job_id,
                generated.file_name,
                generated.content,
                generated.content_type,
            )
            job = await self.data_export_service.mark_completed(
                job_id,
                ExportResult(
                    total_records=generated.total_records,
                    file_url=upload.url,
                    file_name=upload.file_name,
                    file_size=upload.size,
                    storage_provider=upload.provider,
                ),
            )
        except Exception as e:
            error_message = str(e) or type(e).__name__
            logger.error(
                f"Export job {job_id} failed: {error_message}",
                exc_info=True,
                extra={"job_id": str(job_id), "resource": payload.resource},
            )
            try:
                await self.data_export_service.rollback()
                await self.data_export_service.mark_failed(job_id, error_message)
            except Exception as update_error:
                logger.error(f"Failed to mark export job {job_id} as failed: {update_error}")
            await publish_export_failed(job_id, error_message)
            if payload.requested_by is not None:
                await publish_user_notification(
                    payload.requested_by,
                    title="Export failed",
                    message=f"Your {payload.resource} export failed: {error_message}",
                    notification_type="error",
                    data={"job_id": str(job_id), "resource": payload.resource},
                )
            raise

        await publish_export_completed(
            job_id,
            generated.total_records,
            upload.file_name,
            upload.url,
        )
        if payload.requested_by is not None:
            await publish_user_notification(
                payload.requested_by,
                title="Export ready",
                message=(
                    f"Your {payload.resource} export is ready "
                    f"({generated.total_records} records)"
                ),
                notification_type="success",
                data={
                    "job_id": str(job_id),
                    "resource": payload.resource,
                    "file_name": upload.file_name,
                    "file_url": upload.url,
                },
            )
        return job

    async def generate_file(
        self,
        handler: BaseExportHandler,
        payload: ExportJobPayload,
    ) -> GeneratedExportFile:
        """
        Page through the resource and render the file.

        Paging starts at page 1 and stops on an empty page, once the
        running count reaches the reported total, or after a short page.

        Args:
            handler: Handler for the payload's resource
            payload: Export message body

        Returns:
            GeneratedExportFile
        """
        format = ExportFormat(payload.format or handler.default_format)
        columns = handler.resolve_columns(payload.columns)
        page_size = handler.resolve_page_size(payload.options)
        builder = ExportFileBuilder(format, columns, build_cdn_rewriter(self.settings))

        page = 1
        processed = 0
        while True:
            result = await handler.fetch_page(PageRequest(page=page, limit=page_size), payload.filters)
            if not result.items:
                break

            for record in result.items:
                builder.add(handler.transform_record(record))
            processed += len(result.items)

            await publish_export_progress(payload.job_id, page, processed, result.total)
            logger.debug(
                f"Export job {payload.job_id}: page {page}, {processed}/{result.total} records"
            )

            if processed >= result.total or len(result.items) < page_size:
                break
            page += 1

        requested_name = payload.options.file_name if payload.options else None
        file_name = ensure_extension(requested_name or handler.build_file_name(payload), format)

        return GeneratedExportFile(
            content=builder.build(),
            file_name=file_name,
            content_type=builder.content_type,
            total_records=processed,
        )


async def process_export_payload(
    payload: ExportJobPayload,
    registry: ExportHandlerRegistry,
) -> ExportJob:
    """
    Process a payload in a database session of its own.

    Used as the runner's direct-mode processor and by the arq task.
    """
    async with get_db_context() as db:
        service = WorkerExportService(DataExportService(db), registry)
        return await service.process_export(payload)
