"""
Export Job Runner

Decides how a persisted export job is executed: published to the queue for
the worker, or processed inline in the calling process. The runner checks
the resource and format up front and never changes job status itself.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from commerce_exports.config import Settings, get_settings
from commerce_exports.models.contracts.export import ExportJobPayload
from commerce_exports.models.enums import ExecutionMode, ExportFormat, RunOutcome
from commerce_exports.services.exports.base import BaseExportHandler
from commerce_exports.services.exports.exceptions import UnsupportedExportFormatError
from commerce_exports.services.exports.queue import ExportQueuePublisher
from commerce_exports.services.exports.registry import ExportHandlerRegistry

logger = logging.getLogger(__name__)

ExportProcessor = Callable[[ExportJobPayload], Awaitable[Any]]


class ExportJobRunner:
    """Runs export jobs in direct or queue mode."""

    def __init__(
        self,
        registry: ExportHandlerRegistry,
        publisher: ExportQueuePublisher,
        processor: ExportProcessor,
        settings: Settings | None = None,
    ):
        """
        Args:
            registry: Handlers available in this process
            publisher: Queue publisher used in queue mode
            processor: Coroutine function that processes a payload inline
            settings: Defaults to get_settings() at call time
        """
        self.registry = registry
        self.publisher = publisher
        self.processor = processor
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def validate(self, resource: str, format: ExportFormat | str | None = None) -> BaseExportHandler:
        """
        Handler for a resource that can write the requested format.

        Raises:
            UnknownExportResourceError: No handler for the resource
            UnsupportedExportFormatError: The handler cannot write the format
        """
        handler = self.registry.require(resource)
        if format is not None and not handler.supports_format(format):
            raise UnsupportedExportFormatError(resource, str(getattr(format, "value", format)))
        return handler

    def resolve_mode(self, override: ExecutionMode | str | None = None) -> ExecutionMode:
        """Override if given, otherwise the configured mode (anything but 'queue' is direct)."""
        if override is not None:
            return ExecutionMode(override)
        return ExecutionMode.from_config(self.settings.export_execution_mode)

    async def run(
        self,
        payload: ExportJobPayload,
        override_mode: ExecutionMode | str | None = None,
    ) -> RunOutcome:
        """
        Execute a job.

        Queue mode returns once the message is published. Direct mode
        returns after processing finishes and propagates processing errors
        (the job is already marked failed by then).

        Returns:
            RunOutcome.QUEUED or RunOutcome.PROCESSED
        """
        self.validate(payload.resource, payload.format)
        mode = self.resolve_mode(override_mode)

        logger.info(
            f"Running export job {payload.job_id} ({payload.resource}) in {mode.value} mode",
            extra={"job_id": str(payload.job_id), "resource": payload.resource, "mode": mode.value},
        )

        if mode == ExecutionMode.QUEUE:
            await self.publisher.enqueue_payload(payload)
            return RunOutcome.QUEUED

        await self.processor(payload)
        return RunOutcome.PROCESSED
