"""
Export pipeline.

Handlers page through a resource, the worker export service turns pages
into a stored file, and the runner decides whether a job runs inline or on
the queue.
"""

from commerce_exports.services.exports.base import (
    DEFAULT_EXPORT_PAGE_SIZE,
    BaseExportHandler,
    PageRequest,
    PageResult,
)
from commerce_exports.services.exports.bootstrap import build_export_registry
from commerce_exports.services.exports.data_export_service import DataExportService, ExportJobPage
from commerce_exports.services.exports.exceptions import (
    ExportJobNotFoundError,
    ExportPreconditionError,
    InvalidExportTransitionError,
    UnknownExportColumnError,
    UnknownExportResourceError,
    UnsupportedExportFormatError,
)
from commerce_exports.services.exports.queue import EXPORT_TASK_NAME, ExportQueuePublisher
from commerce_exports.services.exports.registry import ExportHandlerRegistry
from commerce_exports.services.exports.runner import ExportJobRunner
from commerce_exports.services.exports.worker_export import (
    WorkerExportService,
    process_export_payload,
)

__all__ = [
    "DEFAULT_EXPORT_PAGE_SIZE",
    "EXPORT_TASK_NAME",
    "BaseExportHandler",
    "DataExportService",
    "ExportHandlerRegistry",
    "ExportJobNotFoundError",
    "ExportJobPage",
    "ExportJobRunner",
    "ExportPreconditionError",
    "ExportQueuePublisher",
    "InvalidExportTransitionError",
    "PageRequest",
    "PageResult",
    "UnknownExportColumnError",
    "UnknownExportResourceError",
    "UnsupportedExportFormatError",
    "WorkerExportService",
    "build_export_registry",
    "process_export_payload",
]
