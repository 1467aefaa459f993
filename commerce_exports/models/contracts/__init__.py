"""Pydantic contracts (API request/response schemas and queue payloads)."""

from commerce_exports.models.contracts.common import ErrorResponse, HealthResponse
from commerce_exports.models.contracts.export import (
    EXPORT_MESSAGE_TYPE,
    CreateExportRequest,
    CreateExportResponse,
    DownloadUrlResponse,
    ExportColumnDefinition,
    ExportEstimateRequest,
    ExportEstimateResponse,
    ExportJobCreate,
    ExportJobList,
    ExportJobPayload,
    ExportJobPublic,
    ExportOptions,
    ExportResult,
)

__all__ = [
    "EXPORT_MESSAGE_TYPE",
    "CreateExportRequest",
    "CreateExportResponse",
    "DownloadUrlResponse",
    "ErrorResponse",
    "ExportColumnDefinition",
    "ExportEstimateRequest",
    "ExportEstimateResponse",
    "ExportJobCreate",
    "ExportJobList",
    "ExportJobPayload",
    "ExportJobPublic",
    "ExportOptions",
    "ExportResult",
    "HealthResponse",
]
