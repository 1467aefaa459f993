"""Base types and abstract class for resource export handlers."""
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from commerce_exports.models.contracts.export import (
    ExportColumnDefinition,
    ExportJobPayload,
    ExportOptions,
)
from commerce_exports.models.enums import ColumnPolicy, ExportFormat
from commerce_exports.services.exports.exceptions import UnknownExportColumnError

DEFAULT_EXPORT_PAGE_SIZE = 500


@dataclass
class PageRequest:
    """One page of a paged fetch (1-indexed)."""

    page: int
    limit: int


@dataclass
class PageResult:
    """Records of one page plus the total matching the filters."""

    items: list[Any] = field(default_factory=list)
    total: int = 0


ColumnsInput = Sequence[ExportColumnDefinition | Mapping[str, Any]] | None
OptionsInput = ExportOptions | Mapping[str, Any] | None


def export_timestamp(moment: datetime | None = None) -> str:
    """Millisecond UTC timestamp that is safe inside file names (no ':' or '.')."""
    moment = (moment or datetime.now(UTC)).astimezone(UTC)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


class BaseExportHandler(ABC):
    """
    Abstract base class for resource export handlers.

    A handler knows how to page through one resource and flatten each
    record into a row. Column resolution, page sizing and file naming are
    shared by every resource.
    """

    resource: str
    default_page_size: int = DEFAULT_EXPORT_PAGE_SIZE
    default_format: ExportFormat = ExportFormat.CSV
    supported_formats: frozenset[ExportFormat] = frozenset({ExportFormat.CSV, ExportFormat.JSON})

    def __init__(self, column_policy: ColumnPolicy = ColumnPolicy.USE_REQUESTED):
        self.column_policy = column_policy

    @abstractmethod
    def get_columns(self) -> list[ExportColumnDefinition]:
        """Canonical, ordered list of exportable columns."""
        ...

    @abstractmethod
    async def fetch_page(
        self,
        pagination: PageRequest,
        filters: Mapping[str, Any] | None = None,
    ) -> PageResult:
        """Fetch one page of records in a stable order."""
        ...

    def transform_record(self, record: Any) -> dict[str, Any]:
        """Flatten one record into a row. The default passes the record through."""
        return record

    def resolve_columns(
        self,
        requested: ColumnsInput = None,
        policy: ColumnPolicy | None = None,
    ) -> list[ExportColumnDefinition]:
        """
        Resolve the columns to export.

        Without a request every canonical column is returned in declared
        order. Otherwise the requested order is kept, known keys always use
        the canonical definition and unknown keys follow the column policy.

        Args:
            requested: Column definitions supplied by the caller
            policy: Overrides the handler's policy for unknown keys

        Returns:
            Columns to export, in output order

        Raises:
            UnknownExportColumnError: Unknown keys under REJECT_UNKNOWN
        """
        canonical = self.get_columns()
        if not requested:
            return list(canonical)

        policy = policy or self.column_policy
        by_key = {column.key: column for column in canonical}
        resolved: list[ExportColumnDefinition] = []
        unknown: list[str] = []

        for item in requested:
            column = (
                item
                if isinstance(item, ExportColumnDefinition)
                else ExportColumnDefinition.model_validate(item)
            )
            known = by_key.get(column.key)
            if known is not None:
                resolved.append(known)
            elif policy == ColumnPolicy.USE_REQUESTED:
                resolved.append(column)
            elif policy == ColumnPolicy.REJECT_UNKNOWN:
                unknown.append(column.key)

        if unknown:
            raise UnknownExportColumnError(self.resource, unknown)

        return resolved

    def resolve_page_size(self, options: OptionsInput = None) -> int:
        """Page size from options when it is a positive integer, else the default."""
        if options is None:
            return self.default_page_size

        if isinstance(options, ExportOptions):
            page_size = options.page_size
        else:
            page_size = options.get("pageSize", options.get("page_size"))

        if isinstance(page_size, int) and not isinstance(page_size, bool) and page_size > 0:
            return page_size
        return self.default_page_size

    def build_file_name(self, payload: ExportJobPayload) -> str:
        """Default name: {resource}-export-{timestamp}.{format}."""
        format = ExportFormat(payload.format or self.default_format)
        return f"{self.resource}-export-{export_timestamp()}.{format.value}"

    def supports_format(self, format: ExportFormat | str | None) -> bool:
        """Whether this handler can write the given format."""
        try:
            return ExportFormat(format) in self.supported_formats
        except ValueError:
            return False

    async def estimate(self, filters: Mapping[str, Any] | None = None) -> int:
        """Number of records an export with these filters would contain."""
        result = await self.fetch_page(PageRequest(page=1, limit=1), filters)
        return result.total
