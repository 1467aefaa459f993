"""
Export file serializers.

Rows produced by a handler are turned into CSV or JSON files here. Column
values are looked up by dotted path, so nested entries such as
``profile.firstName`` can be exported as flat columns.
"""

import json
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic_core import to_jsonable_python

from commerce_exports.config import Settings
from commerce_exports.models.contracts.export import ExportColumnDefinition
from commerce_exports.models.enums import ExportFormat

UrlRewriter = Callable[[str], str]

# Length of data_export_jobs.file_name
MAX_FILE_NAME_LENGTH = 255

CONTENT_TYPES: dict[ExportFormat, str] = {
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.JSON: "application/json",
}


def get_column_value(record: Any, column: ExportColumnDefinition) -> Any:
    """
    Value of a column in a row.

    Follows ``column.path`` (or the key) one dotted segment at a time
    through mappings and attributes. A missing segment gives None, and so
    does any segment starting with an underscore, which keeps private and
    dunder attributes out of export files.
    """
    current = record
    for segment in (column.path or column.key).split("."):
        if current is None or segment.startswith("_"):
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        else:
            current = getattr(current, segment, None)
    return current


def format_csv_value(value: Any) -> str:
    """Text form of a value for a CSV cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(to_jsonable_python(value), ensure_ascii=False)
    return str(value)


def escape_csv_cell(text: str) -> str:
    """Quote a cell holding a comma, quote or newline; inner quotes are doubled."""
    if '"' in text or "," in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def build_cdn_rewriter(settings: Settings) -> UrlRewriter | None:
    """
    Rewriter that points S3 object URLs at the CDN.

    Returns None when no CDN is configured. URLs that do not belong to the
    export bucket are left unchanged.
    """
    if not settings.s3_cdn_url:
        return None

    cdn = settings.s3_cdn_url.rstrip("/")
    bucket = settings.s3_bucket
    prefixes = [
        f"{endpoint.rstrip('/')}/{bucket}/"
        for endpoint in (settings.s3_endpoint, settings.s3_public_endpoint)
        if endpoint
    ]
    prefixes.append(f"https://{bucket}.s3.{settings.s3_region}.amazonaws.com/")
    prefixes.append(f"https://{bucket}.s3.amazonaws.com/")

    def rewrite(url: str) -> str:
        for prefix in prefixes:
            if url.startswith(prefix):
                return f"{cdn}/{url[len(prefix):]}"
        return url

    return rewrite


class ExportFileBuilder:
    """
    Accumulates rows and renders the export file.

    CSV files start with a header of column labels, followed by one line
    per row with cells escaped by ``escape_csv_cell``. JSON files hold an
    array of objects keyed by column key.
    """

    def __init__(
        self,
        format: ExportFormat,
        columns: Sequence[ExportColumnDefinition],
        rewrite_url: UrlRewriter | None = None,
    ):
        self.format = ExportFormat(format)
        self.columns = list(columns)
        self.rewrite_url = rewrite_url
        self.row_count = 0

        self._rows: list[dict[str, Any]] = []
        self._lines: list[str] = []
        if self.format == ExportFormat.CSV:
            self._write_line([column.label or column.key for column in self.columns])

    def _write_line(self, cells: list[str]) -> None:
        self._lines.append(",".join(escape_csv_cell(cell) for cell in cells))

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.format]

    def _value(self, row: Any, column: ExportColumnDefinition) -> Any:
        value = get_column_value(row, column)
        if self.rewrite_url is not None and isinstance(value, str):
            value = self.rewrite_url(value)
        return value

    def add(self, row: Any) -> None:
        """Append one transformed record."""
        if self.format == ExportFormat.CSV:
            self._write_line(
                [format_csv_value(self._value(row, column)) for column in self.columns]
            )
        else:
            self._rows.append({column.key: self._value(row, column) for column in self.columns})
        self.row_count += 1

    def build(self) -> bytes:
        """Rendered file content as UTF-8 bytes."""
        if self.format == ExportFormat.CSV:
            return "".join(f"{line}\n" for line in self._lines).encode("utf-8")
        return json.dumps(
            to_jsonable_python(self._rows), indent=2, ensure_ascii=False
        ).encode("utf-8")


def ensure_extension(file_name: str, format: ExportFormat) -> str:
    """
    Append the format's extension unless the name already ends with it.

    The stem is shortened so the result fits MAX_FILE_NAME_LENGTH.
    """
    extension = f".{ExportFormat(format).value}"
    if file_name.lower().endswith(extension):
        file_name, extension = file_name[: -len(extension)], file_name[-len(extension) :]
    return f"{file_name[: MAX_FILE_NAME_LENGTH - len(extension)]}{extension}"
