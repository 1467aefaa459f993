"""Unit tests for export file serialization."""

import csv
import io
import json
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from commerce_exports.models.contracts.export import ExportColumnDefinition
from commerce_exports.models.enums import ExportFormat, ProductStatus
from commerce_exports.services.exports.serializers import (
    ExportFileBuilder,
    build_cdn_rewriter,
    ensure_extension,
    escape_csv_cell,
    format_csv_value,
    get_column_value,
)

COLUMNS = [
    ExportColumnDefinition(key="id", label="ID"),
    ExportColumnDefinition(key="note", label="Note"),
    ExportColumnDefinition(key="city", label="City", path="address.city"),
]


@pytest.mark.unit
class TestColumnValues:
    """Tests for value lookup and CSV cell formatting."""

    def test_dotted_path_lookup(self):
        row = {"address": {"city": "Porto"}}

        assert get_column_value(row, COLUMNS[2]) == "Porto"

    def test_missing_path_segment_gives_none(self):
        assert get_column_value({"address": None}, COLUMNS[2]) is None
        assert get_column_value({}, COLUMNS[2]) is None

    def test_attribute_lookup(self):
        row = MagicMock(spec=["address"])
        row.address.city = "Braga"

        assert get_column_value(row, COLUMNS[2]) == "Braga"

    def test_underscore_segments_are_not_followed(self):
        created = datetime(2026, 1, 2, tzinfo=UTC)
        row = {"createdAt": created, "_private": "hidden"}
        private = ExportColumnDefinition(key="_private", label="Private")
        dunder = ExportColumnDefinition(key="cls", label="Class", path="createdAt.__class__")
        plain = ExportColumnDefinition(key="createdAt", label="Created")

        assert get_column_value(row, private) is None
        assert get_column_value(row, dunder) is None
        assert get_column_value(row, plain) == created

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (0, "0"),
            (ProductStatus.ACTIVE, "ACTIVE"),
            (datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC), "2026-01-02T03:04:05+00:00"),
            ({"a": 1}, '{"a": 1}'),
            ([1, "x"], '[1, "x"]'),
        ],
    )
    def test_format_csv_value(self, value, expected):
        assert format_csv_value(value) == expected

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("", ""),
            ("plain", "plain"),
            ("a,b", '"a,b"'),
            ('say "hi"', '"say ""hi"""'),
            ("two\nlines", '"two\nlines"'),
            ("carriage\rreturn", "carriage\rreturn"),
        ],
    )
    def test_escape_csv_cell(self, text, expected):
        assert escape_csv_cell(text) == expected


@pytest.mark.unit
class TestExportFileBuilder:
    """Tests for CSV and JSON file output."""

    def test_csv_header_and_escaping(self):
        builder = ExportFileBuilder(ExportFormat.CSV, COLUMNS)
        builder.add({"id": 1, "note": 'says "hi", twice\nreally', "address": {"city": "Faro"}})
        builder.add({"id": 2, "note": None})

        content = builder.build().decode("utf-8")

        assert content.startswith("ID,Note,City\n")
        assert '"says ""hi"", twice\nreally"' in content
        rows = list(csv.reader(io.StringIO(content)))
        assert rows[1] == ["1", 'says "hi", twice\nreally', "Faro"]
        assert rows[2] == ["2", "", ""]
        assert builder.row_count == 2
        assert builder.content_type.startswith("text/csv")

    def test_csv_with_no_rows_has_only_header(self):
        builder = ExportFileBuilder(ExportFormat.CSV, COLUMNS)

        assert builder.build() == b"ID,Note,City\n"

    def test_single_empty_cell_is_an_empty_line(self):
        column = ExportColumnDefinition(key="note", label="Note")
        builder = ExportFileBuilder(ExportFormat.CSV, [column])
        builder.add({"note": None})
        builder.add({"note": "a\rb"})

        assert builder.build() == b"Note\n\na\rb\n"

    def test_json_array_keyed_by_column_key(self):
        builder = ExportFileBuilder(ExportFormat.JSON, COLUMNS)
        created = datetime(2026, 5, 1, tzinfo=UTC)
        builder.add({"id": 1, "note": created, "address": {"city": "Faro"}})

        data = json.loads(builder.build())

        assert data == [{"id": 1, "note": "2026-05-01T00:00:00Z", "city": "Faro"}]
        assert builder.content_type == "application/json"

    def test_empty_json_export(self):
        builder = ExportFileBuilder(ExportFormat.JSON, COLUMNS)

        assert json.loads(builder.build()) == []

    def test_rewrite_applies_to_string_values(self):
        builder = ExportFileBuilder(
            ExportFormat.JSON, COLUMNS, rewrite_url=lambda url: url.replace("s3://", "cdn://")
        )
        builder.add({"id": 1, "note": "s3://image.png"})

        assert json.loads(builder.build())[0]["note"] == "cdn://image.png"


@pytest.mark.unit
class TestHelpers:
    """Tests for file name and URL helpers."""

    def test_ensure_extension(self):
        assert ensure_extension("report", ExportFormat.CSV) == "report.csv"
        assert ensure_extension("report.csv", ExportFormat.CSV) == "report.csv"
        assert ensure_extension("report.csv", ExportFormat.JSON) == "report.csv.json"

    def test_ensure_extension_keeps_names_within_column_length(self):
        name = ensure_extension("q" * 300, ExportFormat.JSON)

        assert len(name) == 255
        assert name.endswith("q.json")
        assert ensure_extension("x" * 251 + ".CSV", ExportFormat.CSV) == "x" * 251 + ".CSV"
        assert len(ensure_extension("x" * 260 + ".csv", ExportFormat.CSV)) == 255

    def test_cdn_rewriter_disabled_without_cdn(self):
        settings = MagicMock(s3_cdn_url=None)

        assert build_cdn_rewriter(settings) is None

    def test_cdn_rewriter_replaces_bucket_urls_only(self):
        settings = MagicMock(
            s3_cdn_url="https://cdn.example.com/",
            s3_bucket="media",
            s3_endpoint="http://minio:9000",
            s3_public_endpoint="https://files.example.com",
            s3_region="eu-west-1",
        )
        rewrite = build_cdn_rewriter(settings)

        assert rewrite("http://minio:9000/media/a/b.png") == "https://cdn.example.com/a/b.png"
        assert rewrite("https://files.example.com/media/c.png") == "https://cdn.example.com/c.png"
        assert (
            rewrite("https://media.s3.eu-west-1.amazonaws.com/d.png")
            == "https://cdn.example.com/d.png"
        )
        assert rewrite("https://elsewhere.example.com/e.png") == "https://elsewhere.example.com/e.png"
