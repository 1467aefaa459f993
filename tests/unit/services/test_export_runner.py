"""Unit tests for ExportJobRunner."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from commerce_exports.models.contracts.export import ExportJobPayload
from commerce_exports.models.enums import ExecutionMode, ExportFormat, RunOutcome
from commerce_exports.services.exports.exceptions import (
    UnknownExportResourceError,
    UnsupportedExportFormatError,
)
from commerce_exports.services.exports.runner import ExportJobRunner
from conftest import InMemoryExportHandler


class CsvOnlyHandler(InMemoryExportHandler):
    resource = "reports"
    supported_formats = frozenset({ExportFormat.CSV})


@pytest.fixture
def publisher():
    publisher = MagicMock()
    publisher.enqueue_payload = AsyncMock()
    return publisher


@pytest.fixture
def processor():
    return AsyncMock()


def make_runner(registry, publisher, processor, mode: str = "direct") -> ExportJobRunner:
    settings = MagicMock(export_execution_mode=mode)
    return ExportJobRunner(registry, publisher, processor, settings)


def make_payload(resource: str = "widgets", format: ExportFormat = ExportFormat.CSV):
    return ExportJobPayload(job_id=uuid4(), resource=resource, format=format)


@pytest.mark.unit
class TestResolveMode:
    """Tests for execution mode selection."""

    @pytest.mark.parametrize(
        ("configured", "expected"),
        [
            ("queue", ExecutionMode.QUEUE),
            (" QUEUE ", ExecutionMode.QUEUE),
            ("direct", ExecutionMode.DIRECT),
            ("", ExecutionMode.DIRECT),
            ("kafka", ExecutionMode.DIRECT),
        ],
    )
    def test_configured_mode(self, registry, publisher, processor, configured, expected):
        runner = make_runner(registry, publisher, processor, configured)

        assert runner.resolve_mode() == expected

    def test_override_wins_over_configuration(self, registry, publisher, processor):
        runner = make_runner(registry, publisher, processor, "queue")

        assert runner.resolve_mode(ExecutionMode.DIRECT) == ExecutionMode.DIRECT
        assert runner.resolve_mode("queue") == ExecutionMode.QUEUE


@pytest.mark.unit
class TestRun:
    """Tests for running jobs."""

    @pytest.mark.asyncio
    async def test_queue_mode_publishes_without_processing(self, registry, publisher, processor):
        runner = make_runner(registry, publisher, processor, "queue")
        payload = make_payload()

        outcome = await runner.run(payload)

        assert outcome == RunOutcome.QUEUED
        publisher.enqueue_payload.assert_awaited_once_with(payload)
        processor.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_direct_mode_processes_inline(self, registry, publisher, processor):
        runner = make_runner(registry, publisher, processor, "direct")
        payload = make_payload()

        outcome = await runner.run(payload)

        assert outcome == RunOutcome.PROCESSED
        processor.assert_awaited_once_with(payload)
        publisher.enqueue_payload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_override_mode(self, registry, publisher, processor):
        runner = make_runner(registry, publisher, processor, "direct")

        outcome = await runner.run(make_payload(), ExecutionMode.QUEUE)

        assert outcome == RunOutcome.QUEUED

    @pytest.mark.asyncio
    async def test_unknown_resource_fails_before_any_work(self, registry, publisher, processor):
        runner = make_runner(registry, publisher, processor, "queue")

        with pytest.raises(UnknownExportResourceError):
            await runner.run(make_payload(resource="missing"))

        publisher.enqueue_payload.assert_not_awaited()
        processor.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_format_fails_before_any_work(self, registry, publisher, processor):
        registry.register(CsvOnlyHandler())
        runner = make_runner(registry, publisher, processor, "direct")

        with pytest.raises(UnsupportedExportFormatError):
            await runner.run(make_payload(resource="reports", format=ExportFormat.JSON))

        processor.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_processing_errors_propagate(self, registry, publisher):
        processor = AsyncMock(side_effect=RuntimeError("database went away"))
        runner = make_runner(registry, publisher, processor, "direct")

        with pytest.raises(RuntimeError, match="database went away"):
            await runner.run(make_payload())

    @pytest.mark.asyncio
    async def test_publish_errors_propagate(self, registry, processor):
        publisher = MagicMock()
        publisher.enqueue_payload = AsyncMock(side_effect=ConnectionError("broker down"))
        runner = make_runner(registry, publisher, processor, "queue")

        with pytest.raises(ConnectionError):
            await runner.run(make_payload())

        processor.assert_not_awaited()
