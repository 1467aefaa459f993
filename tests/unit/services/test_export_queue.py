"""Unit tests for ExportQueuePublisher."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from commerce_exports.models.contracts.export import EXPORT_MESSAGE_TYPE, ExportJobPayload
from commerce_exports.services.exports.queue import (
    EXPORT_TASK_NAME,
    ExportQueuePublisher,
    build_redis_settings,
)


@pytest.fixture
def queue_settings():
    settings = MagicMock()
    settings.export_broker_url = "redis://broker:6379/2"
    settings.export_queue_name = "export"
    settings.export_queue_username = None
    settings.export_queue_password = None
    settings.export_queue_database = None
    return settings


@pytest.fixture
def mock_pool():
    pool = MagicMock()
    pool.enqueue_job = AsyncMock(return_value=MagicMock())
    pool.aclose = AsyncMock()
    return pool


@pytest.mark.unit
class TestBuildRedisSettings:
    """Tests for broker connection settings."""

    def test_uses_broker_url(self, queue_settings):
        redis_settings = build_redis_settings(queue_settings)

        assert redis_settings.host == "broker"
        assert redis_settings.port == 6379
        assert redis_settings.database == 2

    def test_credential_overrides(self, queue_settings):
        queue_settings.export_queue_username = "exporter"
        queue_settings.export_queue_password = "secret"
        queue_settings.export_queue_database = 5

        redis_settings = build_redis_settings(queue_settings)

        assert redis_settings.username == "exporter"
        assert redis_settings.password == "secret"
        assert redis_settings.database == 5


@pytest.mark.unit
class TestExportQueuePublisher:
    """Tests for publishing export messages."""

    @pytest.mark.asyncio
    async def test_enqueue_payload_publishes_tagged_message(self, queue_settings, mock_pool):
        payload = ExportJobPayload(
            job_id=uuid4(), resource="products", filters={"isActive": True}
        )
        publisher = ExportQueuePublisher(queue_settings)

        with patch(
            "commerce_exports.services.exports.queue.create_pool",
            new=AsyncMock(return_value=mock_pool),
        ):
            await publisher.enqueue_payload(payload)

        args, kwargs = mock_pool.enqueue_job.call_args
        assert args[0] == EXPORT_TASK_NAME
        message = args[1]
        assert message["type"] == EXPORT_MESSAGE_TYPE
        assert message["payload"]["jobId"] == str(payload.job_id)
        assert message["payload"]["resource"] == "products"
        assert message["payload"]["filters"] == {"isActive": True}
        assert kwargs["_queue_name"] == "export"
        assert kwargs["_job_id"] == f"export:{payload.job_id}"

    @pytest.mark.asyncio
    async def test_pool_is_created_once(self, queue_settings, mock_pool):
        publisher = ExportQueuePublisher(queue_settings)
        create_pool = AsyncMock(return_value=mock_pool)

        with patch("commerce_exports.services.exports.queue.create_pool", new=create_pool):
            await publisher.enqueue_payload(ExportJobPayload(job_id=uuid4(), resource="users"))
            await publisher.enqueue_payload(ExportJobPayload(job_id=uuid4(), resource="users"))

        create_pool.assert_awaited_once()
        assert create_pool.call_args.kwargs["default_queue_name"] == "export"
        assert mock_pool.enqueue_job.await_count == 2

    @pytest.mark.asyncio
    async def test_enqueue_job_builds_payload_from_job(
        self, queue_settings, mock_pool, export_job_factory
    ):
        job = export_job_factory(resource="users", requested_by=uuid4())
        publisher = ExportQueuePublisher(queue_settings)

        with patch(
            "commerce_exports.services.exports.queue.create_pool",
            new=AsyncMock(return_value=mock_pool),
        ):
            await publisher.enqueue(job)

        payload = mock_pool.enqueue_job.call_args.args[1]["payload"]
        assert payload["jobId"] == str(job.id)
        assert payload["requestedBy"] == str(job.requested_by)

    @pytest.mark.asyncio
    async def test_connection_errors_propagate(self, queue_settings):
        publisher = ExportQueuePublisher(queue_settings)

        with patch(
            "commerce_exports.services.exports.queue.create_pool",
            new=AsyncMock(side_effect=ConnectionError("refused")),
        ):
            with pytest.raises(ConnectionError):
                await publisher.enqueue_payload(ExportJobPayload(job_id=uuid4(), resource="users"))

    @pytest.mark.asyncio
    async def test_close_releases_pool(self, queue_settings, mock_pool):
        publisher = ExportQueuePublisher(queue_settings)

        with patch(
            "commerce_exports.services.exports.queue.create_pool",
            new=AsyncMock(return_value=mock_pool),
        ):
            await publisher.enqueue_payload(ExportJobPayload(job_id=uuid4(), resource="users"))
        await publisher.close()
        await publisher.close()

        mock_pool.aclose.assert_awaited_once()
