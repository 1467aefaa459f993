"""
Export Queue Publisher.

Publishes export jobs to the arq queue consumed by the export worker
(commerce_exports/worker.py). The Redis pool is opened on first use and
shared for the life of the process.
"""

import asyncio
import logging

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings

from commerce_exports.config import Settings, get_settings
from commerce_exports.models.contracts.export import ExportJobPayload
from commerce_exports.models.orm.export_job import ExportJob

logger = logging.getLogger(__name__)

# Name of the worker function that consumes export messages
EXPORT_TASK_NAME = "generate_export_task"


def build_redis_settings(settings: Settings) -> RedisSettings:
    """Broker connection settings with the configured credential overrides."""
    redis_settings = RedisSettings.from_dsn(settings.export_broker_url)
    if settings.export_queue_username:
        redis_settings.username = settings.export_queue_username
    if settings.export_queue_password:
        redis_settings.password = settings.export_queue_password
    if settings.export_queue_database is not None:
        redis_settings.database = settings.export_queue_database
    return redis_settings


class ExportQueuePublisher:
    """Publishes export messages to the configured queue."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._pool: ArqRedis | None = None
        self._lock = asyncio.Lock()

    async def _get_pool(self) -> ArqRedis:
        if self._pool is None:
            async with self._lock:
                if self._pool is None:
                    self._pool = await create_pool(
                        build_redis_settings(self.settings),
                        default_queue_name=self.settings.export_queue_name,
                    )
                    logger.info(
                        f"Connected export queue publisher to '{self.settings.export_queue_name}'"
                    )
        return self._pool

    async def enqueue(self, job: ExportJob) -> None:
        """Publish a persisted job."""
        await self.enqueue_payload(ExportJobPayload.from_job(job))

    async def enqueue_payload(self, payload: ExportJobPayload) -> None:
        """
        Publish one export message.

        The arq job id is derived from the export job id, so publishing the
        same job twice while it is still queued is a no-op.

        Raises:
            Connection or publish errors from the broker
        """
        pool = await self._get_pool()
        queued = await pool.enqueue_job(
            EXPORT_TASK_NAME,
            payload.to_message(),
            _job_id=f"export:{payload.job_id}",
            _queue_name=self.settings.export_queue_name,
        )
        if queued is None:
            logger.warning(
                f"Export job {payload.job_id} is already queued",
                extra={"job_id": str(payload.job_id)},
            )
            return

        logger.info(
            f"Enqueued export job {payload.job_id} for {payload.resource}",
            extra={
                "job_id": str(payload.job_id),
                "resource": payload.resource,
                "queue": self.settings.export_queue_name,
            },
        )

    async def close(self) -> None:
        """Close the broker connection."""
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None
