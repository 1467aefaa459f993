"""
arq Worker Configuration.

This module defines the background worker that consumes export messages.
Jobs are published by the API in queue mode (services/exports/queue.py) and
processed with the same code path the API uses in direct mode.

Run the worker with:
    arq commerce_exports.worker.WorkerSettings
"""

import logging
from typing import Any

from pydantic import ValidationError

from commerce_exports.config import get_settings
from commerce_exports.models.contracts.export import EXPORT_MESSAGE_TYPE, ExportJobPayload
from commerce_exports.services.exports.queue import build_redis_settings

logger = logging.getLogger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    """Open the database and build the export handler registry."""
    from commerce_exports.core.database import get_session_factory, init_db
    from commerce_exports.services.exports.bootstrap import build_export_registry

    settings = get_settings()
    settings.validate_paths()
    await init_db()
    ctx["export_registry"] = build_export_registry(get_session_factory(), settings)
    logger.info(f"Export worker started on queue '{settings.export_queue_name}'")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Release database and Redis connections."""
    from commerce_exports.core.database import close_db
    from commerce_exports.core.pubsub import close_redis

    await close_redis()
    await close_db()
    logger.info("Export worker stopped")


async def generate_export_task(ctx: dict[str, Any], message: dict[str, Any]) -> None:
    """
    Process one export message.

    Args:
        ctx: arq context (holds the export registry built on startup)
        message: {"type": "export:generate", "payload": {...}}

    Raises:
        ValueError: If the message is not an export message or the payload is invalid
    """
    from commerce_exports.services.exports.worker_export import process_export_payload

    message_type = message.get("type") if isinstance(message, dict) else None
    if message_type != EXPORT_MESSAGE_TYPE:
        logger.error(f"Unsupported export message type: {message_type}")
        raise ValueError(f"Unsupported export message type: {message_type}")

    try:
        payload = ExportJobPayload.model_validate(message.get("payload") or {})
    except ValidationError as e:
        logger.error(f"Invalid export payload: {e}")
        raise ValueError(f"Invalid export payload: {e}") from e

    logger.info(
        f"Processing export job {payload.job_id} for {payload.resource}",
        extra={"job_id": str(payload.job_id), "resource": payload.resource},
    )

    await process_export_payload(payload, ctx["export_registry"])

    logger.info(
        f"Completed export job {payload.job_id}",
        extra={"job_id": str(payload.job_id), "resource": payload.resource},
    )


class WorkerSettings:
    """
    arq worker settings.

    Configures the worker's connection to the broker, task functions,
    concurrency limits, timeouts, and retry behavior.
    """

    functions = [generate_export_task]

    on_startup = startup
    on_shutdown = shutdown

    # Same broker and queue the API publishes to
    redis_settings = build_redis_settings(get_settings())
    queue_name = get_settings().export_queue_name

    # Exports are memory-heavy; keep concurrency low
    max_jobs = 4

    job_timeout = get_settings().export_job_timeout

    # A failed export is recorded on the job; never run it twice
    retry_jobs = False
    max_tries = 1
