"""
Export Event Publishing over Redis Pub/Sub

Export processing runs in the API process (direct mode) or in the arq
worker (queue mode); neither holds client connections, so progress and
outcome events are published straight to Redis. The storefront gateway
subscribes to the ``ws:pubsub:*`` channels and forwards them to browsers.

Publishing is best-effort: failures are logged and never interrupt an
export.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

import redis.asyncio as redis

from commerce_exports.config import get_settings

logger = logging.getLogger(__name__)

# Redis pub/sub channel prefix shared with the gateway
PUBSUB_CHANNEL_PREFIX = "ws:pubsub:"

# Module-level cache for the Redis client
_redis_client: redis.Redis | None = None


class MessageType(str, Enum):
    """Event message types."""

    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"
    NOTIFICATION = "notification"


@dataclass
class EventMessage:
    """
    Event message structure.

    Attributes:
        type: Message type (progress, completed, failed, notification)
        channel: Channel the message is for (e.g., export:<job id>, user:<user id>)
        data: Message payload
        timestamp: When the message was created
    """

    type: MessageType
    channel: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(
            {
                "type": self.type.value,
                "channel": self.channel,
                "data": self.data,
                "timestamp": self.timestamp.isoformat(),
            }
        )


async def get_redis() -> redis.Redis:
    """
    Get the shared Redis client instance.

    Creates a new connection on first call, reuses for subsequent calls.

    Returns:
        Async Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def _publish(message: EventMessage) -> None:
    """Publish a message to Redis pub/sub, logging instead of raising on failure."""
    try:
        client = await get_redis()
        await client.publish(f"{PUBSUB_CHANNEL_PREFIX}{message.channel}", message.to_json())
        logger.debug(f"Published to Redis channel: {message.channel}")
    except Exception as e:
        logger.error(f"Failed to publish to Redis channel {message.channel}: {e}")


async def publish_export_progress(
    job_id: UUID,
    page: int,
    processed: int,
    total: int,
) -> None:
    """
    Publish export progress after a page has been written.

    Args:
        job_id: Export job identifier
        page: Page number just processed (1-indexed)
        processed: Records processed so far
        total: Total records reported by the handler
    """
    await _publish(
        EventMessage(
            type=MessageType.PROGRESS,
            channel=f"export:{job_id}",
            data={
                "page": page,
                "current": processed,
                "total": total,
                "percent": round((processed / total * 100) if total > 0 else 0, 1),
            },
        )
    )


async def publish_export_completed(
    job_id: UUID,
    total_records: int,
    file_name: str,
    file_url: str,
) -> None:
    """
    Publish export completion.

    Args:
        job_id: Export job identifier
        total_records: Number of exported records
        file_name: Stored file name
        file_url: Where the file can be fetched
    """
    await _publish(
        EventMessage(
            type=MessageType.COMPLETED,
            channel=f"export:{job_id}",
            data={
                "stage": "complete",
                "total_records": total_records,
                "file_name": file_name,
                "file_url": file_url,
            },
        )
    )


async def publish_export_failed(job_id: UUID, error: str) -> None:
    """
    Publish export failure.

    Args:
        job_id: Export job identifier
        error: Error message
    """
    await _publish(
        EventMessage(
            type=MessageType.FAILED,
            channel=f"export:{job_id}",
            data={"stage": "failed", "error": error},
        )
    )


async def publish_user_notification(
    user_id: UUID,
    title: str,
    message: str,
    notification_type: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """
    Publish a notification to a specific user.

    Args:
        user_id: User to notify
        title: Notification title
        message: Notification message
        notification_type: Type (info, success, warning, error)
        data: Optional additional data
    """
    await _publish(
        EventMessage(
            type=MessageType.NOTIFICATION,
            channel=f"user:{user_id}",
            data={
                "title": title,
                "message": message,
                "notification_type": notification_type,
                **(data or {}),
            },
        )
    )
